from .base import Base
from .user import UserModel
from .complaint import ComplaintModel

__all__ = ["Base", "UserModel", "ComplaintModel"]
