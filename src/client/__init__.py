from .api import ApiError, PengaduanClient
from .session import SessionContext

__all__ = ["ApiError", "PengaduanClient", "SessionContext"]
