from datetime import datetime

import pytz
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from config import MAX_NAME_LENGTH, MAX_PHONE_LENGTH, MAX_TITLE_LENGTH
from .base import Base


def _utcnow() -> datetime:
    return datetime.now(pytz.utc)


class ComplaintModel(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(MAX_TITLE_LENGTH), nullable=False)
    reporter_name = Column(String(MAX_NAME_LENGTH), nullable=False)
    reporter_phone = Column(String(MAX_PHONE_LENGTH), nullable=False)
    address = Column(Text, nullable=True)
    category = Column(String(50), index=True, nullable=False)
    body = Column(Text, nullable=False)
    photo_ref = Column(String, nullable=True)  # path relative to UPLOAD_DIR
    status = Column(String(20), index=True, nullable=False, default="pending")

    # Null for anonymous submissions
    owner_user_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
    )

    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    owner = relationship("UserModel", back_populates="complaints")
