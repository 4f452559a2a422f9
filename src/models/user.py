"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from datetime import datetime

import pytz
from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from config import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH, MAX_PHONE_LENGTH
from .base import Base


def _utcnow() -> datetime:
    return datetime.now(pytz.utc)


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Stored lower-cased; unique across active and inactive accounts
    email = Column(String(MAX_EMAIL_LENGTH), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default="citizen")  # 'citizen' or 'admin'
    name = Column(String(MAX_NAME_LENGTH), nullable=True)
    phone = Column(String(MAX_PHONE_LENGTH), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    complaints = relationship("ComplaintModel", back_populates="owner")
