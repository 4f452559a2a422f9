"""Complaint ("pengaduan") schema definitions."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict

from config import UPLOAD_URL_PREFIX
from schemas.common import CamelModel
from schemas.user import OwnerSummary


class ComplaintStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


STATUS_LABELS = {
    ComplaintStatus.PENDING: ("Menunggu", "orange"),
    ComplaintStatus.IN_PROGRESS: ("Sedang Diproses", "blue"),
    ComplaintStatus.RESOLVED: ("Selesai", "green"),
    ComplaintStatus.REJECTED: ("Ditolak", "red"),
}


class ComplaintCreate(CamelModel):
    # Phone numbers sometimes arrive as JSON numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: Optional[str] = None
    reporter_name: Optional[str] = None
    reporter_phone: Optional[str] = None
    address: Optional[str] = None
    category: Optional[str] = None
    body: Optional[str] = None


class ComplaintUpdate(ComplaintCreate):
    """Partial update; only fields that are sent are changed."""

    pass


class StatusUpdateRequest(CamelModel):
    status: Optional[str] = None


class ComplaintPublic(CamelModel):
    id: int
    title: str
    reporter_name: str
    reporter_phone: str
    address: Optional[str] = None
    category: str
    body: str
    photo_ref: Optional[str] = None
    photo_url: Optional[str] = None
    status: str
    owner_user_id: Optional[int] = None
    owner: Optional[OwnerSummary] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model) -> "ComplaintPublic":
        """Build the API shape from a ComplaintModel row."""
        owner = OwnerSummary.model_validate(model.owner) if model.owner else None
        photo_url = f"{UPLOAD_URL_PREFIX}/{model.photo_ref}" if model.photo_ref else None
        return cls(
            id=model.id,
            title=model.title,
            reporter_name=model.reporter_name,
            reporter_phone=model.reporter_phone,
            address=model.address,
            category=model.category,
            body=model.body,
            photo_ref=model.photo_ref,
            photo_url=photo_url,
            status=model.status,
            owner_user_id=model.owner_user_id,
            owner=owner,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
