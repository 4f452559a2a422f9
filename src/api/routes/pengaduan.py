"""Complaint ("pengaduan") routes.

Public intake with optional login, visibility-scoped reads, admin triage and
statistics.
"""

from typing import Optional

from fastapi import APIRouter, Query, Request, status

from api.forms import read_complaint_submission
from config import COMPLAINT_CATEGORIES, DEFAULT_PAGE_SIZE, MAX_PAGE_NUMBER, MAX_PAGE_SIZE
from core.dependencies import AdminUser, ComplaintManagerDep, CurrentUser, OptionalUser
from schemas.common import Pagination, envelope
from schemas.complaint import (
    STATUS_LABELS,
    ComplaintPublic,
    ComplaintUpdate,
    StatusUpdateRequest,
)

router = APIRouter(prefix="/api/pengaduan", tags=["Pengaduan"])


@router.post("", status_code=status.HTTP_201_CREATED, summary="File a complaint")
async def create_complaint(
    request: Request,
    identity: OptionalUser,
    complaint_manager: ComplaintManagerDep,
) -> dict:
    """Create a complaint from JSON or a multipart form.

    Login is optional. When the caller is authenticated the complaint is
    linked to their account; otherwise it is stored as anonymous.

    Args:
        request: Incoming request; multipart forms may carry a photo in `foto`.
        identity: Caller identity, None when anonymous.
        complaint_manager: Injected ComplaintManager instance.

    Returns:
        Envelope with the created complaint (status 'pending').
    """
    fields, photo = await read_complaint_submission(request)
    complaint = complaint_manager.create(fields, identity, photo)
    return envelope("Complaint created successfully", ComplaintPublic.from_model(complaint))


@router.get("/stats", summary="Complaint statistics")
def complaint_stats(identity: AdminUser, complaint_manager: ComplaintManagerDep) -> dict:
    """Totals by status and category plus the most recent complaints. Admin only."""
    stats = complaint_manager.stats(identity)
    stats["recent"] = [ComplaintPublic.from_model(c) for c in stats["recent"]]
    return envelope("Complaint statistics retrieved successfully", stats)


@router.get("/kategori/list", summary="Complaint categories")
def list_categories() -> dict:
    categories = [
        {"value": value, "label": label} for value, label in COMPLAINT_CATEGORIES.items()
    ]
    return envelope("Categories retrieved successfully", categories)


@router.get("/status/list", summary="Complaint statuses")
def list_statuses() -> dict:
    statuses = [
        {"value": state.value, "label": label, "color": color}
        for state, (label, color) in STATUS_LABELS.items()
    ]
    return envelope("Statuses retrieved successfully", statuses)


@router.get("", summary="List complaints")
def list_complaints(
    identity: OptionalUser,
    complaint_manager: ComplaintManagerDep,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    category: Optional[str] = None,
    user_id: Optional[int] = Query(default=None, alias="userId"),
    page: int = Query(default=1, ge=1, le=MAX_PAGE_NUMBER),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> dict:
    """List complaints visible to the caller.

    Citizens always get their own complaints, whatever userId they send.
    Admins see everything and may filter by userId. Anonymous callers see
    anonymous submissions only.
    """
    items, total = complaint_manager.list_complaints(
        identity,
        page,
        limit,
        status=status_filter,
        category=category,
        owner_user_id=user_id,
    )
    return envelope(
        "Complaints retrieved successfully",
        [ComplaintPublic.from_model(c) for c in items],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{complaint_id}", summary="Get a complaint")
def get_complaint(
    complaint_id: int,
    identity: OptionalUser,
    complaint_manager: ComplaintManagerDep,
) -> dict:
    complaint = complaint_manager.get_visible(complaint_id, identity)
    return envelope("Complaint retrieved successfully", ComplaintPublic.from_model(complaint))


@router.api_route(
    "/{complaint_id}/status",
    methods=["PUT", "PATCH"],
    summary="Change complaint status",
)
def update_complaint_status(
    complaint_id: int,
    req: StatusUpdateRequest,
    identity: AdminUser,
    complaint_manager: ComplaintManagerDep,
) -> dict:
    """Triage a complaint. Admin only; illegal moves are rejected."""
    complaint = complaint_manager.update_status(complaint_id, req.status, identity)
    return envelope(
        "Complaint status updated successfully", ComplaintPublic.from_model(complaint)
    )


@router.put("/{complaint_id}", summary="Edit a complaint")
def update_complaint(
    complaint_id: int,
    req: ComplaintUpdate,
    identity: CurrentUser,
    complaint_manager: ComplaintManagerDep,
) -> dict:
    """Edit a complaint. Admins always; owners only while it is pending."""
    complaint = complaint_manager.update(
        complaint_id, req.model_dump(exclude_unset=True), identity
    )
    return envelope("Complaint updated successfully", ComplaintPublic.from_model(complaint))


@router.delete("/{complaint_id}", summary="Delete a complaint")
def delete_complaint(
    complaint_id: int,
    identity: CurrentUser,
    complaint_manager: ComplaintManagerDep,
) -> dict:
    """Hard-delete a complaint. Admins always; owners only while it is pending."""
    complaint_manager.delete(complaint_id, identity)
    return envelope("Complaint deleted successfully")
