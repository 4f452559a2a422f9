"""Self-scoped complaint routes ("laporan") for logged-in users.

Every route works on the caller's own complaints only; complaints of other
users answer 404 so their existence is not disclosed.
"""

from typing import Optional

from fastapi import APIRouter, Query, Request, status

from api.forms import read_complaint_submission
from config import DEFAULT_PAGE_SIZE, MAX_PAGE_NUMBER, MAX_PAGE_SIZE
from core.dependencies import ComplaintManagerDep, CurrentUser
from schemas.common import Pagination, envelope
from schemas.complaint import ComplaintPublic, ComplaintUpdate

router = APIRouter(prefix="/api/user/laporan", tags=["User Reports"])


@router.post("", status_code=status.HTTP_201_CREATED, summary="File a report")
async def create_report(
    request: Request,
    identity: CurrentUser,
    complaint_manager: ComplaintManagerDep,
) -> dict:
    fields, photo = await read_complaint_submission(request)
    complaint = complaint_manager.create(fields, identity, photo)
    return envelope("Report created successfully", ComplaintPublic.from_model(complaint))


@router.get("", summary="List own reports")
def list_reports(
    identity: CurrentUser,
    complaint_manager: ComplaintManagerDep,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    category: Optional[str] = None,
    page: int = Query(default=1, ge=1, le=MAX_PAGE_NUMBER),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> dict:
    items, total = complaint_manager.list_complaints(
        identity,
        page,
        limit,
        status=status_filter,
        category=category,
        own_only=True,
    )
    return envelope(
        "Reports retrieved successfully",
        [ComplaintPublic.from_model(c) for c in items],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/stats", summary="Own report statistics")
def report_stats(identity: CurrentUser, complaint_manager: ComplaintManagerDep) -> dict:
    return envelope(
        "Report statistics retrieved successfully", complaint_manager.owner_stats(identity)
    )


@router.get("/{complaint_id}", summary="Get an own report")
def get_report(
    complaint_id: int, identity: CurrentUser, complaint_manager: ComplaintManagerDep
) -> dict:
    complaint = complaint_manager.get_owned(complaint_id, identity)
    return envelope("Report retrieved successfully", ComplaintPublic.from_model(complaint))


@router.put("/{complaint_id}", summary="Edit an own report")
def update_report(
    complaint_id: int,
    req: ComplaintUpdate,
    identity: CurrentUser,
    complaint_manager: ComplaintManagerDep,
) -> dict:
    """Edit an own report; only allowed while it is still pending."""
    complaint = complaint_manager.get_owned(complaint_id, identity)
    complaint = complaint_manager.update(
        complaint_id,
        req.model_dump(exclude_unset=True),
        identity,
        complaint=complaint,
        as_owner=True,
    )
    return envelope("Report updated successfully", ComplaintPublic.from_model(complaint))


@router.delete("/{complaint_id}", summary="Delete an own report")
def delete_report(
    complaint_id: int, identity: CurrentUser, complaint_manager: ComplaintManagerDep
) -> dict:
    """Delete an own report; only allowed while it is still pending."""
    complaint = complaint_manager.get_owned(complaint_id, identity)
    complaint_manager.delete(complaint_id, identity, complaint=complaint, as_owner=True)
    return envelope("Report deleted successfully")
