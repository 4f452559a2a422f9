"""Complaint lifecycle management.

Creation and update validation, listing with pagination, the status state
machine and dashboard statistics for complaints ("pengaduan").
"""

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import pytz
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from config import (
    CATEGORY_ALIASES,
    COMPLAINT_CATEGORIES,
    DEFAULT_COMPLAINT_TITLE,
    MAX_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_TITLE_LENGTH,
    MIN_PHONE_DIGITS,
    RECENT_COMPLAINTS_LIMIT,
    ROLE_ADMIN,
)
from core import policy
from core.exceptions import InternalError, InvalidTransitionError, NotFoundError, ValidationError
from models.complaint import ComplaintModel
from schemas.complaint import ComplaintStatus
from schemas.user import Identity
from utils.photo_storage import PhotoStorage, PhotoUpload

logger = logging.getLogger(__name__)

STATUS_VALUES = [s.value for s in ComplaintStatus]

# Legal status moves; terminal states have no outgoing edges
ALLOWED_TRANSITIONS: Dict[str, List[str]] = {
    ComplaintStatus.PENDING.value: [
        ComplaintStatus.IN_PROGRESS.value,
        ComplaintStatus.REJECTED.value,
    ],
    ComplaintStatus.IN_PROGRESS.value: [
        ComplaintStatus.RESOLVED.value,
        ComplaintStatus.REJECTED.value,
    ],
    ComplaintStatus.RESOLVED.value: [],
    ComplaintStatus.REJECTED.value: [],
}

_NON_DIGIT = re.compile(r"\D")


def normalize_category(category: Optional[str]) -> str:
    """Trim, lower-case and resolve aliases of a category.

    Raises:
        ValidationError: If the category is missing or not in the canonical list.
    """
    if not category or not category.strip():
        raise ValidationError("Category is required")
    value = " ".join(category.strip().lower().split())
    value = CATEGORY_ALIASES.get(value, value)
    if value not in COMPLAINT_CATEGORIES:
        raise ValidationError(
            f"Invalid category. Choices: {', '.join(COMPLAINT_CATEGORIES)}"
        )
    return value


def validate_phone(phone: Optional[str]) -> str:
    if not phone or not phone.strip():
        raise ValidationError("Reporter phone is required")
    if len(phone.strip()) > MAX_PHONE_LENGTH:
        raise ValidationError(f"Phone number must be at most {MAX_PHONE_LENGTH} characters")
    if len(_NON_DIGIT.sub("", phone)) < MIN_PHONE_DIGITS:
        raise ValidationError(f"Phone number must have at least {MIN_PHONE_DIGITS} digits")
    return phone.strip()


def validate_status(status: Optional[str]) -> str:
    if status not in STATUS_VALUES:
        raise ValidationError(f"Invalid status. Choices: {', '.join(STATUS_VALUES)}")
    return status


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, [])


def _required_text(value: Optional[str], label: str, max_length: Optional[int] = None) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} is required")
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return value


def _optional_text(
    value: Optional[str], label: str = "", max_length: Optional[int] = None
) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return value or None


class ComplaintManager:
    """Manages complaint persistence and lifecycle rules."""

    def __init__(self, db: Session, photo_storage: Optional[PhotoStorage] = None):
        """Initialize ComplaintManager.

        Args:
            db: SQLAlchemy Session.
            photo_storage: Where uploaded photos are written. Required only
                when photos are attached or deleted.
        """
        self.db = db
        self.photo_storage = photo_storage

    def _query(self):
        return self.db.query(ComplaintModel).options(joinedload(ComplaintModel.owner))

    def create(
        self,
        fields: Dict[str, Optional[str]],
        identity: Optional[Identity] = None,
        photo: Optional[PhotoUpload] = None,
    ) -> ComplaintModel:
        """Validate and store a new complaint.

        Args:
            fields: Keys 'title', 'reporter_name', 'reporter_phone',
                'address', 'category', 'body'.
            identity: Authenticated caller, or None for anonymous submissions.
            photo: Optional photo to store alongside.

        Returns:
            Created ComplaintModel with status 'pending'.

        Raises:
            ValidationError: If a required field is missing or invalid, or the
                photo is rejected. Nothing is persisted in that case.
        """
        reporter_name = _required_text(
            fields.get("reporter_name"), "Reporter name", MAX_NAME_LENGTH
        )
        reporter_phone = validate_phone(fields.get("reporter_phone"))
        category = normalize_category(fields.get("category"))
        body = _required_text(fields.get("body"), "Description")
        title = _optional_text(fields.get("title"), "Title", MAX_TITLE_LENGTH)
        title = title or DEFAULT_COMPLAINT_TITLE

        photo_ref = None
        if photo is not None:
            if self.photo_storage is None:
                raise ValidationError("Photo uploads are not available")
            photo_ref = self.photo_storage.save(photo.content, photo.filename, photo.content_type)

        complaint = ComplaintModel(
            title=title,
            reporter_name=reporter_name,
            reporter_phone=reporter_phone,
            address=_optional_text(fields.get("address")),
            category=category,
            body=body,
            photo_ref=photo_ref,
            status=ComplaintStatus.PENDING.value,
            owner_user_id=identity.id if identity else None,
        )
        self.db.add(complaint)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            if photo_ref and self.photo_storage is not None:
                self.photo_storage.delete(photo_ref)
            logger.error("Failed to save complaint: %s", e)
            raise InternalError("Failed to save complaint") from e
        self.db.refresh(complaint)

        logger.info(
            "Created complaint id=%s (category=%s, owner=%s)",
            complaint.id,
            category,
            complaint.owner_user_id,
        )
        return complaint

    def get(self, complaint_id: int) -> ComplaintModel:
        """Get a complaint by id.

        Raises:
            NotFoundError: If the complaint does not exist.
        """
        complaint = self._query().filter(ComplaintModel.id == complaint_id).first()
        if complaint is None:
            raise NotFoundError("Complaint not found")
        return complaint

    def get_visible(self, complaint_id: int, identity: Optional[Identity]) -> ComplaintModel:
        """Get a complaint the caller is allowed to read.

        Raises:
            NotFoundError: If the complaint does not exist.
            ForbiddenError: If the complaint belongs to someone else.
        """
        complaint = self.get(complaint_id)
        policy.ensure_can_view_complaint(identity, complaint)
        return complaint

    def get_owned(self, complaint_id: int, identity: Identity) -> ComplaintModel:
        """Get a complaint owned by the caller; others' records look absent."""
        complaint = (
            self._query()
            .filter(
                ComplaintModel.id == complaint_id,
                ComplaintModel.owner_user_id == identity.id,
            )
            .first()
        )
        if complaint is None:
            raise NotFoundError("Complaint not found or you do not have access")
        return complaint

    def list_complaints(
        self,
        identity: Optional[Identity],
        page: int,
        limit: int,
        status: Optional[str] = None,
        category: Optional[str] = None,
        owner_user_id: Optional[int] = None,
        own_only: bool = False,
    ) -> Tuple[List[ComplaintModel], int]:
        """List complaints visible to the caller, newest first.

        Args:
            identity: Caller identity or None.
            page: 1-based page number.
            limit: Page size.
            status: Optional status filter.
            category: Optional category filter (normalized).
            owner_user_id: Owner filter, honored for admins only.
            own_only: Restrict to the caller's own complaints even for admins.

        Returns:
            Tuple of (complaints on the page, total matching complaints).
        """
        scope = policy.complaint_listing_scope(identity, owner_user_id, own_only=own_only)

        query = self._query()
        if scope.unowned_only:
            query = query.filter(ComplaintModel.owner_user_id.is_(None))
        elif scope.owner_user_id is not None:
            query = query.filter(ComplaintModel.owner_user_id == scope.owner_user_id)
        if status:
            query = query.filter(ComplaintModel.status == validate_status(status))
        if category:
            query = query.filter(ComplaintModel.category == normalize_category(category))

        total = query.count()
        items = (
            query.order_by(ComplaintModel.created_at.desc(), ComplaintModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def update_status(
        self, complaint_id: int, new_status: Optional[str], identity: Optional[Identity]
    ) -> ComplaintModel:
        """Move a complaint along the status state machine.

        The write is conditional on the status observed before the check, so a
        concurrent change makes this call fail instead of skipping a state.

        Raises:
            ForbiddenError: If the caller is not an admin.
            ValidationError: If new_status is not a known status.
            NotFoundError: If the complaint does not exist.
            InvalidTransitionError: If the move is not allowed from the
                current status.
        """
        policy.ensure_can_triage(identity)
        new_status = validate_status(new_status)
        complaint = self.get(complaint_id)

        current = complaint.status
        if not can_transition(current, new_status):
            raise InvalidTransitionError(current, new_status)

        updated = (
            self.db.query(ComplaintModel)
            .filter(ComplaintModel.id == complaint_id, ComplaintModel.status == current)
            .update(
                {"status": new_status, "updated_at": datetime.now(pytz.utc)},
                synchronize_session=False,
            )
        )
        if updated == 0:
            self.db.rollback()
            latest = self.db.query(ComplaintModel).filter(ComplaintModel.id == complaint_id).first()
            if latest is None:
                raise NotFoundError("Complaint not found")
            raise InvalidTransitionError(latest.status, new_status)
        self.db.commit()
        self.db.refresh(complaint)

        logger.info(
            "Complaint id=%s status %s -> %s by user id=%s",
            complaint_id,
            current,
            new_status,
            identity.id,
        )
        return complaint

    def update(
        self,
        complaint_id: int,
        fields: Dict[str, Optional[str]],
        identity: Optional[Identity],
        complaint: Optional[ComplaintModel] = None,
        as_owner: bool = False,
    ) -> ComplaintModel:
        """Edit complaint content.

        Args:
            complaint_id: Complaint to edit.
            fields: Only the keys present are applied; validation mirrors create.
            identity: Caller identity.
            complaint: Already loaded row, to skip a second lookup.
            as_owner: Apply the owner rules even when the caller is an admin.

        Raises:
            NotFoundError: If the complaint does not exist.
            ForbiddenError: If the caller is neither admin nor the owner of a
                still-pending complaint.
            ValidationError: If a provided field is invalid.
        """
        if complaint is None:
            complaint = self.get(complaint_id)
        policy.ensure_can_modify_complaint(identity, complaint, as_owner=as_owner)

        changes = {}
        if fields.get("title") is not None:
            changes["title"] = (
                _optional_text(fields["title"], "Title", MAX_TITLE_LENGTH)
                or DEFAULT_COMPLAINT_TITLE
            )
        if fields.get("reporter_name") is not None:
            changes["reporter_name"] = _required_text(
                fields["reporter_name"], "Reporter name", MAX_NAME_LENGTH
            )
        if fields.get("reporter_phone") is not None:
            changes["reporter_phone"] = validate_phone(fields["reporter_phone"])
        if fields.get("category") is not None:
            changes["category"] = normalize_category(fields["category"])
        if fields.get("body") is not None:
            changes["body"] = _required_text(fields["body"], "Description")
        if "address" in fields:
            changes["address"] = _optional_text(fields["address"])

        for key, value in changes.items():
            setattr(complaint, key, value)
        self.db.commit()
        self.db.refresh(complaint)

        logger.info("Updated complaint id=%s fields=%s", complaint.id, sorted(changes))
        return complaint

    def delete(
        self,
        complaint_id: int,
        identity: Optional[Identity],
        complaint: Optional[ComplaintModel] = None,
        as_owner: bool = False,
    ) -> None:
        """Hard-delete a complaint and its stored photo.

        Raises:
            NotFoundError: If the complaint does not exist.
            ForbiddenError: If the caller is neither admin nor the owner of a
                still-pending complaint.
        """
        if complaint is None:
            complaint = self.get(complaint_id)
        policy.ensure_can_modify_complaint(identity, complaint, as_owner=as_owner)

        photo_ref = complaint.photo_ref
        self.db.delete(complaint)
        self.db.commit()
        if photo_ref and self.photo_storage is not None:
            # The row is gone already; a leftover file must not fail the request
            try:
                self.photo_storage.delete(photo_ref)
            except (OSError, ValidationError) as e:
                logger.error(
                    "Could not remove photo %s of complaint id=%s: %s", photo_ref, complaint_id, e
                )

        logger.info("Deleted complaint id=%s by user id=%s", complaint_id, identity.id)

    def _count_by_status(self, owner_user_id: Optional[int] = None) -> Dict[str, int]:
        counts = {status: 0 for status in STATUS_VALUES}
        query = self.db.query(ComplaintModel.status, func.count(ComplaintModel.id))
        if owner_user_id is not None:
            query = query.filter(ComplaintModel.owner_user_id == owner_user_id)
        for status, count in query.group_by(ComplaintModel.status).all():
            counts[status] = count
        return counts

    def stats(self, identity: Optional[Identity]) -> Dict[str, object]:
        """Dashboard statistics for admins.

        Returns:
            Dictionary with 'total', 'byStatus', 'byCategory' and 'recent'
            (the newest complaints as ComplaintModel rows).

        Raises:
            ForbiddenError: If the caller is not an admin.
        """
        policy.ensure_role(identity, ROLE_ADMIN)

        total = self.db.query(func.count(ComplaintModel.id)).scalar() or 0
        by_category = {
            category: count
            for category, count in self.db.query(
                ComplaintModel.category, func.count(ComplaintModel.id)
            )
            .group_by(ComplaintModel.category)
            .all()
        }
        recent = (
            self._query()
            .order_by(ComplaintModel.created_at.desc(), ComplaintModel.id.desc())
            .limit(RECENT_COMPLAINTS_LIMIT)
            .all()
        )
        return {
            "total": total,
            "byStatus": self._count_by_status(),
            "byCategory": by_category,
            "recent": recent,
        }

    def owner_stats(self, identity: Identity) -> Dict[str, object]:
        """Per-status counts of the caller's own complaints."""
        by_status = self._count_by_status(owner_user_id=identity.id)
        return {"total": sum(by_status.values()), "byStatus": by_status}
