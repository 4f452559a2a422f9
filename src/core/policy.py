"""Authorization policy for users and complaints.

Every role and ownership decision lives here; routes and managers call these
functions instead of comparing roles and owner ids themselves.
"""

from dataclasses import dataclass
from typing import Optional

from config import ROLE_ADMIN
from core.exceptions import AuthError, ForbiddenError
from models.complaint import ComplaintModel
from schemas.complaint import ComplaintStatus
from schemas.user import Identity


def is_admin(identity: Optional[Identity]) -> bool:
    return identity is not None and identity.role == ROLE_ADMIN


def is_owner(identity: Optional[Identity], owner_user_id: Optional[int]) -> bool:
    return identity is not None and owner_user_id is not None and identity.id == owner_user_id


def ensure_role(identity: Optional[Identity], *roles: str) -> Identity:
    """Require the caller to hold one of `roles`.

    Raises:
        AuthError: If there is no caller identity.
        ForbiddenError: If the caller's role is not allowed.
    """
    if identity is None:
        raise AuthError("Authentication required")
    if identity.role not in roles:
        raise ForbiddenError("Access denied. Your role is not allowed to do this")
    return identity


def ensure_owner_or_admin(identity: Optional[Identity], resource_user_id: int) -> Identity:
    """Require the caller to be an admin or the user `resource_user_id` itself."""
    if identity is None:
        raise AuthError("Authentication required")
    if not (is_admin(identity) or identity.id == resource_user_id):
        raise ForbiddenError("Access denied. You can only access your own data")
    return identity


def can_view_complaint(identity: Optional[Identity], complaint: ComplaintModel) -> bool:
    """Owned complaints are private to owner and admins; unowned ones are public."""
    if is_admin(identity):
        return True
    if complaint.owner_user_id is None:
        return True
    return is_owner(identity, complaint.owner_user_id)


def ensure_can_view_complaint(identity: Optional[Identity], complaint: ComplaintModel) -> None:
    if not can_view_complaint(identity, complaint):
        raise ForbiddenError("You do not have access to this complaint")


def ensure_can_modify_complaint(
    identity: Optional[Identity], complaint: ComplaintModel, as_owner: bool = False
) -> None:
    """Gate edits and deletes of a complaint.

    Admins may always modify, unless `as_owner` asks for the owner rules to
    apply to everyone (the self-scoped routes). Owners may modify only while
    the complaint is still pending. Anyone else is refused.

    Raises:
        AuthError: If there is no caller identity.
        ForbiddenError: If the caller may not modify the complaint.
    """
    if identity is None:
        raise AuthError("Authentication required")
    if is_admin(identity) and not as_owner:
        return
    if not is_owner(identity, complaint.owner_user_id):
        raise ForbiddenError("You do not have access to modify this complaint")
    if complaint.status != ComplaintStatus.PENDING.value:
        raise ForbiddenError(
            "Complaint can only be changed by its owner while it is still pending"
        )


def ensure_can_triage(identity: Optional[Identity]) -> Identity:
    """Status changes are reserved for admins."""
    return ensure_role(identity, ROLE_ADMIN)


@dataclass(frozen=True)
class ListingScope:
    """Which complaints a caller may list.

    owner_user_id restricts to one owner; unowned_only restricts to anonymous
    submissions. Both unset means no restriction.
    """

    owner_user_id: Optional[int] = None
    unowned_only: bool = False


def complaint_listing_scope(
    identity: Optional[Identity],
    requested_owner_id: Optional[int] = None,
    own_only: bool = False,
) -> ListingScope:
    """Resolve the listing filter for a caller.

    Non-admin callers are always scoped to their own complaints, whatever
    filter they asked for. Admins may filter by any owner unless `own_only`
    is set. Anonymous callers only see anonymous submissions.
    """
    if identity is None:
        return ListingScope(unowned_only=True)
    if is_admin(identity) and not own_only:
        return ListingScope(owner_user_id=requested_owner_id)
    return ListingScope(owner_user_id=identity.id)
