"""Dependency injection module for FastAPI.

This module provides the request-scoped managers and the authentication
chain (authenticate, optional authenticate, role and ownership checks) used
by the route handlers.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from config import ROLE_ADMIN, UPLOAD_DIR
from core import policy
from core.database import get_db
from core.exceptions import AuthError
from core.security import decode_access_token
from schemas.user import Identity
from utils.complaint_manager import ComplaintManager
from utils.photo_storage import PhotoStorage
from utils.user_manager import UserManager

logger = logging.getLogger(__name__)

# Missing or non-bearer headers yield None instead of a framework 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_user_manager(db: Session = Depends(get_db)) -> UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return UserManager(db)


def get_photo_storage() -> PhotoStorage:
    """Get the photo storage rooted at UPLOAD_DIR."""
    return PhotoStorage(UPLOAD_DIR)


def get_complaint_manager(
    db: Session = Depends(get_db),
    photo_storage: PhotoStorage = Depends(get_photo_storage),
) -> ComplaintManager:
    """Get ComplaintManager instance with request-scoped DB session.

    Args:
        db: Database session.
        photo_storage: Storage for uploaded photos.

    Returns:
        ComplaintManager instance.
    """
    return ComplaintManager(db, photo_storage)


UserManagerDep = Annotated[UserManager, Depends(get_user_manager)]
ComplaintManagerDep = Annotated[ComplaintManager, Depends(get_complaint_manager)]


def _resolve_identity(token: str, user_manager: UserManager) -> Identity:
    """Verify a token and re-check the user against the store.

    Raises:
        AuthError: If the token is invalid or expired, or the user no longer
            exists or is inactive.
    """
    payload = decode_access_token(token)
    user = user_manager.get_user_by_id(payload["userId"])
    if user is None:
        raise AuthError("User not found")
    if not user.is_active:
        raise AuthError("Account is inactive")
    return Identity(id=user.id, email=user.email, role=user.role)


def authenticate(
    user_manager: UserManagerDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """Require a valid bearer token.

    Args:
        user_manager: Injected UserManager instance.
        credentials: HTTP Bearer token credentials, if any.

    Returns:
        Identity of the caller.

    Raises:
        AuthError: If the token is missing, invalid or expired, or the user
            is gone or inactive.
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Missing token")
    return _resolve_identity(credentials.credentials, user_manager)


def optional_authenticate(
    user_manager: UserManagerDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Identity]:
    """Like authenticate, but any failure leaves the caller anonymous (None)."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _resolve_identity(credentials.credentials, user_manager)
    except AuthError as e:
        logger.debug("Treating caller as anonymous: %s", e.message)
        return None


CurrentUser = Annotated[Identity, Depends(authenticate)]
OptionalUser = Annotated[Optional[Identity], Depends(optional_authenticate)]


def require_role(*roles: str):
    """Build a dependency that only lets the given roles through."""

    def dependency(identity: CurrentUser) -> Identity:
        return policy.ensure_role(identity, *roles)

    return dependency


def require_owner_or_admin(user_id: int, identity: CurrentUser) -> Identity:
    """Let admins and the user addressed by the `user_id` path parameter through."""
    return policy.ensure_owner_or_admin(identity, user_id)


AdminUser = Annotated[Identity, Depends(require_role(ROLE_ADMIN))]
OwnerOrAdmin = Annotated[Identity, Depends(require_owner_or_admin)]
