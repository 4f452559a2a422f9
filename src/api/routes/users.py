"""User account routes.

Registration, login, self-service profile and admin user management.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, status

from config import DEFAULT_PAGE_SIZE, MAX_PAGE_NUMBER, MAX_PAGE_SIZE, ROLES
from core import policy
from core.dependencies import AdminUser, CurrentUser, OwnerOrAdmin, UserManagerDep
from core.exceptions import ForbiddenError
from core.security import create_access_token
from schemas.common import Pagination, envelope
from schemas.user import (
    LoginData,
    LoginRequest,
    RegisterRequest,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    UpdateUserRequest,
    UserPublic,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register a user")
def register(req: RegisterRequest, user_manager: UserManagerDep) -> dict:
    """Register a new account.

    The role defaults to citizen. Admin registration may be gated by
    ADMIN_REGISTRATION_TOKEN.

    Args:
        req: Registration request with email, password, role, name, phone.
        user_manager: Injected UserManager instance.

    Returns:
        Envelope with the public user record.
    """
    user = user_manager.register(
        email=req.email,
        password=req.password,
        role=req.role,
        name=req.name,
        phone=req.phone,
        admin_token=req.admin_token,
    )
    return envelope("User registered successfully", UserPublic.model_validate(user))


@router.post("/login", summary="Log in")
def login(req: LoginRequest, user_manager: UserManagerDep) -> dict:
    """Login with email and password.

    Args:
        req: Login request with email and password.
        user_manager: Injected UserManager instance.

    Returns:
        Envelope with the user record and a signed access token.
    """
    user = user_manager.authenticate(req.email, req.password)
    token = create_access_token(user.id, user.email, user.role)
    logger.info("User id=%s logged in", user.id)
    return envelope(
        "Login successful",
        LoginData(user=UserPublic.model_validate(user), token=token),
    )


@router.post("/logout", summary="Log out")
def logout() -> dict:
    """Logout endpoint.

    Tokens are stateless, so logging out means the client discards its
    token. This endpoint exists for API consistency.
    """
    return envelope("Logged out successfully")


@router.get("/profile", summary="Current user's profile")
def get_profile(identity: CurrentUser, user_manager: UserManagerDep) -> dict:
    user = user_manager.get_user(identity.id)
    return envelope("Profile retrieved successfully", UserPublic.model_validate(user))


@router.put("/profile", summary="Update current user's profile")
def update_profile(
    req: UpdateProfileRequest, identity: CurrentUser, user_manager: UserManagerDep
) -> dict:
    user = user_manager.update_profile(identity.id, req.model_dump(exclude_unset=True))
    return envelope("Profile updated successfully", UserPublic.model_validate(user))


@router.get("/roles/list", summary="Available roles")
def list_roles() -> dict:
    roles = [
        {"value": value, "label": info["label"], "description": info["description"]}
        for value, info in ROLES.items()
    ]
    return envelope("Roles retrieved successfully", roles)


@router.get("/stats/summary", summary="User statistics")
def user_stats(identity: AdminUser, user_manager: UserManagerDep) -> dict:
    return envelope("User statistics retrieved successfully", user_manager.user_stats())


@router.get("", summary="List users")
def list_users(
    identity: AdminUser,
    user_manager: UserManagerDep,
    role: Optional[str] = None,
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
    page: int = Query(default=1, ge=1, le=MAX_PAGE_NUMBER),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> dict:
    """List all users (admin only), newest first, with optional filters."""
    users, total = user_manager.list_users(page, limit, role=role, is_active=is_active)
    return envelope(
        "Users retrieved successfully",
        [UserPublic.model_validate(u) for u in users],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{user_id}", summary="Get a user")
def get_user(user_id: int, identity: OwnerOrAdmin, user_manager: UserManagerDep) -> dict:
    user = user_manager.get_user(user_id)
    return envelope("User retrieved successfully", UserPublic.model_validate(user))


@router.put("/{user_id}", summary="Update a user")
def update_user(
    user_id: int,
    req: UpdateUserRequest,
    identity: OwnerOrAdmin,
    user_manager: UserManagerDep,
) -> dict:
    """Update a user.

    Permission requirements:
    - Admin: any field of any user, including role and isActive
    - Owner: only name, email and phone of their own account

    Raises:
        ForbiddenError: If a non-admin tries to change role or isActive.
    """
    fields = req.model_dump(exclude_unset=True)
    if not policy.is_admin(identity) and ("role" in fields or "is_active" in fields):
        raise ForbiddenError("Only admins can change role or active status")
    user = user_manager.update_user(user_id, fields)
    return envelope("User updated successfully", UserPublic.model_validate(user))


@router.put("/{user_id}/password", summary="Change password")
def update_password(
    user_id: int,
    req: UpdatePasswordRequest,
    identity: OwnerOrAdmin,
    user_manager: UserManagerDep,
) -> dict:
    user_manager.update_password(user_id, req.current_password, req.new_password)
    return envelope("Password updated successfully")


@router.delete("/{user_id}", summary="Deactivate a user")
def delete_user(user_id: int, identity: AdminUser, user_manager: UserManagerDep) -> dict:
    """Soft-delete (deactivate) a user. Admin only."""
    user = user_manager.deactivate(user_id)
    return envelope("User deactivated successfully", UserPublic.model_validate(user))
