"""User management utilities.

This module provides user management functionality including user storage,
password hashing, credential checks and account deactivation.
"""

import logging
from typing import Dict, List, Optional, Tuple

import bcrypt
import email_validator
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import (
    ADMIN_REGISTRATION_TOKEN,
    BCRYPT_ROUNDS,
    DEFAULT_ROLE,
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MIN_PASSWORD_LENGTH,
    ROLE_ADMIN,
    ROLES,
)
from core.exceptions import (
    AuthError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from models.user import UserModel

logger = logging.getLogger(__name__)

# Same message for unknown email, inactive account and wrong password
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: Optional[str]) -> str:
    """Validate and normalize an email address.

    Args:
        email: Raw email input.

    Returns:
        Lower-cased, trimmed email.

    Raises:
        ValidationError: If the email is missing or malformed.
    """
    if not email or not email.strip():
        raise ValidationError("Email is required")
    email = normalize_email(email)
    if len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError(f"Email must be at most {MAX_EMAIL_LENGTH} characters")
    try:
        email_validator.validate_email(email, check_deliverability=False)
    except email_validator.EmailNotValidError as e:
        raise ValidationError(f"Invalid email format: {e}") from e
    # Single-letter top-level domains do not exist
    if len(email.rsplit(".", 1)[-1]) < 2:
        raise ValidationError("Invalid email format")
    return email


def validate_role(role: str) -> str:
    if role not in ROLES:
        raise ValidationError(
            f"Invalid role: {role}. Must be one of: {', '.join(ROLES)}"
        )
    return role


def _clean(value: Optional[str], label: str, max_length: int) -> Optional[str]:
    """Trim a string field, turning blanks into None.

    Raises:
        ValidationError: If the trimmed value is longer than max_length.
    """
    if value is None:
        return None
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return value or None


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        # bcrypt only looks at the first 72 bytes
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > 72:
            logger.warning(
                "Password exceeds 72 bytes (%d bytes), truncating", len(password_bytes)
            )
            password_bytes = password_bytes[:72]

        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        hashed = bcrypt.hashpw(password_bytes, salt)
        return hashed.decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode("utf-8")[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def _validate_password(self, password: Optional[str], field: str = "Password") -> str:
        if not password:
            raise ValidationError(f"{field} is required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"{field} must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        return password

    def _ensure_email_available(self, email: str, exclude_user_id: Optional[int] = None) -> None:
        query = self.db.query(UserModel).filter(UserModel.email == email)
        if exclude_user_id is not None:
            query = query.filter(UserModel.id != exclude_user_id)
        if query.first():
            raise ConflictError("Email is already registered")

    def _commit(self) -> None:
        """Commit, translating unique-key violations into ConflictError."""
        try:
            self.db.commit()
        except IntegrityError as e:
            # Two requests can pass the pre-check at the same time; the
            # unique constraint on users.email settles it.
            self.db.rollback()
            if "email" in str(e).lower() or "unique" in str(e).lower():
                raise ConflictError("Email is already registered") from e
            logger.error("Failed to save user: %s", e)
            raise InternalError("Failed to save user") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to save user: %s", e)
            raise InternalError("Failed to save user") from e

    def register(
        self,
        email: Optional[str],
        password: Optional[str],
        role: Optional[str] = None,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        admin_token: Optional[str] = None,
    ) -> UserModel:
        """Create a new user account.

        Args:
            email: Login email, unique case-insensitively.
            password: Plain text password (at least MIN_PASSWORD_LENGTH chars).
            role: 'citizen' (default) or 'admin'.
            name: Optional display name.
            phone: Optional phone number.
            admin_token: Checked against ADMIN_REGISTRATION_TOKEN for admins.

        Returns:
            Created UserModel.

        Raises:
            ValidationError: If email, password or role are invalid.
            ForbiddenError: If admin registration is gated and the token is wrong.
            ConflictError: If the email is already registered.
        """
        email = validate_email(email)
        password = self._validate_password(password)
        role = validate_role(role or DEFAULT_ROLE)

        if role == ROLE_ADMIN and ADMIN_REGISTRATION_TOKEN:
            if admin_token != ADMIN_REGISTRATION_TOKEN:
                logger.warning("Rejected admin registration for %s: bad token", email)
                raise ForbiddenError("Invalid admin registration token")

        # Inactive accounts still own their email
        self._ensure_email_available(email)

        user = UserModel(
            email=email,
            password_hash=self.hash_password(password),
            role=role,
            name=_clean(name, "Name", MAX_NAME_LENGTH),
            phone=_clean(phone, "Phone", MAX_PHONE_LENGTH),
            is_active=True,
        )
        self.db.add(user)
        self._commit()
        self.db.refresh(user)

        logger.info("Registered user %s (id=%s, role=%s)", email, user.id, role)
        return user

    def authenticate(self, email: Optional[str], password: Optional[str]) -> UserModel:
        """Check login credentials.

        Args:
            email: Login email.
            password: Plain text password.

        Returns:
            The matching active UserModel.

        Raises:
            ValidationError: If email or password is missing.
            AuthError: If the email is unknown, the account is inactive or
                the password does not match. The message is the same in all
                three cases.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self.get_user_by_email(email)
        if user is None:
            logger.warning("Login failed: unknown email %s", normalize_email(email))
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)
        if not user.is_active:
            logger.warning("Login failed: inactive account %s", user.email)
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)
        if not self.verify_password(password, user.password_hash):
            logger.warning("Login failed: wrong password for %s", user.email)
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)
        return user

    def get_user_by_email(self, email: str) -> Optional[UserModel]:
        """Get a user by email (case-insensitive).

        Args:
            email: Email to look up.

        Returns:
            UserModel if found, None otherwise.
        """
        return (
            self.db.query(UserModel)
            .filter(UserModel.email == normalize_email(email))
            .first()
        )

    def get_user_by_id(self, user_id: int) -> Optional[UserModel]:
        """Get a user by ID.

        Args:
            user_id: User ID to look up.

        Returns:
            UserModel if found, None otherwise.
        """
        return self.db.query(UserModel).filter(UserModel.id == user_id).first()

    def get_user(self, user_id: int) -> UserModel:
        """Like get_user_by_id but raises NotFoundError when absent."""
        user = self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_users(
        self,
        page: int,
        limit: int,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[UserModel], int]:
        """List users, newest first.

        Args:
            page: 1-based page number.
            limit: Page size.
            role: Optional role filter.
            is_active: Optional active flag filter.

        Returns:
            Tuple of (users on the page, total matching users).
        """
        query = self.db.query(UserModel)
        if role:
            query = query.filter(UserModel.role == role)
        if is_active is not None:
            query = query.filter(UserModel.is_active == is_active)

        total = query.count()
        users = (
            query.order_by(UserModel.created_at.desc(), UserModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total

    def update_profile(self, user_id: int, fields: Dict[str, Optional[str]]) -> UserModel:
        """Update name, email and phone of a user.

        Args:
            user_id: User to update.
            fields: Only the keys present are applied ('name', 'email', 'phone').

        Returns:
            Updated UserModel.

        Raises:
            NotFoundError: If the user does not exist.
            ValidationError: If the new email is malformed.
            ConflictError: If the new email belongs to another user.
        """
        user = self.get_user(user_id)

        if "email" in fields and fields["email"] is not None:
            email = validate_email(fields["email"])
            if email != user.email:
                self._ensure_email_available(email, exclude_user_id=user.id)
                user.email = email
        if "name" in fields:
            user.name = _clean(fields["name"], "Name", MAX_NAME_LENGTH)
        if "phone" in fields:
            user.phone = _clean(fields["phone"], "Phone", MAX_PHONE_LENGTH)

        self._commit()
        self.db.refresh(user)
        logger.info("Updated profile of user id=%s", user.id)
        return user

    def update_user(self, user_id: int, fields: Dict[str, object]) -> UserModel:
        """Admin-level update: profile fields plus role and active flag.

        Args:
            user_id: User to update.
            fields: Keys among 'name', 'email', 'phone', 'role', 'is_active'.

        Returns:
            Updated UserModel.
        """
        if fields.get("role") is not None:
            validate_role(fields["role"])

        profile_fields = {k: v for k, v in fields.items() if k in ("name", "email", "phone")}
        user = self.update_profile(user_id, profile_fields)

        if fields.get("role") is not None:
            user.role = fields["role"]
        if fields.get("is_active") is not None:
            user.is_active = bool(fields["is_active"])

        self._commit()
        self.db.refresh(user)
        return user

    def update_password(
        self,
        user_id: int,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        """Replace a user's password after checking the current one.

        Raises:
            ValidationError: If a field is missing or the new password is too short.
            NotFoundError: If the user does not exist.
            AuthError: If the current password does not match.
        """
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        self._validate_password(new_password, field="New password")

        user = self.get_user(user_id)
        if not self.verify_password(current_password, user.password_hash):
            raise AuthError("Current password is incorrect")

        user.password_hash = self.hash_password(new_password)
        self._commit()
        logger.info("Password changed for user id=%s", user.id)

    def deactivate(self, user_id: int) -> UserModel:
        """Soft-delete a user. The row and its email stay reserved.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user = self.get_user(user_id)
        user.is_active = False
        self._commit()
        self.db.refresh(user)
        logger.info("Deactivated user id=%s", user.id)
        return user

    def user_stats(self) -> Dict[str, object]:
        """Count users overall, by active flag and by role."""
        total = self.db.query(func.count(UserModel.id)).scalar() or 0
        active = (
            self.db.query(func.count(UserModel.id))
            .filter(UserModel.is_active.is_(True))
            .scalar()
            or 0
        )
        by_role = {role: 0 for role in ROLES}
        rows = (
            self.db.query(UserModel.role, func.count(UserModel.id))
            .group_by(UserModel.role)
            .all()
        )
        for role, count in rows:
            by_role[role] = count

        return {
            "totalUsers": total,
            "activeUsers": active,
            "inactiveUsers": total - active,
            "usersByRole": by_role,
        }
