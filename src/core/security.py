"""Access token issuing and verification.

Tokens are stateless HS256 JWTs carrying the user id, email and role.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import pytz
from jose import ExpiredSignatureError, JWTError, jwt

from config import ACCESS_TOKEN_EXPIRE_HOURS, JWT_ALGORITHM, JWT_SECRET_KEY
from core.exceptions import AuthError

logger = logging.getLogger(__name__)


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token.

    Args:
        user_id: Id of the authenticated user.
        email: Email of the authenticated user.
        role: Role of the authenticated user.
        expires_delta: Optional validity window, ACCESS_TOKEN_EXPIRE_HOURS by default.

    Returns:
        Encoded JWT token string.
    """
    now = datetime.now(pytz.utc)
    if expires_delta is None:
        expires_delta = timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)
    to_encode = {
        "sub": str(user_id),
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify a token and return its payload.

    Args:
        token: Encoded JWT.

    Returns:
        Decoded payload with an integer 'userId'.

    Raises:
        AuthError: "Token has expired" on expiry, "Invalid token" on any
            signature or format problem.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthError("Token has expired")
    except JWTError as e:
        logger.debug("Rejected token: %s", e)
        raise AuthError("Invalid token")

    user_id = payload.get("userId")
    if not isinstance(user_id, int):
        raise AuthError("Invalid token")
    return payload
