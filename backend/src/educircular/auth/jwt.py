"""JWT token generation and validation

Tokens identify an account and carry its role so the access policy can be
applied without a second lookup of the role.

Token Claims:
- sub: User ID as UUID string
- role: "admin" | "user"
- email: User's email address
- iat / exp: Issued-at and expiry as Unix timestamps

Example Token Payload:
{
  "sub": "550e8400-e29b-41d4-a716-446655440000",
  "role": "user",
  "email": "office@school.edu",
  "iat": 1704368400,
  "exp": 1706960400
}
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from uuid import UUID

import jwt

from ..config import get_settings


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from settings.

    Raises:
        ValueError: If JWT_SECRET is empty
    """
    secret = get_settings().JWT_SECRET
    if not secret:
        raise ValueError("JWT_SECRET is not configured")
    return secret


def get_jwt_expiry_minutes() -> int:
    return get_settings().JWT_EXPIRY_MINUTES


def create_access_token(user_id: UUID, role: str, email: str) -> str:
    """Create a signed JWT access token for an authenticated user."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=get_jwt_expiry_minutes())

    payload = {
        'sub': str(user_id),
        'role': role,
        'email': email,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp())
    }

    return jwt.encode(payload, _get_jwt_secret(), algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    return jwt.decode(token, _get_jwt_secret(), algorithms=[get_settings().JWT_ALGORITHM])
