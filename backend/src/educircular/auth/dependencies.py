"""FastAPI dependencies for authentication and authorization.

This module provides dependency injection functions for:
- Extracting and validating JWT tokens from requests
- Loading the current authenticated user
- Optional authentication for routes open to guests
- Enforcing the capability policy from roles.py

Usage:
    @router.get("/my-submissions")
    def my_submissions(user: CurrentUser):
        ...

    @router.put("/{id}/approve")
    def approve(admin: AdminUser):
        ...
"""

import logging
from typing import Annotated, Callable, Optional
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import Forbidden, Unauthenticated
from ..models.user import User
from .jwt import decode_token
from .roles import Capability, has_capability, role_of

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401 by us, not 403 by FastAPI
security = HTTPBearer(auto_error=False)


def _authenticate(token: str, db: Session) -> User:
    """Validate a bearer token and load its user.

    Raises:
        Unauthenticated: If the token is invalid, expired, or the user is gone
    """
    try:
        payload = decode_token(token)
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise Unauthenticated("Invalid token: missing user ID claim")
        user_id = UUID(user_id_str)
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except jwt.InvalidTokenError as e:
        raise Unauthenticated(f"Invalid token: {str(e)}")
    except ValueError as e:
        raise Unauthenticated(f"Invalid token claims: {str(e)}")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthenticated("User not found")

    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Extract and validate the Bearer token, returning the authenticated user.

    Raises:
        Unauthenticated: If the token is missing, invalid, expired, or user not found
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Not authorized, no token")

    return _authenticate(credentials.credentials, db)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Authenticate if a token is present, otherwise continue as guest.

    Any credential failure downgrades the request to a guest request
    instead of rejecting it.
    """
    if credentials is None or not credentials.credentials:
        return None

    try:
        return _authenticate(credentials.credentials, db)
    except Unauthenticated as e:
        logger.info(f"Optional auth failed, continuing as guest: {e.message}")
        return None


def require_capability(capability: Capability) -> Callable:
    """Create a dependency that enforces a capability for signed-in users.

    Example:
        @router.get("/pending")
        def list_pending(user: User = Depends(require_capability(Capability.LIST_PENDING))):
            ...
    """

    def capability_dependency(current_user: User = Depends(get_current_user)) -> User:
        try:
            role = role_of(current_user)
        except ValueError:
            # Invalid role in database (should never happen due to CHECK constraint)
            raise Forbidden(f"Invalid user role: {current_user.role}")

        if not has_capability(role, capability):
            raise Forbidden("Access denied. Admin only.")

        return current_user

    return capability_dependency


def get_current_admin(
    current_user: User = Depends(require_capability(Capability.REVIEW_SUBMISSION))
) -> User:
    """Convenience dependency for admin-only endpoints."""
    return current_user


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
AdminUser = Annotated[User, Depends(get_current_admin)]
