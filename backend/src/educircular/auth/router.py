"""Authentication endpoints for the EduCircular API

Provides signup for institution accounts, login, and profile management.
Administrator accounts are never created here; see scripts/seed_admin.py.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import Forbidden, Unauthenticated, ValidationFailure
from ..models.user import User
from .dependencies import CurrentUser
from .jwt import create_access_token, get_jwt_expiry_minutes
from .password import hash_password, verify_password, validate_password_strength
from .roles import UserRole
from .schemas import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    ProfileUpdateRequest,
    SignupRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(user_id=user.id, role=user.role, email=user.email)
    return AuthResponse(
        token=token,
        expires_in=get_jwt_expiry_minutes() * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Register an institution account and return a token.

    Raises:
        Forbidden: If the request asks for the admin role
        ValidationFailure: If institution name is missing, the password is
            weak, or the email is already registered
    """
    if payload.role == UserRole.ADMIN.value:
        raise Forbidden("Admin registration is disabled. Only institution owners can register.")

    if not (payload.institution_name or "").strip():
        raise ValidationFailure("Institution name is required")

    is_valid, error_msg = validate_password_strength(payload.password)
    if not is_valid:
        raise ValidationFailure(error_msg)

    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ValidationFailure("User already exists with this email")

    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        role=UserRole.USER.value,
        institution_name=payload.institution_name.strip(),
        contact_person=payload.contact_person,
        phone=payload.phone,
        address=payload.address,
        city=payload.city,
        state=payload.state,
        pincode=payload.pincode,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Registered user: id={user.id}, email={user.email}")
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Authenticate with email and password and return a token.

    Raises:
        Unauthenticated: If the credentials don't match (same message either
            way to prevent account enumeration)
    """
    user = db.query(User).filter(User.email == credentials.email.lower()).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info(f"Failed login for email={credentials.email}")
        raise Unauthenticated("Invalid email or password")

    logger.info(f"User logged in: id={user.id}, role={user.role}")
    return _auth_response(user)


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: CurrentUser):
    """Return the signed-in user's profile."""
    return MeResponse(user=UserResponse.model_validate(current_user))


@router.put("/profile", response_model=MeResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
):
    """Update profile fields of the signed-in user."""
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)

    logger.info(f"Updated profile: user_id={current_user.id}")
    return MeResponse(user=UserResponse.model_validate(current_user))
