#!/usr/bin/env python
"""Seed script to create an administrator account.

Administrators cannot register through the API; this script is the only way
to create one. Run it once during initial setup (and again for each
additional administrator).

Usage:
    python backend/scripts/seed_admin.py

Environment Variables:
    DATABASE_URL: PostgreSQL connection string
    PASSWORD_PEPPER: Password hashing pepper (required)
    ADMIN_EMAIL: Email for admin user (default: admin@educircular.local)
    ADMIN_PASSWORD: Password for admin user (default: AdminP@ss123)
    ADMIN_INSTITUTION: Institution shown for the admin (default: EduCircular Administration)
"""

import os
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from sqlalchemy.exc import SQLAlchemyError  # noqa: E402

from educircular.auth.password import hash_password, validate_password_strength  # noqa: E402
from educircular.auth.roles import UserRole  # noqa: E402
from educircular.database import SessionLocal  # noqa: E402
from educircular.models.user import User  # noqa: E402


def main():
    """Create an admin user."""
    admin_email = os.getenv("ADMIN_EMAIL", "admin@educircular.local").lower()
    admin_password = os.getenv("ADMIN_PASSWORD", "AdminP@ss123")
    admin_institution = os.getenv("ADMIN_INSTITUTION", "EduCircular Administration")

    is_valid, error_msg = validate_password_strength(admin_password)
    if not is_valid:
        print(f"ERROR: Password does not meet strength requirements: {error_msg}")
        sys.exit(1)

    session = SessionLocal()

    try:
        existing_user = session.query(User).filter(User.email == admin_email).first()

        if existing_user:
            print(f"ERROR: User with email {admin_email} already exists (role={existing_user.role})")
            sys.exit(1)

        admin_user = User(
            email=admin_email,
            password_hash=hash_password(admin_password),
            role=UserRole.ADMIN.value,
            institution_name=admin_institution,
        )

        session.add(admin_user)
        session.commit()

        print("SUCCESS: Admin user created")
        print(f"  ID:          {admin_user.id}")
        print(f"  Email:       {admin_user.email}")
        print(f"  Institution: {admin_user.institution_name}")
        print(f"  Role:        {admin_user.role}")

    except SQLAlchemyError as e:
        session.rollback()
        print(f"ERROR: Failed to create admin user: {e}")
        sys.exit(1)

    finally:
        session.close()


if __name__ == "__main__":
    main()
