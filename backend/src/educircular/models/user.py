"""User SQLAlchemy model"""

import re
import uuid

from sqlalchemy import Column, Text, DateTime, CheckConstraint, Uuid
from sqlalchemy.orm import validates

from .base import Base, utcnow


class User(Base):
    """Account that can sign in: an institution user or an administrator.

    Passwords are hashed using Argon2id. Guests have no row here; they are
    identified on their submissions by free-text name and email only.
    """
    __tablename__ = "user"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default="user")
    institution_name = Column(Text, nullable=True)
    contact_person = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(Text, nullable=True)
    state = Column(Text, nullable=True)
    pincode = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'user')", name="ck_user_role"),
    )

    @validates("email")
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
