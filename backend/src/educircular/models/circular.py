"""Circular SQLAlchemy model

Circular is the terminal registry record: a document that was uploaded
directly by an administrator or has completed moderation (published when
approved, retained unpublished when rejected).
"""

import uuid

from sqlalchemy import (
    Column,
    Text,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    Uuid,
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Circular(Base):
    """Published (or rejected-but-retained) circular.

    status is nullable: rows written before the column existed carry NULL
    and are read as approved by the listing queries. source_submission_id is
    unique so one submission can be materialized at most once.
    """
    __tablename__ = "circular"
    __table_args__ = (
        Index("ix_circular_category_created", "category", "created_at"),
        Index("ix_circular_status_created", "status", "created_at"),
        Index("ix_circular_uploaded_by", "uploaded_by_id"),
        CheckConstraint(
            "status IS NULL OR status IN ('pending', 'approved', 'rejected')",
            name="ck_circular_status",
        ),
        CheckConstraint(
            "origin IN ('direct_upload', 'submission')",
            name="ck_circular_origin",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    order_date = Column(DateTime(timezone=True), nullable=True)
    description = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="Education")
    file_id = Column(Text, nullable=False, unique=True)  # Blob id in object storage
    file_name = Column(Text, nullable=False)
    file_size = Column(BigInteger, nullable=False)
    uploaded_by_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )
    guest_name = Column(Text, nullable=True)
    guest_email = Column(Text, nullable=True)
    is_published = Column(Boolean, nullable=False, default=True)
    is_approved_by_admin = Column(Boolean, nullable=False, default=False)
    status = Column(Text, nullable=True, default="approved")
    review_notes = Column(Text, nullable=True)
    origin = Column(Text, nullable=False, default="direct_upload")
    source_submission_id = Column(Uuid(as_uuid=True), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id], lazy="joined")
