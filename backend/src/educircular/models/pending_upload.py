"""PendingUpload SQLAlchemy model

A circular submitted by a user or guest that is waiting for an administrator
to approve or reject it. Review consumes the row: it is materialized into a
Circular and then deleted.
"""

import uuid

from sqlalchemy import (
    Column,
    Text,
    BigInteger,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    Uuid,
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class PendingUpload(Base):
    """Submission awaiting moderation.

    The submitter is either an authenticated account (uploaded_by_id set,
    guest fields empty) or a guest (uploaded_by_id empty, guest_name set).
    file_id references a blob in object storage; the blob is owned by
    whichever registry row currently references it.
    """
    __tablename__ = "pending_upload"
    __table_args__ = (
        Index("ix_pending_upload_status_created", "status", "created_at"),
        Index("ix_pending_upload_uploaded_by", "uploaded_by_id"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_pending_upload_status",
        ),
        CheckConstraint(
            "(uploaded_by_id IS NOT NULL AND guest_name IS NULL AND guest_email IS NULL)"
            " OR (uploaded_by_id IS NULL AND guest_name IS NOT NULL)",
            name="ck_pending_upload_submitter",
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
    status = Column(Text, nullable=False, default="pending")
    reviewed_by_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )
    review_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id], lazy="joined")
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id], lazy="joined")
