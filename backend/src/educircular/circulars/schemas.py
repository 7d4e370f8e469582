"""Pydantic schemas for circular endpoints"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field, model_validator

from ..domain.circulars import SubmissionStatus
from ..schemas import CamelModel


class UploaderSummary(CamelModel):
    """Account that submitted a document, as shown next to it."""
    id: UUID
    email: str
    institution_name: Optional[str] = None


class CircularResponse(CamelModel):
    """Circular as returned by the API.

    file_url points at the public download endpoint. status may be null for
    records written before the column existed; those count as approved.
    """
    kind: Literal["circular"] = "circular"
    id: UUID
    title: str
    order_date: Optional[datetime] = None
    description: str
    category: str
    file_id: str
    file_name: str
    file_size: int
    file_url: Optional[str] = None
    uploaded_by: Optional[UploaderSummary] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    is_published: bool
    is_approved_by_admin: bool
    status: Optional[str] = None
    review_notes: Optional[str] = None
    origin: str
    source_submission_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _fill_file_url(self) -> "CircularResponse":
        if self.file_url is None:
            self.file_url = f"/api/circulars/{self.id}/download"
        return self


class CircularEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    circular: CircularResponse


class Pagination(CamelModel):
    total: int
    page: int
    pages: int


class CircularListResponse(CamelModel):
    success: bool = True
    circulars: List[CircularResponse]
    pagination: Pagination


class StatusUpdateRequest(CamelModel):
    status: Optional[str] = None


class CircularUpdateRequest(CamelModel):
    """Partial update of a circular's descriptive fields.

    Only fields present in the request body are changed; an explicit null
    order_date clears it.
    """
    title: Optional[str] = Field(None, min_length=1)
    order_date: Optional[datetime] = None
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    is_published: Optional[bool] = None
    status: Optional[SubmissionStatus] = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str
