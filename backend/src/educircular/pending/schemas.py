"""Pydantic schemas for submission and moderation endpoints"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import Field

from ..circulars.schemas import CircularResponse, UploaderSummary
from ..schemas import CamelModel


class SubmissionResponse(CamelModel):
    """Pending upload as returned by the API."""
    kind: Literal["submission"] = "submission"
    id: UUID
    title: str
    order_date: Optional[datetime] = None
    description: str
    category: str
    file_id: str
    file_name: str
    file_size: int
    uploaded_by: Optional[UploaderSummary] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    status: str
    reviewed_by_id: Optional[UUID] = None
    review_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SubmissionEnvelope(CamelModel):
    success: bool = True
    message: str
    pending_upload: SubmissionResponse


class SubmissionListResponse(CamelModel):
    success: bool = True
    pending_uploads: List[SubmissionResponse]


# A user's own submissions mix pending rows with the circulars reviewed ones became
MySubmission = Annotated[
    Union[SubmissionResponse, CircularResponse],
    Field(discriminator="kind"),
]


class MySubmissionsResponse(CamelModel):
    success: bool = True
    pending_uploads: List[MySubmission]


class RejectRequest(CamelModel):
    review_notes: Optional[str] = None
