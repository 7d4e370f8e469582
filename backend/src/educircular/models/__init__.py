"""SQLAlchemy models for the circular registry."""

from .base import Base
from .user import User
from .pending_upload import PendingUpload
from .circular import Circular

__all__ = ["Base", "User", "PendingUpload", "Circular"]
