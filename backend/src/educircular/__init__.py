"""EduCircular backend - circular submission, moderation and publishing API."""

__version__ = "0.1.0"
