"""Multipart upload intake and PDF download responses."""

from typing import Optional
from urllib.parse import quote

from fastapi import UploadFile
from fastapi.responses import StreamingResponse

from .domain.circulars import PDF_CONTENT_TYPE, UploadedPdf
from .domain.circulars.ports import BlobStream


async def read_upload(file: Optional[UploadFile], max_size_bytes: int) -> Optional[UploadedPdf]:
    """Read an uploaded file part into memory.

    At most max_size_bytes + 1 bytes are read, enough for the size check to
    reject an oversized file without buffering all of it.
    """
    if file is None or not file.filename:
        return None
    data = await file.read(max_size_bytes + 1)
    return UploadedPdf(filename=file.filename, content_type=file.content_type, data=data)


def content_disposition(disposition: str, filename: str) -> str:
    """Build a Content-Disposition value that survives non-ASCII filenames.

    Example:
        >>> content_disposition("attachment", "notice.pdf")
        'attachment; filename="notice.pdf"'
    """
    if filename.isascii() and '"' not in filename:
        return f'{disposition}; filename="{filename}"'
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_").replace("?", "_")
    return f"{disposition}; filename=\"{fallback}\"; filename*=utf-8''{quote(filename)}"


def pdf_response(stream: BlobStream, filename: str, disposition: str = "attachment") -> StreamingResponse:
    """Stream a stored PDF back to the client chunk by chunk."""
    return StreamingResponse(
        stream.chunks,
        media_type=PDF_CONTENT_TYPE,
        headers={
            "Content-Disposition": content_disposition(disposition, filename),
            "Content-Length": str(stream.size_bytes),
        },
    )
