"""
Validation of multipart image uploads before they reach the pipeline.
"""
from typing import Optional

import structlog
from fastapi import UploadFile

from app.config import settings
from app.core.errors import NoFileProvided, UnsupportedFormat, UploadTooLarge
from app.models.payload import ImagePayload

log = structlog.get_logger(__name__)


async def read_upload(upload: Optional[UploadFile]) -> ImagePayload:
    """
    Read an uploaded image into memory.

    The MIME type is checked before any bytes are read, and at most
    MAX_UPLOAD_BYTES + 1 bytes are buffered so oversized uploads are
    rejected without holding the whole file.

    Raises:
        NoFileProvided: If the field is missing or empty
        UnsupportedFormat: If the declared MIME type is not JPEG, PNG or WebP
        UploadTooLarge: If the file exceeds MAX_UPLOAD_BYTES
    """
    if upload is None or not upload.filename:
        raise NoFileProvided("Request has no 'image' file field")

    content_type = (upload.content_type or "").lower()
    if content_type not in settings.ALLOWED_MIME_TYPES:
        log.warning("Rejected upload with unsupported type", filename=upload.filename, content_type=content_type)
        raise UnsupportedFormat(f"Unsupported content type: {content_type or 'unknown'}")

    limit = settings.MAX_UPLOAD_BYTES
    if upload.size is not None and upload.size > limit:
        raise UploadTooLarge(f"File exceeds the {limit // (1024 * 1024)}MB limit")

    data = await upload.read(limit + 1)
    if len(data) > limit:
        log.warning("Rejected oversized upload", filename=upload.filename)
        raise UploadTooLarge(f"File exceeds the {limit // (1024 * 1024)}MB limit")
    if not data:
        raise NoFileProvided("Uploaded image is empty")

    return ImagePayload(data=data, content_type=content_type, filename=upload.filename)
