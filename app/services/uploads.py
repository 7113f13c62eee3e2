"""Client-facing rules for document image uploads."""

import base64
import logging

from app.config import MAX_UPLOAD_BYTES
from app.services.result import Err, Ok, Result

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/webp"}


def validate_upload(filename: str, content_type: str | None, data: bytes) -> Result[str]:
    """Check type and size of an uploaded image.

    Returns the image as a ``data:<mime>;base64,...`` URI ready for analysis.
    """
    if len(data) > MAX_UPLOAD_BYTES:
        logger.info("Rejected upload %s: %d bytes", filename, len(data))
        limit_mb = MAX_UPLOAD_BYTES // (1024 * 1024)
        return Err.validation(f"File is too large. Please upload a file smaller than {limit_mb}MB.")

    mime_type = (content_type or "").split(";")[0].strip().lower()
    if mime_type == "image/jpg":
        mime_type = "image/jpeg"
    if mime_type not in ALLOWED_CONTENT_TYPES:
        logger.info("Rejected upload %s: content type %r", filename, content_type)
        return Err.validation("Unsupported file type. Please upload a PNG, JPEG or WebP image.")

    if not data:
        return Err.validation("The selected file is empty.")

    return Ok(f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}")
