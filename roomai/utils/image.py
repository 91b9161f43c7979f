"""Upload checks for room source images (size, content type, decodability)."""

from __future__ import annotations

import io
from dataclasses import dataclass

import structlog
from PIL import Image

from roomai.config import settings
from roomai.errors import UploadValidationError

logger = structlog.get_logger()

_FORMAT_CONTENT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


@dataclass(frozen=True)
class ImageInfo:
    content_type: str
    width: int
    height: int
    size: int


def inspect_image(data: bytes, declared_type: str | None = None) -> ImageInfo:
    """Validate an uploaded image and report what Pillow found in it.

    The content type comes from the decoded format, not from the client's
    declaration, which is only used for an early rejection.
    """
    allowed = settings.allowed_upload_type_list
    if not data:
        raise UploadValidationError("Uploaded file is empty", error="empty_file")
    if len(data) > settings.max_upload_bytes:
        mb = settings.max_upload_bytes // (1024 * 1024)
        raise UploadValidationError(
            f"Image exceeds {mb} MB limit", error="file_too_large", status_code=413
        )
    if declared_type and declared_type not in allowed:
        raise UploadValidationError(
            f"Unsupported file type: {declared_type}", error="unsupported_file_type"
        )

    try:
        img = Image.open(io.BytesIO(data))
        img.load()  # full decode catches truncated files
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("image_decode_failed", error=str(exc))
        raise UploadValidationError(
            "Could not read image. Please upload a valid JPEG, PNG or WebP file.",
            error="invalid_image",
        ) from exc

    content_type = _FORMAT_CONTENT_TYPES.get(img.format or "")
    if content_type is None or content_type not in allowed:
        raise UploadValidationError(
            f"Unsupported image format: {img.format}", error="unsupported_file_type"
        )
    width, height = img.size
    return ImageInfo(content_type=content_type, width=width, height=height, size=len(data))
