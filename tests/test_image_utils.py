"""Tests for room image upload checks (roomai/utils/image.py).

No network needed: pure Pillow operations.
"""

import io
from unittest.mock import patch

import pytest
from PIL import Image

from roomai.config import settings
from roomai.errors import UploadValidationError
from roomai.utils.image import inspect_image


def _encode(fmt: str, size: tuple[int, int] = (64, 48)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=(200, 180, 160)).save(buf, format=fmt)
    return buf.getvalue()


class TestInspectImage:
    @pytest.mark.parametrize(
        ("fmt", "content_type"),
        [("JPEG", "image/jpeg"), ("PNG", "image/png"), ("WEBP", "image/webp")],
    )
    def test_accepts_supported_formats(self, fmt, content_type):
        info = inspect_image(_encode(fmt), content_type)
        assert info.content_type == content_type
        assert (info.width, info.height) == (64, 48)

    def test_content_type_comes_from_decoded_format(self):
        """A PNG declared as JPEG is reported as PNG."""
        info = inspect_image(_encode("PNG"), "image/jpeg")
        assert info.content_type == "image/png"

    def test_rejects_empty(self):
        with pytest.raises(UploadValidationError) as exc_info:
            inspect_image(b"")
        assert exc_info.value.error == "empty_file"

    def test_rejects_oversized(self):
        with patch.object(settings, "max_upload_bytes", 10):
            with pytest.raises(UploadValidationError) as exc_info:
                inspect_image(_encode("PNG"))
        assert exc_info.value.status_code == 413

    def test_rejects_declared_type(self):
        with pytest.raises(UploadValidationError) as exc_info:
            inspect_image(_encode("PNG"), "application/pdf")
        assert exc_info.value.error == "unsupported_file_type"

    def test_rejects_garbage(self):
        with pytest.raises(UploadValidationError) as exc_info:
            inspect_image(b"definitely not an image")
        assert exc_info.value.error == "invalid_image"

    def test_rejects_truncated(self):
        data = _encode("JPEG", (256, 256))
        with pytest.raises(UploadValidationError):
            inspect_image(data[: len(data) // 2])

    def test_rejects_unsupported_format(self):
        with pytest.raises(UploadValidationError) as exc_info:
            inspect_image(_encode("GIF"))
        assert exc_info.value.error == "unsupported_file_type"
