"""Tests for upload rules."""

import base64

from app.services import uploads
from app.services.result import Err, Ok

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestValidateUpload:
    def test_png_becomes_data_uri(self):
        result = uploads.validate_upload("rx.png", "image/png", PNG_BYTES)
        assert isinstance(result, Ok)
        assert result.value == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

    def test_jpg_alias_is_normalized(self):
        result = uploads.validate_upload("rx.jpg", "image/jpg", b"\xff\xd8\xff")
        assert result.value.startswith("data:image/jpeg;base64,")

    def test_oversized_file_rejected(self):
        data = b"\x00" * (5 * 1024 * 1024 + 1)
        result = uploads.validate_upload("big.png", "image/png", data)
        assert isinstance(result, Err)
        assert result.message == "File is too large. Please upload a file smaller than 5MB."

    def test_size_checked_before_type(self):
        data = b"\x00" * (5 * 1024 * 1024 + 1)
        result = uploads.validate_upload("big.pdf", "application/pdf", data)
        assert "too large" in result.message

    def test_pdf_rejected(self):
        result = uploads.validate_upload("rx.pdf", "application/pdf", b"%PDF-1.4")
        assert isinstance(result, Err)
        assert "Unsupported file type" in result.message

    def test_missing_content_type_rejected(self):
        assert isinstance(uploads.validate_upload("rx", None, PNG_BYTES), Err)

    def test_empty_file_rejected(self):
        result = uploads.validate_upload("rx.png", "image/png", b"")
        assert isinstance(result, Err)

