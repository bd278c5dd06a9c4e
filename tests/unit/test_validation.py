"""
Unit Tests — Input validation
═════════════════════════════
Tenant names: 3-50 chars of [A-Za-z0-9_].
Uploads:      present → .pdf → size limit → non-empty, in that order.
"""

from __future__ import annotations

import pytest

from tenant_ingest.core.errors import InvalidInputError
from tenant_ingest.services.validation import validate_pdf_upload, validate_tenant_name

MB = 1024 * 1024


@pytest.mark.unit
class TestTenantName:

    @pytest.mark.parametrize("name", ["abc", "acme_test", "A1_b2", "x" * 50, "___"])
    def test_valid_names_pass(self, name):
        assert validate_tenant_name(name) == name

    @pytest.mark.parametrize(
        ("name", "fragment"),
        [
            ("",           "tenant name is required"),
            (None,         "tenant name is required"),
            ("ab",         "at least 3 characters"),
            ("x" * 51,     "at most 50 characters"),
            ("acme-test",  "letters, numbers, and underscores"),
            ("acme test",  "letters, numbers, and underscores"),
            ("acmé_corp",  "letters, numbers, and underscores"),
            ("../etc",     "letters, numbers, and underscores"),
        ],
    )
    def test_invalid_names_rejected(self, name, fragment):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_tenant_name(name)
        assert fragment in exc_info.value.message
        assert exc_info.value.error_code == "INVALID_TENANT_NAME"
        assert exc_info.value.status_code == 400


@pytest.mark.unit
class TestPdfUpload:

    def test_valid_pdf_passes(self):
        validate_pdf_upload("report.pdf", 10 * 1024, 50 * MB)

    def test_extension_is_case_insensitive(self):
        validate_pdf_upload("REPORT.PDF", 1, 50 * MB)

    def test_missing_file(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_pdf_upload(None, 0, 50 * MB)
        assert "file is required" in exc_info.value.message
        assert exc_info.value.error_code == "MISSING_FILE"

    def test_wrong_extension(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_pdf_upload("notes.txt", 100, 50 * MB)
        assert "file must be a PDF" in exc_info.value.message

    def test_too_large(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_pdf_upload("big.pdf", 50 * MB + 1, 50 * MB)
        assert "less than 50MB" in exc_info.value.message
        assert exc_info.value.error_code == "FILE_TOO_LARGE"
        assert exc_info.value.status_code == 400

    def test_exactly_at_limit_passes(self):
        validate_pdf_upload("edge.pdf", 50 * MB, 50 * MB)

    def test_empty_file(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_pdf_upload("empty.pdf", 0, 50 * MB)
        assert "file is empty" in exc_info.value.message

    def test_extension_checked_before_size(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_pdf_upload("huge.exe", 100 * MB, 50 * MB)
        assert "file must be a PDF" in exc_info.value.message
