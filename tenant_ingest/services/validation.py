"""
Input validation — pure functions, no I/O.

Both validators raise InvalidInputError with a stable error_code so callers
and clients can tell a bad tenant name from a bad file.
"""

from __future__ import annotations

import re

from tenant_ingest.core.errors import InvalidInputError

TENANT_NAME_MIN = 3
TENANT_NAME_MAX = 50

_TENANT_NAME_CHARS = re.compile(r"[A-Za-z0-9_]+")


def validate_tenant_name(tenant_name: str | None) -> str:
    """
    Return the name unchanged if it is 3-50 chars of [A-Za-z0-9_].

    ASCII only: the name becomes part of a schema name and an object key.
    """
    if not tenant_name:
        raise _invalid_tenant("tenant name is required")
    if len(tenant_name) < TENANT_NAME_MIN:
        raise _invalid_tenant(f"tenant name must be at least {TENANT_NAME_MIN} characters")
    if len(tenant_name) > TENANT_NAME_MAX:
        raise _invalid_tenant(f"tenant name must be at most {TENANT_NAME_MAX} characters")
    if not _TENANT_NAME_CHARS.fullmatch(tenant_name):
        raise _invalid_tenant("tenant name can only contain letters, numbers, and underscores")
    return tenant_name


def validate_pdf_upload(filename: str | None, size: int, max_bytes: int) -> None:
    """
    Checks, in order: present, `.pdf` extension (any case), size limit, non-empty.
    """
    if not filename:
        raise InvalidInputError("Invalid PDF file: file is required", error_code="MISSING_FILE")
    if not filename.lower().endswith(".pdf"):
        raise InvalidInputError("Invalid PDF file: file must be a PDF", error_code="INVALID_FILE")
    if size > max_bytes:
        raise file_too_large(max_bytes)
    if size == 0:
        raise InvalidInputError("Invalid PDF file: file is empty", error_code="INVALID_FILE")


def file_too_large(max_bytes: int) -> InvalidInputError:
    limit_mb = max_bytes // (1024 * 1024)
    return InvalidInputError(
        f"Invalid PDF file: file size must be less than {limit_mb}MB",
        error_code="FILE_TOO_LARGE",
    )


def _invalid_tenant(reason: str) -> InvalidInputError:
    return InvalidInputError(f"Invalid tenant name: {reason}", error_code="INVALID_TENANT_NAME")
