"""
PDF Upload API Router
POST /api/v1/upload

Multipart form:
    tenantName  string  3-50 chars of [A-Za-z0-9_]
    pdf         file    .pdf, non-empty, below the size limit

A request whose Content-Length already exceeds the size limit is rejected
before the file is read, and the file itself is read no further than one
byte past the limit.

Runs the whole ingestion pipeline inline and answers 200 with the stored
document. Validation failures are 400; infrastructure failures 500; an
upload addressed to a soft-deleted tenant is 409. Extraction and
summarization problems never fail the request.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile

from tenant_ingest.api.dependencies import Ingestion
from tenant_ingest.schemas.common import ApiResponse, ErrorResponse
from tenant_ingest.schemas.upload import UploadData
from tenant_ingest.services.validation import file_too_large

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])

# Multipart boundaries and the tenantName field
FORM_OVERHEAD_BYTES = 4096


@router.post(
    "/upload",
    response_model=ApiResponse[UploadData],
    summary="Upload a PDF for a tenant",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid tenant name or file"},
        409: {"model": ErrorResponse, "description": "Tenant is soft-deleted"},
        500: {"model": ErrorResponse, "description": "Storage or database failure"},
    },
)
async def upload_pdf(
    request:    Request,
    ingestion:  Ingestion,
    tenantName: str = Form(""),
    pdf:        Optional[UploadFile] = File(None),
) -> ApiResponse[UploadData]:
    limit = ingestion.max_upload_bytes

    # Guard: reject oversized requests before reading the file into memory
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > limit + FORM_OVERHEAD_BYTES:
        logger.info("Upload rejected on Content-Length | length=%s limit=%d", content_length, limit)
        raise file_too_large(limit)

    # One byte past the limit is enough for the size check to fail
    data = await pdf.read(limit + 1) if pdf is not None else b""
    file_name = pdf.filename if pdf is not None else None

    result = await ingestion.ingest(tenantName, file_name, data)

    return ApiResponse[UploadData](
        data=UploadData(
            document_id=result.document_id,
            tenant_name=result.tenant_name,
            file_name=result.file_name,
            file_size=result.file_size,
            summary=result.summary,
            storage_url=result.storage_url,
            uploaded_at=result.uploaded_at,
            processing_time_ms=result.processing_time_ms,
        ),
    )
