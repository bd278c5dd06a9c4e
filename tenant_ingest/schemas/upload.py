"""
PDF upload — Pydantic response payload for POST /api/v1/upload.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class UploadData(BaseModel):
    document_id:        int      = Field(..., description="Id assigned by the tenant document store")
    tenant_name:        str
    file_name:          str
    file_size:          int      = Field(..., description="Bytes received")
    summary:            str      = Field(..., description="AI summary, or extractive fallback")
    storage_url:        str
    uploaded_at:        datetime
    processing_time_ms: int
