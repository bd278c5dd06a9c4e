"""
Upload Orchestrator

Strictly sequential pipeline, one per request:

    Received → Validated → TenantReady → TextExtracted → Stored →
    Summarized (or Degraded) → Recorded → Completed

  Validated      InvalidInputError (400), no side effects
  TenantReady    get-or-create; failure is fatal (500), nothing stored yet
  TextExtracted  never fails: placeholder text on any extraction error
  Stored         object-store put; fatal, no document row written
  Summarized     never fails: extractive fallback on any summarizer error
  Recorded       single insert into the tenant store; fatal, the stored
                 object is left orphaned (no compensating delete)

Failures after TenantReady do not roll back earlier external effects
(a provisioned tenant, a stored object). A client disconnect does not cancel
writes already in flight.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from tenant_ingest.core.config import settings
from tenant_ingest.core.errors import InfrastructureError, ServiceError
from tenant_ingest.llm.summarizer import Summarizer, Summary, fallback_summary
from tenant_ingest.processing.extractor import (
    UNREADABLE_TEMPLATE,
    ExtractedText,
    PdfTextExtractor,
)
from tenant_ingest.repositories.document_store import TenantDocumentStore
from tenant_ingest.services.tenants import TenantService
from tenant_ingest.services.validation import validate_pdf_upload, validate_tenant_name
from tenant_ingest.storage.s3 import PDF_CONTENT_TYPE, S3ObjectStore, build_object_key

logger = logging.getLogger(__name__)


class UploadStage(str, Enum):
    RECEIVED       = "received"
    VALIDATED      = "validated"
    TENANT_READY   = "tenant_ready"
    TEXT_EXTRACTED = "text_extracted"
    STORED         = "stored"
    SUMMARIZED     = "summarized"
    DEGRADED       = "degraded"
    RECORDED       = "recorded"
    COMPLETED      = "completed"


@dataclass(frozen=True)
class UploadResult:
    document_id:        int
    tenant_name:        str
    file_name:          str
    file_size:          int
    summary:            str
    storage_url:        str
    uploaded_at:        datetime
    processing_time_ms: int


class IngestionService:
    """
    Stateless service object; all collaborators are injected so each one can
    be replaced in tests.
    """

    def __init__(
        self,
        tenants:        TenantService,
        document_store: TenantDocumentStore,
        object_store:   S3ObjectStore,
        extractor:      PdfTextExtractor,
        summarizer:     Summarizer,
        max_upload_bytes: int | None = None,
    ) -> None:
        self._tenants    = tenants
        self._documents  = document_store
        self._objects    = object_store
        self._extractor  = extractor
        self._summarizer = summarizer
        self._max_bytes  = max_upload_bytes or settings.max_upload_bytes

    @property
    def max_upload_bytes(self) -> int:
        return self._max_bytes

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def ingest(
        self,
        tenant_name: str,
        file_name:   str | None,
        data:        bytes,
    ) -> UploadResult:
        t0 = time.perf_counter()
        uploaded_at = datetime.now(timezone.utc)
        self._stage(UploadStage.RECEIVED, tenant_name, file=file_name, size=len(data))

        # ---- Validated ---------------------------------------------------
        validate_tenant_name(tenant_name)
        validate_pdf_upload(file_name, len(data), self._max_bytes)
        file_name = file_name.replace("\x00", "")   # PostgreSQL TEXT rejects NUL
        self._stage(UploadStage.VALIDATED, tenant_name, file=file_name)

        # ---- TenantReady -------------------------------------------------
        try:
            tenant = await self._tenants.get_or_create_tenant(tenant_name)
        except ServiceError:
            raise
        except Exception as exc:
            raise self._fatal(UploadStage.TENANT_READY, tenant_name, exc, "failed to get/create tenant") from exc
        self._stage(UploadStage.TENANT_READY, tenant_name, db=tenant.db_name)

        # ---- TextExtracted (never fatal) ---------------------------------
        extracted = await self._extract(data, file_name)
        self._stage(
            UploadStage.TEXT_EXTRACTED, tenant_name,
            chars=len(extracted.text), placeholder=extracted.is_placeholder,
        )

        # ---- Stored ------------------------------------------------------
        key = build_object_key(tenant_name, uploaded_at, os.path.splitext(file_name)[1])
        try:
            stored = await self._objects.put_object(key, data, PDF_CONTENT_TYPE)
        except ServiceError:
            raise
        except Exception as exc:
            raise self._fatal(UploadStage.STORED, tenant_name, exc, "failed to store file") from exc
        self._stage(UploadStage.STORED, tenant_name, key=stored.path)

        # ---- Summarized / Degraded (never fatal) -------------------------
        summary = await self._summarize(extracted.text)
        self._stage(
            UploadStage.DEGRADED if summary.is_fallback else UploadStage.SUMMARIZED,
            tenant_name, chars=len(summary.text),
        )

        # ---- Recorded ----------------------------------------------------
        try:
            document_id = await self._documents.insert(
                tenant_name,
                {
                    "tenant_name":    tenant_name,
                    "file_name":      file_name,
                    "file_size":      len(data),
                    "storage_path":   stored.path,
                    "storage_url":    stored.url,
                    "extracted_text": extracted.text,
                    "summary":        summary.text,
                    "uploaded_at":    uploaded_at,
                    "is_deleted":     False,
                    "deleted_at":     None,
                },
            )
        except ServiceError:
            logger.error("Stored object orphaned | tenant=%s key=%s", tenant_name, stored.path)
            raise
        except Exception as exc:
            logger.error("Stored object orphaned | tenant=%s key=%s", tenant_name, stored.path)
            raise self._fatal(UploadStage.RECORDED, tenant_name, exc, "failed to store document") from exc
        self._stage(UploadStage.RECORDED, tenant_name, document_id=document_id)

        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        self._stage(UploadStage.COMPLETED, tenant_name, document_id=document_id, elapsed_ms=elapsed_ms)

        return UploadResult(
            document_id=document_id,
            tenant_name=tenant_name,
            file_name=file_name,
            file_size=len(data),
            summary=summary.text,
            storage_url=stored.url,
            uploaded_at=uploaded_at,
            processing_time_ms=elapsed_ms,
        )

    # ------------------------------------------------------------------
    # Best-effort enrichment
    # ------------------------------------------------------------------

    async def _extract(self, data: bytes, file_name: str) -> ExtractedText:
        try:
            return await self._extractor.extract(data, file_name)
        except Exception as exc:
            logger.warning("Extractor raised, using placeholder | file=%s error=%s", file_name, exc)
            return ExtractedText(
                text=UNREADABLE_TEMPLATE.format(name=file_name),
                page_count=0,
                is_placeholder=True,
            )

    async def _summarize(self, text: str) -> Summary:
        try:
            return await self._summarizer.summarize(text)
        except Exception as exc:
            logger.warning("Summarizer raised, using fallback | error=%s", exc)
            return Summary(
                text=fallback_summary(
                    text,
                    settings.fallback_summary_max_chars,
                    settings.fallback_summary_min_sentence_chars,
                ),
                source="fallback",
            )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _stage(stage: UploadStage, tenant_name: str, **context) -> None:
        details = " ".join(f"{k}={v}" for k, v in context.items())
        logger.info("Upload %s | tenant=%s %s", stage.value, tenant_name, details)

    @staticmethod
    def _fatal(
        stage: UploadStage,
        tenant_name: str,
        exc: Exception,
        message: str,
    ) -> InfrastructureError:
        logger.exception("Upload failed | stage=%s tenant=%s", stage.value, tenant_name)
        return InfrastructureError(message)
