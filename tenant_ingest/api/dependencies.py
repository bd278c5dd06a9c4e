"""
Composed FastAPI Dependencies

The single wiring point between route handlers and the service layer.
Stateless collaborators (repositories, adapters) are process-wide singletons
sharing the pooled engines and the S3 session; services are cheap and built
per request from them.

Tests replace any of these through `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from tenant_ingest.core.config import settings
from tenant_ingest.db.session import RegistrySessionLocal, tenant_engine
from tenant_ingest.llm.summarizer import Summarizer
from tenant_ingest.processing.extractor import PdfTextExtractor
from tenant_ingest.repositories.document_store import TenantDocumentStore
from tenant_ingest.repositories.tenant_registry import TenantRegistry
from tenant_ingest.services.ingestion import IngestionService
from tenant_ingest.services.tenants import TenantService
from tenant_ingest.storage.s3 import S3ObjectStore


# ---------------------------------------------------------------------------
# 1. Stores
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_tenant_registry() -> TenantRegistry:
    return TenantRegistry(RegistrySessionLocal)


@lru_cache(maxsize=1)
def get_document_store() -> TenantDocumentStore:
    return TenantDocumentStore(tenant_engine, settings.tenant_schema_prefix)


@lru_cache(maxsize=1)
def get_object_store() -> S3ObjectStore:
    return S3ObjectStore()


# ---------------------------------------------------------------------------
# 2. Enrichment adapters
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_extractor() -> PdfTextExtractor:
    return PdfTextExtractor()


@lru_cache(maxsize=1)
def get_summarizer() -> Summarizer:
    return Summarizer()


# ---------------------------------------------------------------------------
# 3. Services
# ---------------------------------------------------------------------------

def get_tenant_service(
    registry:       Annotated[TenantRegistry, Depends(get_tenant_registry)],
    document_store: Annotated[TenantDocumentStore, Depends(get_document_store)],
) -> TenantService:
    return TenantService(
        registry=registry,
        document_store=document_store,
        db_host=settings.tenant_db_host,
        db_port=settings.tenant_db_port,
    )


def get_ingestion_service(
    tenants:        Annotated[TenantService, Depends(get_tenant_service)],
    document_store: Annotated[TenantDocumentStore, Depends(get_document_store)],
    object_store:   Annotated[S3ObjectStore, Depends(get_object_store)],
    extractor:      Annotated[PdfTextExtractor, Depends(get_extractor)],
    summarizer:     Annotated[Summarizer, Depends(get_summarizer)],
) -> IngestionService:
    return IngestionService(
        tenants=tenants,
        document_store=document_store,
        object_store=object_store,
        extractor=extractor,
        summarizer=summarizer,
    )


# ---------------------------------------------------------------------------
# Type aliases for cleaner route signatures
# ---------------------------------------------------------------------------

Tenants   = Annotated[TenantService,    Depends(get_tenant_service)]
Ingestion = Annotated[IngestionService, Depends(get_ingestion_service)]
