"""
Tenant Document Store — one PostgreSQL schema per tenant.

The `documents` table is declared once (models/documents.py) against a
placeholder schema; every call here rebinds it to `<prefix><tenant_name>`
with schema_translate_map. Provisioning is idempotent (IF NOT EXISTS for
schema, table and indexes) and serialised per schema by an advisory lock,
so a retried or concurrent first upload is harmless.

Bulk soft delete / restore only touch rows in the opposite state, which
makes both safe to re-run after an interruption.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, insert, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.schema import CreateIndex, CreateSchema, CreateTable

from tenant_ingest.core.errors import InfrastructureError
from tenant_ingest.models.documents import TENANT_SCHEMA, Document, TenantStoreBase

logger = logging.getLogger(__name__)


class TenantDocumentStore:
    def __init__(self, engine: AsyncEngine, schema_prefix: str = "tenant_") -> None:
        self._engine = engine
        self._prefix = schema_prefix

    def schema_for(self, tenant_name: str) -> str:
        """Schema name holding the tenant's documents; recorded as Tenant.db_name."""
        return f"{self._prefix}{tenant_name}"

    def _scoped(self, tenant_name: str) -> AsyncEngine:
        return self._engine.execution_options(
            schema_translate_map={TENANT_SCHEMA: self.schema_for(tenant_name)},
        )

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    async def provision(self, tenant_name: str) -> str:
        """
        Create the tenant's schema, `documents` table and indexes.

        Concurrent first uploads for the same name serialise on a
        transaction-scoped advisory lock keyed by the schema name; every DDL
        statement is IF NOT EXISTS, so the second caller finds everything in
        place and succeeds.

        Returns the schema name. Raises InfrastructureError on failure;
        nothing is written to the registry by this method.
        """
        schema = self.schema_for(tenant_name)
        try:
            async with self._scoped(tenant_name).begin() as conn:
                await conn.execute(
                    text("SELECT pg_advisory_xact_lock(hashtext(:schema))"),
                    {"schema": schema},
                )
                await conn.execute(CreateSchema(schema, if_not_exists=True))
                for table in TenantStoreBase.metadata.sorted_tables:
                    await conn.execute(CreateTable(table, if_not_exists=True))
                    for index in sorted(table.indexes, key=lambda i: i.name):
                        await conn.execute(CreateIndex(index, if_not_exists=True))
        except SQLAlchemyError as exc:
            logger.exception("Tenant store provisioning failed | tenant=%s", tenant_name)
            raise InfrastructureError("failed to create tenant database") from exc

        logger.info("Tenant store provisioned | tenant=%s schema=%s", tenant_name, schema)
        return schema

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def insert(self, tenant_name: str, values: dict[str, Any]) -> int:
        """Insert one document row and return the id assigned by the store."""
        stmt = insert(Document).values(**values).returning(Document.id)
        try:
            async with self._scoped(tenant_name).begin() as conn:
                result = await conn.execute(stmt)
                document_id = result.scalar_one()
        except SQLAlchemyError as exc:
            logger.exception("Document insert failed | tenant=%s", tenant_name)
            raise InfrastructureError("failed to save document metadata") from exc
        return int(document_id)

    async def soft_delete_all(self, tenant_name: str) -> int:
        """Mark every live document deleted. Returns the number of rows marked."""
        stmt = (
            update(Document)
            .where(Document.is_deleted.is_(False))
            .values(is_deleted=True, deleted_at=func.now())
        )
        return await self._bulk(tenant_name, stmt, "soft delete documents")

    async def restore_all(self, tenant_name: str) -> int:
        """Un-mark every deleted document. Returns the number of rows restored."""
        stmt = (
            update(Document)
            .where(Document.is_deleted.is_(True))
            .values(is_deleted=False, deleted_at=None)
        )
        return await self._bulk(tenant_name, stmt, "restore documents")

    async def _bulk(self, tenant_name: str, stmt, action: str) -> int:
        try:
            async with self._scoped(tenant_name).begin() as conn:
                result = await conn.execute(stmt)
        except SQLAlchemyError as exc:
            logger.exception("Bulk %s failed | tenant=%s", action, tenant_name)
            raise InfrastructureError(f"failed to {action}") from exc

        count = result.rowcount or 0
        logger.info("Bulk %s | tenant=%s rows=%d", action, tenant_name, count)
        return count
