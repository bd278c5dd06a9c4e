"""
Tenant Provisioning & Lifecycle Service

Orchestrates the two stores that are NOT transactionally linked:

    TenantRegistry       — master `tenants` table (existence, routing, status)
    TenantDocumentStore  — per-tenant schema holding the `documents` table

Ordering rules (each chosen so an interrupted call is finished by re-running it):

  get-or-create   provision store  →  insert registry row
                  A registry row never points at a missing store; a failed
                  insert leaves an empty, harmless schema behind.

  delete          mark documents   →  mark tenant row
                  A crash in between leaves the tenant visible with some
                  documents hidden; re-running delete completes it.

  restore         flip tenant row  →  un-mark documents
                  The tenant reappears first; re-running restore on a tenant
                  that is active but still has hidden documents completes it.

Concurrent first uploads for the same new name both provision (idempotent,
serialised per schema) and race on the registry's UNIQUE(tenant_name); the
loser re-fetches the winner's row and carries on. A loser whose provisioning
fails also re-checks the registry before giving up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tenant_ingest.core.errors import (
    InfrastructureError,
    TenantAlreadyExistsError,
    TenantDeletedError,
    TenantNotFoundError,
)
from tenant_ingest.models.tenants import Tenant, TenantStatus
from tenant_ingest.repositories.document_store import TenantDocumentStore
from tenant_ingest.repositories.tenant_registry import TenantRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantDeletionResult:
    tenant_name:              str
    soft_deleted:             bool
    documents_marked_deleted: int


@dataclass(frozen=True)
class TenantRestoreResult:
    tenant_name:        str
    restored:           bool
    documents_restored: int


class TenantService:
    """
    Stateless; every call goes to the stores. Tenant names are expected to be
    validated by the caller (services/validation.py).
    """

    def __init__(
        self,
        registry:       TenantRegistry,
        document_store: TenantDocumentStore,
        db_host:        str,
        db_port:        int,
    ) -> None:
        self._registry = registry
        self._store    = document_store
        self._db_host  = db_host
        self._db_port  = db_port

    # ------------------------------------------------------------------
    # Get-or-create
    # ------------------------------------------------------------------

    async def get_or_create_tenant(self, tenant_name: str) -> Tenant:
        """
        Return the active tenant row, provisioning store + row on first contact.

        Raises:
            TenantDeletedError:  the name belongs to a soft-deleted tenant.
            InfrastructureError: either store failed.
        """
        existing = await self._registry.get_by_name(tenant_name)
        if existing is not None:
            if existing.is_deleted:
                raise self._deleted_error(tenant_name)
            return existing

        logger.info("Creating tenant | tenant=%s", tenant_name)
        try:
            schema = await self._store.provision(tenant_name)
        except InfrastructureError:
            # A concurrent first upload may have provisioned and registered it
            winner = await self._registry.get_active(tenant_name)
            if winner is None:
                raise
            logger.info("Tenant provisioned concurrently, using existing row | tenant=%s", tenant_name)
            return winner

        tenant = Tenant(
            tenant_name=tenant_name,
            db_host=self._db_host,
            db_port=self._db_port,
            db_name=schema,
            status=TenantStatus.ACTIVE.value,
            is_deleted=False,
        )
        try:
            tenant = await self._registry.create(tenant)
        except TenantAlreadyExistsError:
            return await self._resolve_creation_race(tenant_name)

        logger.info("Tenant created | tenant=%s id=%s db=%s", tenant_name, tenant.id, schema)
        return tenant

    async def _resolve_creation_race(self, tenant_name: str) -> Tenant:
        winner = await self._registry.get_active(tenant_name)
        if winner is not None:
            logger.info("Tenant created concurrently, using existing row | tenant=%s", tenant_name)
            return winner
        raise self._deleted_error(tenant_name)

    @staticmethod
    def _deleted_error(tenant_name: str) -> TenantDeletedError:
        return TenantDeletedError(
            f"tenant '{tenant_name}' is deleted; restore it first "
            f"(POST /api/v1/tenant/{tenant_name}/restore)",
        )

    # ------------------------------------------------------------------
    # Soft delete / restore
    # ------------------------------------------------------------------

    async def delete_tenant(self, tenant_name: str) -> TenantDeletionResult:
        """
        Soft-delete the tenant and all its documents. Object-store blobs are
        left untouched.

        Raises:
            TenantNotFoundError: no active tenant with this name. `details`
                carries {soft_deleted: False, documents_marked_deleted: n}.
        """
        tenant = await self._registry.get_active(tenant_name)
        if tenant is None:
            raise self._not_deleted(tenant_name, marked=0)

        marked = await self._store.soft_delete_all(tenant_name)

        if await self._registry.mark_deleted(tenant_name) is None:
            # Deleted by a concurrent call between the lookup and here
            raise self._not_deleted(tenant_name, marked=marked)

        logger.info(
            "Tenant soft deleted | tenant=%s db=%s documents=%d",
            tenant_name, tenant.db_name, marked,
        )
        return TenantDeletionResult(
            tenant_name=tenant_name,
            soft_deleted=True,
            documents_marked_deleted=marked,
        )

    async def restore_tenant(self, tenant_name: str) -> TenantRestoreResult:
        """
        Reactivate a soft-deleted tenant and un-mark its documents.

        Also completes an interrupted restore or delete: an active tenant
        whose store still holds hidden documents gets them back.

        Raises:
            TenantNotFoundError: nothing to restore under this name.
        """
        flipped = await self._registry.mark_restored(tenant_name)

        if flipped is None:
            if await self._registry.get_active(tenant_name) is None:
                raise self._not_restorable(tenant_name)
            restored = await self._store.restore_all(tenant_name)
            if restored == 0:
                raise self._not_restorable(tenant_name)
            logger.info(
                "Tenant restore completed on active tenant | tenant=%s documents=%d",
                tenant_name, restored,
            )
        else:
            restored = await self._store.restore_all(tenant_name)
            logger.info("Tenant restored | tenant=%s documents=%d", tenant_name, restored)

        return TenantRestoreResult(
            tenant_name=tenant_name,
            restored=True,
            documents_restored=restored,
        )

    @staticmethod
    def _not_deleted(tenant_name: str, marked: int) -> TenantNotFoundError:
        return TenantNotFoundError(
            f"tenant '{tenant_name}' not found",
            details={"soft_deleted": False, "documents_marked_deleted": marked},
        )

    @staticmethod
    def _not_restorable(tenant_name: str) -> TenantNotFoundError:
        return TenantNotFoundError(f"tenant '{tenant_name}' not found or not deleted")

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_tenants(self) -> list[Tenant]:
        """Active tenants, newest first."""
        return await self._registry.list_active()

    async def list_deleted_tenants(self) -> list[Tenant]:
        """Soft-deleted tenants, most recently deleted first."""
        return await self._registry.list_deleted()
