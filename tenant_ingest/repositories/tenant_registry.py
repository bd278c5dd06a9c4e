"""
Tenant Registry repository — the master `tenants` table.

Narrow interface over the registry; every method is one short transaction
and a fresh query. Driver failures surface as InfrastructureError, a
unique-key conflict on insert as TenantAlreadyExistsError so the caller can
resolve the first-writer race.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tenant_ingest.core.errors import InfrastructureError, TenantAlreadyExistsError
from tenant_ingest.models.tenants import RegistryBase, Tenant, TenantStatus

logger = logging.getLogger(__name__)


class TenantRegistry:
    """Repository for Tenant rows. Stateless apart from the session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = session_factory

    # ------------------------------------------------------------------
    # Schema bootstrap
    # ------------------------------------------------------------------

    @staticmethod
    async def init_schema(engine: AsyncEngine) -> None:
        """Create the tenants table and its indexes if missing."""
        async with engine.begin() as conn:
            await conn.run_sync(RegistryBase.metadata.create_all)
        logger.info("Registry schema initialised")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_active(self, tenant_name: str) -> Tenant | None:
        """Lookup by name, excluding soft-deleted rows."""
        stmt = select(Tenant).where(
            Tenant.tenant_name == tenant_name,
            Tenant.is_deleted.is_(False),
        )
        return await self._first(stmt, "look up tenant")

    async def get_by_name(self, tenant_name: str) -> Tenant | None:
        """Lookup by name regardless of status."""
        stmt = select(Tenant).where(Tenant.tenant_name == tenant_name)
        return await self._first(stmt, "look up tenant")

    async def list_active(self) -> list[Tenant]:
        stmt = (
            select(Tenant)
            .where(Tenant.is_deleted.is_(False))
            .order_by(Tenant.created_at.desc())
        )
        return await self._all(stmt, "list tenants")

    async def list_deleted(self) -> list[Tenant]:
        stmt = (
            select(Tenant)
            .where(Tenant.is_deleted.is_(True))
            .order_by(Tenant.deleted_at.desc())
        )
        return await self._all(stmt, "list deleted tenants")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, tenant: Tenant) -> Tenant:
        """
        Insert a new active tenant row.

        Raises:
            TenantAlreadyExistsError: another writer already holds the name.
        """
        try:
            async with self._sessions() as session, session.begin():
                session.add(tenant)
                await session.flush()   # assigns id + server defaults, catches UNIQUE
        except IntegrityError as exc:
            logger.info("Tenant insert conflict | tenant=%s", tenant.tenant_name)
            raise TenantAlreadyExistsError(
                f"tenant '{tenant.tenant_name}' already exists",
            ) from exc
        except SQLAlchemyError as exc:
            logger.exception("Tenant insert failed | tenant=%s", tenant.tenant_name)
            raise InfrastructureError("unable to save tenant metadata") from exc
        return tenant

    async def mark_deleted(self, tenant_name: str) -> Tenant | None:
        """
        Flip an active row to deleted. Returns the updated row, or None when
        no active row with that name exists.
        """
        stmt = (
            update(Tenant)
            .where(Tenant.tenant_name == tenant_name, Tenant.is_deleted.is_(False))
            .values(
                status=TenantStatus.DELETED.value,
                is_deleted=True,
                deleted_at=func.now(),
                updated_at=func.now(),
            )
            .returning(Tenant)
        )
        return await self._write(stmt, "delete tenant")

    async def mark_restored(self, tenant_name: str) -> Tenant | None:
        """Flip a deleted row back to active. None when nothing was deleted."""
        stmt = (
            update(Tenant)
            .where(Tenant.tenant_name == tenant_name, Tenant.is_deleted.is_(True))
            .values(
                status=TenantStatus.ACTIVE.value,
                is_deleted=False,
                deleted_at=None,
                updated_at=func.now(),
            )
            .returning(Tenant)
        )
        return await self._write(stmt, "restore tenant")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _first(self, stmt, action: str) -> Tenant | None:
        try:
            async with self._sessions() as session:
                result = await session.execute(stmt)
                return result.scalars().first()
        except SQLAlchemyError as exc:
            logger.exception("Registry query failed | action=%s", action)
            raise InfrastructureError(f"unable to {action}") from exc

    async def _all(self, stmt, action: str) -> list[Tenant]:
        try:
            async with self._sessions() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.exception("Registry query failed | action=%s", action)
            raise InfrastructureError(f"unable to {action}") from exc

    async def _write(self, stmt, action: str) -> Tenant | None:
        try:
            async with self._sessions() as session, session.begin():
                result = await session.execute(
                    stmt, execution_options={"synchronize_session": False},
                )
                return result.scalars().first()
        except SQLAlchemyError as exc:
            logger.exception("Registry query failed | action=%s", action)
            raise InfrastructureError(f"unable to {action}") from exc
