"""
Database engines and session management.

Two independently-failing stores, two engines:

  registry_engine  — the master database holding the `tenants` table.
                     Every repository call opens its own short transaction
                     through RegistrySessionLocal; nothing is cached
                     in-process, so concurrent writers always see the
                     database as the single source of truth.

  tenant_engine    — the server hosting the per-tenant document stores
                     (one schema per tenant). The document store scopes
                     this engine to a tenant with schema_translate_map.

There is NO transaction spanning both engines. Lifecycle operations are
written to be idempotent and re-playable instead (see services/tenants.py).
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tenant_ingest.core.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------

registry_engine: AsyncEngine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,          # detect stale connections before use
    pool_recycle=3600,           # recycle connections every hour
    echo=settings.db_echo_sql,   # log SQL in dev; disable in prod
)

tenant_engine: AsyncEngine = create_async_engine(
    settings.effective_tenant_database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
    pool_recycle=3600,
    echo=settings.db_echo_sql,
)

# Session factory: expire_on_commit=False keeps ORM objects usable after commit
RegistrySessionLocal = async_sessionmaker(
    bind=registry_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


# ---------------------------------------------------------------------------
# Health check helper
# ---------------------------------------------------------------------------

async def check_db_health() -> dict:
    """Ping the registry database; used by the /ready endpoint."""
    try:
        async with registry_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception:
        logger.exception("DB health check failed")
        return {"status": "error"}


async def dispose_engines() -> None:
    await registry_engine.dispose()
    await tenant_engine.dispose()
