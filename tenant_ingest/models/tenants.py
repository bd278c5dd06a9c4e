"""
SQLAlchemy ORM Model — Tenant Registry

The registry is the single source of truth for "does this tenant exist and
is it visible". Each row also carries the routing info to the tenant's own
document store (db_host / db_port / db_name).

Lifecycle:
    created  — exactly once, on the first upload for an unseen tenant name
    deleted  — soft delete (status='deleted', is_deleted, deleted_at=now)
    restored — back to status='active', deleted_at cleared
Rows are never physically removed.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class RegistryBase(DeclarativeBase):
    pass


class TenantStatus(str, Enum):
    ACTIVE  = "active"
    DELETED = "deleted"


class Tenant(RegistryBase):
    """
    One row per tenant name. tenant_name is globally unique; the UNIQUE
    constraint is the only guard against two concurrent first uploads
    creating the same tenant.
    """

    __tablename__ = "tenants"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'deleted')",
            name="tenants_status_check",
        ),
        CheckConstraint(
            "is_deleted = (status = 'deleted')",
            name="tenants_is_deleted_matches_status",
        ),
        CheckConstraint(
            "(is_deleted AND deleted_at IS NOT NULL) OR (NOT is_deleted AND deleted_at IS NULL)",
            name="tenants_deleted_at_check",
        ),
        Index("idx_tenant_name", "tenant_name"),
        Index("idx_is_deleted",  "is_deleted"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    tenant_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Routing info to the tenant's document store
    db_host: Mapped[str] = mapped_column(String(500), nullable=False)
    db_port: Mapped[int] = mapped_column(Integer, nullable=False, default=5432, server_default="5432")
    db_name: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=TenantStatus.ACTIVE.value,
        server_default=TenantStatus.ACTIVE.value,
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false",
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<Tenant id={self.id} name={self.tenant_name!r} "
            f"status={self.status} db={self.db_name}>"
        )
