"""
SQLAlchemy ORM Model — Tenant Documents

Each tenant owns an isolated PostgreSQL schema (tenant_<name>) holding one
`documents` table. The model is declared against the placeholder schema
TENANT_SCHEMA; the document store binds it to the concrete schema per call
through `schema_translate_map`, so the same metadata provisions and queries
every tenant.

Soft delete only: is_deleted / deleted_at are flipped in bulk by the
tenant-wide delete and restore operations, never per document.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Placeholder replaced at execution time via schema_translate_map
TENANT_SCHEMA = "tenant"


class TenantStoreBase(DeclarativeBase):
    pass


class Document(TenantStoreBase):
    """One ingested PDF. storage_path / storage_url point into the object store."""

    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint(
            "(is_deleted AND deleted_at IS NOT NULL) OR (NOT is_deleted AND deleted_at IS NULL)",
            name="documents_deleted_at_check",
        ),
        Index("idx_documents_file_name",       "file_name"),
        {"schema": TENANT_SCHEMA},
    )

    # Assigned by the store on insert
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)

    tenant_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_name:   Mapped[str] = mapped_column(Text, nullable=False)
    file_size:   Mapped[int] = mapped_column(BigInteger, nullable=False)

    storage_path: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Object key: <tenant>/<yyyy>/<mm>/<dd>/<uuid>.pdf",
    )
    storage_url: Mapped[str] = mapped_column(Text, nullable=False)

    extracted_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    summary:        Mapped[str] = mapped_column(Text, nullable=False, default="")

    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false",
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Document id={self.id} tenant={self.tenant_name} "
            f"file={self.file_name!r} deleted={self.is_deleted}>"
        )


# Newest-first listing per tenant
Index(
    "idx_documents_tenant_uploaded",
    Document.tenant_name,
    Document.uploaded_at.desc(),
)
