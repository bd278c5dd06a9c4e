"""
Tenant lifecycle — Pydantic response payloads.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TenantOut(BaseModel):
    """Serialized Tenant registry row."""
    model_config = ConfigDict(from_attributes=True)

    id:          int
    tenant_name: str
    db_host:     str
    db_port:     int
    db_name:     str
    status:      str
    is_deleted:  bool
    deleted_at:  Optional[datetime] = None
    created_at:  datetime
    updated_at:  datetime


class TenantListData(BaseModel):
    tenants: list[TenantOut]
    count:   int
    status:  str = Field(..., description="active | deleted")
    note:    Optional[str] = None


class TenantDeleteData(BaseModel):
    tenant_name:              str
    soft_deleted:             bool
    documents_marked_deleted: int
    can_restore:              bool = True
    message:                  str
    restore_command:          str


class TenantRestoreData(BaseModel):
    tenant_name:        str
    restored:           bool
    documents_restored: int
    status:             str = "active"
    message:            str
