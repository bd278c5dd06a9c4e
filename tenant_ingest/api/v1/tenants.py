"""
Tenant Lifecycle API Router

    GET    /api/v1/tenants                  active tenants, newest first
    GET    /api/v1/tenants/deleted          soft-deleted tenants
    DELETE /api/v1/tenant/{name}            soft delete tenant + documents
    POST   /api/v1/tenant/{name}/restore    undo a soft delete

Path names are validated before any store is touched (400 on failure).
Object-store files are never removed by these endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from tenant_ingest.api.dependencies import Tenants
from tenant_ingest.schemas.common import ApiResponse, ErrorResponse
from tenant_ingest.schemas.tenants import (
    TenantDeleteData,
    TenantListData,
    TenantOut,
    TenantRestoreData,
)
from tenant_ingest.services.validation import validate_tenant_name

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tenants"])

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid tenant name"},
    404: {"model": ErrorResponse, "description": "Tenant not found"},
    500: {"model": ErrorResponse, "description": "Store failure"},
}


def _restore_command(tenant_name: str) -> str:
    return f"POST /api/v1/tenant/{tenant_name}/restore"


@router.get("/tenants", response_model=ApiResponse[TenantListData], summary="List active tenants")
async def list_tenants(service: Tenants) -> ApiResponse[TenantListData]:
    tenants = await service.list_tenants()
    logger.info("Listed tenants | status=active count=%d", len(tenants))
    return ApiResponse[TenantListData](
        data=TenantListData(
            tenants=[TenantOut.model_validate(t) for t in tenants],
            count=len(tenants),
            status="active",
        ),
    )


@router.get(
    "/tenants/deleted",
    response_model=ApiResponse[TenantListData],
    summary="List soft-deleted tenants",
)
async def list_deleted_tenants(service: Tenants) -> ApiResponse[TenantListData]:
    tenants = await service.list_deleted_tenants()
    logger.info("Listed tenants | status=deleted count=%d", len(tenants))
    return ApiResponse[TenantListData](
        data=TenantListData(
            tenants=[TenantOut.model_validate(t) for t in tenants],
            count=len(tenants),
            status="deleted",
            note="These tenants can be restored using POST /api/v1/tenant/:name/restore",
        ),
    )


@router.delete(
    "/tenant/{name}",
    response_model=ApiResponse[TenantDeleteData],
    summary="Soft delete a tenant",
    responses=_ERRORS,
)
async def delete_tenant(name: str, service: Tenants) -> ApiResponse[TenantDeleteData]:
    validate_tenant_name(name)
    result = await service.delete_tenant(name)

    return ApiResponse[TenantDeleteData](
        data=TenantDeleteData(
            tenant_name=name,
            soft_deleted=result.soft_deleted,
            documents_marked_deleted=result.documents_marked_deleted,
            can_restore=True,
            message=(
                f"Tenant '{name}' and {result.documents_marked_deleted} documents "
                "marked as deleted. Can be restored."
            ),
            restore_command=_restore_command(name),
        ),
    )


@router.post(
    "/tenant/{name}/restore",
    response_model=ApiResponse[TenantRestoreData],
    summary="Restore a soft-deleted tenant",
    responses=_ERRORS,
)
async def restore_tenant(name: str, service: Tenants) -> ApiResponse[TenantRestoreData]:
    validate_tenant_name(name)
    result = await service.restore_tenant(name)

    return ApiResponse[TenantRestoreData](
        data=TenantRestoreData(
            tenant_name=name,
            restored=result.restored,
            documents_restored=result.documents_restored,
            status="active",
            message=(
                f"Tenant '{name}' and {result.documents_restored} documents "
                "have been restored and are now active"
            ),
        ),
    )
