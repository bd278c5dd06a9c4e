"""
Service error taxonomy.

Every failure that reaches the HTTP layer is a ServiceError. The exception
handlers in main.py turn it into the uniform envelope:

    {"success": false, "error": "<message>", "error_code": "<CODE>", "data": <details>}

  InvalidInputError        400  bad tenant name, bad file — never retried
  TenantNotFoundError      404  tenant absent for delete / restore
  TenantDeletedError       409  upload addressed to a soft-deleted tenant
  TenantAlreadyExistsError 409  registry unique-key conflict (handled internally)
  InfrastructureError      500  store unreachable, write failed

Degraded enrichment (extraction or summarization failing) is NOT an error:
the adapters substitute a fallback and the request proceeds.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base class — carries an HTTP status, a stable code and optional details."""

    status_code: int = 500
    error_code:  str = "INTERNAL_ERROR"

    def __init__(
        self,
        message:    str,
        *,
        error_code: str | None = None,
        details:    dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details


class InvalidInputError(ServiceError):
    status_code = 400
    error_code  = "INVALID_INPUT"


class TenantNotFoundError(ServiceError):
    status_code = 404
    error_code  = "TENANT_NOT_FOUND"


class TenantDeletedError(ServiceError):
    status_code = 409
    error_code  = "TENANT_DELETED"


class TenantAlreadyExistsError(ServiceError):
    status_code = 409
    error_code  = "TENANT_EXISTS"


class InfrastructureError(ServiceError):
    status_code = 500
    error_code  = "INFRASTRUCTURE_ERROR"
