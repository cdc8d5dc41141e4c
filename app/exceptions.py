"""
Domain exceptions for the portal.

Service-layer code raises these; the handlers registered in main.py turn
them into JSON responses with a stable ``code``.
"""

from typing import Optional, Any, Dict, List


class PortalError(Exception):
    """Base exception for all portal errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "detail": self.message,
            "details": self.details
        }


# ============================================
# Authorization Errors
# ============================================

class PolicyViolation(PortalError):
    """A row-level or storage policy rejected the operation"""

    status_code = 403

    def __init__(self, table: str, operation: str, message: Optional[str] = None):
        super().__init__(
            message or f"Operation '{operation}' on '{table}' is not permitted",
            code="POLICY_VIOLATION",
            details={"table": table, "operation": operation},
        )
        self.table = table
        self.operation = operation


class RoleNotHeldError(PortalError):
    """Caller asked to act as a role they do not hold"""

    status_code = 403

    def __init__(self, role: str):
        super().__init__(f"Role '{role}' is not assigned to this account", code="ROLE_NOT_HELD")
        self.role = role


# ============================================
# Lookup Errors
# ============================================

class NotFoundError(PortalError):
    status_code = 404

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource} not found", code="NOT_FOUND", details={"id": resource_id})


# ============================================
# Validation Errors
# ============================================

class ValidationError(PortalError):
    """Request is well-formed but violates a business rule"""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class MissingDocumentsError(ValidationError):
    """One or more required documents were not supplied"""

    def __init__(self, missing: List[str]):
        super().__init__(f"Please upload: {', '.join(missing)}", details={"missing_documents": missing})
        self.code = "MISSING_DOCUMENTS"
        self.missing = missing


class ServiceUnavailableError(ValidationError):
    """Citizen tried to apply for an inactive service"""

    def __init__(self, service_id: str):
        super().__init__("Service is not accepting applications", details={"service_id": service_id})
        self.code = "SERVICE_INACTIVE"


# ============================================
# Submission Errors
# ============================================

class IdempotencyKeyReusedError(PortalError):
    """Idempotency key already belongs to an application for another service"""

    status_code = 409

    def __init__(self, key: str, service_id: str):
        super().__init__(
            "Idempotency key was already used for a different service",
            code="IDEMPOTENCY_KEY_REUSED",
            details={"idempotency_key": key, "service_id": service_id},
        )


# ============================================
# Lifecycle Errors
# ============================================

class InvalidTransitionError(PortalError):
    """Requested status change is not allowed by the lifecycle"""

    status_code = 409

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move application from '{current}' to '{target}'",
            code="INVALID_TRANSITION",
            details={"current": current, "target": target},
        )
        self.current = current
        self.target = target


# ============================================
# Storage Errors
# ============================================

class StorageError(PortalError):
    """Object storage operation failed"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="STORAGE_ERROR", details={"path": path} if path else None)
