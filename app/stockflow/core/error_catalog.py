from dataclasses import dataclass

from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    TENANT_SCOPE_REQUIRED = ErrorDefinition("TENANT_SCOPE_REQUIRED", "Tenant scope is required", status.HTTP_403_FORBIDDEN)
    NOT_FOUND = ErrorDefinition("NOT_FOUND", "Resource not found", status.HTTP_404_NOT_FOUND)
    OPERATION_NOT_ALLOWED = ErrorDefinition(
        "OPERATION_NOT_ALLOWED",
        "Operation not allowed for this store",
        status.HTTP_403_FORBIDDEN,
    )
    INSUFFICIENT_STOCK = ErrorDefinition("INSUFFICIENT_STOCK", "Insufficient stock", status.HTTP_409_CONFLICT)
    LOCK_TIMEOUT = ErrorDefinition("LOCK_TIMEOUT", "Lock wait timeout", status.HTTP_409_CONFLICT)
    VALIDATION_ERROR = ErrorDefinition("VALIDATION_ERROR", "Validation error", status.HTTP_422_UNPROCESSABLE_ENTITY)
    LEDGER_UNAVAILABLE = ErrorDefinition("LEDGER_UNAVAILABLE", "Ledger unavailable", status.HTTP_503_SERVICE_UNAVAILABLE)
    DB_UNAVAILABLE = ErrorDefinition("DB_UNAVAILABLE", "Database unavailable", status.HTTP_503_SERVICE_UNAVAILABLE)
    INTERNAL_ERROR = ErrorDefinition("INTERNAL_ERROR", "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


class ReasonCode:
    """Machine-readable ``details.reason_code`` values carried by VALIDATION_ERROR."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    REPORT_WINDOW_LIMIT_EXCEEDED = "REPORT_WINDOW_LIMIT_EXCEEDED"
    REPORT_LIMIT_EXCEEDED = "REPORT_LIMIT_EXCEEDED"
    BILLS_LIMIT_EXCEEDED = "BILLS_LIMIT_EXCEEDED"
    STORE_HAS_BILLS = "STORE_HAS_BILLS"
    PRODUCT_NAME_TAKEN = "PRODUCT_NAME_TAKEN"
    PRODUCT_NOT_TRACKED = "PRODUCT_NOT_TRACKED"


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)

    @classmethod
    def invalid(cls, reason_code: str, message: str, **details) -> "AppError":
        return cls(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": message, "reason_code": reason_code, **details},
        )
