"""Error Hierarchy — typed, categorized exceptions for every marketplace failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable by the caller; infrastructure errors (500-level) are not
    - to_response() produces the REST envelope used by api/error_handlers.py
    - User-facing messages never contain driver or provider internals

Design Decisions:
    - Single hierarchy with MarketplaceError base: one FastAPI handler catches all
    - ErrorContext as dataclass: ids for observability without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Identifiers attached to an error for logs and the response envelope."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    resource_id: str | None = None
    field_errors: list[dict[str, str]] | None = None
    debug_info: dict[str, Any] | None = None


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        body = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
            "context": {
                "user_id": self.context.user_id,
                "resource_id": self.context.resource_id,
            },
        }
        if self.context.field_errors:
            body["details"] = self.context.field_errors
        return {"error": body}


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidRequestError(MarketplaceError):
    """Request data failed a domain validation rule."""
    def __init__(
        self,
        message: str,
        field: str | None = None,
        field_errors: list[dict[str, str]] | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        if field_errors:
            ctx.field_errors = field_errors
        elif field:
            ctx.field_errors = [{"field": field, "message": message}]
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.field = field


class BusinessRuleError(MarketplaceError):
    """Operation is well-formed but not allowed by a marketplace rule."""
    def __init__(
        self, message: str, code: str = "BUSINESS_RULE_VIOLATION",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class InsufficientFundsError(MarketplaceError):
    """Wallet balance does not cover the requested debit."""
    def __init__(
        self, available: Any, required: Any, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Insufficient wallet balance: {available} available, {required} required",
            "INSUFFICIENT_FUNDS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )
        self.available = available
        self.required = required


class AuthenticationError(MarketplaceError):
    """Missing or invalid bearer token."""
    def __init__(self, message: str = "Not authenticated", context: ErrorContext | None = None):
        super().__init__(
            message, "NOT_AUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class PermissionDeniedError(MarketplaceError):
    """Authenticated user may not act on this resource."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PERMISSION_DENIED", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(MarketplaceError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource_id = resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.resource_type = resource_type


class InvalidStateTransitionError(MarketplaceError):
    """Entity is not in a state that allows the requested change."""
    def __init__(
        self, entity: str, current: str, target: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Cannot move {entity} from '{current}' to '{target}'",
            "INVALID_STATE_TRANSITION", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current = current
        self.target = target


class DuplicateResourceError(MarketplaceError):
    """An equivalent resource already exists."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "DUPLICATE_RESOURCE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(MarketplaceError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class PaymentProviderError(MarketplaceError):
    """Payment provider call failed."""
    def __init__(
        self, message: str, provider_error_type: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Payment provider error ({provider_error_type}): {message}",
            "PAYMENT_PROVIDER_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.provider_error_type = provider_error_type


class StorageError(MarketplaceError):
    """Object storage upload or lookup failed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage error: {message}",
            "STORAGE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )


class CatalogAPIError(MarketplaceError):
    """External card catalog API call failed."""
    def __init__(
        self, message: str, api_error_type: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Card catalog API error ({api_error_type}): {message}",
            "CATALOG_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )
        self.api_error_type = api_error_type
