"""Error Hierarchy — typed, categorized exceptions for all portal client failures.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Every error message is already human-readable (safe to render next to a form)
    - Remote failures are ApiRequestError subclasses carrying status_code and errors
    - to_response() produces the same envelope shape the backend uses

Design Decisions:
    - Single hierarchy with PcasError base: store boundaries catch one type
    - ErrorContext as dataclass: rich observability without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

NETWORK_ERROR_MESSAGE = "Network error. Please try again."


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    EXTERNAL_API = "external_api"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    section: str | None = None
    method: str | None = None
    path: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class PcasError(Exception):
    """Base exception for all portal client errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the backend's failure envelope shape."""
        return {
            "success": False,
            "message": self.context.user_message or self.message,
            "errors": list(getattr(self, "errors", None) or []),
            "code": self.code,
            "category": self.category.value,
            "timestamp": self.context.timestamp.isoformat(),
        }


# ─── Remote Errors ──────────────────────────────────────────────

class ApiRequestError(PcasError):
    """A request to the backend failed; message is already normalized."""
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: list[str] | None = None,
        code: str = "API_REQUEST_FAILED",
        category: ErrorCategory = ErrorCategory.EXTERNAL_API,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, category, ErrorSeverity.ERROR, context, status_code,
        )
        self.status_code = status_code
        self.errors = errors or []


class NetworkError(ApiRequestError):
    """No response received from the backend."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            NETWORK_ERROR_MESSAGE, None, None,
            "NETWORK_ERROR", ErrorCategory.NETWORK, context,
        )


class AuthenticationError(ApiRequestError):
    """Backend answered 401; the stored credential has been evicted."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, 401, None,
            "UNAUTHORIZED", ErrorCategory.AUTHENTICATION, context,
        )


class RequestValidationError(ApiRequestError):
    """Backend rejected the payload with a list of field errors."""
    def __init__(
        self, errors: list[str], status_code: int | None = 400,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            ", ".join(errors), status_code, errors,
            "VALIDATION_ERROR", ErrorCategory.VALIDATION, context,
        )


class ServerResponseError(ApiRequestError):
    """Backend answered with a failing status or a success=false envelope."""
    def __init__(
        self, message: str, status_code: int | None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, status_code, None,
            "SERVER_ERROR", ErrorCategory.EXTERNAL_API, context,
        )


# ─── Local Errors ───────────────────────────────────────────────

class CacheError(PcasError):
    """Local cache read/write failed. Caught and logged by the cache helpers."""
    def __init__(self, message: str, key: str, context: ErrorContext | None = None):
        super().__init__(
            f"Local cache failure for '{key}': {message}",
            "CACHE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.WARNING, context,
        )
        self.key = key


class FormValidationError(PcasError):
    """Form values could not be converted into a request payload."""
    def __init__(self, problems: list[str], context: ErrorContext | None = None):
        super().__init__(
            ", ".join(problems), "FORM_INVALID", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.errors = problems


class NotAuthenticatedError(PcasError):
    """Operation requires a credential and none is stored."""
    def __init__(
        self, message: str = "No authentication token found",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "NOT_AUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )
