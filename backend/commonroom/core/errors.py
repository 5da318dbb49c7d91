"""Error Hierarchy — typed, categorized exceptions for every consistency-layer failure.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are recoverable; StoreUnavailableError (503) is critical
    - to_response() produces the REST envelope; no internal details in messages
    - StoreUnavailableError is never retried inside the core (caller decides)

Design Decisions:
    - Single hierarchy with CommonroomError base: FastAPI global handler catches all
      (ADR: uniform error shape)
    - AlreadySubmittedError subclasses AlreadyExistsError: callers may catch the
      general uniqueness violation
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
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    STORE = "store"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    resource_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class CommonroomError(Exception):
    """Base exception for all Commonroom errors."""

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
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "user_id": self.context.user_id,
                    "resource_id": self.context.resource_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Caller Errors (401/403) ────────────────────────────────────

class UnauthorizedError(CommonroomError):
    """Caller identity missing or invalid."""
    def __init__(
        self, message: str = "Missing or invalid credentials",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ForbiddenError(CommonroomError):
    """Caller is authenticated but lacks the role or ownership required."""
    def __init__(self, action: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Not allowed to {action}: {reason}",
            "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.action = action
        self.reason = reason


# ─── Domain Errors (4xx) ────────────────────────────────────────

class RequestValidationFailed(CommonroomError):
    """Domain-level input validation failed (beyond schema validation)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(CommonroomError):
    """Referenced entity does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource_id = ctx.resource_id or resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidStateError(CommonroomError):
    """Operation not legal for the entity's current lifecycle state."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_STATE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )


class DeadlinePassedError(CommonroomError):
    """Submission attempted after the assignment deadline."""
    def __init__(self, deadline: datetime, context: ErrorContext | None = None):
        super().__init__(
            f"Assignment deadline has passed ({deadline.isoformat()})",
            "DEADLINE_PASSED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.deadline = deadline


class AlreadyExistsError(CommonroomError):
    """Uniqueness violation."""
    def __init__(
        self, message: str, code: str = "ALREADY_EXISTS",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class AlreadySubmittedError(AlreadyExistsError):
    """Student already holds a submission for this assignment."""
    def __init__(
        self, assignment_id: str, student_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user_id = ctx.user_id or student_id
        ctx.resource_id = ctx.resource_id or assignment_id
        super().__init__(
            f"Assignment '{assignment_id}' already has a submission from this student",
            "ALREADY_SUBMITTED", ctx,
        )
        self.assignment_id = assignment_id
        self.student_id = student_id


# ─── Infrastructure Errors (5xx) ────────────────────────────────

class StoreUnavailableError(CommonroomError):
    """Underlying KV, identity or blob store call failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = ctx.operation or operation
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_UNAVAILABLE", ErrorCategory.STORE,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.operation = operation
