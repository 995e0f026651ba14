"""Error Hierarchy — typed exceptions the API turns into JSON error envelopes.

Invariants:
    - Every error carries a code, category, severity and http_status
    - 4xx errors describe a bad request; 5xx errors describe a failing dependency
    - to_response() never exposes debug_info
    - Scoring and aggregation never raise these: they belong to the shell

Design Decisions:
    - Subclasses declare code/category/severity/http_status as class attributes,
      constructors only build the message
    - ErrorContext travels with the exception so handlers can log deal_id
      without parsing messages
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Where an error happened and what the client should be told."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    deal_id: int | None = None
    operation: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class PipelinePulseError(Exception):
    """Base for every error the API maps to a structured response."""

    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL
    severity = ErrorSeverity.ERROR
    http_status = 500

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def to_response(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "deal_id": self.context.deal_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Client errors (4xx) ────────────────────────────────────────

class InvalidStageError(PipelinePulseError):
    """Stage label is not part of the DealStage enumeration."""
    code = "INVALID_STAGE"
    category = ErrorCategory.VALIDATION
    http_status = 400

    def __init__(self, stage: str, context: ErrorContext | None = None):
        super().__init__(f"Unknown pipeline stage '{stage}'", context)
        self.stage = stage


class ResourceNotFoundError(PipelinePulseError):
    code = "RESOURCE_NOT_FOUND"
    category = ErrorCategory.RESOURCE_NOT_FOUND
    http_status = 404

    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(f"{resource_type} '{resource_id}' not found", context)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(PipelinePulseError):
    """Write rejected by a database constraint; retrying the same request fails again."""
    code = "CONFLICT"
    category = ErrorCategory.CONFLICT
    severity = ErrorSeverity.WARNING
    http_status = 409


# ─── Dependency failures (5xx) ──────────────────────────────────

class DatabaseError(PipelinePulseError):
    code = "DATABASE_ERROR"
    category = ErrorCategory.DATABASE
    severity = ErrorSeverity.CRITICAL
    http_status = 503

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(f"Database {operation} failed: {message}", context)
        self.operation = operation
