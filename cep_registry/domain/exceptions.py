"""
domain/exceptions.py
──────────────────────────────────────────────────────────────────────────────
Failure taxonomy.

Two layers of exceptions live here:

  Infrastructure (raised by adapters, never shown to callers)
    AddressLookupError  — lookup transport failed (COMMUNICATION | TIMEOUT)
    DatabaseError       — any record store failure, incl. duplicate email
    ConfigurationError  — wiring / settings problem at startup

  Classified (raised by services, rendered by services/error_classifier.py)
    CustomerRegistryError(kind=ErrorKind.…)

Failure kinds are a tagged enumeration rather than a subclass per case, so
the classifier is a plain lookup over ErrorKind.  A CustomerRegistryError is
already classified and must be passed through untouched by every layer above
the one that raised it.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Stable failure kinds understood by the error classifier."""
    VALIDATION                   = "validation"
    INVALID_POSTAL_CODE          = "invalid_postal_code"
    ADDRESS_NOT_RESOLVED         = "address_not_resolved"
    RECORD_NOT_FOUND             = "record_not_found"
    EXTERNAL_SERVICE_UNAVAILABLE = "external_service_unavailable"
    TIMEOUT                      = "timeout"
    PERSISTENCE_FAILURE          = "persistence_failure"
    UNEXPECTED                   = "unexpected"


class LookupFailure(str, Enum):
    """Why an address lookup raised instead of answering Found / NotFound."""
    COMMUNICATION = "communication"
    TIMEOUT       = "timeout"


# ── Classified ─────────────────────────────────────────────────────────────────

class CustomerRegistryError(Exception):
    """A failure already mapped to the stable error taxonomy.

    Args:
        kind:         Taxonomy entry; drives status code and error type.
        message:      Human-readable message, safe to show to callers.
        detail:       Diagnostic text, only exposed outside production.
        field_errors: Per-field messages for VALIDATION failures.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        detail: Optional[str] = None,
        field_errors: Optional[dict[str, list[str]]] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail
        self.field_errors = field_errors

    def __repr__(self) -> str:
        return f"CustomerRegistryError(kind={self.kind.value!r}, message={self.message!r})"


# ── Infrastructure ─────────────────────────────────────────────────────────────

class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


class DatabaseError(Exception):
    """Raised when a record store operation fails."""


class AddressLookupError(Exception):
    """Raised when the postal-code lookup could not produce an answer."""

    def __init__(self, failure: LookupFailure, message: str) -> None:
        super().__init__(message)
        self.failure = failure
