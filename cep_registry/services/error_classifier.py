"""
services/error_classifier.py
──────────────────────────────────────────────────────────────────────────────
Turns any failure into one stable, user-facing error envelope.

  as_registry_error(exc)   any exception → CustomerRegistryError
                           (already-classified errors come back unchanged)
  classify(error, …)       CustomerRegistryError → ErrorEnvelope
  @classified              inner mount: wraps each CustomerService operation

Mapping (status | type | diagnostic detail, outside production only):

  VALIDATION                    400  validation_error        —  (errors map always)
  INVALID_POSTAL_CODE           400  invalid_postal_code     —
  ADDRESS_NOT_RESOLVED          400  address_not_resolved    —
  RECORD_NOT_FOUND              404  not_found               —
  EXTERNAL_SERVICE_UNAVAILABLE  400  external_service_error  raw transport message
  TIMEOUT                       408  timeout_error           —
  PERSISTENCE_FAILURE           500  persistence_error       —
  UNEXPECTED                    500  internal_error          message + traceback

The outer mount is the FastAPI exception handlers in interfaces/api.py, which
call as_registry_error() then classify() exactly once per failed request.
"""
from __future__ import annotations

import functools
import logging
import traceback
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from pydantic import ValidationError

from cep_registry.domain.exceptions import (
    AddressLookupError,
    CustomerRegistryError,
    DatabaseError,
    ErrorKind,
    LookupFailure,
)
from cep_registry.domain.models import ErrorResponse

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


@dataclass(frozen=True)
class _Rule:
    status_code: int
    error: str
    type: str
    show_detail: bool = False
    show_trace: bool = False
    generic_message: Optional[str] = None


_RULES: dict[ErrorKind, _Rule] = {
    ErrorKind.VALIDATION: _Rule(
        400, "Invalid data", "validation_error"),
    ErrorKind.INVALID_POSTAL_CODE: _Rule(
        400, "Invalid postal code", "invalid_postal_code"),
    ErrorKind.ADDRESS_NOT_RESOLVED: _Rule(
        400, "Address not resolved", "address_not_resolved"),
    ErrorKind.RECORD_NOT_FOUND: _Rule(
        404, "Customer not found", "not_found"),
    # 400, not 5xx
    ErrorKind.EXTERNAL_SERVICE_UNAVAILABLE: _Rule(
        400, "External communication error", "external_service_error",
        show_detail=True),
    ErrorKind.TIMEOUT: _Rule(
        408, "Timeout", "timeout_error",
        generic_message="The operation exceeded the time limit."),
    ErrorKind.PERSISTENCE_FAILURE: _Rule(
        500, "Persistence error", "persistence_error"),
    ErrorKind.UNEXPECTED: _Rule(
        500, "Internal server error", "internal_error",
        show_detail=True, show_trace=True,
        generic_message="An unexpected error occurred. Please try again later."),
}

SERVER_SIDE_KINDS = frozenset(
    kind for kind, rule in _RULES.items() if rule.status_code >= 500
)


@dataclass(frozen=True)
class ErrorEnvelope:
    """HTTP status plus JSON body for one classified failure."""

    status_code: int
    body: ErrorResponse

    def to_dict(self) -> dict:
        return self.body.to_dict()


# ── Classification ─────────────────────────────────────────────────────────

def classify(error: CustomerRegistryError, *, expose_details: bool) -> ErrorEnvelope:
    """Build the envelope for an already-classified error.

    Args:
        error:          The failure to render.
        expose_details: True outside production; gates ``details`` and
                        ``stackTrace``.
    """
    rule = _RULES[error.kind]
    details = error.detail if (expose_details and rule.show_detail) else None
    stack_trace = None
    if expose_details and rule.show_trace:
        stack_trace = _format_trace(error)

    body = ErrorResponse(
        error=rule.error,
        message=rule.generic_message or error.message,
        type=rule.type,
        errors=error.field_errors if error.kind is ErrorKind.VALIDATION else None,
        details=details,
        stack_trace=stack_trace,
    )
    return ErrorEnvelope(status_code=rule.status_code, body=body)


def as_registry_error(exc: BaseException) -> CustomerRegistryError:
    """Map any exception onto the taxonomy.

    A CustomerRegistryError is returned as-is, never re-wrapped.  Otherwise
    the original exception is attached as ``__cause__`` so the traceback
    survives for logging and for the dev-mode ``stackTrace``.
    """
    if isinstance(exc, CustomerRegistryError):
        return exc

    if isinstance(exc, AddressLookupError):
        error = lookup_failure_error(exc)
    elif isinstance(exc, DatabaseError):
        error = CustomerRegistryError(
            ErrorKind.PERSISTENCE_FAILURE,
            "Could not access customer records.",
            detail=str(exc),
        )
    elif isinstance(exc, ValidationError):
        error = CustomerRegistryError(
            ErrorKind.VALIDATION,
            "One or more fields contain invalid values.",
            field_errors=field_errors_from(exc.errors()),
        )
    elif isinstance(exc, TimeoutError):
        error = CustomerRegistryError(ErrorKind.TIMEOUT, str(exc) or "Timed out.")
    else:
        error = CustomerRegistryError(
            ErrorKind.UNEXPECTED,
            "An unexpected error occurred.",
            detail=f"{type(exc).__name__}: {exc}",
        )
    error.__cause__ = exc
    return error


def lookup_failure_error(exc: AddressLookupError) -> CustomerRegistryError:
    """Both lookup failure modes surface as EXTERNAL_SERVICE_UNAVAILABLE."""
    if exc.failure is LookupFailure.TIMEOUT:
        message = "The postal code service did not answer in time. Please try again."
    else:
        message = "Could not query the postal code service. Please try again shortly."
    return CustomerRegistryError(
        ErrorKind.EXTERNAL_SERVICE_UNAVAILABLE,
        message,
        detail=str(exc),
    )


def field_errors_from(errors: list[dict]) -> dict[str, list[str]]:
    """Group pydantic / FastAPI error dicts by field name.

    The request-location prefix FastAPI adds ("body", "path", …) is dropped:
    ("body", "postalCode") → "postalCode".
    """
    grouped: dict[str, list[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if len(loc) > 1 and loc[0] in ("body", "path", "query", "header"):
            loc = loc[1:]
        field = ".".join(loc) or "__root__"
        grouped.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return grouped


def log_failure(error: CustomerRegistryError, context: str) -> None:
    """Server-side kinds at ERROR with traceback; client kinds at WARNING."""
    if error.kind in SERVER_SIDE_KINDS:
        cause = error.__cause__ or error
        logger.error(
            "%s failed | kind=%s message=%s",
            context, error.kind.value, error.message,
            exc_info=(type(cause), cause, cause.__traceback__),
        )
    else:
        logger.warning(
            "%s rejected | kind=%s message=%s",
            context, error.kind.value, error.message,
        )


def _format_trace(error: CustomerRegistryError) -> Optional[str]:
    cause = error.__cause__ or error
    if cause.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))


# ── Inner mount ────────────────────────────────────────────────────────────

def classified(operation: F) -> F:
    """Guarantee an operation only ever raises CustomerRegistryError.

    Already-classified errors propagate untouched; anything else is mapped
    through as_registry_error() and re-raised with the original as cause.
    Nothing is logged here: the caller that renders the error logs it once.
    """

    @functools.wraps(operation)
    def wrapper(*args, **kwargs):
        try:
            return operation(*args, **kwargs)
        except CustomerRegistryError:
            raise
        except Exception as exc:
            raise as_registry_error(exc) from exc

    return wrapper  # type: ignore[return-value]
