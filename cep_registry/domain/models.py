"""
domain/models.py
──────────────────────────────────────────────────────────────────────────────
Pure domain objects — Pydantic models with no imports from adapters or ports.

These models are the lingua franca of the entire system:
  • adapters produce and consume them
  • services orchestrate them
  • interfaces (HTTP API, CLI) serialise them

Stored records and resolved addresses are frozen: a change is always a new
value built by domain/mapping.py, never an in-place mutation.

Wire models (CustomerRequest, CustomerResponse, ErrorResponse) use camelCase
aliases so the JSON body reads {"postalCode": ...} while Python code keeps
snake_case attribute names.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

NAME_PATTERN = r"^[a-zA-ZÀ-ÿ\s]+$"
EMAIL_MAX_LENGTH = 150


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Input ──────────────────────────────────────────────────────────────────────

class CustomerRequest(_WireModel):
    """Validated body of POST / PUT /customers.

    Field-level checks only.  The postal code may still carry punctuation
    here ("01310-100"); normalisation and the 8-digit rule belong to
    domain/postal_code.py so they surface as INVALID_POSTAL_CODE.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    name: str = Field(..., min_length=3, max_length=100, pattern=NAME_PATTERN,
                      description="Customer name: letters and spaces only")
    email: EmailStr = Field(..., description="Unique e-mail address")
    postal_code: str = Field(..., min_length=1, max_length=20,
                             description="CEP, with or without punctuation")

    @field_validator("email")
    @classmethod
    def email_length(cls, v: str) -> str:
        if len(v) > EMAIL_MAX_LENGTH:
            raise ValueError(f"email must be at most {EMAIL_MAX_LENGTH} characters")
        return v


# ── Lookup output ──────────────────────────────────────────────────────────────

class Address(BaseModel):
    """An address resolved from a CEP by the lookup port (the Found case)."""

    model_config = ConfigDict(frozen=True)

    postal_code: str
    street:      str = ""
    complement:  str = ""
    district:    str = ""
    city:        str = ""
    region:      str = ""
    ibge_code:   str = ""
    area_code:   str = ""

    @property
    def is_complete(self) -> bool:
        """True when street, city and region are all non-blank."""
        return all(part.strip() for part in (self.street, self.city, self.region))


# ── Stored record ──────────────────────────────────────────────────────────────

class Customer(BaseModel):
    """A customer record as held by the record store.

    ``id`` is None until the store assigns one on insert.
    """

    model_config = ConfigDict(frozen=True)

    id:          Optional[int] = None
    name:        str
    email:       str
    postal_code: str
    street:      Optional[str] = None
    city:        Optional[str] = None
    region:      Optional[str] = None
    created_at:  datetime
    updated_at:  Optional[datetime] = None


# ── Output ─────────────────────────────────────────────────────────────────────

class CustomerResponse(_WireModel):
    """Customer as returned by the HTTP API."""

    id:          int
    name:        str
    email:       str
    postal_code: str
    street:      Optional[str] = None
    city:        Optional[str] = None
    region:      Optional[str] = None
    created_at:  datetime
    updated_at:  Optional[datetime] = None

    def to_dict(self) -> dict:
        """Serialise to a camelCase JSON-safe dict."""
        return self.model_dump(mode="json", by_alias=True)


class ErrorResponse(_WireModel):
    """Error envelope shared by every classified failure."""

    error:       str
    message:     str
    type:        str
    errors:      Optional[dict[str, list[str]]] = None
    details:     Optional[str] = None
    stack_trace: Optional[str] = None

    def to_dict(self) -> dict:
        """Serialise, dropping the optional members that are not set."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
