"""
domain/mapping.py
──────────────────────────────────────────────────────────────────────────────
Pure conversions between wire requests, resolved addresses and stored
records.  No I/O, no clock: callers pass ``now`` in.

The three address fields are always copied together from one Address, so a
record never carries a partially overwritten address.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from cep_registry.domain import postal_code
from cep_registry.domain.models import (
    Address,
    Customer,
    CustomerRequest,
    CustomerResponse,
)


def _identity_fields(request: CustomerRequest) -> dict:
    return {
        "name": request.name.strip(),
        "email": str(request.email).strip().lower(),
        "postal_code": postal_code.normalize(request.postal_code),
    }


def _address_fields(address: Address) -> dict:
    return {
        "street": address.street,
        "city": address.city,
        "region": address.region,
    }


def new_customer(
    request: CustomerRequest,
    address: Address,
    now: datetime,
) -> Customer:
    """Build an unsaved record (``id`` is None) from a request and its address."""
    return Customer(
        **_identity_fields(request),
        **_address_fields(address),
        created_at=now,
    )


def merge_update(
    existing: Customer,
    request: CustomerRequest,
    address: Address,
    now: datetime,
) -> Customer:
    """Overlay the request and address on ``existing``.

    ``id`` and ``created_at`` are carried over; ``updated_at`` becomes ``now``.
    """
    return existing.model_copy(
        update={
            **_identity_fields(request),
            **_address_fields(address),
            "updated_at": now,
        }
    )


def to_response(customer: Customer) -> CustomerResponse:
    if customer.id is None:
        raise ValueError("cannot render a customer that has not been persisted")
    return CustomerResponse(
        id=customer.id,
        name=customer.name,
        email=customer.email,
        postal_code=customer.postal_code,
        street=customer.street,
        city=customer.city,
        region=customer.region,
        created_at=customer.created_at,
        updated_at=customer.updated_at,
    )


def to_responses(customers: Iterable[Customer]) -> list[CustomerResponse]:
    return [to_response(c) for c in customers]
