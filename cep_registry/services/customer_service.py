"""
services/customer_service.py
──────────────────────────────────────────────────────────────────────────────
Customer enrichment orchestrator.

Every write is one linear pipeline with no retry edges:

  Normalize CEP → Lookup address → Merge → Persist

  1. postal_code.normalize_and_validate()   → INVALID_POSTAL_CODE
  2. AddressLookupPort.lookup()
       AddressLookupError (COMMUNICATION | TIMEOUT)
                                            → EXTERNAL_SERVICE_UNAVAILABLE
       None, or an address missing street/city/region
                                            → ADDRESS_NOT_RESOLVED
  3. domain/mapping.py builds the new / merged record
  4. CustomerStorePort.insert() / replace() → PERSISTENCE_FAILURE

The lookup always runs before anything touches the store, so a failed
lookup persists nothing and a failed persist needs no compensation.

Updates re-resolve the address even when the postal code is unchanged.

Field-level validation (name, e-mail format) has already happened when a
CustomerRequest exists; this class never sees a structurally invalid body.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from cep_registry.domain import mapping, postal_code
from cep_registry.domain.exceptions import (
    AddressLookupError,
    CustomerRegistryError,
    DatabaseError,
    ErrorKind,
)
from cep_registry.domain.models import Address, Customer, CustomerRequest
from cep_registry.ports.address_lookup_port import AddressLookupPort
from cep_registry.ports.customer_store_port import CustomerStorePort
from cep_registry.services.error_classifier import classified, lookup_failure_error

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CustomerService:
    """Create / update / delete / read customers, enriching addresses by CEP.

    The service holds references to both ports for its lifetime but does not
    own them; closing connections is the container's business.

    Args:
        store:  Any object satisfying CustomerStorePort.
        lookup: Any object satisfying AddressLookupPort.
        clock:  Returns the current time; override in tests.
    """

    def __init__(
        self,
        store: CustomerStorePort,
        lookup: AddressLookupPort,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._lookup = lookup
        self._clock = clock
        logger.debug("CustomerService init | lookup=%s", lookup.service_name)

    # ── Reads ──────────────────────────────────────────────────────────────

    @classified
    def list_customers(self) -> list[Customer]:
        customers = self._store.list_all()
        logger.info("Listed %d customers", len(customers))
        return customers

    @classified
    def get_customer(self, customer_id: int) -> Optional[Customer]:
        """Return the customer, or None.  Absence is not an error here."""
        customer = self._store.get_by_id(customer_id)
        if customer is None:
            logger.info("Customer not found | id=%s", customer_id)
        return customer

    def customer_exists(self, customer_id: int) -> bool:
        """Convenience existence check; any store failure degrades to False."""
        if customer_id <= 0:
            return False
        try:
            return self._store.exists_by_id(customer_id)
        except Exception:
            logger.exception("Existence check failed | id=%s", customer_id)
            return False

    # ── Writes ─────────────────────────────────────────────────────────────

    @classified
    def create_customer(self, request: CustomerRequest) -> Customer:
        logger.info("Creating customer | name=%s cep=%s", request.name, request.postal_code)

        address = self._resolve_address(request.postal_code)
        customer = mapping.new_customer(request, address, self._clock())

        try:
            saved = self._store.insert(customer)
        except DatabaseError as exc:
            raise CustomerRegistryError(
                ErrorKind.PERSISTENCE_FAILURE,
                "Could not create the customer.",
                detail=str(exc),
            ) from exc

        logger.info("Customer created | id=%s name=%s", saved.id, saved.name)
        return saved

    @classified
    def update_customer(self, customer_id: int, request: CustomerRequest) -> Customer:
        logger.info("Updating customer | id=%s", customer_id)

        existing = self._store.get_by_id(customer_id)
        if existing is None:
            raise CustomerRegistryError(
                ErrorKind.RECORD_NOT_FOUND,
                f"Customer with id {customer_id} was not found.",
            )

        address = self._resolve_address(request.postal_code)
        merged = mapping.merge_update(existing, request, address, self._clock())

        try:
            saved = self._store.replace(merged)
        except DatabaseError as exc:
            raise CustomerRegistryError(
                ErrorKind.PERSISTENCE_FAILURE,
                "Could not update the customer.",
                detail=str(exc),
            ) from exc

        logger.info("Customer updated | id=%s name=%s", saved.id, saved.name)
        return saved

    @classified
    def delete_customer(self, customer_id: int) -> bool:
        """Returns True if a record was found and removed."""
        try:
            deleted = self._store.delete_by_id(customer_id)
        except DatabaseError as exc:
            raise CustomerRegistryError(
                ErrorKind.PERSISTENCE_FAILURE,
                "Could not delete the customer.",
                detail=str(exc),
            ) from exc

        if deleted:
            logger.info("Customer deleted | id=%s", customer_id)
        else:
            logger.info("Nothing to delete | id=%s", customer_id)
        return deleted

    # ── Enrichment ─────────────────────────────────────────────────────────

    @classified
    def resolve_address(self, raw_postal_code: str) -> Address:
        """Normalise, validate and look up a CEP without touching the store."""
        return self._resolve_address(raw_postal_code)

    def _resolve_address(self, raw_postal_code: str) -> Address:
        code = postal_code.normalize_and_validate(raw_postal_code)

        try:
            address = self._lookup.lookup(code)
        except AddressLookupError as exc:
            logger.error(
                "Lookup failed | cep=%s failure=%s: %s",
                code, exc.failure.value, exc,
            )
            raise lookup_failure_error(exc) from exc

        if address is None:
            logger.warning("CEP not found | cep=%s", code)
            raise CustomerRegistryError(
                ErrorKind.ADDRESS_NOT_RESOLVED,
                "Postal code not found. Check the postal code provided.",
            )
        if not address.is_complete:
            logger.warning("CEP %s resolved to an incomplete address", code)
            raise CustomerRegistryError(
                ErrorKind.ADDRESS_NOT_RESOLVED,
                "Postal code found but its address data is incomplete.",
            )

        logger.info(
            "Address resolved | cep=%s street=%s city=%s/%s",
            code, address.street, address.city, address.region,
        )
        return address
