"""
ports/customer_store_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for customer record persistence.

The store owns identifier assignment and e-mail uniqueness.  Every failure,
a duplicate e-mail included, is raised as DatabaseError; the service layer
decides how that is presented.

Current implementations:
  InMemoryCustomerStore   (default, dev / tests)
  PostgresCustomerStore   (psycopg2)
Selection happens in services/container.py via STORE_BACKEND.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from cep_registry.domain.models import Customer


@runtime_checkable
class CustomerStorePort(Protocol):
    """Contract for the customer record store."""

    def list_all(self) -> list[Customer]:
        """Return every record ordered by name.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...

    def get_by_id(self, customer_id: int) -> Optional[Customer]:
        """Return the record with this id, or None."""
        ...

    def insert(self, customer: Customer) -> Customer:
        """Persist a new record and return it with its assigned id.

        Raises:
            DatabaseError: On failure, including a duplicate e-mail.
        """
        ...

    def replace(self, customer: Customer) -> Customer:
        """Overwrite an existing record (matched on ``customer.id``).

        ``created_at`` is never modified, whatever the incoming value.

        Raises:
            DatabaseError: On failure, a duplicate e-mail or a missing id.
        """
        ...

    def delete_by_id(self, customer_id: int) -> bool:
        """Delete a record.  Returns False if it did not exist."""
        ...

    def exists_by_id(self, customer_id: int) -> bool:
        ...

    def close(self) -> None:
        """Release connections held by the store.  Safe to call twice."""
        ...
