"""
adapters/inmemory_store.py
──────────────────────────────────────────────────────────────────────────────
Implements CustomerStorePort in process memory.

Default backend (STORE_BACKEND=memory) for local development and tests.
Data is lost when the process exits.  A single lock makes each operation
atomic, which is enough to keep ids unique and the e-mail constraint honest
under FastAPI's thread pool.
"""
from __future__ import annotations

import itertools
import logging
import threading
from typing import Iterable, Optional

from cep_registry.domain.exceptions import DatabaseError
from cep_registry.domain.models import Customer

logger = logging.getLogger(__name__)


class InMemoryCustomerStore:
    """dict-backed CustomerStorePort.

    Args:
        initial: Records to preload.  Their ids are kept if set, otherwise
                 assigned in order.
    """

    def __init__(self, initial: Iterable[Customer] = ()) -> None:
        self._rows: dict[int, Customer] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        for customer in initial:
            self._preload(customer)
        logger.debug("InMemoryCustomerStore ready | rows=%d", len(self._rows))

    # ── CustomerStorePort implementation ───────────────────────────────────

    def list_all(self) -> list[Customer]:
        with self._lock:
            return sorted(self._rows.values(), key=lambda c: (c.name, c.id))

    def get_by_id(self, customer_id: int) -> Optional[Customer]:
        with self._lock:
            return self._rows.get(customer_id)

    def insert(self, customer: Customer) -> Customer:
        with self._lock:
            self._check_email_free(customer.email, exclude_id=None)
            saved = customer.model_copy(update={"id": next(self._ids)})
            self._rows[saved.id] = saved
            return saved

    def replace(self, customer: Customer) -> Customer:
        with self._lock:
            current = self._rows.get(customer.id) if customer.id is not None else None
            if current is None:
                raise DatabaseError(f"replace failed: no customer with id={customer.id}")
            self._check_email_free(customer.email, exclude_id=customer.id)
            saved = customer.model_copy(update={"created_at": current.created_at})
            self._rows[saved.id] = saved
            return saved

    def delete_by_id(self, customer_id: int) -> bool:
        with self._lock:
            return self._rows.pop(customer_id, None) is not None

    def exists_by_id(self, customer_id: int) -> bool:
        with self._lock:
            return customer_id in self._rows

    def close(self) -> None:
        pass

    # ── Helpers ────────────────────────────────────────────────────────────

    def _check_email_free(self, email: str, exclude_id: Optional[int]) -> None:
        wanted = email.lower()
        for row in self._rows.values():
            if row.id != exclude_id and row.email.lower() == wanted:
                raise DatabaseError(f"duplicate e-mail: {email}")

    def _preload(self, customer: Customer) -> None:
        if customer.id is None:
            customer = customer.model_copy(update={"id": next(self._ids)})
        else:
            # keep the sequence ahead of explicit ids
            self._ids = itertools.count(max(customer.id, *self._rows, 0) + 1)
        self._rows[customer.id] = customer
