"""
services/container.py
──────────────────────────────────────────────────────────────────────────────
Dependency Injection container.

THIS IS THE ONLY FILE THAT NAMES CONCRETE ADAPTER CLASSES.

Backend selection is driven entirely by environment variables — no code
changes are needed to switch:

  STORE_BACKEND=memory   (default) → InMemoryCustomerStore
  STORE_BACKEND=postgres           → PostgresCustomerStore (DB_DSN)

  The address lookup is always ViaCepLookupAdapter (VIACEP_BASE_URL).

SEED_DEMO_DATA=true preloads the in-memory store with one demo customer.

Thread safety:
  FastAPI resolves get_customer_service() on its worker threads, so the
  cached build runs under a lock: concurrent first requests share one
  service (and one in-memory store).  Under uvicorn each worker process
  builds its own service.

close_customer_service() releases the store on API shutdown and CLI exit.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from functools import lru_cache

from cep_registry.adapters.inmemory_store import InMemoryCustomerStore
from cep_registry.adapters.viacep_lookup import ViaCepLookupAdapter
from cep_registry.config.settings import Settings, get_settings
from cep_registry.domain.exceptions import ConfigurationError
from cep_registry.domain.models import Customer
from cep_registry.ports.customer_store_port import CustomerStorePort
from cep_registry.services.customer_service import CustomerService

logger = logging.getLogger(__name__)

DEMO_CUSTOMERS = (
    Customer(
        id=1,
        name="Leonardo Testa",
        email="leotesta@example.com",
        postal_code="14302156",
        street="Rua Prof Jose Marques",
        city="Batatais",
        region="SP",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    ),
)


def build_store(settings: Settings) -> CustomerStorePort:
    """Instantiate the CustomerStorePort adapter named by STORE_BACKEND."""
    backend = settings.store_backend.lower()
    if backend == "memory":
        seed = DEMO_CUSTOMERS if settings.seed_demo_data else ()
        logger.info("Record store: in-memory (seeded=%d)", len(seed))
        return InMemoryCustomerStore(initial=seed)
    if backend == "postgres":
        from cep_registry.adapters.postgres_store import PostgresCustomerStore
        logger.info("Record store: PostgreSQL")
        if settings.seed_demo_data:
            logger.warning("SEED_DEMO_DATA is ignored for the postgres backend")
        return PostgresCustomerStore(settings)
    raise ConfigurationError(
        f"Unknown STORE_BACKEND '{settings.store_backend}'. "
        "Valid values: 'memory', 'postgres'."
    )


_wiring_lock = threading.Lock()


@lru_cache(maxsize=1)
def _wire() -> tuple[CustomerService, CustomerStorePort]:
    settings = get_settings()
    logger.info(
        "Building CustomerService | env=%s store_backend=%s",
        settings.app_env,
        settings.store_backend,
    )

    store = build_store(settings)               # CustomerStorePort
    lookup = ViaCepLookupAdapter(settings)      # AddressLookupPort

    return CustomerService(store=store, lookup=lookup), store


def get_customer_service() -> CustomerService:
    """Build and return the fully wired CustomerService singleton.

    Returns:
        CustomerService ready for use.

    Raises:
        ConfigurationError: If an unknown store backend is configured.
    """
    with _wiring_lock:
        return _wire()[0]


def close_customer_service() -> None:
    """Close the singleton's store and forget it; a later call rebuilds it.

    A no-op when nothing has been built yet.
    """
    with _wiring_lock:
        if _wire.cache_info().currsize == 0:
            return
        _, store = _wire()
        _wire.cache_clear()
    logger.info("Closing record store")
    store.close()
