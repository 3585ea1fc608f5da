"""
tests/conftest.py
──────────────────────────────────────────────────────────────────────────────
Shared pytest fixtures and mock adapter implementations.

Mock adapters implement the Port Protocols via structural subtyping — they do
NOT inherit from any base class.  pytest uses them to test service logic
without any real ViaCEP or database connections.

Fixture hierarchy:
  mock_lookup    → implements AddressLookupPort (in-memory CEP table)
  store          → InMemoryCustomerStore (the real adapter, empty)
  clock          → FakeClock, advances one minute per call
  service        → CustomerService wired with the three above
  api_client     → FastAPI TestClient with service injected
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from cep_registry.adapters.inmemory_store import InMemoryCustomerStore
from cep_registry.config.settings import Settings
from cep_registry.domain.exceptions import AddressLookupError, DatabaseError, LookupFailure
from cep_registry.domain.models import Address, CustomerRequest
from cep_registry.interfaces.api import create_app
from cep_registry.services.container import get_customer_service
from cep_registry.services.customer_service import CustomerService


# ── Settings fixtures ──────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def settings() -> Settings:
    """Development-mode settings: diagnostics exposed in error envelopes."""
    return Settings(
        app_env="development",
        log_level="DEBUG",
        store_backend="memory",
        db_dsn="dbname=cep_registry_test",
        seed_demo_data=False,
        viacep_base_url="https://viacep.test/ws",
        lookup_timeout=2.0,
        http_user_agent="cep-registry-tests",
    )


@pytest.fixture(scope="session")
def production_settings() -> Settings:
    return Settings(
        app_env="production",
        store_backend="memory",
        viacep_base_url="https://viacep.test/ws",
        lookup_timeout=2.0,
    )


# ── Mock adapters ──────────────────────────────────────────────────────────

PAULISTA = Address(
    postal_code="01310100",
    street="Avenida Paulista",
    complement="de 612 a 1510 - lado par",
    district="Bela Vista",
    city="São Paulo",
    region="SP",
    ibge_code="3550308",
    area_code="11",
)

BATATAIS = Address(
    postal_code="14302156",
    street="Rua Prof Jose Marques",
    district="Centro",
    city="Batatais",
    region="SP",
)

# ViaCEP knows this code but has no street for it (small towns do this)
INCOMPLETE = Address(
    postal_code="38400000",
    street="",
    city="Uberlândia",
    region="MG",
)

_CEP_TABLE: dict[str, Address] = {
    a.postal_code: a for a in (PAULISTA, BATATAIS, INCOMPLETE)
}


class MockLookupAdapter:
    """In-memory CEP table.  Unknown codes resolve to None (NotFound).

    Set ``failure`` to make every call raise AddressLookupError instead.
    """

    service_name = "mock-viacep"

    def __init__(self, table: Optional[dict[str, Address]] = None) -> None:
        self.table = dict(_CEP_TABLE if table is None else table)
        self.failure: Optional[LookupFailure] = None
        self.calls: list[str] = []

    def lookup(self, normalized_code: str) -> Optional[Address]:
        self.calls.append(normalized_code)
        if self.failure is not None:
            raise AddressLookupError(self.failure, f"simulated {self.failure.value} failure")
        return self.table.get(normalized_code)


class FailingStore(InMemoryCustomerStore):
    """InMemoryCustomerStore whose named operations raise DatabaseError."""

    def __init__(self, *failing: str) -> None:
        super().__init__()
        self.failing = set(failing)

    def _maybe_fail(self, op: str) -> None:
        if op in self.failing:
            raise DatabaseError(f"simulated {op} failure")

    def list_all(self):
        self._maybe_fail("list_all")
        return super().list_all()

    def get_by_id(self, customer_id):
        self._maybe_fail("get_by_id")
        return super().get_by_id(customer_id)

    def insert(self, customer):
        self._maybe_fail("insert")
        return super().insert(customer)

    def replace(self, customer):
        self._maybe_fail("replace")
        return super().replace(customer)

    def delete_by_id(self, customer_id):
        self._maybe_fail("delete_by_id")
        return super().delete_by_id(customer_id)

    def exists_by_id(self, customer_id):
        self._maybe_fail("exists_by_id")
        return super().exists_by_id(customer_id)


class FakeClock:
    """Deterministic clock: each call is one minute after the previous."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(minutes=1)
        return current


def make_request(
    name: str = "Maria Silva",
    email: str = "maria.silva@empresa.com.br",
    postal_code: str = "01310-100",
) -> CustomerRequest:
    return CustomerRequest(name=name, email=email, postal_code=postal_code)


# ── pytest fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def new_request():
    """Factory for CustomerRequest with valid defaults (CEP 01310-100)."""
    return make_request


@pytest.fixture
def paulista() -> Address:
    return PAULISTA


@pytest.fixture
def failing_store_factory():
    return FailingStore


@pytest.fixture
def mock_lookup() -> MockLookupAdapter:
    return MockLookupAdapter()


@pytest.fixture
def store() -> InMemoryCustomerStore:
    return InMemoryCustomerStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(store, mock_lookup, clock) -> CustomerService:
    return CustomerService(store=store, lookup=mock_lookup, clock=clock)


@pytest.fixture
def api_client(service, settings) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[get_customer_service] = lambda: service
    return TestClient(app)


@pytest.fixture
def production_client(service, production_settings) -> TestClient:
    app = create_app(production_settings)
    app.dependency_overrides[get_customer_service] = lambda: service
    return TestClient(app)
