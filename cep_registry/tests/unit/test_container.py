"""
tests/unit/test_container.py
──────────────────────────────────────────────────────────────────────────────
Wiring tests: backend selection and settings parsing.
"""
from __future__ import annotations

import threading
import time
from dataclasses import replace

import pytest

from cep_registry.adapters.inmemory_store import InMemoryCustomerStore
from cep_registry.adapters.postgres_store import PostgresCustomerStore
from cep_registry.config.settings import Settings
from cep_registry.domain.exceptions import ConfigurationError
from cep_registry.services import container
from cep_registry.services.container import build_store, close_customer_service


class TestBuildStore:
    def test_memory_backend(self, settings):
        store = build_store(settings)
        assert isinstance(store, InMemoryCustomerStore)
        assert store.list_all() == []

    def test_memory_backend_seeded(self, settings):
        store = build_store(replace(settings, seed_demo_data=True))
        assert [c.name for c in store.list_all()] == ["Leonardo Testa"]

    def test_postgres_backend_is_lazy(self, settings):
        """No connection is opened until the first query."""
        store = build_store(replace(settings, store_backend="postgres"))
        assert isinstance(store, PostgresCustomerStore)

    def test_unknown_backend_raises(self, settings):
        with pytest.raises(ConfigurationError, match="STORE_BACKEND"):
            build_store(replace(settings, store_backend="mongo"))


class TestSettingsFromEnv:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("LOOKUP_TIMEOUT", "3.5")
        monkeypatch.setenv("SEED_DEMO_DATA", "yes")
        s = Settings()
        assert s.is_production
        assert s.lookup_timeout == 3.5
        assert s.seed_demo_data is True

    def test_defaults(self, monkeypatch):
        for key in ("APP_ENV", "STORE_BACKEND", "LOOKUP_TIMEOUT", "VIACEP_BASE_URL"):
            monkeypatch.delenv(key, raising=False)
        s = Settings()
        assert not s.is_production
        assert s.store_backend == "memory"
        assert s.lookup_timeout == 10.0
        assert s.viacep_base_url == "https://viacep.com.br/ws"


class SlowStore(InMemoryCustomerStore):
    """Construction takes long enough for concurrent builders to overlap."""

    def __init__(self) -> None:
        time.sleep(0.05)
        super().__init__()
        self.closed = False

    def close(self) -> None:
        self.closed = True


class TestServiceSingleton:
    @pytest.fixture(autouse=True)
    def wired(self, monkeypatch, settings):
        close_customer_service()
        monkeypatch.setattr(container, "get_settings", lambda: settings)
        monkeypatch.setattr(container, "build_store", lambda s: SlowStore())
        yield
        close_customer_service()

    def test_concurrent_first_calls_share_one_service(self):
        barrier = threading.Barrier(4)
        services = []

        def worker():
            barrier.wait()
            services.append(container.get_customer_service())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(services) == 4
        assert len({id(s) for s in services}) == 1

    def test_close_releases_store_and_next_call_rebuilds(self):
        first = container.get_customer_service()
        store = first._store
        close_customer_service()
        assert store.closed
        assert container.get_customer_service() is not first

    def test_close_before_build_is_noop(self):
        close_customer_service()
        close_customer_service()
