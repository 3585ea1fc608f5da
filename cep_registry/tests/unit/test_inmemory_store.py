"""
tests/unit/test_inmemory_store.py
──────────────────────────────────────────────────────────────────────────────
Unit tests for InMemoryCustomerStore against the CustomerStorePort contract.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cep_registry.adapters.inmemory_store import InMemoryCustomerStore
from cep_registry.domain.exceptions import DatabaseError
from cep_registry.domain.models import Customer
from cep_registry.ports.customer_store_port import CustomerStorePort

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
T1 = datetime(2025, 2, 1, tzinfo=timezone.utc)


def _customer(name: str = "Maria Silva", email: str = "maria@empresa.com.br", **kw) -> Customer:
    return Customer(
        name=name,
        email=email,
        postal_code="01310100",
        street="Avenida Paulista",
        city="São Paulo",
        region="SP",
        created_at=T0,
        **kw,
    )


def test_satisfies_port():
    assert isinstance(InMemoryCustomerStore(), CustomerStorePort)


class TestInsert:
    def test_assigns_sequential_ids(self, store):
        a = store.insert(_customer(email="a@empresa.com.br"))
        b = store.insert(_customer(email="b@empresa.com.br"))
        assert (a.id, b.id) == (1, 2)

    def test_duplicate_email_raises(self, store):
        store.insert(_customer())
        with pytest.raises(DatabaseError, match="duplicate"):
            store.insert(_customer(name="Outra Pessoa", email="MARIA@empresa.com.br"))


class TestReplace:
    def test_created_at_cannot_change(self, store):
        saved = store.insert(_customer())
        tampered = saved.model_copy(update={"created_at": T1, "name": "Maria Souza", "updated_at": T1})
        replaced = store.replace(tampered)
        assert replaced.created_at == T0
        assert replaced.name == "Maria Souza"
        assert store.get_by_id(saved.id).created_at == T0

    def test_unknown_id_raises(self, store):
        with pytest.raises(DatabaseError):
            store.replace(_customer(id=42))

    def test_email_clash_with_other_row_raises(self, store):
        store.insert(_customer(email="a@empresa.com.br"))
        b = store.insert(_customer(email="b@empresa.com.br"))
        with pytest.raises(DatabaseError):
            store.replace(b.model_copy(update={"email": "a@empresa.com.br"}))

    def test_keeping_own_email_is_fine(self, store):
        a = store.insert(_customer())
        assert store.replace(a.model_copy(update={"name": "Maria Souza"})).email == a.email


class TestReadsAndDelete:
    def test_list_ordered_by_name(self, store):
        store.insert(_customer(name="Carlos", email="c@empresa.com.br"))
        store.insert(_customer(name="Ana", email="a@empresa.com.br"))
        store.insert(_customer(name="Bruno", email="b@empresa.com.br"))
        assert [c.name for c in store.list_all()] == ["Ana", "Bruno", "Carlos"]

    def test_get_missing_is_none(self, store):
        assert store.get_by_id(999) is None

    def test_delete(self, store):
        saved = store.insert(_customer())
        assert store.exists_by_id(saved.id)
        assert store.delete_by_id(saved.id) is True
        assert store.delete_by_id(saved.id) is False
        assert not store.exists_by_id(saved.id)


class TestPreload:
    def test_explicit_ids_kept_and_sequence_moves_past_them(self):
        s = InMemoryCustomerStore(initial=[_customer(id=5)])
        assert s.get_by_id(5) is not None
        assert s.insert(_customer(email="novo@empresa.com.br")).id == 6

    def test_missing_ids_assigned(self):
        s = InMemoryCustomerStore(initial=[_customer()])
        assert s.get_by_id(1) is not None
