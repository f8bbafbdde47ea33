# tests/test_store.py

import pytest

from errors import NotFoundError, ValidationError
from models import Stage
from services import lifecycle
from services.store import (
    CUSTOMER_ADDED, CUSTOMER_DELETED, CUSTOMER_UPDATED, CUSTOMERS_IMPORTED,
    CustomerStore
)


class TestCustomerStore:

    def setup_method(self):
        self.events = []

    def _listen(self, store):
        return store.subscribe(self.events.append)

    def test_add_puts_customer_first(self, store, make_customer):
        customer = make_customer(customer_id="CUST-NEW")

        store.add(customer)

        assert store.all()[0].id == "CUST-NEW"
        assert len(store) == 6

    def test_add_duplicate_id_rejected(self, store, make_customer):
        with pytest.raises(ValidationError):
            store.add(make_customer(customer_id="CUST-A"))

    def test_add_many_is_all_or_nothing(self, store, make_customer):
        batch = [make_customer(customer_id="CUST-X"), make_customer(customer_id="CUST-A")]

        with pytest.raises(ValidationError):
            store.add_many(batch)

        assert len(store) == 5

    def test_add_many_keeps_file_order(self, make_customer):
        store = CustomerStore()
        store.add_many([make_customer(customer_id="1"), make_customer(customer_id="2")])

        assert [c.id for c in store.all()] == ["1", "2"]

    def test_get_unknown(self, store):
        with pytest.raises(NotFoundError):
            store.get("CUST-NOPE")

    def test_delete(self, store):
        store.delete("CUST-B")

        assert "CUST-B" not in [c.id for c in store.all()]
        with pytest.raises(NotFoundError):
            store.delete("CUST-B")

    def test_all_returns_a_copy(self, store):
        store.all().clear()

        assert len(store) == 5

    def test_apply_replaces_record(self, store, now):
        updated = store.apply("CUST-A", lifecycle.change_stage, Stage.LEAD, now=now)

        assert store.get("CUST-A") is updated
        assert updated.stage == Stage.LEAD
        # position conservée
        assert store.all()[0].id == "CUST-A"

    def test_apply_failure_stores_nothing(self, store):
        before = store.get("CUST-A")
        self._listen(store)

        with pytest.raises(ValidationError):
            store.apply("CUST-A", lifecycle.add_note, "   ")

        assert store.get("CUST-A") is before
        assert self.events == []

    def test_apply_noop_emits_nothing(self, store):
        self._listen(store)

        store.apply("CUST-A", lifecycle.change_stage, Stage.ENQUIRY)

        assert self.events == []

    def test_events(self, store, make_customer, now):
        self._listen(store)

        store.add(make_customer(customer_id="CUST-1"))
        store.add_many([make_customer(customer_id="CUST-2"), make_customer(customer_id="CUST-3")])
        store.apply("CUST-1", lifecycle.change_stage, Stage.LEAD, now=now)
        store.delete("CUST-1")

        assert [e.type for e in self.events] == [
            CUSTOMER_ADDED, CUSTOMERS_IMPORTED, CUSTOMER_UPDATED, CUSTOMER_DELETED
        ]
        assert self.events[1].customer_ids == ("CUST-2", "CUST-3")

    def test_unsubscribe(self, store):
        unsubscribe = self._listen(store)
        unsubscribe()

        store.delete("CUST-A")

        assert self.events == []

    def test_failing_listener_does_not_block_mutation(self, store):
        def broken(event):
            raise RuntimeError("listener down")

        store.subscribe(broken)
        self._listen(store)

        store.delete("CUST-A")

        assert len(store) == 4
        assert [e.type for e in self.events] == [CUSTOMER_DELETED]
