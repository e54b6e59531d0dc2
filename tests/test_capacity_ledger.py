"""Unit tests for the capacity ledger."""

import pytest
from stallhub.services.capacity_ledger import allocated_quantity, can_allocate, remaining_capacity
from stallhub.services.errors import NotFound


class TestCapacityLedger:
    def test_remaining_before_any_type(self, db, make_event):
        event = make_event(stall_count=10)
        assert remaining_capacity(db, event.id) == 10
        assert allocated_quantity(db, event.id) == 0

    def test_remaining_after_types(self, db, make_event, make_stall_type):
        event = make_event(stall_count=10)
        make_stall_type(event.id, "Premium", 5000, 6)
        make_stall_type(event.id, "Standard", 2000, 3)
        assert remaining_capacity(db, event.id) == 1

    def test_excluding_type_being_edited(self, db, make_event, make_stall_type):
        event = make_event(stall_count=10)
        premium = make_stall_type(event.id, "Premium", 5000, 6)
        make_stall_type(event.id, "Standard", 2000, 3)
        assert remaining_capacity(db, event.id, excluding_stall_type_id=premium.id) == 7
        assert can_allocate(db, event.id, 7, excluding_stall_type_id=premium.id)
        assert not can_allocate(db, event.id, 8, excluding_stall_type_id=premium.id)

    def test_can_allocate_boundary(self, db, make_event):
        event = make_event(stall_count=4)
        assert can_allocate(db, event.id, 4)
        assert not can_allocate(db, event.id, 5)

    def test_unknown_event(self, db):
        with pytest.raises(NotFound):
            remaining_capacity(db, 999)
        with pytest.raises(NotFound):
            can_allocate(db, 999, 1)
