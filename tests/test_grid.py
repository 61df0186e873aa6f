"""
Tests for the calendar grid.
"""

import threading

import pytest

from slotsheet.adapters.memory_store import InMemorySlotStore
from slotsheet.domain.exceptions import GridConsistencyError
from slotsheet.domain.models import Slot

from conftest import FRIDAY, MONDAY, SLOTS_PER_DAY, SATURDAY, build_grid


class TestInitialize:
    """Tests for grid creation and verification."""

    def test_creates_full_grid(self, store, grid):
        """An empty store is filled with 7 x 34 cleared slots."""
        assert store.count_slots(0) == 7 * SLOTS_PER_DAY

        for day, slots in grid.get_slots_by_day():
            assert len(slots) == SLOTS_PER_DAY
            for slot in slots:
                assert slot.day_index == day.index
                assert slot.member_name is None
                assert slot.charge_time is None

    def test_peak_flags_are_computed(self, grid):
        """Monday 9:00 (slot 6) is peak, Friday 9:00 is not."""
        assert grid.get_slot(MONDAY, 6).peak_time
        assert grid.get_slot(MONDAY, 5).peak_time is False
        assert grid.get_slot(FRIDAY, 6).peak_time is False

    def test_reinitialize_keeps_bookings(self, store, grid):
        """Initializing over a matching store leaves its bookings alone."""
        grid.apply_booking(FRIDAY, 0, 1, 2, "alice")

        again = build_grid(store)

        assert again.get_slot(FRIDAY, 0).member_name == "alice"
        assert store.count_slots(0) == 7 * SLOTS_PER_DAY

    def test_mismatched_slot_count_is_fatal(self, store):
        """A store holding a grid of another shape is never repaired."""
        store.save_slots(0, [Slot(day_index=0, slot_index=i) for i in range(10)])

        with pytest.raises(GridConsistencyError, match="expected 238"):
            build_grid(store)

        assert store.count_slots(0) == 10

    def test_mismatched_slot_keys_are_fatal(self, store):
        """Right count, wrong keys."""
        store.save_slots(0, [
            Slot(day_index=day, slot_index=idx + 100)
            for day in range(7)
            for idx in range(SLOTS_PER_DAY)
        ])

        with pytest.raises(GridConsistencyError, match="do not match"):
            build_grid(store)


class TestGetSlotSequence:
    """Tests for get_slot_sequence."""

    def test_returns_requested_length(self, grid):
        seq = grid.get_slot_sequence(MONDAY, 2, 3)

        assert [s.slot_index for s in seq] == [2, 3, 4]
        assert all(s.day_index == MONDAY for s in seq)

    def test_truncated_at_end_of_day(self, grid):
        seq = grid.get_slot_sequence(MONDAY, 32, 6)

        assert [s.slot_index for s in seq] == [32, 33]

    @pytest.mark.parametrize("day_index, slot_index", [(MONDAY, 34), (MONDAY, -1), (7, 0), (-1, 0)])
    def test_out_of_range_start_is_empty(self, grid, day_index, slot_index):
        assert grid.get_slot_sequence(day_index, slot_index, 3) == ()

    def test_get_slot_out_of_range(self, grid):
        assert grid.get_slot(SATURDAY, 99) is None


class TestApplyAndClear:
    """Tests for apply_booking and clear_for_member."""

    def test_apply_booking_marks_use_and_charge(self, grid):
        updated = grid.apply_booking(FRIDAY, 4, 2, 4, "alice")

        assert len(updated) == 6
        seq = grid.get_slot_sequence(FRIDAY, 4, 6)
        assert [s.member_name for s in seq] == ["alice"] * 6
        assert [s.charge_time for s in seq] == [False, False, True, True, True, True]
        assert grid.get_slot(FRIDAY, 10).member_name is None

    def test_apply_booking_skips_slots_past_closing(self, grid):
        updated = grid.apply_booking(FRIDAY, 32, 2, 4, "alice")

        assert len(updated) == 2
        assert grid.get_slot(FRIDAY, 33).member_name == "alice"

    def test_clear_for_member(self, grid):
        grid.apply_booking(FRIDAY, 4, 1, 2, "alice")
        grid.apply_booking(SATURDAY, 4, 1, 2, "alice")
        grid.apply_booking(FRIDAY, 10, 1, 2, "bob")

        assert grid.clear_for_member("alice") is True

        for _, slots in grid.get_slots_by_day():
            for slot in slots:
                assert slot.member_name != "alice"
        assert grid.get_slot(FRIDAY, 4).charge_time is None
        assert grid.get_slot(FRIDAY, 10).member_name == "bob"

    def test_clear_unknown_member_changes_nothing(self, grid):
        grid.apply_booking(FRIDAY, 4, 1, 2, "alice")
        before = grid.get_slots_by_day()

        assert grid.clear_for_member("nobody") is False
        assert grid.get_slots_by_day() == before

    def test_grids_sharing_a_store_exclude_each_other(self, store):
        """A mutation through one grid waits while another grid holds the store."""
        first = build_grid(store)
        second = build_grid(store)
        done = threading.Event()

        def book():
            second.apply_booking(FRIDAY, 4, 1, 0, "bob")
            done.set()

        with first.exclusive():
            worker = threading.Thread(target=book)
            worker.start()
            assert not done.wait(timeout=0.2)
            first.apply_booking(FRIDAY, 4, 1, 0, "alice")

        worker.join(timeout=5)
        assert done.is_set()
        assert first.get_slot(FRIDAY, 4).member_name == "bob"


class TestSlotModel:
    """Tests for the Slot value object."""

    def test_charge_flag_requires_member(self):
        with pytest.raises(ValueError, match="charge_time"):
            Slot(day_index=0, slot_index=0, charge_time=True)

    def test_availability(self):
        free = Slot(day_index=1, slot_index=0)
        peak = Slot(day_index=1, slot_index=6, peak_time=True)
        booked = free.booked("alice", charging=False)
        charging = free.booked("alice", charging=True)

        assert free.is_available_for_use and free.is_available_for_charging
        assert not peak.is_available_for_use and peak.is_available_for_charging
        assert not booked.is_available_for_use and not booked.is_available_for_charging
        assert not charging.is_available_for_charging
        assert charging.cleared() == free

    def test_in_memory_store_is_isolated_per_week(self):
        store = InMemorySlotStore()
        store.save_slots(1, [Slot(day_index=0, slot_index=0)])

        assert store.count_slots(0) == 0
        assert store.count_slots(1) == 1
