"""
Tests for display block grouping.
"""

from slotsheet.domain.grouping import group_slots, is_groupable
from slotsheet.domain.models import Slot


def _slot(index, member=None, charge=None, peak=False):
    return Slot(day_index=1, slot_index=index, peak_time=peak, member_name=member, charge_time=charge)


class TestGroupSlots:
    """Tests for group_slots."""

    def test_same_member_use_slots_merge(self):
        """Three non-peak slots of one member form one block of height 3."""
        blocks = group_slots([_slot(0, "alice", False), _slot(1, "alice", False), _slot(2, "alice", False)])

        assert len(blocks) == 1
        assert blocks[0].height == 3
        assert blocks[0].member_name == "alice"
        assert blocks[0].display_class == "slot-height-3"

    def test_peak_slot_splits_a_run(self):
        """A peak slot in the middle starts a new block."""
        blocks = group_slots([_slot(0, "alice", False), _slot(1, "alice", False, peak=True), _slot(2, "alice", False)])

        assert [b.height for b in blocks] == [1, 1, 1]

    def test_peak_slot_splits_a_run_of_four(self):
        slots = [
            _slot(0, "alice", False),
            _slot(1, "alice", False),
            _slot(2, peak=True),
            _slot(3, "alice", False),
        ]

        blocks = group_slots(slots)

        assert [b.height for b in blocks] == [2, 1, 1]

    def test_peak_slots_merge_regardless_of_member(self):
        slots = [_slot(0, peak=True), _slot(1, "alice", True, peak=True), _slot(2, "bob", True, peak=True)]

        blocks = group_slots(slots)

        assert len(blocks) == 1
        assert blocks[0].height == 3
        assert blocks[0].peak_time
        # availability is taken from the first slot of the block
        assert blocks[0].is_available_for_charging
        assert not blocks[0].is_available_for_use

    def test_use_and_charge_slots_stay_separate(self):
        """A booking renders as a use block followed by a charge block."""
        slots = [_slot(0, "alice", False), _slot(1, "alice", False)] + [
            _slot(i, "alice", True) for i in range(2, 6)
        ]

        blocks = group_slots(slots)

        assert [(b.height, b.charge_time) for b in blocks] == [(2, False), (4, True)]
        assert [b.slot_index for b in blocks] == [0, 2]

    def test_free_slots_never_merge(self):
        blocks = group_slots([_slot(i) for i in range(4)])

        assert [b.height for b in blocks] == [1, 1, 1, 1]
        assert all(b.is_available_for_use for b in blocks)

    def test_different_members_stay_separate(self):
        blocks = group_slots([_slot(0, "alice", True), _slot(1, "bob", True)])

        assert len(blocks) == 2

    def test_heights_cover_every_slot(self):
        slots = [
            _slot(0), _slot(1, "a", False), _slot(2, "a", True), _slot(3, "a", True),
            _slot(4, peak=True), _slot(5, peak=True), _slot(6),
        ]

        blocks = group_slots(slots)

        assert sum(b.height for b in blocks) == len(slots)
        covered = [i for b in blocks for i in b.slot_indices]
        assert covered == list(range(len(slots)))

    def test_unordered_input_is_sorted(self):
        blocks = group_slots([_slot(1, "alice", False), _slot(0, "alice", False)])

        assert len(blocks) == 1
        assert blocks[0].slot_index == 0

    def test_empty_day(self):
        assert group_slots([]) == ()


class TestIsGroupable:

    def test_peak_and_non_peak_never_group(self):
        assert not is_groupable(_slot(0, peak=True), _slot(1))
        assert not is_groupable(_slot(0, "alice", True), _slot(1, "alice", True, peak=True))

    def test_missing_charge_flag_counts_as_use(self):
        """charge_time None and False are both booked-not-charging."""
        assert is_groupable(_slot(0, "alice", None), _slot(1, "alice", False))
