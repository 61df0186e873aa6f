"""
The weekly calendar grid: seven days by N slots of mutable booking state.

The grid owns the slot state; the store behind it is only a persistence
boundary and is reached through the ``SlotStore`` protocol.
"""

import logging
import threading
from contextlib import contextmanager
from typing import ContextManager, Dict, Iterator, List, Protocol, Sequence, Tuple

from .definitions import PeakTimeRule
from .exceptions import GridConsistencyError
from .models import DayDefinition, Slot, SlotDefinition

logger = logging.getLogger(__name__)


class SlotStore(Protocol):
    """Protocol describing the persistence behaviour needed by the grid."""

    def count_slots(self, week_index: int) -> int:
        """Return the number of stored slots for the week."""

    def load_slots(self, week_index: int) -> List[Slot]:
        """Return every stored slot of the week."""

    def save_slots(self, week_index: int, slots: Sequence[Slot]) -> None:
        """Insert or update the given slots, all or nothing."""

    def transaction(self) -> ContextManager[None]:
        """
        Hold exclusive write access to the store for the duration of the block.

        Loads and saves made inside the block see one consistent state, and no
        other writer, in this process or another, can interleave with them.
        Re-entering from the same thread is allowed.
        """


class CalendarGrid:
    """
    Holds the 7 x N slot matrix of one recurring week.

    Mutations must happen inside ``exclusive()`` so that validation and
    commit of a booking are never interleaved with another mutation, made
    through this grid or through any other grid sharing the same store.
    """

    def __init__(
        self,
        store: SlotStore,
        slot_defs: Sequence[SlotDefinition],
        day_defs: Sequence[DayDefinition],
        peak_rule: PeakTimeRule,
        week_index: int = 0
    ):
        self._store = store
        self.slot_defs = tuple(slot_defs)
        self.day_defs = tuple(day_defs)
        self.peak_rule = peak_rule
        self.week_index = week_index
        self._lock = threading.RLock()

    @property
    def slots_per_day(self) -> int:
        return len(self.slot_defs)

    @property
    def expected_slot_count(self) -> int:
        return len(self.day_defs) * len(self.slot_defs)

    def initialize(self) -> None:
        """
        Create all slots in an empty store, or verify an existing one.

        Raises:
            GridConsistencyError: If the store holds a grid of a different shape
        """
        with self.exclusive():
            existing = self._store.count_slots(self.week_index)

            if existing == 0:
                slots = [
                    Slot(
                        day_index=day.index,
                        slot_index=slot_def.index,
                        peak_time=self.peak_rule.is_peak(day.index, slot_def.start_time)
                    )
                    for day in self.day_defs
                    for slot_def in self.slot_defs
                ]
                self._store.save_slots(self.week_index, slots)
                logger.info(
                    "Created %d slots (%d days x %d slots) for week %d",
                    len(slots), len(self.day_defs), self.slots_per_day, self.week_index
                )
                return

            if existing != self.expected_slot_count:
                raise GridConsistencyError(
                    f"Store holds {existing} slots for week {self.week_index}, "
                    f"expected {self.expected_slot_count}"
                )

            expected_keys = {
                (day.index, slot_def.index)
                for day in self.day_defs
                for slot_def in self.slot_defs
            }
            stored_keys = {slot.key for slot in self._store.load_slots(self.week_index)}
            if stored_keys != expected_keys:
                raise GridConsistencyError(
                    f"Stored slot keys for week {self.week_index} do not match the slot layout"
                )

            logger.info("Verified existing grid of %d slots for week %d", existing, self.week_index)

    @contextmanager
    def exclusive(self) -> Iterator["CalendarGrid"]:
        """Hold the grid's mutation lock and the store's transaction for the block."""
        with self._lock, self._store.transaction():
            yield self

    def _load_by_key(self) -> Dict[Tuple[int, int], Slot]:
        return {slot.key: slot for slot in self._store.load_slots(self.week_index)}

    def get_slots_by_day(self) -> Tuple[Tuple[DayDefinition, Tuple[Slot, ...]], ...]:
        """Return a snapshot of the whole grid, grouped by day in index order."""
        by_key = self._load_by_key()
        return tuple(
            (
                day,
                tuple(
                    by_key[(day.index, slot_def.index)]
                    for slot_def in self.slot_defs
                    if (day.index, slot_def.index) in by_key
                )
            )
            for day in self.day_defs
        )

    def get_slot(self, day_index: int, slot_index: int) -> Slot | None:
        sequence = self.get_slot_sequence(day_index, slot_index, 1)
        return sequence[0] if sequence else None

    def get_slot_sequence(self, day_index: int, start_index: int, length: int) -> Tuple[Slot, ...]:
        """
        Return up to ``length`` consecutive slots of one day, starting at start_index.

        The sequence is shorter if the day ends first, and empty if the start
        lies outside the day.
        """
        if not 0 <= day_index < len(self.day_defs):
            return ()
        if not 0 <= start_index < self.slots_per_day or length <= 0:
            return ()

        by_key = self._load_by_key()
        end_index = min(start_index + length, self.slots_per_day)
        return tuple(by_key[(day_index, idx)] for idx in range(start_index, end_index))

    def apply_booking(
        self,
        day_index: int,
        first_use_index: int,
        use_count: int,
        charge_count: int,
        member_name: str
    ) -> List[Slot]:
        """
        Book slots for use followed by slots for charging, in one save.

        Indices past the end of the day are skipped; the machine may charge
        after closing.

        Returns:
            The updated slots
        """
        with self.exclusive():
            by_key = self._load_by_key()
            updated: List[Slot] = []

            for offset in range(use_count + charge_count):
                key = (day_index, first_use_index + offset)
                if key not in by_key:
                    continue
                updated.append(by_key[key].booked(member_name, charging=offset >= use_count))

            self._store.save_slots(self.week_index, updated)
            return updated

    def clear_for_member(self, member_name: str) -> bool:
        """
        Clear every slot booked by the member.

        Returns:
            False if the member held no slots
        """
        with self.exclusive():
            owned = [
                slot.cleared()
                for slot in self._store.load_slots(self.week_index)
                if slot.member_name == member_name
            ]
            if not owned:
                return False

            self._store.save_slots(self.week_index, owned)
            return True
