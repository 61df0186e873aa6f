"""
Booking and clearing engines.

Both run their validation and the resulting commit inside the grid's
exclusive section, so two overlapping signups can never both succeed.
"""

import logging
from typing import List, Sequence

from .exceptions import SelectionError
from .grid import CalendarGrid
from .models import Duration, Slot

logger = logging.getLogger(__name__)

DEFAULT_MAX_NAME_LENGTH = 50


def normalize_member_name(member_name: str | None, max_length: int = DEFAULT_MAX_NAME_LENGTH) -> str:
    """
    Strip a member name and validate it.

    Raises:
        SelectionError: If the name is empty or too long
    """
    name = member_name.strip() if member_name else ""
    if not name:
        raise SelectionError("Please enter a member name")
    if len(name) > max_length:
        raise SelectionError(f"Member name must be at most {max_length} characters long")
    return name


class BookingEngine:
    """
    Books a contiguous run of slots for use, followed by charging time.

    Algorithm:
    1. Resolve the duration to a number of use slots
    2. Charging takes twice as many slots as the use
    3. Every use slot must be available for use
    4. Every charge slot inside the day must be available for charging;
       charge slots past closing are fine
    5. Commit everything with a single grid write
    """

    def __init__(self, grid: CalendarGrid, max_name_length: int = DEFAULT_MAX_NAME_LENGTH):
        self.grid = grid
        self.max_name_length = max_name_length

    def signup(self, day_index: int, slot_index: int, member_name: str, duration: str) -> List[Slot]:
        """
        Sign a member up for the given duration, starting at a slot.

        Returns:
            The slots that were booked (use and charge)

        Raises:
            UnsupportedDurationError: If the duration is not supported (system error)
            SelectionError: If the selection cannot be booked (user error)
        """
        booking_duration = Duration.from_value(duration)
        name = normalize_member_name(member_name, self.max_name_length)

        use_count = booking_duration.use_slots
        charge_count = booking_duration.charge_slots

        with self.grid.exclusive():
            slots = self.grid.get_slot_sequence(day_index, slot_index, use_count + charge_count)
            self._validate_selection(slots, use_count, charge_count)

            booked = self.grid.apply_booking(day_index, slot_index, use_count, charge_count, name)

        logger.info(
            "Booked %s hour(s) for %r on day %d from slot %d (%d slot(s) charging)",
            duration, name, day_index, slot_index, len(booked) - use_count
        )
        return booked

    @staticmethod
    def _validate_selection(slots: Sequence[Slot], use_count: int, charge_count: int) -> None:
        for i in range(use_count):
            if i >= len(slots):
                raise SelectionError("Not enough time in the given selection, please try another slot")
            if not slots[i].is_available_for_use:
                raise SelectionError("Unavailable slot in the given selection, please try another slot")

        for j in range(use_count, use_count + charge_count):
            if j >= len(slots):
                break  # the machine will be charging past closing hours
            if not slots[j].is_available_for_charging:
                raise SelectionError("Not enough time to charge, please try another slot")


class ClearingEngine:
    """Releases every slot held by a member."""

    def __init__(self, grid: CalendarGrid, max_name_length: int = DEFAULT_MAX_NAME_LENGTH):
        self.grid = grid
        self.max_name_length = max_name_length

    def clear(self, member_name: str) -> None:
        """
        Raises:
            SelectionError: If the name is invalid or holds no bookings
        """
        name = normalize_member_name(member_name, self.max_name_length)

        with self.grid.exclusive():
            found = self.grid.clear_for_member(name)

        if not found:
            raise SelectionError("There were no bookings under this member's name")

        logger.info("Cleared all bookings of %r", name)
