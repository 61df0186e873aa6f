"""
Domain models for the weekly slot grid.
"""

from dataclasses import dataclass, replace
from enum import Enum

from .exceptions import UnsupportedDurationError


@dataclass(frozen=True)
class SlotDefinition:
    """
    Time-of-day definition of one slot, shared by every day of the week.
    """
    index: int
    start_time: float  # Fractional hours, e.g. 9.5 = 9:30
    display_label: str

    def to_dict(self) -> dict:
        return {
            "id": self.index,
            "time": self.start_time,
            "displayTime": self.display_label,
        }


@dataclass(frozen=True)
class DayDefinition:
    """A day of the recurring week (0=Sunday, 6=Saturday)."""
    index: int
    name: str


@dataclass(frozen=True)
class Slot:
    """
    Booking state of one slot, located by day and index within the day.

    Invariant: a slot without a member never carries a charge flag.
    """
    day_index: int
    slot_index: int
    peak_time: bool = False
    member_name: str | None = None
    charge_time: bool | None = None

    def __post_init__(self):
        if self.member_name is None and self.charge_time is not None:
            raise ValueError(
                f"Slot ({self.day_index}, {self.slot_index}) has charge_time "
                f"set without a member"
            )

    @property
    def key(self) -> tuple[int, int]:
        return (self.day_index, self.slot_index)

    @property
    def is_available_for_use(self) -> bool:
        """True if the machine can be booked for use in this slot."""
        return not self.member_name and not self.charge_time and not self.peak_time

    @property
    def is_available_for_charging(self) -> bool:
        """True if the machine can charge in this slot (peak time allowed)."""
        return not self.member_name and not self.charge_time

    def booked(self, member_name: str, charging: bool) -> "Slot":
        """Return a copy booked by the member, for use or for charging."""
        return replace(self, member_name=member_name, charge_time=charging)

    def cleared(self) -> "Slot":
        """Return a copy with the booking state reset."""
        return replace(self, member_name=None, charge_time=None)


class Duration(Enum):
    """Supported booking durations, valued by their request form."""
    HALF_HOUR = "1/2"
    ONE_HOUR = "1"

    @classmethod
    def from_value(cls, value: str) -> "Duration":
        """
        Resolve a request value such as ``"1/2"`` to a Duration.

        Raises:
            UnsupportedDurationError: If the value is not a supported duration
        """
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedDurationError(f"Unsupported duration value: {value!r}") from None

    @property
    def use_slots(self) -> int:
        """Number of half-hour slots of active use."""
        return 1 if self is Duration.HALF_HOUR else 2

    @property
    def charge_slots(self) -> int:
        """Charging always takes twice as long as the use."""
        return self.use_slots * 2


@dataclass(frozen=True)
class DisplayBlock:
    """
    A run of adjacent slots merged for compact rendering.
    """
    day_index: int
    slot_index: int  # Index of the first merged slot
    height: int
    member_name: str | None
    charge_time: bool | None
    peak_time: bool
    is_available_for_use: bool
    is_available_for_charging: bool
    display_class: str

    @property
    def slot_indices(self) -> range:
        return range(self.slot_index, self.slot_index + self.height)

    def to_dict(self) -> dict:
        return {
            "day": self.day_index,
            "id": self.slot_index,
            "height": self.height,
            "memberName": self.member_name,
            "chargeTime": self.charge_time,
            "peakTime": self.peak_time,
            "isAvailableForUse": self.is_available_for_use,
            "isAvailableForCharging": self.is_available_for_charging,
            "displayClass": self.display_class,
        }
