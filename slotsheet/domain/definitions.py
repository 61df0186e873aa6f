"""
Static definitions of the recurring week: days, time-of-day slots and peak hours.

Everything here is computed once at startup and never changes afterwards.
"""

import math
import re
from dataclasses import dataclass
from typing import Sequence, Tuple

from .models import DayDefinition, SlotDefinition

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?:\s*([ap])\.m\.)?\s*$")


def generate_day_definitions() -> Tuple[DayDefinition, ...]:
    """Return the seven days of the week, Sunday first."""
    return tuple(DayDefinition(index=idx, name=name) for idx, name in enumerate(DAY_NAMES))


def generate_slot_definitions(
    open_hour: float,
    close_hour: float,
    slot_length_hours: float
) -> Tuple[SlotDefinition, ...]:
    """
    Partition the operating window [open_hour, close_hour) into fixed-width slots.

    Args:
        open_hour: Opening time as fractional hours (6.0 = 6 a.m.)
        close_hour: Closing time as fractional hours (23.0 = 11 p.m.)
        slot_length_hours: Width of every slot (0.5 = 30 minutes)

    Returns:
        Tuple of SlotDefinition objects ordered by index

    Raises:
        ValueError: If the slot length is not positive or the window is empty
    """
    if slot_length_hours <= 0:
        raise ValueError(f"Slot length must be positive, got {slot_length_hours}")
    if close_hour <= open_hour:
        raise ValueError(f"Closing hour {close_hour} must be after opening hour {open_hour}")

    slot_defs = []
    index = 0
    # Start times are derived from the index so float error never accumulates
    start_time = open_hour
    while start_time < close_hour:
        end_time = start_time + slot_length_hours
        slot_defs.append(
            SlotDefinition(
                index=index,
                start_time=start_time,
                display_label=format_time_range(start_time, end_time)
            )
        )
        index += 1
        start_time = open_hour + index * slot_length_hours

    return tuple(slot_defs)


def _clock(time: float) -> Tuple[int, int, str]:
    """Split fractional hours into 12-hour clock hours, minutes and period."""
    hours = math.floor(time)
    minutes = round(60 * (time - hours))
    if minutes == 60:
        hours, minutes = hours + 1, 0

    # 24.0 is the midnight that closes the day
    hours %= 24
    period = "p.m." if hours >= 12 else "a.m."
    hours = hours % 12 or 12
    return hours, minutes, period


def format_time(time: float, include_period: bool) -> str:
    """
    Render fractional hours as 12-hour ``h:mm``, optionally with the period.

    Example: 13.5 -> "1:30 p.m.", 24.0 -> "12:00 a.m."
    """
    hours, minutes, period = _clock(time)
    text = f"{hours}:{minutes:02d}"
    return f"{text} {period}" if include_period else text


def format_time_range(start_time: float, end_time: float) -> str:
    """
    Render a slot's time range.

    The end always shows its period; the start only shows it when the periods
    differ or the range ends at midnight.
    """
    show_start_period = end_time >= 24 or _clock(start_time)[2] != _clock(end_time)[2]
    return f"{format_time(start_time, show_start_period)} - {format_time(end_time, True)}"


def parse_display_label(label: str) -> float:
    """
    Recover the start time (fractional hours) from a display label.

    Raises:
        ValueError: If the label is not a time range produced by format_time_range
    """
    try:
        start_text, end_text = label.split(" - ")
    except ValueError:
        raise ValueError(f"Not a time range label: {label!r}") from None

    start_match = _TIME_PATTERN.match(start_text)
    end_match = _TIME_PATTERN.match(end_text)
    if not start_match or not end_match or not end_match.group(3):
        raise ValueError(f"Not a time range label: {label!r}")

    # A start without a period shares the period of the end
    period = start_match.group(3) or end_match.group(3)
    hours = int(start_match.group(1))
    minutes = int(start_match.group(2))
    if hours == 12:
        hours = 0
    if period == "p":
        hours += 12

    return hours + minutes / 60


@dataclass(frozen=True)
class PeakTimeRule:
    """
    Peak hours policy: during peak time the machine may charge but not be used.

    Windows are half-open [from, to) ranges of fractional hours.
    """
    days: Tuple[int, ...] = (1, 2, 3, 4)  # Monday - Thursday
    windows: Tuple[Tuple[float, float], ...] = ((9.0, 11.0), (19.0, 21.0))

    @classmethod
    def from_config(cls, days: Sequence[int], windows: Sequence[Sequence[float]]) -> "PeakTimeRule":
        return cls(
            days=tuple(days),
            windows=tuple((float(start), float(end)) for start, end in windows)
        )

    def is_peak(self, day_index: int, start_time: float) -> bool:
        """Check whether a slot starting at start_time on the given day is peak time."""
        if day_index not in self.days:
            return False
        return any(start <= start_time < end for start, end in self.windows)
