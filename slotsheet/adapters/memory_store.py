"""
In-memory slot store for tests and demo runs.
"""

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Tuple

from ..domain.models import Slot

DEMO_BOOKINGS_FILE = Path(__file__).parent / "demo_bookings.json"


class InMemorySlotStore:
    """
    Keeps slot rows in a dict keyed by (week, day, slot).

    Every load and save holds the store's lock, so readers always see a
    save either completely or not at all. ``transaction()`` holds the same
    lock across several calls. All bookings are lost when the
    process exits.
    """

    def __init__(self):
        self._rows: Dict[Tuple[int, int, int], Slot] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    def count_slots(self, week_index: int) -> int:
        with self._lock:
            return sum(1 for week, _, _ in self._rows if week == week_index)

    def load_slots(self, week_index: int) -> List[Slot]:
        with self._lock:
            return [
                slot for (week, _, _), slot in sorted(self._rows.items())
                if week == week_index
            ]

    def save_slots(self, week_index: int, slots: Sequence[Slot]) -> None:
        # Slots are frozen, so storing them directly cannot leak later mutations
        with self._lock:
            for slot in slots:
                self._rows[(week_index, slot.day_index, slot.slot_index)] = slot


def load_demo_bookings(path: Path | None = None) -> List[dict]:
    """
    Load booking requests from a JSON file.

    Each entry holds ``day``, ``slot``, ``memberName`` and ``duration``.
    Falls back to an empty list if the file doesn't exist.
    """
    data_file = path or DEMO_BOOKINGS_FILE

    if not data_file.exists():
        return []

    with open(data_file, "r", encoding="utf-8") as f:
        bookings = json.load(f)

    if not isinstance(bookings, list):
        raise ValueError(f"Booking file must contain a list: {data_file}")

    return bookings
