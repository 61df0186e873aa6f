"""
Application service for the signup sheet.

The service is what a request layer talks to. It delegates bookings to the
domain engines and turns their outcome into an ``OperationResult``: user
errors carry a message for the member, system errors carry none and are
logged here instead. Grid consistency errors are not converted; a process
whose grid is inconsistent must stop serving.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Sequence, Tuple

from ..adapters.memory_store import InMemorySlotStore, load_demo_bookings
from ..adapters.sqlite_store import SqliteSlotStore
from ..config import AppConfig
from ..domain.booking import BookingEngine, ClearingEngine
from ..domain.definitions import PeakTimeRule, generate_day_definitions, generate_slot_definitions
from ..domain.exceptions import GridConsistencyError, SelectionError, SlotSheetError
from ..domain.grid import CalendarGrid, SlotStore
from ..domain.grouping import group_slots
from ..domain.models import DisplayBlock, SlotDefinition

logger = logging.getLogger(__name__)

BOOKING_KEYS = ("day", "slot", "memberName")


class ResultStatus(Enum):
    SUCCESS = "success"
    USER_ERROR = "user_error"
    SYSTEM_ERROR = "system_error"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a signup or clear request."""
    status: ResultStatus
    message: str | None = None

    @classmethod
    def success(cls) -> "OperationResult":
        return cls(ResultStatus.SUCCESS)

    @classmethod
    def user_error(cls, message: str) -> "OperationResult":
        return cls(ResultStatus.USER_ERROR, message)

    @classmethod
    def system_error(cls) -> "OperationResult":
        return cls(ResultStatus.SYSTEM_ERROR)

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.SUCCESS

    @property
    def http_status(self) -> int:
        """Status code a web request layer would answer with."""
        return {
            ResultStatus.SUCCESS: 200,
            ResultStatus.USER_ERROR: 409,
            ResultStatus.SYSTEM_ERROR: 500,
        }[self.status]


@dataclass(frozen=True)
class DaySheet:
    id: int
    name: str
    slots: Tuple[DisplayBlock, ...]


@dataclass(frozen=True)
class SheetData:
    """The current state of the signup sheet, ready for rendering."""
    slot_defs: Tuple[SlotDefinition, ...]
    days: Tuple[DaySheet, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "slotDefs": [slot_def.to_dict() for slot_def in self.slot_defs],
            "days": [
                {
                    "id": day.id,
                    "name": day.name,
                    "slots": [block.to_dict() for block in day.slots],
                }
                for day in self.days
            ],
        }


class SignupSheetService:
    """
    Orchestrates sheet rendering, signups and clearing on one grid.
    """

    def __init__(
        self,
        grid: CalendarGrid,
        booking_engine: BookingEngine,
        clearing_engine: ClearingEngine,
    ) -> None:
        self._grid = grid
        self._booking_engine = booking_engine
        self._clearing_engine = clearing_engine

    @property
    def grid(self) -> CalendarGrid:
        return self._grid

    def get_sheet_data(self) -> SheetData:
        """Load a fresh snapshot of the grid and group every day for display."""
        days = tuple(
            DaySheet(id=day.index, name=day.name, slots=group_slots(slots))
            for day, slots in self._grid.get_slots_by_day()
        )
        return SheetData(slot_defs=self._grid.slot_defs, days=days)

    def signup(self, day_index: int, slot_index: int, member_name: str, duration: str) -> OperationResult:
        """Attempt to sign up a member for a duration, starting at a slot."""
        return self._run(
            "signup",
            lambda: self._booking_engine.signup(day_index, slot_index, member_name, duration),
        )

    def clear(self, member_name: str) -> OperationResult:
        """Attempt to clear all bookings by a member."""
        return self._run("clear", lambda: self._clearing_engine.clear(member_name))

    def apply_bookings(self, bookings: Sequence[dict]) -> List[OperationResult]:
        """
        Apply booking requests given as ``{day, slot, memberName, duration}``.

        Raises:
            ValueError: If any entry is not a mapping holding day, slot and memberName;
                nothing is applied in that case
        """
        for position, booking in enumerate(bookings):
            missing = (
                [key for key in BOOKING_KEYS if key not in booking]
                if isinstance(booking, dict) else list(BOOKING_KEYS)
            )
            if missing:
                raise ValueError(f"Booking #{position} is missing {', '.join(missing)}: {booking!r}")

        results = []
        for booking in bookings:
            result = self.signup(
                booking["day"],
                booking["slot"],
                booking["memberName"],
                booking.get("duration", "1/2"),
            )
            if not result.ok:
                logger.warning("Skipped booking %s: %s", booking, result.message or result.status.value)
            results.append(result)
        return results

    @staticmethod
    def _run(operation: str, action: Callable[[], object]) -> OperationResult:
        try:
            action()
        except SelectionError as e:
            logger.info("%s rejected: %s", operation, e.message)
            return OperationResult.user_error(e.message)
        except GridConsistencyError:
            raise
        except SlotSheetError:
            logger.exception("%s failed with a system error", operation)
            return OperationResult.system_error()

        return OperationResult.success()


def build_store(config: AppConfig) -> SlotStore:
    """Create the slot store selected by the configuration."""
    if config.store.backend == "memory":
        return InMemorySlotStore()
    return SqliteSlotStore(config.store.path, timeout=config.store.timeout_seconds)


def build_service(config: AppConfig, store: SlotStore | None = None) -> SignupSheetService:
    """
    Wire store, grid and engines from the configuration and initialize the grid.

    Raises:
        GridConsistencyError: If the stored grid does not match the configuration
        PersistenceError: If the store cannot be reached
        ValueError: If the seed file holds a malformed booking
    """
    slot_defs = generate_slot_definitions(
        config.grid.open_hour,
        config.grid.close_hour,
        config.grid.slot_length_hours,
    )
    peak_rule = PeakTimeRule.from_config(config.peak.days, config.peak.windows)

    grid = CalendarGrid(
        store=store or build_store(config),
        slot_defs=slot_defs,
        day_defs=generate_day_definitions(),
        peak_rule=peak_rule,
        week_index=config.grid.week_index,
    )
    grid.initialize()

    service = SignupSheetService(
        grid=grid,
        booking_engine=BookingEngine(grid, max_name_length=config.max_member_name_length),
        clearing_engine=ClearingEngine(grid, max_name_length=config.max_member_name_length),
    )

    if config.store.seed_file is not None:
        if config.store.backend == "memory":
            service.apply_bookings(load_demo_bookings(config.store.seed_file))
        else:
            logger.warning("Ignoring seed file %s for the %s backend", config.store.seed_file, config.store.backend)

    return service
