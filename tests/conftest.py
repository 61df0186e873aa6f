"""
Shared fixtures: a default grid over an in-memory store.
"""

import pytest

from slotsheet.adapters.memory_store import InMemorySlotStore
from slotsheet.domain.booking import BookingEngine, ClearingEngine
from slotsheet.domain.definitions import PeakTimeRule, generate_day_definitions, generate_slot_definitions
from slotsheet.domain.grid import CalendarGrid
from slotsheet.services.signup_sheet import SignupSheetService

MONDAY = 1
FRIDAY = 5
SATURDAY = 6
SLOTS_PER_DAY = 34


def build_grid(store=None) -> CalendarGrid:
    grid = CalendarGrid(
        store=store if store is not None else InMemorySlotStore(),
        slot_defs=generate_slot_definitions(6.0, 23.0, 0.5),
        day_defs=generate_day_definitions(),
        peak_rule=PeakTimeRule(),
    )
    grid.initialize()
    return grid


@pytest.fixture
def store() -> InMemorySlotStore:
    return InMemorySlotStore()


@pytest.fixture
def grid(store) -> CalendarGrid:
    return build_grid(store)


@pytest.fixture
def booking_engine(grid) -> BookingEngine:
    return BookingEngine(grid)


@pytest.fixture
def clearing_engine(grid) -> ClearingEngine:
    return ClearingEngine(grid)


@pytest.fixture
def service(grid, booking_engine, clearing_engine) -> SignupSheetService:
    return SignupSheetService(
        grid=grid,
        booking_engine=booking_engine,
        clearing_engine=clearing_engine,
    )
