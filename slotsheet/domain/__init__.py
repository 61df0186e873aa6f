"""
Domain layer - Pure business logic without external dependencies.
"""

from .booking import BookingEngine, ClearingEngine
from .definitions import PeakTimeRule, generate_day_definitions, generate_slot_definitions
from .grid import CalendarGrid, SlotStore
from .grouping import group_slots
from .models import DayDefinition, DisplayBlock, Duration, Slot, SlotDefinition

__all__ = [
    "BookingEngine",
    "CalendarGrid",
    "ClearingEngine",
    "DayDefinition",
    "DisplayBlock",
    "Duration",
    "PeakTimeRule",
    "Slot",
    "SlotDefinition",
    "SlotStore",
    "generate_day_definitions",
    "generate_slot_definitions",
    "group_slots",
]
