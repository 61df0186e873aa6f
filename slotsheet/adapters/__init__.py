"""
Adapters layer - Slot store implementations.
"""

from .memory_store import InMemorySlotStore, load_demo_bookings
from .sqlite_store import SqliteSlotStore

__all__ = ["InMemorySlotStore", "SqliteSlotStore", "load_demo_bookings"]
