"""
slotsheet - weekly signup sheet for a shared, rechargeable machine.
"""

__version__ = "0.1.0"
