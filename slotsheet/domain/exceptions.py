"""
Domain-specific exception hierarchy for the signup sheet.
"""


class SlotSheetError(Exception):
    """Base class for all application-level errors."""


class SelectionError(SlotSheetError):
    """
    Raised when a member's selection cannot be honoured.

    The message is meant for the member and is safe to show as-is.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedDurationError(SlotSheetError):
    """Raised when a booking duration outside the supported set is requested."""


class PersistenceError(SlotSheetError):
    """Raised when the slot store cannot be read or written."""


class GridConsistencyError(SlotSheetError):
    """Raised when the stored grid does not match the configured slot layout."""
