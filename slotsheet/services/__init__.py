"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .signup_sheet import (
    OperationResult,
    ResultStatus,
    SheetData,
    SignupSheetService,
    build_service,
)

__all__ = ["OperationResult", "ResultStatus", "SheetData", "SignupSheetService", "build_service"]
