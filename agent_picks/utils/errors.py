"""Error types raised by the pick pipeline."""

from enum import Enum
from typing import List, Optional


class ErrorCode(Enum):
    """Categories of pipeline failures."""
    INVALID_INPUT = "INVALID_INPUT"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NO_PREDICTIONS_FOUND = "NO_PREDICTIONS_FOUND"
    DUPLICATE_SKIPPED = "DUPLICATE_SKIPPED"  # outcome marker, never raised
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
    AGENT_ERROR = "AGENT_ERROR"


USER_MESSAGES = {
    ErrorCode.INVALID_INPUT: "The agent text is empty, too long, or contains unsafe content.",
    ErrorCode.VALIDATION_FAILED: "Some prediction fields failed validation.",
    ErrorCode.NO_PREDICTIONS_FOUND: "No predictions were found in the agent text.",
    ErrorCode.DUPLICATE_SKIPPED: "This prediction already exists and was skipped.",
    ErrorCode.RECORD_NOT_FOUND: "The requested pick does not exist.",
    ErrorCode.AGENT_ERROR: "The prediction agent request failed.",
}


class PipelineError(Exception):
    """Error carrying a category code and any per-field details."""

    def __init__(self, code: ErrorCode, message: str, details: Optional[List[str]] = None):
        self.code = code
        self.message = message
        self.details = list(details or [])
        super().__init__(self.__str__())

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {', '.join(self.details)}"
        return self.message
