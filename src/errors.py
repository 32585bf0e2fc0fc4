from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    INSUFFICIENT_PLAYERS = "insufficient_players"
    INFEASIBLE_PLAN = "infeasible_plan"
    MISMATCHED_INPUT = "mismatched_input"
    SCHEDULE_CONFLICT = "schedule_conflict"


@dataclass(frozen=True)
class Problem:
    """A non-fatal generation problem reported back to the caller."""
    kind: ErrorKind
    message: str


class MismatchedInputError(ValueError):
    """Player list handed to the assigner does not match the plan it was built for."""

    kind = ErrorKind.MISMATCHED_INPUT


class BookingConflictError(Exception):
    """Raised by the match store when a slot was taken between check and insert."""

    kind = ErrorKind.SCHEDULE_CONFLICT

    def __init__(self, message: str, court_id=None, date=None, time=None):
        super().__init__(message)
        self.court_id = court_id
        self.date = date
        self.time = time
