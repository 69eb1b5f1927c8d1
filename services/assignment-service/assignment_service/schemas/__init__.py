from .assignments import (
    Assignment,
    CoachAthletes,
    FailoverResult,
    FailoverSummary,
    HistoryAction,
    HistoryEntry,
    PrimaryCoachSlot,
    SecondaryCoachSlot,
    SlotStatus,
    StatusChange,
)
from .coaches import (
    AvailabilityUpdate,
    CoachAvailability,
    CoachContact,
    CoachProfile,
    CoachStatus,
    DaySchedule,
)
from .state import StateSnapshot
from .stats import CoachWorkload, SystemStats

__all__ = [
    "Assignment",
    "AvailabilityUpdate",
    "CoachAthletes",
    "CoachAvailability",
    "CoachContact",
    "CoachProfile",
    "CoachStatus",
    "CoachWorkload",
    "DaySchedule",
    "FailoverResult",
    "FailoverSummary",
    "HistoryAction",
    "HistoryEntry",
    "PrimaryCoachSlot",
    "SecondaryCoachSlot",
    "SlotStatus",
    "StateSnapshot",
    "StatusChange",
    "SystemStats",
]
