from .assignments import AthleteAssignmentRecord, CoachAvailabilityRecord, CoachProfileRecord

__all__ = [
    "AthleteAssignmentRecord",
    "CoachAvailabilityRecord",
    "CoachProfileRecord",
]
