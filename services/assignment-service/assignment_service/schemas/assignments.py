from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .coaches import CoachAvailability


class SlotStatus(str, Enum):
    active = "active"
    backup = "backup"


class HistoryAction(str, Enum):
    primary_assigned = "primary_assigned"
    primary_removed = "primary_removed"
    primary_promoted = "primary_promoted"
    secondary_added = "secondary_added"
    secondary_removed = "secondary_removed"
    automatic_failover = "automatic_failover"


class PrimaryCoachSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    coach_id: str
    assigned_at: datetime
    status: SlotStatus = SlotStatus.active


class SecondaryCoachSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    coach_id: str
    assigned_at: datetime
    status: SlotStatus = SlotStatus.backup
    priority: int = Field(1, description="Lower number means higher precedence")


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: HistoryAction
    coach_id: str | None = None
    from_coach_id: str | None = None
    to_coach_id: str | None = None
    priority: int | None = None
    timestamp: datetime
    reason: str


class Assignment(BaseModel):
    athlete_id: str
    athlete_name: str = ""
    primary_coach: PrimaryCoachSlot | None = None
    secondary_coaches: list[SecondaryCoachSlot] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)


class FailoverResult(BaseModel):
    athlete_id: str
    athlete_name: str
    new_primary_coach_id: str | None = None
    success: bool
    error_reason: str | None = None


class CoachAthletes(BaseModel):
    coach_id: str
    primary: list[Assignment] = Field(default_factory=list)
    secondary: list[Assignment] = Field(default_factory=list)
    total: int = 0


class PrimaryAssignmentRequest(BaseModel):
    athlete_name: str = Field(..., min_length=1, max_length=255)
    coach_id: str = Field(..., min_length=1, max_length=255)


class SecondaryCoachRequest(BaseModel):
    coach_id: str = Field(..., min_length=1, max_length=255)
    priority: int = Field(1, ge=0)


class AthleteRegistration(BaseModel):
    athlete_name: str = Field(..., min_length=1, max_length=255)


class FailoverRequest(BaseModel):
    reason: str = Field("unavailable", min_length=1, max_length=500)


class FailoverSummary(BaseModel):
    coach_id: str
    results: list[FailoverResult]
    reassigned: int
    needs_manual_assignment: int

    @classmethod
    def from_results(cls, coach_id: str, results: list[FailoverResult]) -> FailoverSummary:
        reassigned = sum(1 for r in results if r.success)
        return cls(
            coach_id=coach_id,
            results=results,
            reassigned=reassigned,
            needs_manual_assignment=len(results) - reassigned,
        )


class StatusChange(BaseModel):
    availability: CoachAvailability
    failover: FailoverSummary | None = None
