from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class CoachStatus(str, Enum):
    available = "available"
    unavailable = "unavailable"


class CoachContact(BaseModel):
    phone: str = "Not provided"
    email: str = "No email"


class CoachProfile(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    specialization: str = "General Training"
    experience: str = Field("Professional", description="Free-form experience label, e.g. '10 years'")
    rating: float = Field(0.0, ge=0.0, le=5.0)
    languages: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    contact: CoachContact = Field(default_factory=CoachContact)
    joined_at: datetime | None = None


class DaySchedule(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_open: bool
    hours: str = ""


def default_schedule() -> dict[str, DaySchedule]:
    schedule = {day: DaySchedule(is_open=True, hours="9:00-17:00") for day in WEEKDAYS[:5]}
    schedule["saturday"] = DaySchedule(is_open=True, hours="10:00-14:00")
    schedule["sunday"] = DaySchedule(is_open=False, hours="")
    return schedule


class CoachAvailability(BaseModel):
    coach_id: str
    status: CoachStatus = CoachStatus.available
    schedule: dict[str, DaySchedule] = Field(default_factory=default_schedule)
    current_load: int = Field(0, ge=0, description="Primary athletes, derived from the assignment ledger")
    max_capacity: int = Field(15, gt=0)
    unavailable_dates: set[date] = Field(default_factory=set)
    last_updated: datetime | None = None


class AvailabilityUpdate(BaseModel):
    """Partial availability fields merged into the stored record.

    ``current_load`` is intentionally absent: it is derived from primary assignments.
    """

    model_config = ConfigDict(extra="forbid")

    status: CoachStatus | None = None
    schedule: dict[str, DaySchedule] | None = None
    max_capacity: int | None = Field(None, gt=0)
    unavailable_dates: set[date] | None = None

    @field_validator("schedule")
    @classmethod
    def schedule_keys_are_weekdays(cls, value: dict[str, DaySchedule] | None) -> dict[str, DaySchedule] | None:
        if value is None:
            return value
        unknown = sorted(set(value) - set(WEEKDAYS))
        if unknown:
            raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
        return value


class CoachStatusUpdate(BaseModel):
    status: CoachStatus
    reason: str = Field("marked unavailable", min_length=1, max_length=500)


class RosterUpdate(BaseModel):
    coaches: list[CoachProfile]
