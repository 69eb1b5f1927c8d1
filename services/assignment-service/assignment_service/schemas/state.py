from __future__ import annotations

from pydantic import BaseModel, Field

from .assignments import Assignment
from .coaches import CoachAvailability, CoachProfile


class StateSnapshot(BaseModel):
    """Everything the engine keeps in memory, keyed by athlete or coach id."""

    assignments: dict[str, Assignment] = Field(default_factory=dict)
    availability: dict[str, CoachAvailability] = Field(default_factory=dict)
    coaches: dict[str, CoachProfile] = Field(default_factory=dict)
