from __future__ import annotations

from pydantic import BaseModel


class CoachWorkload(BaseModel):
    coach_id: str
    current_load: int
    max_capacity: int
    utilization_rate: float
    status: str
    secondary_assignments: int


class SystemStats(BaseModel):
    total_athletes: int
    athletes_with_primary: int
    athletes_with_secondary: int
    athletes_without_primary: int
    total_coaches: int
    available_coaches: int
    busy_coaches: int
    coverage_rate: float
