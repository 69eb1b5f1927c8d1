from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, Index, Integer, String

from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CoachProfileRecord(Base):
    __tablename__ = "coach_profiles"

    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    specialization = Column(String(255), nullable=False, default="General Training")
    experience = Column(String(255), nullable=False, default="Professional")
    rating = Column(Float, nullable=False, default=0.0)
    languages = Column(JSON, nullable=False, default=list)
    certifications = Column(JSON, nullable=False, default=list)
    phone = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    joined_at = Column(DateTime(timezone=True), nullable=True)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class CoachAvailabilityRecord(Base):
    __tablename__ = "coach_availability"

    coach_id = Column(String(255), primary_key=True)
    status = Column(String(32), nullable=False, default="available", index=True)
    schedule = Column(JSON, nullable=False, default=dict)
    # Cached value only; the engine recomputes load from athlete_assignments.
    current_load = Column(Integer, nullable=False, default=0)
    max_capacity = Column(Integer, nullable=False, default=15)
    unavailable_dates = Column(JSON, nullable=False, default=list)
    last_updated = Column(DateTime(timezone=True), nullable=True)


class AthleteAssignmentRecord(Base):
    __tablename__ = "athlete_assignments"

    athlete_id = Column(String(255), primary_key=True)
    athlete_name = Column(String(255), nullable=False, default="")
    primary_coach_id = Column(String(255), nullable=True)
    primary_coach = Column(JSON, nullable=True)
    secondary_coaches = Column(JSON, nullable=False, default=list)
    history = Column(JSON, nullable=False, default=list)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (Index("ix_athlete_assignments_primary_coach", "primary_coach_id"),)
