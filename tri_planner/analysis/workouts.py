"""Workout entities shared by the load model, rules engine and schedulers."""

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Optional, Protocol, runtime_checkable


class WorkoutType(Enum):
    """Training disciplines."""

    RUN = "run"
    BIKE = "bike"
    SWIM = "swim"
    STRENGTH = "strength"
    OTHER = "other"


class Intensity(Enum):
    """Strength session load level."""

    LIGHT = "light"
    HEAVY = "heavy"


class StrengthFocus(Enum):
    """Muscle group focus of a strength session."""

    FULL_BODY = "full_body"
    UPPER = "upper"
    LOWER = "lower"
    HEAVY = "heavy"
    STABILITY = "stability"


COMMUTE_KEYWORDS = ("commute", "transport", "work")


@runtime_checkable
class ScheduledActivity(Protocol):
    """Anything placed on the calendar: a completed log or a planned workout."""

    @property
    def date(self) -> date: ...

    @property
    def workout_type(self) -> WorkoutType: ...

    @property
    def is_commute(self) -> bool: ...


@dataclass(frozen=True)
class PlannedWorkout:
    """A workout produced by a scheduler.

    Scheduler output is provisional ("ghost") until the caller hands it to a plan store.
    """

    date: date
    workout_type: WorkoutType
    duration_minutes: int
    planned_tss: int
    sub_type: Optional[str] = None
    strength_focus: Optional[StrengthFocus] = None
    intensity: Optional[Intensity] = None
    is_commute: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def tss(self) -> int:
        return self.planned_tss

    @property
    def distance_meters(self) -> Optional[float]:
        return None


@dataclass(frozen=True)
class CompletedLog:
    """A workout that actually happened, as reported by the log store."""

    date: date
    workout_type: WorkoutType
    duration_minutes: int
    computed_tss: Optional[int] = None
    avg_heart_rate: Optional[int] = None
    avg_power: Optional[int] = None
    distance_meters: Optional[float] = None
    hr_zone_seconds: Optional[Dict[str, int]] = None
    power_zone_seconds: Optional[Dict[str, int]] = None
    title: Optional[str] = None

    @property
    def tss(self) -> int:
        return self.computed_tss or 0

    @property
    def is_commute(self) -> bool:
        """Commute runs are recognised from the activity title."""
        if not self.title:
            return False
        title = self.title.lower()
        return any(keyword in title for keyword in COMMUTE_KEYWORDS)


PLAN_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "tri-planner/plans")


def plan_id(day: date, workout_type: WorkoutType, sequence: int) -> str:
    """Stable id for a generated plan, so identical inputs give identical output."""
    return str(uuid.uuid5(PLAN_NAMESPACE, f"{day.isoformat()}:{workout_type.value}:{sequence}"))
