"""Athlete profile, weekly template and discipline balance."""

import calendar
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from ..config import config
from .workouts import WorkoutType


class AnchorType(Enum):
    """Mandatory workout pinned to a weekday in the athlete's template."""

    NONE = "none"
    RUN = "run"
    BIKE = "bike"
    SWIM = "swim"
    STRENGTH = "strength"
    LONG_RUN = "long_run"
    LONG_BIKE = "long_bike"

    @property
    def workout_type(self) -> Optional[WorkoutType]:
        return {
            AnchorType.RUN: WorkoutType.RUN,
            AnchorType.LONG_RUN: WorkoutType.RUN,
            AnchorType.BIKE: WorkoutType.BIKE,
            AnchorType.LONG_BIKE: WorkoutType.BIKE,
            AnchorType.SWIM: WorkoutType.SWIM,
            AnchorType.STRENGTH: WorkoutType.STRENGTH,
        }.get(self)


@dataclass(frozen=True)
class TrainingBalance:
    """Cardio split between disciplines, in percent."""

    bike_percent: int
    run_percent: int
    swim_percent: int

    def is_valid(self) -> bool:
        return (
            min(self.bike_percent, self.run_percent, self.swim_percent) >= 0
            and self.bike_percent + self.run_percent + self.swim_percent == 100
        )

    @property
    def preset_name(self) -> Optional[str]:
        for name, preset in BALANCE_PRESETS.items():
            if preset == self:
                return name
        return None

    @classmethod
    def from_name(cls, name: str) -> "TrainingBalance":
        """Look up a preset by name (case-insensitive)."""
        key = name.strip().upper().replace("-", "_")
        if key not in BALANCE_PRESETS:
            raise ValueError(
                f"Unknown training balance '{name}'. Choose from: {', '.join(BALANCE_PRESETS)}"
            )
        return BALANCE_PRESETS[key]


IRONMAN_BASE = TrainingBalance(bike_percent=50, run_percent=30, swim_percent=20)
BALANCED = TrainingBalance(bike_percent=34, run_percent=33, swim_percent=33)
RUN_FOCUS = TrainingBalance(bike_percent=30, run_percent=50, swim_percent=20)
BIKE_FOCUS = TrainingBalance(bike_percent=60, run_percent=25, swim_percent=15)

BALANCE_PRESETS: Dict[str, TrainingBalance] = {
    "IRONMAN_BASE": IRONMAN_BASE,
    "BALANCED": BALANCED,
    "RUN_FOCUS": RUN_FOCUS,
    "BIKE_FOCUS": BIKE_FOCUS,
}

# Weekdays follow date.weekday(): 0=Monday ... 6=Sunday
DEFAULT_WEEKLY_SCHEDULE: Dict[int, AnchorType] = {
    calendar.MONDAY: AnchorType.STRENGTH,
    calendar.TUESDAY: AnchorType.NONE,
    calendar.WEDNESDAY: AnchorType.RUN,
    calendar.THURSDAY: AnchorType.STRENGTH,
    calendar.FRIDAY: AnchorType.NONE,
    calendar.SATURDAY: AnchorType.LONG_BIKE,
    calendar.SUNDAY: AnchorType.LONG_RUN,
}


@dataclass
class AthleteProfile:
    """Athlete settings consumed by a generation call.

    Availability and schedule maps are keyed by weekday index (0=Monday).
    A missing availability map means every discipline is allowed every day.
    """

    goal_date: Optional[date] = None
    long_training_day: int = calendar.SUNDAY
    strength_days: int = 2
    ftp: Optional[int] = None
    max_hr: Optional[int] = None
    lthr: Optional[int] = None
    css_seconds_per_100m: Optional[int] = None
    threshold_run_pace: Optional[int] = None  # seconds per km
    default_swim_tss: int = field(default_factory=lambda: config.DEFAULT_SWIM_TSS)
    default_strength_heavy_tss: int = field(default_factory=lambda: config.DEFAULT_STRENGTH_HEAVY_TSS)
    default_strength_light_tss: int = field(default_factory=lambda: config.DEFAULT_STRENGTH_LIGHT_TSS)
    weekly_availability: Optional[Dict[int, List[WorkoutType]]] = None
    weekly_schedule: Optional[Dict[int, AnchorType]] = None
    training_balance: Optional[TrainingBalance] = None
    weekly_hours_goal: Optional[float] = None
    weight_kg: Optional[float] = None

    @property
    def balance(self) -> TrainingBalance:
        return self.training_balance or IRONMAN_BASE

    @property
    def schedule(self) -> Dict[int, AnchorType]:
        return self.weekly_schedule if self.weekly_schedule is not None else DEFAULT_WEEKLY_SCHEDULE

    def available_types(self, weekday: int) -> List[WorkoutType]:
        """Disciplines allowed on a weekday."""
        if self.weekly_availability is None:
            return [WorkoutType.RUN, WorkoutType.BIKE, WorkoutType.SWIM]
        return list(self.weekly_availability.get(weekday, []))

    def strength_anchor_count(self) -> int:
        return sum(1 for anchor in self.schedule.values() if anchor == AnchorType.STRENGTH)

    def has_training_days(self) -> bool:
        """Whether anything at all can be placed in a week."""
        if any(anchor != AnchorType.NONE for anchor in self.schedule.values()):
            return True
        if self.weekly_availability is None:
            return True
        return any(types for types in self.weekly_availability.values())
