"""Intensity factor and target pace/power advice for planned sessions."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .athlete import AthleteProfile
from .workouts import WorkoutType

MAX_REALISTIC_IF = 1.15
DEFAULT_FTP = 250
DEFAULT_THRESHOLD_PACE = 300  # seconds per km
DEFAULT_CSS = 100  # seconds per 100m


class IntensityTagColor(Enum):
    GREEN = "green"
    ORANGE = "orange"
    RED = "red"


@dataclass(frozen=True)
class IntensityAdvice:
    """Intensity factor of a session plus a human-readable target."""

    if_factor: float
    zone_label: str
    advice: str
    is_realistic: bool
    tag_color: IntensityTagColor
    warning: Optional[str] = None


def _round_to_5(value: float) -> int:
    return int(math.floor(value / 5.0 + 0.5)) * 5


def format_pace(seconds: int) -> str:
    """Format seconds as m:ss."""
    return f"{seconds // 60}:{seconds % 60:02d}"


def _discipline_advice(workout_type: WorkoutType, if_factor: float, profile: Optional[AthleteProfile]) -> str:
    if workout_type == WorkoutType.BIKE:
        ftp = profile.ftp if profile and profile.ftp else DEFAULT_FTP
        watts = _round_to_5(ftp * if_factor)
        if if_factor < 0.75:
            return f"Steady {watts}W"
        if if_factor <= 0.85:
            return f"Tempo Effort at {watts}W"
        return f"Interval Power: ~{_round_to_5(watts * 1.1)}W (Avg: {watts}W)"

    if workout_type == WorkoutType.RUN:
        threshold = profile.threshold_run_pace if profile and profile.threshold_run_pace else DEFAULT_THRESHOLD_PACE
        pace = int(threshold / if_factor)
        if if_factor < 0.75:
            return f"Steady {format_pace(pace)}/km"
        if if_factor <= 0.85:
            return f"Tempo Pace {format_pace(pace)}/km"
        return f"Interval Pace: ~{format_pace(int(pace * 0.9))}/km"

    if workout_type == WorkoutType.SWIM:
        css = profile.css_seconds_per_100m if profile and profile.css_seconds_per_100m else DEFAULT_CSS
        pace = int(css / if_factor)
        if if_factor > 0.85:
            return f"Work Pace: {format_pace(pace)}/100m"
        return f"Pace: {format_pace(pace)}/100m"

    if workout_type == WorkoutType.STRENGTH:
        if if_factor < 0.75:
            return "Light / Recovery Focus"
        if if_factor <= 0.85:
            return "Moderate / Hypertrophy"
        return "Heavy Strength / Power"

    return "General Activity"


def get_intensity_advice(
    workout_type: WorkoutType,
    tss: int,
    duration_minutes: int,
    profile: Optional[AthleteProfile] = None,
) -> IntensityAdvice:
    """Derive IF = sqrt(TSS / hours / 100) and turn it into a target.

    Args:
        workout_type: Discipline of the session
        tss: Planned TSS
        duration_minutes: Planned duration
        profile: Athlete thresholds (FTP, threshold pace, CSS)

    Returns:
        IntensityAdvice for the session
    """
    if duration_minutes <= 0:
        return IntensityAdvice(0.0, "N/A", "Invalid duration", True, IntensityTagColor.GREEN)

    if_factor = math.sqrt(max(tss, 0) * 60.0 / (duration_minutes * 100.0))
    is_realistic = if_factor <= MAX_REALISTIC_IF

    if if_factor < 0.75:
        label, color = "Steady / Endurance", IntensityTagColor.GREEN
    elif if_factor <= 0.85:
        label, color = "Tempo / Sweet Spot", IntensityTagColor.ORANGE
    else:
        label, color = "Interval Focus", IntensityTagColor.RED

    # A zero IF would divide the pace targets by zero
    advice = _discipline_advice(workout_type, if_factor, profile) if if_factor > 0 else "Rest / Mobility"

    return IntensityAdvice(
        if_factor=if_factor,
        zone_label=label,
        advice=advice,
        is_realistic=is_realistic,
        tag_color=color,
        warning=None if is_realistic else "Intensity too high for duration",
    )
