"""Training periodization: mapping calendar dates to macro-cycle phases."""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple


class TrainingPhase(Enum):
    """Training phases in a periodized season."""

    OFF_SEASON = "off_season"  # Structural strength, goal far away
    BASE = "base"  # Aerobic base building
    BUILD = "build"  # Increasing volume and intensity
    PEAK = "peak"  # Race specificity
    TAPER = "taper"  # Pre-competition taper
    TRANSITION = "transition"  # Post-race recovery


@dataclass(frozen=True)
class PhaseInfo:
    """Display metadata for a training phase."""

    display_name: str
    description: str
    focus_areas: Tuple[str, ...]


PHASE_INFO: Dict[TrainingPhase, PhaseInfo] = {
    TrainingPhase.TRANSITION: PhaseInfo(
        "Transition",
        "Recovery and mental break post-race.",
        ("Active Recovery", "Mental Reset", "Unstructured Training"),
    ),
    TrainingPhase.TAPER: PhaseInfo(
        "Taper",
        "Reducing volume to shed fatigue while maintaining intensity.",
        ("Fatigue Management", "Race Pace Sharpening", "Logistics Planning"),
    ),
    TrainingPhase.PEAK: PhaseInfo(
        "Peak",
        "Highest specificity training closer to race demands.",
        ("Race Specificity", "Threshold Work", "Simulation Days"),
    ),
    TrainingPhase.BUILD: PhaseInfo(
        "Build",
        "Increasing volume and intensity to build race fitness.",
        ("Muscular Endurance", "Tempo Work", "Volume Accumulation"),
    ),
    TrainingPhase.BASE: PhaseInfo(
        "Base",
        "Developing aerobic foundation and efficiency.",
        ("Aerobic Capacity", "Technique", "Consistency"),
    ),
    TrainingPhase.OFF_SEASON: PhaseInfo(
        "Off-Season / Strength",
        "Focus on structural integrity and building raw strength.",
        ("Heavy Strength", "Mobility", "Structural Integrity"),
    ),
}

# Week thresholds counted back from the goal date
TAPER_MAX_WEEKS = 3
PEAK_MAX_WEEKS = 9
BUILD_MAX_WEEKS = 21
TRANSITION_MAX_WEEKS = 4
OFF_SEASON_MIN_MONTHS = 6


@dataclass(frozen=True)
class PhaseWeek:
    """One week of a phase timeline."""

    week_number: int
    week_start: date
    phase: TrainingPhase
    weeks_to_goal: Optional[int]

    @property
    def display_name(self) -> str:
        return PHASE_INFO[self.phase].display_name


def whole_months_between(start: date, end: date) -> int:
    """Count complete calendar months from start to end (end >= start)."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def calculate_phase(today: date, goal_date: Optional[date]) -> TrainingPhase:
    """Determine the training phase for a date relative to the goal race.

    Args:
        today: Date being classified
        goal_date: Target race date, or None when no goal is set

    Returns:
        TrainingPhase for the date
    """
    if goal_date is None:
        return TrainingPhase.BASE

    if today > goal_date:
        weeks_post_race = (today - goal_date).days // 7
        if weeks_post_race <= TRANSITION_MAX_WEEKS:
            return TrainingPhase.TRANSITION
        return TrainingPhase.BASE

    if whole_months_between(today, goal_date) > OFF_SEASON_MIN_MONTHS:
        return TrainingPhase.OFF_SEASON

    weeks_until_goal = (goal_date - today).days // 7
    if weeks_until_goal <= TAPER_MAX_WEEKS:
        return TrainingPhase.TAPER
    if weeks_until_goal <= PEAK_MAX_WEEKS:
        return TrainingPhase.PEAK
    if weeks_until_goal <= BUILD_MAX_WEEKS:
        return TrainingPhase.BUILD
    return TrainingPhase.BASE


def phase_timeline(start: date, goal_date: Optional[date], weeks: Optional[int] = None) -> List[PhaseWeek]:
    """Lay out the phase of every week from start toward the goal.

    Args:
        start: First week's start date
        goal_date: Target race date
        weeks: Number of weeks to cover; defaults to the weeks up to the goal
            plus the transition block

    Returns:
        List of PhaseWeek entries, one per week
    """
    if weeks is None:
        if goal_date is None or goal_date < start:
            weeks = 1
        else:
            weeks = (goal_date - start).days // 7 + 1 + TRANSITION_MAX_WEEKS

    timeline = []
    for week_number in range(weeks):
        week_start = start + timedelta(weeks=week_number)
        weeks_to_goal = None
        if goal_date is not None:
            weeks_to_goal = (goal_date - week_start).days // 7
        timeline.append(PhaseWeek(
            week_number=week_number + 1,
            week_start=week_start,
            phase=calculate_phase(week_start, goal_date),
            weeks_to_goal=weeks_to_goal,
        ))
    return timeline
