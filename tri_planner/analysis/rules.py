"""Iron Brain rules engine: placement validation and daily readiness."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from .workouts import ScheduledActivity, WorkoutType
from .zones import infer_zone

logger = logging.getLogger(__name__)

MECHANICAL_LOAD_THRESHOLD = 1.15
MECHANICAL_LOAD_WINDOW_DAYS = 7
RUN_HISTORY_DAYS = 14


class WarningKind(Enum):
    """Category of a coach warning."""

    RULE_VIOLATION = "rule_violation"
    RECOVERY_ADVICE = "recovery_advice"
    INJURY_RISK = "injury_risk"


class AllergySeverity(Enum):
    """Self-reported allergy level from the daily wellness log."""

    NONE = 0
    MILD = 1
    MODERATE = 2
    SEVERE = 3


class ReadinessColor(Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


@dataclass(frozen=True)
class CoachWarning:
    """Outcome of a single rule: a blocker or an advisory."""

    kind: WarningKind
    title: str
    message: str
    is_blocker: bool


@dataclass(frozen=True)
class RulesConfig:
    """Snapshot of the planning preferences used by one validation call."""

    smart_planning_enabled: bool = True
    allow_consecutive_runs: bool = False
    strength_spacing_hours: int = 48
    monitor_mechanical_load: bool = True
    allow_commute_exemption: bool = True
    ramp_rate_limit: float = 5.0


@dataclass(frozen=True)
class WellnessLog:
    """Subjective wellness inputs for one day."""

    date: date
    allergy_severity: AllergySeverity = AllergySeverity.NONE
    sleep_score: Optional[int] = None
    soreness: Optional[int] = None
    mood: Optional[int] = None


@dataclass(frozen=True)
class ReadinessStatus:
    """Composite readiness score for a day."""

    score: int
    color: ReadinessColor
    breakdown: str
    allergy_penalty: int


CONSECUTIVE_RUNS = CoachWarning(
    kind=WarningKind.RULE_VIOLATION,
    title="Consecutive Runs Blocked",
    message="Running two days in a row is disabled in settings.",
    is_blocker=True,
)

POST_STRENGTH = CoachWarning(
    kind=WarningKind.RECOVERY_ADVICE,
    title="Post-Strength Protocol",
    message="Post-Strength Rule: Consider Swim or Zone 1 Spin only.",
    is_blocker=False,
)

SEVERE_ALLERGY = CoachWarning(
    kind=WarningKind.INJURY_RISK,
    title="Severe Allergy Active",
    message="Severe Allergy Active. Only Zone 1 Active Recovery allowed.",
    is_blocker=True,
)

MECHANICAL_LOAD = CoachWarning(
    kind=WarningKind.INJURY_RISK,
    title="Mechanical Load Increase",
    message="Mechanical load increased >15% vs previous week. Consider reducing run volume.",
    is_blocker=False,
)


def strength_spacing_warning(hours: int) -> CoachWarning:
    return CoachWarning(
        kind=WarningKind.RULE_VIOLATION,
        title="Strength Spacing Violation",
        message=f"Strength sessions must be {hours}h apart.",
        is_blocker=True,
    )


def calculate_sss(distance_km: float, avg_zone: int) -> float:
    """Structural Stress Score: distance weighted by intensity."""
    return distance_km * (1.0 + avg_zone * 0.2)


def week_sss(runs: Iterable[ScheduledActivity]) -> float:
    """Summed SSS of runs; entries without a distance contribute nothing."""
    total = 0.0
    for run in runs:
        distance_m = getattr(run, "distance_meters", None) or 0.0
        distance_km = distance_m / 1000.0
        if distance_km > 0:
            total += calculate_sss(distance_km, infer_zone(run))
    return total


def has_blocker(warnings: Iterable[CoachWarning]) -> bool:
    return any(warning.is_blocker for warning in warnings)


class RulesEngine:
    """Validate placements against a fixed preferences snapshot."""

    def __init__(self, config: RulesConfig = None):
        self.config = config or RulesConfig()

    @property
    def enabled(self) -> bool:
        return self.config.smart_planning_enabled

    def validate_placement(
        self,
        candidate: ScheduledActivity,
        history: Sequence[ScheduledActivity],
    ) -> List[CoachWarning]:
        """Validate a candidate against completed and already planned activities.

        Args:
            candidate: Workout proposed for candidate.date
            history: Logs and plans around the candidate, in any order

        Returns:
            Warnings raised by the structural rules (no wellness context)
        """
        if not self.enabled:
            return []

        day = candidate.date
        yesterday = day - timedelta(days=1)
        others = [entry for entry in history if entry is not candidate]

        yesterday_types = {entry.workout_type for entry in others if entry.date == yesterday}
        strength_dates = [
            entry.date for entry in others
            if entry.workout_type == WorkoutType.STRENGTH and entry.date < day
        ]
        recent_runs = [
            entry for entry in others
            if entry.workout_type == WorkoutType.RUN
            and day - timedelta(days=RUN_HISTORY_DAYS) <= entry.date <= day
        ]

        return self._evaluate(
            candidate,
            yesterday_types=yesterday_types,
            last_strength_date=max(strength_dates) if strength_dates else None,
            recent_runs=recent_runs,
        )

    def validate_daily_plan(
        self,
        yesterday: Optional[ScheduledActivity],
        today_plan: Optional[ScheduledActivity],
        wellness: WellnessLog,
        last_strength_date: Optional[date],
        recent_runs: Sequence[ScheduledActivity],
    ) -> List[CoachWarning]:
        """Validate today's plan with the day's wellness log.

        This variant adds the severe-allergy protocol, which needs wellness data
        the generator does not have.
        """
        if not self.enabled or today_plan is None:
            return []

        yesterday_types = {yesterday.workout_type} if yesterday is not None else set()
        return self._evaluate(
            today_plan,
            yesterday_types=yesterday_types,
            last_strength_date=last_strength_date,
            recent_runs=[
                run for run in recent_runs
                if run.workout_type == WorkoutType.RUN
                and today_plan.date - timedelta(days=RUN_HISTORY_DAYS) <= run.date <= today_plan.date
            ],
            wellness=wellness,
        )

    def _evaluate(
        self,
        today: ScheduledActivity,
        yesterday_types,
        last_strength_date: Optional[date],
        recent_runs: Sequence[ScheduledActivity],
        wellness: Optional[WellnessLog] = None,
    ) -> List[CoachWarning]:
        config = self.config
        warnings = []
        today_type = today.workout_type

        # Rule 1: run frequency
        if (
            not config.allow_consecutive_runs
            and WorkoutType.RUN in yesterday_types
            and today_type == WorkoutType.RUN
            and not (config.allow_commute_exemption and today.is_commute)
        ):
            warnings.append(CONSECUTIVE_RUNS)

        # Rule 2: strength spacing, measured between calendar days
        if today_type == WorkoutType.STRENGTH and last_strength_date is not None:
            hours_since = (today.date - last_strength_date).days * 24
            if hours_since < config.strength_spacing_hours:
                warnings.append(strength_spacing_warning(config.strength_spacing_hours))

        # Rule 3: heavy legs
        if WorkoutType.STRENGTH in yesterday_types and today_type != WorkoutType.SWIM:
            if infer_zone(today) > 1:
                warnings.append(POST_STRENGTH)

        # Rule 4: severe allergy
        if wellness is not None and wellness.allergy_severity == AllergySeverity.SEVERE:
            if today_type == WorkoutType.STRENGTH or infer_zone(today) > 1:
                warnings.append(SEVERE_ALLERGY)

        # Rule 5: mechanical load
        if config.monitor_mechanical_load and self._mechanical_load_increased(today.date, recent_runs):
            warnings.append(MECHANICAL_LOAD)

        for warning in warnings:
            logger.debug(f"{today.date} {today_type.value}: {warning.title}")
        return warnings

    @staticmethod
    def _mechanical_load_increased(day: date, runs: Sequence[ScheduledActivity]) -> bool:
        """Compare run SSS of [day-6, day] with [day-13, day-7]."""
        current_start = day - timedelta(days=MECHANICAL_LOAD_WINDOW_DAYS - 1)
        previous_start = current_start - timedelta(days=MECHANICAL_LOAD_WINDOW_DAYS)

        # Need two full weeks of run history
        if not any(run.date <= previous_start for run in runs):
            return False

        current = week_sss(run for run in runs if current_start <= run.date <= day)
        previous = week_sss(run for run in runs if previous_start <= run.date < current_start)

        return previous > 0 and current > previous * MECHANICAL_LOAD_THRESHOLD


def validate_placement(
    candidate: ScheduledActivity,
    history: Sequence[ScheduledActivity],
    config: RulesConfig = None,
) -> List[CoachWarning]:
    """Validate a single placement, e.g. a manual plan edit."""
    return RulesEngine(config).validate_placement(candidate, history)


def _subjective_score(value: float) -> int:
    return max(0, min(100, int((value - 1) / 9.0 * 100)))


def calculate_readiness(
    tsb: int,
    sleep_score: Optional[int] = None,
    soreness: Optional[int] = None,
    mood: Optional[int] = None,
    allergy: AllergySeverity = AllergySeverity.NONE,
) -> ReadinessStatus:
    """Combine form, subjective feel and sleep into a 0-100 readiness score.

    Weights are TSB 50%, subjective (soreness/mood, 1-10) 30% and sleep 20%.
    Moderate and severe allergies subtract a fixed penalty.

    Args:
        tsb: Training Stress Balance
        sleep_score: Sleep score 0-100
        soreness: Subjective soreness 1-10 (10 = fresh)
        mood: Subjective mood 1-10
        allergy: Allergy severity

    Returns:
        ReadinessStatus with score, traffic-light color and breakdown
    """
    tsb = int(tsb)
    if tsb > 5:
        tsb_score = 100
    elif tsb < -30:
        tsb_score = 0
    else:
        tsb_score = max(0, min(100, int((tsb + 30) / 35.0 * 100)))

    subjective_raw = None
    if soreness is not None and mood is not None:
        subjective_raw = (soreness + mood) / 2.0
    elif soreness is not None:
        subjective_raw = float(soreness)
    elif mood is not None:
        subjective_raw = float(mood)
    subjective_score = _subjective_score(subjective_raw) if subjective_raw is not None else 50

    sleep_component = sleep_score if sleep_score is not None else 50

    weighted = tsb_score * 0.5 + subjective_score * 0.3 + sleep_component * 0.2
    weighted_score = int(weighted + 0.5)

    allergy_penalty = {AllergySeverity.MODERATE: 10, AllergySeverity.SEVERE: 30}.get(allergy, 0)
    score = max(0, min(100, weighted_score - allergy_penalty))

    if score > 75:
        color = ReadinessColor.GREEN
    elif score >= 40:
        color = ReadinessColor.YELLOW
    else:
        color = ReadinessColor.RED

    breakdown = f"TSB: {tsb} → {tsb_score}"
    if sleep_score is not None:
        breakdown += f", Sleep: {sleep_score}"
    if subjective_raw is not None:
        breakdown += f", Subjective: {subjective_raw:.1f}/10 → {subjective_score}"

    return ReadinessStatus(score=score, color=color, breakdown=breakdown, allergy_penalty=allergy_penalty)
