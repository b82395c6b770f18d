"""Season generator: multi-week orchestration of the weekly scheduler."""

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Type

from ..config import Config
from .athlete import AthleteProfile
from .budget import round_half_up
from .model import BanisterModel
from .periodization import PHASE_INFO, TrainingPhase, calculate_phase
from .rules import RulesConfig, RulesEngine
from .scheduler import (
    AnchorBudgetScheduler,
    BalanceBlockScheduler,
    SchedulingStrategy,
    WeekRequest,
)
from .workouts import CompletedLog, PlannedWorkout

logger = logging.getLogger(__name__)

PHASE_MULTIPLIERS: Dict[TrainingPhase, float] = {
    TrainingPhase.BASE: 1.0,
    TrainingPhase.BUILD: 1.05,
    TrainingPhase.PEAK: 1.0,
    TrainingPhase.TAPER: 0.55,
    TrainingPhase.OFF_SEASON: 0.95,
    TrainingPhase.TRANSITION: 0.35,
}
RAMP_PHASES = (TrainingPhase.BASE, TrainingPhase.BUILD)
RECOVERY_WEEK_MULTIPLIER = 0.8
RECOVERY_WEEK_INTERVAL = 4
MIN_EFFECTIVE_CTL = 20.0
CTL_DAMPING = 0.1
SAFE_WEEKLY_RAMP_TSS = 15
COLD_START_DAYS = 14
WEEKS_PER_MONTH = 4


class FailureKind(Enum):
    """Structural reasons a generation call produced no plan."""

    FEATURE_DISABLED = "feature_disabled"
    MISSING_PROFILE = "missing_profile"
    MISSING_GOAL_DATE = "missing_goal_date"
    GOAL_IN_PAST = "goal_in_past"
    NO_TRAINING_DAYS = "no_training_days"
    CTL_OUT_OF_RANGE = "ctl_out_of_range"
    GOAL_TOO_CLOSE = "goal_too_close"
    GOAL_TOO_FAR = "goal_too_far"
    INVALID_DURATION = "invalid_duration"
    NO_PLANS_GENERATED = "no_plans_generated"
    CANCELLED = "cancelled"

    @property
    def is_profile_failure(self) -> bool:
        return self in PROFILE_FAILURES


PROFILE_FAILURES = frozenset({
    FailureKind.MISSING_PROFILE,
    FailureKind.MISSING_GOAL_DATE,
    FailureKind.GOAL_IN_PAST,
    FailureKind.NO_TRAINING_DAYS,
    FailureKind.CTL_OUT_OF_RANGE,
    FailureKind.GOAL_TOO_CLOSE,
    FailureKind.GOAL_TOO_FAR,
    FailureKind.INVALID_DURATION,
})


@dataclass(frozen=True)
class GenerationFailure:
    """Why generation stopped: a short reason and an actionable detail."""

    kind: FailureKind
    reason: str
    details: str


@dataclass(frozen=True)
class WeekTarget:
    """Target derivation for one generated week."""

    week_number: int
    week_start: date
    phase: TrainingPhase
    is_recovery_week: bool
    target_tss: int
    planned_tss: int
    simulated_ctl: float


@dataclass
class GenerationResult:
    """Outcome of a generation call.

    On failure `plans` is empty, except for cancellation where it holds the
    weeks completed before the cancel.
    """

    plans: List[PlannedWorkout] = field(default_factory=list)
    failure: Optional[GenerationFailure] = None
    weekly_targets: List[WeekTarget] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failure is None

    @property
    def total_tss(self) -> int:
        return sum(plan.planned_tss for plan in self.plans)


def _failure(kind: FailureKind, reason: str, details: str) -> GenerationFailure:
    logger.error(f"Generation aborted: {reason}")
    return GenerationFailure(kind=kind, reason=reason, details=details)


def validate_profile_for_generation(
    profile: Optional[AthleteProfile],
    current_ctl: float,
    start_date: date,
    months: int,
    ramp_rate_limit: float,
    today: Optional[date] = None,
) -> Optional[GenerationFailure]:
    """Check the profile and parameters before generating a season.

    Args:
        profile: Athlete profile snapshot
        current_ctl: Current Chronic Training Load
        start_date: First day of the season
        months: Season length in months
        ramp_rate_limit: Weekly ramp percentage from preferences
        today: Reference date for "in the future" checks

    Returns:
        GenerationFailure describing the first problem, or None when valid
    """
    today = today or date.today()

    if profile is None:
        return _failure(
            FailureKind.MISSING_PROFILE,
            "Athlete profile is missing. Please complete your profile.",
            "Please complete your athlete profile. Required: goal date, training balance and weekly availability.",
        )

    goal_date = profile.goal_date
    if goal_date is None:
        return _failure(
            FailureKind.MISSING_GOAL_DATE,
            "Goal date is not set. Please set a target race date.",
            "Set your primary race date (goal date) in the profile.",
        )

    if goal_date <= today:
        return _failure(
            FailureKind.GOAL_IN_PAST,
            "Goal date must be in the future.",
            f"Your goal date ({goal_date}) is in the past. Please update it to a future date.",
        )

    if not profile.has_training_days():
        return _failure(
            FailureKind.NO_TRAINING_DAYS,
            "No training days available. Please set weekly availability.",
            "No training days are available. Please allow at least one discipline on one day of the week.",
        )

    if current_ctl < 0 or current_ctl > Config.MAX_REALISTIC_CTL:
        problem = "cannot be negative" if current_ctl < 0 else f"exceeds realistic maximum ({Config.MAX_REALISTIC_CTL:.0f})"
        return _failure(
            FailureKind.CTL_OUT_OF_RANGE,
            f"CTL ({current_ctl:.1f}) {problem}.",
            "Your current fitness level (CTL) is outside the valid range. "
            "This usually means you need more training history. Try logging some workouts first.",
        )

    days_until_goal = (goal_date - start_date).days
    weeks_until_goal = days_until_goal / 7.0
    if weeks_until_goal < Config.MIN_PLAN_WEEKS:
        return _failure(
            FailureKind.GOAL_TOO_CLOSE,
            f"Goal date is too close ({int(weeks_until_goal)} weeks). Minimum 2 weeks required.",
            f"Your goal date is only {days_until_goal} days away. "
            f"Minimum 2 weeks required for meaningful plan generation.",
        )

    if days_until_goal > Config.MAX_PLAN_DAYS:
        return _failure(
            FailureKind.GOAL_TOO_FAR,
            f"Goal date is too far ({days_until_goal} days). Maximum 2 years for accurate projection.",
            f"Your goal date is {days_until_goal} days away (over 2 years). "
            f"Please set a goal date within the next 2 years.",
        )

    if months < 1 or months > Config.MAX_SEASON_MONTHS:
        return _failure(
            FailureKind.INVALID_DURATION,
            f"Season length of {months} months is not supported.",
            f"Choose a season length between 1 and {Config.MAX_SEASON_MONTHS} months.",
        )

    ramp_increase = current_ctl * 7 * ramp_rate_limit / 100.0
    if ramp_increase > SAFE_WEEKLY_RAMP_TSS:
        logger.warning(
            f"Ramp rate warning: weekly TSS increase ({ramp_increase:.1f}) exceeds safe limit "
            f"({SAFE_WEEKLY_RAMP_TSS}); it is capped by the phase governor"
        )

    end_date = start_date + timedelta(weeks=months * WEEKS_PER_MONTH)
    if end_date > goal_date:
        logger.warning(f"Season {start_date} to {end_date} extends beyond goal date {goal_date}")

    logger.info(
        f"Profile valid. Goal: {goal_date} ({int(weeks_until_goal)} weeks away), "
        f"CTL: {current_ctl:.1f}, ramp rate: {ramp_rate_limit}%"
    )
    return None


def prescriptive_tss(current_ctl: float, ramp_rate_limit: float, phase: TrainingPhase) -> int:
    """Weekly TSS holding CTL, plus a ramp in progressive-overload phases."""
    effective_ctl = max(current_ctl, MIN_EFFECTIVE_CTL)
    base_tss = round_half_up(effective_ctl * 7)
    if phase in RAMP_PHASES:
        ramp = min(round_half_up(base_tss * ramp_rate_limit / 100.0), base_tss // 2)
        base_tss += ramp
    return base_tss


def phase_adjusted_tss(base_tss: int, phase: TrainingPhase, is_recovery_week: bool) -> int:
    adjusted = round_half_up(base_tss * PHASE_MULTIPLIERS[phase])
    if is_recovery_week:
        adjusted = round_half_up(adjusted * RECOVERY_WEEK_MULTIPLIER)
    return adjusted


def block_targets(current_ctl: float) -> List[int]:
    """Three loading weeks and a recovery week for a 4-week block."""
    effective_ctl = max(current_ctl, MIN_EFFECTIVE_CTL)
    week1 = round_half_up(effective_ctl * 7 * 1.1)
    week2 = round_half_up(week1 * 1.05)
    week3 = round_half_up(week2 * 1.05)
    week4 = round_half_up(week1 * 0.65)
    return [week1, week2, week3, week4]


class SeasonGenerator:
    """Generate a season of planned workouts from the athlete's stores.

    Stores are read once at the start of each call; the rest of the call
    works on that snapshot.
    """

    def __init__(self, profile_store, log_store, preferences, strategy: Type[SchedulingStrategy] = None):
        self.profile_store = profile_store
        self.log_store = log_store
        self.preferences = preferences
        self.strategy = strategy or AnchorBudgetScheduler

    def _strategy(self, rules_config: RulesConfig) -> SchedulingStrategy:
        return self.strategy(RulesEngine(rules_config))

    def _simulate_ctl(self, ctl: float, week_start: date, week_plans: Sequence[PlannedWorkout]) -> float:
        week_tss = sum(plan.planned_tss for plan in week_plans)
        if not Config.uses_banister_season_model():
            return ctl + (week_tss / 7.0 - ctl) * CTL_DAMPING

        daily = [0.0] * 7
        for plan in week_plans:
            daily[(plan.date - week_start).days] += plan.planned_tss
        return BanisterModel().project(ctl, daily)

    def generate_season(
        self,
        start_date: date,
        current_ctl: float,
        months: int = 3,
        recent_logs: Optional[Sequence[CompletedLog]] = None,
        today: Optional[date] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> GenerationResult:
        """Generate `months * 4` weeks of workouts.

        Args:
            start_date: First day of the first week
            current_ctl: Current fitness (CTL)
            months: Season length in months
            recent_logs: Completed activities for validation context; fetched
                from the log store when empty
            today: Reference date for profile validation
            cancel_event: Checked before each week; when set the call returns
                a CANCELLED failure carrying the weeks done so far

        Returns:
            GenerationResult with plans, or a failure
        """
        rules_config = self.preferences.get_rules_config()
        if not rules_config.smart_planning_enabled:
            return GenerationResult(failure=_failure(
                FailureKind.FEATURE_DISABLED,
                "Smart Planning is disabled",
                "Please enable Smart Planning in Coach Settings to generate training plans.",
            ))

        profile = self.profile_store.get_current_profile()
        failure = validate_profile_for_generation(
            profile, current_ctl, start_date, months, rules_config.ramp_rate_limit, today=today,
        )
        if failure is not None:
            return GenerationResult(failure=failure)

        real_logs = list(recent_logs or [])
        if not real_logs:
            real_logs = list(self.log_store.get_logs_by_date_range(
                start_date - timedelta(days=COLD_START_DAYS), start_date - timedelta(days=1),
            ))
            logger.debug(f"Cold start: {len(real_logs)} logs from the last {COLD_START_DAYS} days")
        recent_loads = dict(self.log_store.get_recent_discipline_loads() or {})

        strategy = self._strategy(rules_config)
        logger.info(
            f"Generating {months} month season from {start_date}. "
            f"Start CTL: {current_ctl:.1f}, ramp rate: {rules_config.ramp_rate_limit}%"
        )

        plans: List[PlannedWorkout] = []
        targets: List[WeekTarget] = []
        simulated_ctl = current_ctl
        week_start = start_date

        for week in range(1, months * WEEKS_PER_MONTH + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(f"Generation cancelled before week {week}")
                return GenerationResult(
                    plans=plans,
                    failure=GenerationFailure(
                        FailureKind.CANCELLED,
                        "Generation cancelled",
                        f"Generation was cancelled after {week - 1} weeks.",
                    ),
                    weekly_targets=targets,
                )

            is_recovery_week = week % RECOVERY_WEEK_INTERVAL == 0
            phase = calculate_phase(week_start, profile.goal_date)
            base_tss = prescriptive_tss(simulated_ctl, rules_config.ramp_rate_limit, phase)
            target_tss = phase_adjusted_tss(base_tss, phase, is_recovery_week)
            logger.debug(
                f"Week {week}: target {target_tss} TSS, phase {PHASE_INFO[phase].display_name}, "
                f"recovery={is_recovery_week}"
            )

            week_plans = strategy.plan_week(WeekRequest(
                week_start=week_start,
                target_tss=target_tss,
                profile=profile,
                phase=phase,
                is_recovery_week=is_recovery_week,
                history=plans,
                real_logs=real_logs,
                recent_loads=recent_loads,
            ))
            plans.extend(week_plans)

            simulated_ctl = self._simulate_ctl(simulated_ctl, week_start, week_plans)
            targets.append(WeekTarget(
                week_number=week,
                week_start=week_start,
                phase=phase,
                is_recovery_week=is_recovery_week,
                target_tss=target_tss,
                planned_tss=sum(plan.planned_tss for plan in week_plans),
                simulated_ctl=simulated_ctl,
            ))
            week_start += timedelta(weeks=1)

        logger.info(f"Generation complete: {len(plans)} workouts")
        if not plans:
            return GenerationResult(
                failure=_failure(
                    FailureKind.NO_PLANS_GENERATED,
                    "No training plans were generated",
                    "The generation process completed but produced no plans. This may occur if the "
                    "training rules blocked every workout placement. Check your weekly availability "
                    "and training constraints.",
                ),
                weekly_targets=targets,
            )

        return GenerationResult(plans=plans, weekly_targets=targets)

    def generate_block(
        self,
        start_date: date,
        current_ctl: float,
        existing_plans: Optional[Sequence[PlannedWorkout]] = None,
        allow_multiple_per_day: bool = False,
    ) -> GenerationResult:
        """Generate a 4-week balance block: three loading weeks and a recovery week.

        Args:
            start_date: First day of the block
            current_ctl: Current fitness (CTL)
            existing_plans: Plans already on the calendar, respected per week
            allow_multiple_per_day: Allow more than one workout per date

        Returns:
            GenerationResult with the block's plans
        """
        profile = self.profile_store.get_current_profile()
        if profile is None:
            return GenerationResult(failure=_failure(
                FailureKind.MISSING_PROFILE,
                "Athlete profile is missing. Please complete your profile.",
                "Please complete your athlete profile before generating a block.",
            ))

        rules_config = self.preferences.get_rules_config()
        strategy = BalanceBlockScheduler(RulesEngine(rules_config))
        existing_plans = list(existing_plans or [])

        plans: List[PlannedWorkout] = []
        targets: List[WeekTarget] = []
        for index, target_tss in enumerate(block_targets(current_ctl)):
            week_start = start_date + timedelta(weeks=index)
            week_end = week_start + timedelta(days=6)
            phase = calculate_phase(week_start, profile.goal_date)
            week_plans = strategy.plan_week(WeekRequest(
                week_start=week_start,
                target_tss=target_tss,
                profile=profile,
                phase=phase,
                is_recovery_week=index == 3,
                existing_plans=[p for p in existing_plans if week_start <= p.date <= week_end],
                history=plans,
                allow_multiple_per_day=allow_multiple_per_day,
            ))
            plans.extend(week_plans)
            targets.append(WeekTarget(
                week_number=index + 1,
                week_start=week_start,
                phase=phase,
                is_recovery_week=index == 3,
                target_tss=target_tss,
                planned_tss=sum(plan.planned_tss for plan in week_plans),
                simulated_ctl=current_ctl,
            ))

        if not plans:
            return GenerationResult(
                failure=_failure(
                    FailureKind.NO_PLANS_GENERATED,
                    "No training plans were generated",
                    "No day in the block allowed a workout. Check your weekly availability.",
                ),
                weekly_targets=targets,
            )
        return GenerationResult(plans=plans, weekly_targets=targets)
