"""Weekly schedulers: turn a weekly TSS target into dated workouts."""

import calendar
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from .athlete import (
    BALANCED,
    BIKE_FOCUS,
    IRONMAN_BASE,
    RUN_FOCUS,
    AnchorType,
    AthleteProfile,
)
from .budget import DisciplineBudget, calculate_discipline_budget, round_half_up
from .periodization import PHASE_INFO, TrainingPhase
from .rules import RulesEngine, has_blocker
from .workouts import (
    Intensity,
    PlannedWorkout,
    ScheduledActivity,
    StrengthFocus,
    WorkoutType,
    plan_id,
)
from .zones import infer_zone

logger = logging.getLogger(__name__)

VALIDATION_LOOKBACK_DAYS = 14

# Standard sessions: (duration minutes, TSS)
STANDARD_RUN = (45, 45)
STANDARD_BIKE = (45, 40)
STANDARD_SWIM_MINUTES = 60
STRENGTH_MINUTES = 60

LONG_RUN_BASE_MINUTES = {IRONMAN_BASE: 150, BALANCED: 105, RUN_FOCUS: 75}
LONG_BIKE_BASE_MINUTES = {IRONMAN_BASE: 180, BALANCED: 120, BIKE_FOCUS: 240}
DEFAULT_LONG_RUN_MINUTES = 90
DEFAULT_LONG_BIKE_MINUTES = 150
LONG_RUN_LIMITS = (30, 240)
LONG_BIKE_LIMITS = (30, 360)
LONG_RUN_TSS_PER_MINUTE = 1.2
LONG_BIKE_TSS_PER_MINUTE = 0.8

GAP_FILL_ORDER = (WorkoutType.RUN, WorkoutType.BIKE, WorkoutType.SWIM)

# Days offered to the balance-block strategy when the athlete set no availability
DEFAULT_BLOCK_AVAILABILITY: Dict[int, List[WorkoutType]] = {
    calendar.MONDAY: [WorkoutType.SWIM, WorkoutType.STRENGTH],
    calendar.TUESDAY: [WorkoutType.BIKE, WorkoutType.RUN],
    calendar.WEDNESDAY: [WorkoutType.RUN, WorkoutType.STRENGTH],
    calendar.THURSDAY: [WorkoutType.BIKE, WorkoutType.SWIM],
    calendar.FRIDAY: [WorkoutType.SWIM, WorkoutType.RUN],
    calendar.SATURDAY: [WorkoutType.BIKE, WorkoutType.RUN],
    calendar.SUNDAY: [WorkoutType.BIKE, WorkoutType.RUN],
}


@dataclass
class WeekRequest:
    """Everything a strategy needs to plan one week.

    Attributes:
        week_start: First day of the week
        target_tss: Weekly TSS target
        profile: Athlete profile snapshot
        phase: Periodization phase of the week
        is_recovery_week: Whether this is a down week
        existing_plans: Plans already on the calendar this week; their days are
            occupied and their TSS counts against the budget
        history: Plans generated for earlier weeks of the same season
        real_logs: Completed activities used as validation context
        recent_loads: Trailing average weekly TSS per discipline
        allow_multiple_per_day: Relax the one-workout-per-day rule
    """

    week_start: date
    target_tss: int
    profile: AthleteProfile
    phase: TrainingPhase
    is_recovery_week: bool = False
    existing_plans: List[PlannedWorkout] = field(default_factory=list)
    history: Sequence[PlannedWorkout] = field(default_factory=list)
    real_logs: Sequence[ScheduledActivity] = field(default_factory=list)
    recent_loads: Dict[WorkoutType, int] = field(default_factory=dict)
    allow_multiple_per_day: bool = False

    @property
    def days(self) -> List[date]:
        return [self.week_start + timedelta(days=offset) for offset in range(7)]


def _scaled_long_minutes(base_minutes: int, phase: TrainingPhase, target_tss: int, limits) -> int:
    if phase == TrainingPhase.TAPER:
        base_minutes = round_half_up(base_minutes * 0.6)
    elif phase == TrainingPhase.TRANSITION:
        base_minutes = round_half_up(base_minutes * 0.4)

    if target_tss > 400:
        base_minutes = round_half_up(base_minutes * 1.2)
    elif target_tss < 200:
        base_minutes = round_half_up(base_minutes * 0.8)

    low, high = limits
    return max(low, min(high, base_minutes))


def long_run_duration(profile: AthleteProfile, phase: TrainingPhase, target_tss: int) -> int:
    """Long run minutes from balance preset, phase and weekly load."""
    base = LONG_RUN_BASE_MINUTES.get(profile.balance, DEFAULT_LONG_RUN_MINUTES)
    return _scaled_long_minutes(base, phase, target_tss, LONG_RUN_LIMITS)


def long_bike_duration(profile: AthleteProfile, phase: TrainingPhase, target_tss: int) -> int:
    """Long ride minutes from balance preset, phase and weekly load."""
    base = LONG_BIKE_BASE_MINUTES.get(profile.balance, DEFAULT_LONG_BIKE_MINUTES)
    return _scaled_long_minutes(base, phase, target_tss, LONG_BIKE_LIMITS)


def tss_by_type(plans: Sequence[PlannedWorkout]) -> Dict[WorkoutType, int]:
    totals: Dict[WorkoutType, int] = {}
    for plan in plans:
        totals[plan.workout_type] = totals.get(plan.workout_type, 0) + plan.planned_tss
    return totals


class SchedulingStrategy(ABC):
    """Places one week of workouts."""

    def __init__(self, rules_engine: RulesEngine = None):
        self.rules_engine = rules_engine or RulesEngine()

    @abstractmethod
    def plan_week(self, request: WeekRequest) -> List[PlannedWorkout]:
        """Return the workouts newly placed for the week."""

    def ghost_plan(
        self,
        request: WeekRequest,
        placed: Sequence[PlannedWorkout],
        day: date,
        workout_type: WorkoutType,
        duration_minutes: int,
        tss: int,
        **details,
    ) -> PlannedWorkout:
        """Build a provisional plan with a deterministic id."""
        sequence = sum(
            1 for plan in list(request.history) + request.existing_plans + list(placed)
            if plan.date == day and plan.workout_type == workout_type
        )
        return PlannedWorkout(
            id=plan_id(day, workout_type, sequence),
            date=day,
            workout_type=workout_type,
            duration_minutes=duration_minutes,
            planned_tss=tss,
            **details,
        )

    def validation_context(self, request: WeekRequest, placed: Sequence[PlannedWorkout], day: date):
        """Real logs and plans from the 14 days before `day`, plus anything after it this week."""
        cutoff = day - timedelta(days=VALIDATION_LOOKBACK_DAYS)
        entries = list(request.real_logs) + list(request.history) + request.existing_plans + list(placed)
        return sorted((entry for entry in entries if entry.date >= cutoff), key=lambda entry: entry.date)

    def can_place(self, request: WeekRequest, placed: Sequence[PlannedWorkout], candidate: PlannedWorkout) -> bool:
        """Check the candidate, and that it does not turn tomorrow's workout into a violation."""
        context = self.validation_context(request, placed, candidate.date)
        if has_blocker(self.rules_engine.validate_placement(candidate, context)):
            return False

        tomorrow = candidate.date + timedelta(days=1)
        for entry in context:
            if entry.date != tomorrow or not isinstance(entry, PlannedWorkout):
                continue
            before = has_blocker(self.rules_engine.validate_placement(entry, context))
            after = has_blocker(self.rules_engine.validate_placement(entry, context + [candidate]))
            if after and not before:
                return False
        return True

    @staticmethod
    def occupied_days(request: WeekRequest, placed: Sequence[PlannedWorkout]):
        return {plan.date for plan in request.existing_plans} | {plan.date for plan in placed}


class AnchorBudgetScheduler(SchedulingStrategy):
    """Anchor the athlete's weekly template, then first-fit fill each discipline budget."""

    def plan_week(self, request: WeekRequest) -> List[PlannedWorkout]:
        profile = request.profile
        schedule = profile.schedule
        budget = calculate_discipline_budget(
            total_tss=request.target_tss,
            balance=profile.balance,
            strength_sessions=profile.strength_anchor_count(),
            recent_loads=request.recent_loads,
        )
        logger.debug(
            f"Week {request.week_start}: budget run={budget.run_tss} bike={budget.bike_tss} "
            f"swim={budget.swim_tss} strength={budget.strength_tss} total={budget.total_tss}"
        )

        used = tss_by_type(request.existing_plans)
        placed: List[PlannedWorkout] = []

        # 1. Anchors
        for day in request.days:
            anchor = schedule.get(day.weekday(), AnchorType.NONE)
            if anchor == AnchorType.NONE:
                continue
            if day in self.occupied_days(request, placed):
                logger.warning(f"{day} already has a workout, skipping {anchor.value} anchor")
                continue
            workout = self._place_anchor(request, budget, used, placed, day, anchor)
            if workout is not None:
                placed.append(workout)
                used[workout.workout_type] = used.get(workout.workout_type, 0) + workout.planned_tss

        # 2. Remaining allowance per discipline
        remaining = {
            workout_type: budget.for_type(workout_type) - used.get(workout_type, 0)
            for workout_type in GAP_FILL_ORDER
        }
        if used.get(WorkoutType.STRENGTH, 0) > budget.strength_tss:
            logger.warning(
                f"Strength TSS {used[WorkoutType.STRENGTH]} exceeds budget {budget.strength_tss}"
            )

        # 3. Gap filling, run first, swim last
        for workout_type in GAP_FILL_ORDER:
            remaining[workout_type] = self._fill_discipline(request, placed, workout_type, remaining[workout_type])

        week_tss = sum(plan.planned_tss for plan in placed)
        logger.info(
            f"Week {request.week_start} ({PHASE_INFO[request.phase].display_name}): "
            f"{len(placed)} workouts, {week_tss}/{request.target_tss} TSS"
        )
        return sorted(placed, key=lambda plan: plan.date)

    def _place_anchor(
        self,
        request: WeekRequest,
        budget: DisciplineBudget,
        used: Dict[WorkoutType, int],
        placed: List[PlannedWorkout],
        day: date,
        anchor: AnchorType,
    ) -> Optional[PlannedWorkout]:
        workout_type = anchor.workout_type
        allowance = budget.for_type(workout_type)
        spent = used.get(workout_type, 0)
        if spent >= allowance:
            logger.warning(f"{workout_type.value} budget exhausted, skipping {anchor.value} anchor on {day}")
            return None

        candidate = self._anchor_workout(request, placed, day, anchor)
        if not self.can_place(request, placed, candidate):
            logger.warning(f"{anchor.value} anchor on {day} blocked by training rules")
            return None

        if workout_type != WorkoutType.STRENGTH and spent + candidate.planned_tss > allowance:
            logger.warning(
                f"{anchor.value} anchor on {day} ({candidate.planned_tss} TSS) would exceed "
                f"{workout_type.value} budget {allowance}, skipping"
            )
            return None

        logger.debug(f"+ {anchor.value} anchor on {day} ({candidate.duration_minutes}min, {candidate.planned_tss} TSS)")
        return candidate

    def _anchor_workout(self, request: WeekRequest, placed, day: date, anchor: AnchorType) -> PlannedWorkout:
        profile = request.profile
        if anchor == AnchorType.STRENGTH:
            return self.ghost_plan(
                request, placed, day, WorkoutType.STRENGTH, STRENGTH_MINUTES,
                profile.default_strength_heavy_tss,
                strength_focus=StrengthFocus.FULL_BODY, intensity=Intensity.HEAVY,
            )
        if anchor == AnchorType.LONG_RUN:
            minutes = long_run_duration(profile, request.phase, request.target_tss)
            return self.ghost_plan(
                request, placed, day, WorkoutType.RUN, minutes,
                round_half_up(minutes * LONG_RUN_TSS_PER_MINUTE), sub_type="Long Run",
            )
        if anchor == AnchorType.LONG_BIKE:
            minutes = long_bike_duration(profile, request.phase, request.target_tss)
            return self.ghost_plan(
                request, placed, day, WorkoutType.BIKE, minutes,
                round_half_up(minutes * LONG_BIKE_TSS_PER_MINUTE), sub_type="Long Bike",
            )
        return self._standard_workout(request, placed, day, anchor.workout_type)

    def _standard_workout(self, request: WeekRequest, placed, day: date, workout_type: WorkoutType) -> PlannedWorkout:
        if workout_type == WorkoutType.RUN:
            minutes, tss = STANDARD_RUN
        elif workout_type == WorkoutType.BIKE:
            minutes, tss = STANDARD_BIKE
        else:
            minutes, tss = STANDARD_SWIM_MINUTES, request.profile.default_swim_tss
        return self.ghost_plan(request, placed, day, workout_type, minutes, tss)

    def _fill_discipline(
        self,
        request: WeekRequest,
        placed: List[PlannedWorkout],
        workout_type: WorkoutType,
        needed: int,
    ) -> int:
        """First-fit standard sessions into free, available days until the budget is used."""
        if needed <= 0:
            return needed

        logger.debug(f"Filling {workout_type.value}: {needed} TSS needed")
        for day in request.days:
            if needed <= 0:
                break
            if not request.allow_multiple_per_day and day in self.occupied_days(request, placed):
                continue
            if workout_type not in request.profile.available_types(day.weekday()):
                continue

            candidate = self._standard_workout(request, placed, day, workout_type)
            if not self.can_place(request, placed, candidate):
                logger.warning(f"{workout_type.value} filler on {day} blocked by training rules")
                continue

            placed.append(candidate)
            needed -= candidate.planned_tss
            logger.debug(f"+ {workout_type.value} filler on {day} ({candidate.planned_tss} TSS)")

        if needed > 0:
            logger.debug(f"{workout_type.value} budget short by {needed} TSS after gap filling")
        return needed


class BalanceBlockScheduler(SchedulingStrategy):
    """Variety-first week: maintenance sessions, strength, long ride, then balance fillers."""

    MAINTENANCE_TSS = 35
    RECOVERY_MAINTENANCE_TSS = 20
    LONG_RIDE_RATIOS = {TrainingPhase.BASE: 0.35, TrainingPhase.BUILD: 0.30, TrainingPhase.PEAK: 0.25}
    LONG_RIDE_TSS_PER_HOUR = 45
    MIN_FILLER_TSS = 25
    MAX_FILLER_TSS = 60
    MAX_BIKE_FILLER_TSS = 80
    MAX_FILLER_ATTEMPTS = 20

    VARIETY = {
        WorkoutType.RUN: {
            TrainingPhase.BASE: "Easy Aerobic",
            TrainingPhase.BUILD: "Tempo Run",
            TrainingPhase.PEAK: "Intervals / VO2 Max",
        },
        WorkoutType.BIKE: {
            TrainingPhase.BASE: "Aerobic Base",
            TrainingPhase.BUILD: "Sweet Spot",
            TrainingPhase.PEAK: "Threshold Power",
        },
        WorkoutType.SWIM: {
            TrainingPhase.BASE: "Technical / Drills",
            TrainingPhase.BUILD: "CSS Intervals",
            TrainingPhase.PEAK: "Main Set: Speed Sprint",
        },
    }
    RECOVERY_VARIETY = {
        WorkoutType.RUN: "Recovery Run",
        WorkoutType.BIKE: "Recovery Spin",
        WorkoutType.SWIM: "Easy Recovery Swim",
    }

    def plan_week(self, request: WeekRequest) -> List[PlannedWorkout]:
        profile = request.profile
        placed: List[PlannedWorkout] = []
        current_tss = sum(plan.planned_tss for plan in request.existing_plans)
        existing_types = {plan.workout_type for plan in request.existing_plans}

        # 1. At least one session of each discipline
        minimum = self.RECOVERY_MAINTENANCE_TSS if request.is_recovery_week else self.MAINTENANCE_TSS
        label = f"Maintenance ({PHASE_INFO[request.phase].display_name})"
        for workout_type in (WorkoutType.SWIM, WorkoutType.BIKE, WorkoutType.RUN):
            if workout_type not in existing_types:
                current_tss += self._place_session(request, placed, workout_type, minimum, label)

        # 2. Strength
        strength_count = 1 if request.is_recovery_week else profile.strength_days
        current_tss += self._place_strength(request, placed, strength_count)

        # 3. Long ride
        if current_tss < request.target_tss:
            current_tss += self._place_long_ride(request, placed)

        # 4. Balance fillers
        remaining = max(0, request.target_tss - current_tss)
        if remaining > 30:
            self._place_fillers(request, placed, remaining)

        logger.info(
            f"Week {request.week_start} ({PHASE_INFO[request.phase].display_name}): "
            f"{len(placed)} workouts, {sum(p.planned_tss for p in placed)}/{request.target_tss} TSS"
        )
        return sorted(placed, key=lambda plan: plan.date)

    def availability(self, request: WeekRequest, day: date) -> List[WorkoutType]:
        availability = request.profile.weekly_availability
        if availability is None:
            availability = DEFAULT_BLOCK_AVAILABILITY
        return availability.get(day.weekday(), [])

    def _free_slots(self, request: WeekRequest, placed, workout_type: WorkoutType) -> List[date]:
        occupied = self.occupied_days(request, placed)
        return [
            day for day in request.days
            if workout_type in self.availability(request, day)
            and (request.allow_multiple_per_day or day not in occupied)
        ]

    @staticmethod
    def _tss_per_hour(request: WeekRequest, workout_type: WorkoutType) -> int:
        if workout_type == WorkoutType.SWIM:
            return request.profile.default_swim_tss
        if workout_type == WorkoutType.RUN:
            return 55
        return 50

    def _duration(self, request: WeekRequest, workout_type: WorkoutType, tss: int) -> int:
        tss_per_hour = self._tss_per_hour(request, workout_type) or 50
        return max(20, int(tss / tss_per_hour * 60))

    def _place_session(self, request, placed, workout_type: WorkoutType, tss: int, label: str) -> int:
        for day in self._free_slots(request, placed, workout_type):
            candidate = self.ghost_plan(
                request, placed, day, workout_type, self._duration(request, workout_type, tss), tss,
                sub_type=label,
            )
            if self.can_place(request, placed, candidate):
                placed.append(candidate)
                return tss
        logger.warning(f"No slot for {workout_type.value} {label.lower()} in week {request.week_start}")
        return 0

    def _place_strength(self, request, placed, count: int) -> int:
        profile = request.profile
        added = 0
        chosen: List[date] = []
        for day in self._free_slots(request, placed, WorkoutType.STRENGTH):
            if len(chosen) >= count:
                break
            if any(abs((day - other).days) < 2 for other in chosen):
                continue

            heavy = not chosen
            focus = StrengthFocus.HEAVY if heavy else StrengthFocus.STABILITY
            tss = profile.default_strength_heavy_tss if heavy else profile.default_strength_light_tss
            candidate = self.ghost_plan(
                request, placed, day, WorkoutType.STRENGTH, STRENGTH_MINUTES, tss,
                sub_type=f"Strength: {focus.name.capitalize()}",
                strength_focus=focus,
                intensity=Intensity.HEAVY if heavy else Intensity.LIGHT,
            )
            if not self.can_place(request, placed, candidate):
                continue
            placed.append(candidate)
            chosen.append(day)
            added += tss
        return added

    def _place_long_ride(self, request, placed) -> int:
        long_day = request.profile.long_training_day
        day = next(d for d in request.days if d.weekday() == long_day)
        if WorkoutType.BIKE not in self.availability(request, day):
            return 0
        if not request.allow_multiple_per_day and day in self.occupied_days(request, placed):
            return 0

        ratio = self.LONG_RIDE_RATIOS.get(request.phase, 0.20)
        if request.is_recovery_week:
            ratio *= 0.6
        tss = max(40, min(250, int(request.target_tss * ratio)))
        minutes = int(tss / self.LONG_RIDE_TSS_PER_HOUR * 60)
        kind = "Zone 2" if request.phase == TrainingPhase.BASE else "Endurance"

        candidate = self.ghost_plan(
            request, placed, day, WorkoutType.BIKE, minutes, tss, sub_type=f"Long {kind} Ride",
        )
        if not self.can_place(request, placed, candidate):
            logger.warning(f"Long ride on {day} blocked by training rules")
            return 0
        placed.append(candidate)
        return tss

    def _variety(self, request: WeekRequest, workout_type: WorkoutType) -> str:
        return self.VARIETY[workout_type].get(request.phase, self.RECOVERY_VARIETY[workout_type])

    def _place_fillers(self, request, placed, budget: int) -> None:
        balance = request.profile.balance
        budgets = (
            (WorkoutType.SWIM, budget * balance.swim_percent // 100),
            (WorkoutType.RUN, budget * balance.run_percent // 100),
            (WorkoutType.BIKE, budget * balance.bike_percent // 100),
        )
        for workout_type, allowance in budgets:
            cap = self.MAX_BIKE_FILLER_TSS if workout_type == WorkoutType.BIKE else self.MAX_FILLER_TSS
            remaining = allowance
            attempts = 0
            while remaining >= self.MIN_FILLER_TSS and attempts < self.MAX_FILLER_ATTEMPTS:
                session_tss = min(remaining, cap)
                if not self._place_filler(request, placed, workout_type, session_tss):
                    break
                remaining -= session_tss
                attempts += 1

    def _place_filler(self, request, placed, workout_type: WorkoutType, tss: int) -> bool:
        sub_type = self._variety(request, workout_type)
        minutes = self._duration(request, workout_type, tss)
        candidates = [
            self.ghost_plan(request, placed, day, workout_type, minutes, tss, sub_type=sub_type)
            for day in self._free_slots(request, placed, workout_type)
        ]
        candidates = [c for c in candidates if self.can_place(request, placed, c)]
        if not candidates:
            return False

        # No back-to-back high intensity
        choice = next(
            (c for c in candidates if not (self._is_hard(c) and self._hard_neighbour(placed, c.date))),
            candidates[0],
        )
        placed.append(choice)
        return True

    @staticmethod
    def _is_hard(plan: PlannedWorkout) -> bool:
        return infer_zone(plan) >= 4

    def _hard_neighbour(self, placed, day: date) -> bool:
        neighbours = (day - timedelta(days=1), day + timedelta(days=1))
        return any(plan.date in neighbours and self._is_hard(plan) for plan in placed)
