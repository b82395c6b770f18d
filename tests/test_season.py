"""Tests for season generation and profile validation."""

import threading
from datetime import date, timedelta

import pytest

from tri_planner.analysis.athlete import AnchorType, AthleteProfile
from tri_planner.analysis.periodization import TrainingPhase
from tri_planner.analysis.rules import RulesConfig
from tri_planner.analysis.scheduler import AnchorBudgetScheduler, BalanceBlockScheduler
from tri_planner.analysis.season import (
    FailureKind,
    SeasonGenerator,
    block_targets,
    phase_adjusted_tss,
    prescriptive_tss,
    validate_profile_for_generation,
)
from tri_planner.analysis.workouts import CompletedLog, WorkoutType
from tri_planner.config import Config
from tri_planner.stores import InMemoryTrainingStore

START = date(2025, 3, 3)  # Monday
TODAY = date(2025, 3, 1)
GOAL = date(2025, 12, 31)


class StaticPreferences:
    def __init__(self, **values):
        self.config = RulesConfig(**values)

    def get_rules_config(self):
        return self.config


def no_anchors():
    return {day: AnchorType.NONE for day in range(7)}


def make_generator(profile, logs=None, preferences=None, strategy=None):
    store = InMemoryTrainingStore(profile=profile, logs=logs, recent_loads={}, today=TODAY)
    return SeasonGenerator(store, store, preferences or StaticPreferences(), strategy=strategy)


class TestTargets:
    """Test weekly TSS derivation."""

    def test_ramp_in_base_and_build(self):
        assert prescriptive_tss(50, 5.0, TrainingPhase.BASE) == 368
        assert prescriptive_tss(50, 5.0, TrainingPhase.BUILD) == 368
        assert prescriptive_tss(50, 5.0, TrainingPhase.PEAK) == 350

    def test_low_ctl_uses_floor(self):
        assert prescriptive_tss(5, 5.0, TrainingPhase.PEAK) == 140

    def test_ramp_capped_at_half(self):
        assert prescriptive_tss(50, 80.0, TrainingPhase.BASE) == 525

    def test_phase_and_recovery_adjustment(self):
        assert phase_adjusted_tss(400, TrainingPhase.BASE, False) == 400
        assert phase_adjusted_tss(400, TrainingPhase.BASE, True) == 320
        assert phase_adjusted_tss(400, TrainingPhase.TAPER, False) == 220

    def test_block_targets(self):
        assert block_targets(50) == [385, 404, 424, 250]


class TestProfileValidation:
    """Test structural checks before generation."""

    def _check(self, profile, ctl=50.0, start=START, months=3):
        return validate_profile_for_generation(profile, ctl, start, months, 5.0, today=TODAY)

    def test_valid_profile(self):
        assert self._check(AthleteProfile(goal_date=GOAL)) is None

    def test_missing_profile(self):
        assert self._check(None).kind == FailureKind.MISSING_PROFILE

    def test_missing_goal(self):
        assert self._check(AthleteProfile()).kind == FailureKind.MISSING_GOAL_DATE

    def test_goal_in_past(self):
        failure = self._check(AthleteProfile(goal_date=TODAY - timedelta(days=1)))

        assert failure.kind == FailureKind.GOAL_IN_PAST
        assert failure.kind.is_profile_failure

    def test_goal_too_close(self):
        failure = self._check(AthleteProfile(goal_date=START + timedelta(days=10)))

        assert failure.kind == FailureKind.GOAL_TOO_CLOSE
        assert "too close" in failure.reason
        assert "10 days" in failure.details

    def test_goal_too_far(self):
        failure = self._check(AthleteProfile(goal_date=START + timedelta(days=800)))

        assert failure.kind == FailureKind.GOAL_TOO_FAR

    @pytest.mark.parametrize("ctl", [-1.0, 151.0])
    def test_ctl_out_of_range(self, ctl):
        assert self._check(AthleteProfile(goal_date=GOAL), ctl=ctl).kind == FailureKind.CTL_OUT_OF_RANGE

    def test_no_training_days(self):
        profile = AthleteProfile(
            goal_date=GOAL,
            weekly_schedule=no_anchors(),
            weekly_availability={day: [] for day in range(7)},
        )
        assert self._check(profile).kind == FailureKind.NO_TRAINING_DAYS

    def test_invalid_duration(self):
        assert self._check(AthleteProfile(goal_date=GOAL), months=0).kind == FailureKind.INVALID_DURATION


class TestSeasonGenerator:
    """Test multi-week generation."""

    def setup_method(self):
        self.profile = AthleteProfile(goal_date=GOAL)

    def test_generates_one_month(self):
        result = make_generator(self.profile).generate_season(START, 50.0, months=1, today=TODAY)

        assert result.success
        assert result.plans
        assert [t.is_recovery_week for t in result.weekly_targets] == [False, False, False, True]
        assert all(START <= p.date < START + timedelta(weeks=4) for p in result.plans)
        assert result.total_tss == sum(t.planned_tss for t in result.weekly_targets)

    def test_first_week_target(self):
        result = make_generator(self.profile).generate_season(START, 50.0, months=1, today=TODAY)
        first = result.weekly_targets[0]

        assert first.phase == TrainingPhase.OFF_SEASON
        expected = phase_adjusted_tss(prescriptive_tss(50.0, 5.0, TrainingPhase.OFF_SEASON), TrainingPhase.OFF_SEASON, False)
        assert first.target_tss == expected

    def test_recovery_week_is_lighter(self):
        result = make_generator(self.profile).generate_season(START, 50.0, months=1, today=TODAY)
        targets = result.weekly_targets

        assert targets[3].target_tss < targets[2].target_tss

    def test_rules_hold_across_weeks(self):
        result = make_generator(self.profile).generate_season(START, 50.0, months=3, today=TODAY)
        runs = sorted(p.date for p in result.plans if p.workout_type == WorkoutType.RUN)

        assert all((later - earlier).days > 1 for earlier, later in zip(runs, runs[1:]))

    def test_deterministic(self):
        first = make_generator(self.profile).generate_season(START, 50.0, months=2, today=TODAY)
        second = make_generator(self.profile).generate_season(START, 50.0, months=2, today=TODAY)

        assert first.plans == second.plans

    def test_feature_disabled(self):
        generator = make_generator(self.profile, preferences=StaticPreferences(smart_planning_enabled=False))
        result = generator.generate_season(START, 50.0, today=TODAY)

        assert not result.success
        assert result.failure.kind == FailureKind.FEATURE_DISABLED
        assert result.plans == []

    def test_profile_failure_returns_no_plans(self):
        profile = AthleteProfile(goal_date=START + timedelta(days=10))
        result = make_generator(profile).generate_season(START, 50.0, today=TODAY)

        assert result.failure.kind == FailureKind.GOAL_TOO_CLOSE
        assert result.plans == []

    def test_no_plans_generated(self):
        profile = AthleteProfile(
            goal_date=GOAL,
            weekly_schedule=no_anchors(),
            weekly_availability={day: [WorkoutType.STRENGTH] for day in range(7)},
        )
        result = make_generator(profile).generate_season(START, 50.0, months=1, today=TODAY)

        assert result.failure.kind == FailureKind.NO_PLANS_GENERATED
        assert not result.failure.kind.is_profile_failure
        assert len(result.weekly_targets) == 4

    def test_no_training_days_without_anchors(self):
        profile = AthleteProfile(
            goal_date=GOAL,
            weekly_schedule=no_anchors(),
            weekly_availability={day: [] for day in range(7)},
        )
        results = [
            make_generator(profile).generate_season(START, 50.0, months=1, today=TODAY) for _ in range(2)
        ]

        assert [r.failure.kind for r in results] == [FailureKind.NO_TRAINING_DAYS] * 2
        assert all(r.failure.kind.is_profile_failure for r in results)
        assert all(r.plans == [] for r in results)

    def test_anchors_placed_without_availability(self):
        # Anchored sessions are fixed commitments; availability only governs fillers
        profile = AthleteProfile(goal_date=GOAL, weekly_availability={day: [] for day in range(7)})
        anchor_days = {day for day, anchor in profile.schedule.items() if anchor != AnchorType.NONE}
        results = [
            make_generator(profile).generate_season(START, 50.0, months=1, today=TODAY) for _ in range(2)
        ]

        assert [r.failure for r in results] == [None, None]
        assert results[0].plans == results[1].plans
        assert results[0].plans
        assert {p.date.weekday() for p in results[0].plans} <= anchor_days

    def test_cold_start_reads_recent_logs(self):
        profile = AthleteProfile(goal_date=GOAL, weekly_schedule={**no_anchors(), 0: AnchorType.RUN})
        sunday_run = CompletedLog(
            date=START - timedelta(days=1), workout_type=WorkoutType.RUN, duration_minutes=45, computed_tss=45,
        )
        result = make_generator(profile, logs=[sunday_run]).generate_season(START, 50.0, months=1, today=TODAY)

        assert result.success
        assert not any(p.date == START and p.workout_type == WorkoutType.RUN for p in result.plans)

    def test_cancelled_before_start(self):
        event = threading.Event()
        event.set()
        result = make_generator(self.profile).generate_season(START, 50.0, today=TODAY, cancel_event=event)

        assert result.failure.kind == FailureKind.CANCELLED
        assert result.plans == []

    def test_cancel_keeps_completed_weeks(self):
        event = threading.Event()

        class CancelAfterFirstWeek(AnchorBudgetScheduler):
            def plan_week(self, request):
                event.set()
                return super().plan_week(request)

        generator = make_generator(self.profile, strategy=CancelAfterFirstWeek)
        result = generator.generate_season(START, 50.0, today=TODAY, cancel_event=event)

        assert result.failure.kind == FailureKind.CANCELLED
        assert len(result.weekly_targets) == 1
        assert result.plans
        assert all(p.date < START + timedelta(weeks=1) for p in result.plans)

    def test_block_strategy(self):
        result = make_generator(self.profile, strategy=BalanceBlockScheduler).generate_season(
            START, 50.0, months=1, today=TODAY,
        )

        assert result.success
        assert {WorkoutType.SWIM, WorkoutType.BIKE, WorkoutType.RUN} <= {p.workout_type for p in result.plans}

    def test_banister_simulation(self, monkeypatch):
        monkeypatch.setattr(Config, "SEASON_CTL_MODEL", "banister")
        result = make_generator(self.profile).generate_season(START, 50.0, months=1, today=TODAY)

        assert result.success
        assert all(t.simulated_ctl > 0 for t in result.weekly_targets)


class TestGenerateBlock:
    """Test the 4-week balance block."""

    def test_block(self):
        generator = make_generator(AthleteProfile(goal_date=GOAL))
        result = generator.generate_block(START, 50.0)

        assert result.success
        assert [t.target_tss for t in result.weekly_targets] == [385, 404, 424, 250]
        assert [t.is_recovery_week for t in result.weekly_targets] == [False, False, False, True]

    def test_block_missing_profile(self):
        result = make_generator(None).generate_block(START, 50.0)

        assert result.failure.kind == FailureKind.MISSING_PROFILE
