"""Tests for the training rules engine and readiness score."""

import pytest
from datetime import date, timedelta

from tri_planner.analysis.rules import (
    AllergySeverity,
    ReadinessColor,
    RulesConfig,
    RulesEngine,
    WarningKind,
    WellnessLog,
    calculate_readiness,
    calculate_sss,
    has_blocker,
    validate_placement,
)
from tri_planner.analysis.workouts import CompletedLog, PlannedWorkout, WorkoutType


def plan(day, workout_type, tss=50, **kwargs):
    return PlannedWorkout(date=day, workout_type=workout_type, duration_minutes=60, planned_tss=tss, **kwargs)


def log(day, workout_type, tss=50, **kwargs):
    return CompletedLog(date=day, workout_type=workout_type, duration_minutes=60, computed_tss=tss, **kwargs)


class TestConsecutiveRuns:
    """Test the run frequency rule."""

    def setup_method(self):
        self.day = date(2025, 3, 12)
        self.yesterday_run = log(self.day - timedelta(days=1), WorkoutType.RUN)

    def test_run_after_run_is_blocked(self):
        warnings = validate_placement(plan(self.day, WorkoutType.RUN), [self.yesterday_run])

        assert len(warnings) == 1
        assert warnings[0].title == "Consecutive Runs Blocked"
        assert warnings[0].is_blocker
        assert warnings[0].kind == WarningKind.RULE_VIOLATION

    def test_setting_allows_consecutive_runs(self):
        config = RulesConfig(allow_consecutive_runs=True)

        assert validate_placement(plan(self.day, WorkoutType.RUN), [self.yesterday_run], config) == []

    def test_commute_is_exempt(self):
        commute = log(self.day, WorkoutType.RUN, title="Morning commute")

        assert validate_placement(commute, [self.yesterday_run]) == []

    def test_commute_exemption_can_be_disabled(self):
        commute = plan(self.day, WorkoutType.RUN, is_commute=True)
        config = RulesConfig(allow_commute_exemption=False)

        assert has_blocker(validate_placement(commute, [self.yesterday_run], config))

    def test_bike_after_run_is_fine(self):
        assert validate_placement(plan(self.day, WorkoutType.BIKE), [self.yesterday_run]) == []

    def test_smart_planning_disabled(self):
        config = RulesConfig(smart_planning_enabled=False)

        assert validate_placement(plan(self.day, WorkoutType.RUN), [self.yesterday_run], config) == []


class TestStrengthRules:
    """Test strength spacing and heavy legs."""

    def setup_method(self):
        self.day = date(2025, 3, 12)
        self.yesterday_strength = log(self.day - timedelta(days=1), WorkoutType.STRENGTH, tss=60)

    def test_strength_too_close(self):
        warnings = validate_placement(plan(self.day, WorkoutType.STRENGTH), [self.yesterday_strength])
        titles = [w.title for w in warnings]

        assert "Strength Spacing Violation" in titles
        assert "48h apart" in warnings[titles.index("Strength Spacing Violation")].message
        assert has_blocker(warnings)

    def test_strength_two_days_apart(self):
        earlier = log(self.day - timedelta(days=2), WorkoutType.STRENGTH)

        assert validate_placement(plan(self.day, WorkoutType.STRENGTH), [earlier]) == []

    def test_custom_spacing(self):
        earlier = log(self.day - timedelta(days=2), WorkoutType.STRENGTH)
        config = RulesConfig(strength_spacing_hours=72)

        assert has_blocker(validate_placement(plan(self.day, WorkoutType.STRENGTH), [earlier], config))

    def test_heavy_legs_advisory(self):
        warnings = validate_placement(plan(self.day, WorkoutType.BIKE), [self.yesterday_strength])

        assert len(warnings) == 1
        assert warnings[0].title == "Post-Strength Protocol"
        assert not warnings[0].is_blocker

    def test_swim_after_strength(self):
        assert validate_placement(plan(self.day, WorkoutType.SWIM), [self.yesterday_strength]) == []

    def test_recovery_spin_after_strength(self):
        spin = plan(self.day, WorkoutType.BIKE, sub_type="Recovery Spin")

        assert validate_placement(spin, [self.yesterday_strength]) == []


class TestMechanicalLoad:
    """Test the week-over-week structural stress rule."""

    def setup_method(self):
        self.day = date(2025, 3, 20)

    def _runs(self, previous_km, current_km):
        return [
            log(self.day - timedelta(days=13), WorkoutType.RUN, distance_meters=previous_km * 1000),
            log(self.day - timedelta(days=3), WorkoutType.RUN, distance_meters=current_km * 1000),
        ]

    def test_increase_raises_advisory(self):
        warnings = validate_placement(plan(self.day, WorkoutType.BIKE), self._runs(10, 15))

        assert len(warnings) == 1
        assert warnings[0].title == "Mechanical Load Increase"
        assert warnings[0].kind == WarningKind.INJURY_RISK
        assert not warnings[0].is_blocker

    def test_small_increase_is_fine(self):
        assert validate_placement(plan(self.day, WorkoutType.BIKE), self._runs(10, 11)) == []

    def test_needs_two_weeks_of_history(self):
        runs = [
            log(self.day - timedelta(days=12), WorkoutType.RUN, distance_meters=10000),
            log(self.day - timedelta(days=3), WorkoutType.RUN, distance_meters=20000),
        ]
        assert validate_placement(plan(self.day, WorkoutType.BIKE), runs) == []

    def test_monitoring_disabled(self):
        config = RulesConfig(monitor_mechanical_load=False)

        assert validate_placement(plan(self.day, WorkoutType.BIKE), self._runs(10, 15), config) == []

    def test_sss(self):
        assert calculate_sss(10.0, 2) == pytest.approx(14.0)


class TestDailyPlan:
    """Test validation with wellness data."""

    def setup_method(self):
        self.engine = RulesEngine()
        self.day = date(2025, 3, 12)
        self.severe = WellnessLog(date=self.day, allergy_severity=AllergySeverity.SEVERE)

    def test_severe_allergy_blocks_intensity(self):
        warnings = self.engine.validate_daily_plan(None, plan(self.day, WorkoutType.BIKE), self.severe, None, [])

        assert len(warnings) == 1
        assert warnings[0].title == "Severe Allergy Active"
        assert warnings[0].is_blocker

    def test_severe_allergy_blocks_strength(self):
        warnings = self.engine.validate_daily_plan(
            None, plan(self.day, WorkoutType.STRENGTH, tss=20), self.severe, None, [],
        )
        assert has_blocker(warnings)

    def test_severe_allergy_allows_zone_one(self):
        easy = plan(self.day, WorkoutType.BIKE, sub_type="Recovery Spin")

        assert self.engine.validate_daily_plan(None, easy, self.severe, None, []) == []

    def test_moderate_allergy_no_warning(self):
        moderate = WellnessLog(date=self.day, allergy_severity=AllergySeverity.MODERATE)

        assert self.engine.validate_daily_plan(None, plan(self.day, WorkoutType.BIKE), moderate, None, []) == []

    def test_yesterday_run(self):
        yesterday = log(self.day - timedelta(days=1), WorkoutType.RUN)
        wellness = WellnessLog(date=self.day)

        warnings = self.engine.validate_daily_plan(yesterday, plan(self.day, WorkoutType.RUN), wellness, None, [])
        assert [w.title for w in warnings] == ["Consecutive Runs Blocked"]

    def test_no_plan(self):
        assert self.engine.validate_daily_plan(None, None, self.severe, None, []) == []


class TestReadiness:
    """Test the composite readiness score."""

    def test_fresh_athlete(self):
        status = calculate_readiness(10, sleep_score=80, soreness=8, mood=8)

        assert status.score == 89
        assert status.color == ReadinessColor.GREEN
        assert status.allergy_penalty == 0
        assert "Sleep: 80" in status.breakdown

    def test_severe_allergy_penalty(self):
        status = calculate_readiness(10, sleep_score=80, soreness=8, mood=8, allergy=AllergySeverity.SEVERE)

        assert status.score == 59
        assert status.color == ReadinessColor.YELLOW
        assert status.allergy_penalty == 30

    def test_fatigued_without_inputs(self):
        status = calculate_readiness(-40)

        assert status.score == 25
        assert status.color == ReadinessColor.RED

    def test_score_is_clamped(self):
        status = calculate_readiness(-40, sleep_score=0, soreness=1, mood=1, allergy=AllergySeverity.SEVERE)

        assert status.score == 0
