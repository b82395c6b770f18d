"""Tests for the weekly discipline budget."""

import pytest

from tri_planner.analysis.athlete import BALANCED, IRONMAN_BASE, RUN_FOCUS, TrainingBalance
from tri_planner.analysis.budget import calculate_discipline_budget, max_safe_run_tss, round_half_up
from tri_planner.analysis.workouts import WorkoutType


class TestDisciplineBudget:
    """Test splitting a weekly target across disciplines."""

    def test_ironman_base_split(self):
        budget = calculate_discipline_budget(500, IRONMAN_BASE, 2, {})

        assert budget.strength_tss == 100
        assert budget.swim_tss == 80
        assert budget.bike_tss == 200
        assert budget.run_tss == 120
        assert budget.total_tss == 500

    def test_no_recent_run_load_skips_clamp(self):
        budget = calculate_discipline_budget(500, IRONMAN_BASE, 2)

        assert budget.run_tss == 120

    def test_run_clamped_to_safe_growth(self):
        budget = calculate_discipline_budget(500, RUN_FOCUS, 0, {WorkoutType.RUN: 50})
        cap = max_safe_run_tss(50)

        assert budget.run_tss == cap
        assert budget.bike_tss == 150 + (250 - cap)
        assert budget.swim_tss == 100
        assert budget.total_tss == 500

    def test_run_under_cap_untouched(self):
        budget = calculate_discipline_budget(500, IRONMAN_BASE, 2, {WorkoutType.RUN: 200})

        assert budget.run_tss == 120
        assert budget.bike_tss == 200

    def test_strength_larger_than_target(self):
        budget = calculate_discipline_budget(80, BALANCED, 2)

        assert budget.strength_tss == 100
        assert budget.swim_tss == budget.bike_tss == budget.run_tss == 0

    def test_percentages_truncate(self):
        budget = calculate_discipline_budget(101, BALANCED, 0)

        assert budget.bike_tss == 34
        assert budget.run_tss == 33
        assert budget.swim_tss == 33
        assert budget.total_tss == 100

    def test_for_type(self):
        budget = calculate_discipline_budget(500, IRONMAN_BASE, 2)

        assert budget.for_type(WorkoutType.BIKE) == 200
        assert budget.for_type(WorkoutType.OTHER) == 0


class TestTrainingBalance:

    def test_presets_are_valid(self):
        for name in ("ironman_base", "balanced", "run_focus", "bike_focus"):
            assert TrainingBalance.from_name(name).is_valid()

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            TrainingBalance.from_name("sprint_focus")

    def test_preset_name(self):
        assert IRONMAN_BASE.preset_name == "IRONMAN_BASE"
        assert TrainingBalance(40, 40, 20).preset_name is None


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.4) == 2
