"""Tests for training phase calculation."""

from datetime import date, timedelta

from tri_planner.analysis.periodization import (
    PHASE_INFO,
    TrainingPhase,
    calculate_phase,
    phase_timeline,
    whole_months_between,
)


class TestCalculatePhase:
    """Test date to phase mapping."""

    def setup_method(self):
        self.today = date(2025, 1, 1)

    def test_no_goal_is_base(self):
        assert calculate_phase(self.today, None) == TrainingPhase.BASE

    def test_taper(self):
        assert calculate_phase(self.today, date(2025, 1, 15)) == TrainingPhase.TAPER
        assert calculate_phase(self.today, self.today) == TrainingPhase.TAPER

    def test_peak(self):
        # 7 weeks out
        assert calculate_phase(self.today, date(2025, 2, 19)) == TrainingPhase.PEAK

    def test_build(self):
        # 17 weeks out
        assert calculate_phase(self.today, date(2025, 5, 1)) == TrainingPhase.BUILD

    def test_base(self):
        # 25 weeks out, five whole months
        assert calculate_phase(self.today, date(2025, 6, 30)) == TrainingPhase.BASE

    def test_exactly_six_months_is_not_off_season(self):
        assert calculate_phase(self.today, date(2025, 7, 1)) == TrainingPhase.BASE

    def test_off_season(self):
        assert calculate_phase(self.today, date(2025, 8, 15)) == TrainingPhase.OFF_SEASON

    def test_transition_after_race(self):
        goal = date(2024, 12, 20)
        assert calculate_phase(self.today, goal) == TrainingPhase.TRANSITION

    def test_back_to_base_after_transition(self):
        goal = self.today - timedelta(days=60)
        assert calculate_phase(self.today, goal) == TrainingPhase.BASE

    def test_every_phase_has_info(self):
        for phase in TrainingPhase:
            assert PHASE_INFO[phase].display_name
            assert len(PHASE_INFO[phase].focus_areas) == 3


class TestWholeMonths:

    def test_partial_month_not_counted(self):
        assert whole_months_between(date(2025, 1, 15), date(2025, 3, 14)) == 1
        assert whole_months_between(date(2025, 1, 15), date(2025, 3, 15)) == 2


class TestPhaseTimeline:
    """Test week-by-week phase layout."""

    def test_timeline_runs_through_transition(self):
        start = date(2025, 1, 6)
        goal = start + timedelta(weeks=10)
        timeline = phase_timeline(start, goal)

        assert len(timeline) == 15
        assert timeline[0].week_number == 1
        assert timeline[0].phase == TrainingPhase.BUILD
        assert timeline[-1].phase == TrainingPhase.TRANSITION
        assert [week.weeks_to_goal for week in timeline[:3]] == [10, 9, 8]

    def test_phases_progress_in_order(self):
        start = date(2025, 1, 6)
        timeline = phase_timeline(start, start + timedelta(weeks=30))
        order = [TrainingPhase.BASE, TrainingPhase.BUILD, TrainingPhase.PEAK, TrainingPhase.TAPER, TrainingPhase.TRANSITION]

        seen = []
        for week in timeline:
            if not seen or seen[-1] != week.phase:
                seen.append(week.phase)
        assert seen == order

    def test_explicit_week_count(self):
        timeline = phase_timeline(date(2025, 1, 6), None, weeks=4)

        assert len(timeline) == 4
        assert all(week.phase == TrainingPhase.BASE for week in timeline)
        assert all(week.weeks_to_goal is None for week in timeline)
