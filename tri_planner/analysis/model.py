"""Banister Impulse-Response load model: TSS per workout and CTL/ATL/TSB per day."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

import pandas as pd

from ..config import config
from .athlete import AthleteProfile
from .workouts import WorkoutType

logger = logging.getLogger(__name__)

# Fallback TSS per hour when no heart rate or power is available
BIKE_FALLBACK_TSS_PER_HOUR = 40
RUN_FALLBACK_TSS_PER_HOUR = 50
OTHER_FALLBACK_TSS_PER_HOUR = 20


@dataclass(frozen=True)
class PerformanceMetrics:
    """Fitness/fatigue/form snapshot for one date."""

    ctl: float  # Chronic Training Load (fitness)
    atl: float  # Acute Training Load (fatigue)
    tsb: float  # Training Stress Balance (form)


ZERO_METRICS = PerformanceMetrics(ctl=0.0, atl=0.0, tsb=0.0)


def _hr_tss(duration_minutes: int, avg_hr: int, max_hr: int) -> int:
    """Estimate hrTSS as hours * (avg_hr / max_hr)^2 * 100."""
    hours = duration_minutes / 60.0
    if max_hr <= 0:
        return int(hours * BIKE_FALLBACK_TSS_PER_HOUR)
    ratio = avg_hr / max_hr
    return int(hours * ratio ** 2 * 100)


def calculate_tss(
    workout_type: WorkoutType,
    duration_minutes: int,
    avg_hr: Optional[int],
    avg_power: Optional[int],
    profile: AthleteProfile,
) -> int:
    """Calculate the Training Stress Score of one workout.

    Args:
        workout_type: Discipline of the workout
        duration_minutes: Moving time in minutes
        avg_hr: Average heart rate, if recorded
        avg_power: Average power in watts, if recorded (bike only)
        profile: Athlete thresholds and default TSS rates

    Returns:
        TSS truncated to an integer, 0 for non-positive durations
    """
    if duration_minutes <= 0:
        return 0

    hours = duration_minutes / 60.0
    max_hr = profile.max_hr if profile.max_hr is not None else config.MAX_HR

    if workout_type == WorkoutType.BIKE:
        ftp = profile.ftp if profile.ftp is not None else config.FTP
        if avg_power is not None and ftp > 0:
            seconds = duration_minutes * 60.0
            intensity_factor = avg_power / ftp
            return int(seconds * avg_power * intensity_factor / (ftp * 3600.0) * 100.0)
        if avg_hr is not None:
            return _hr_tss(duration_minutes, avg_hr, max_hr)
        return int(hours * BIKE_FALLBACK_TSS_PER_HOUR)

    if workout_type == WorkoutType.RUN:
        if avg_hr is not None:
            return _hr_tss(duration_minutes, avg_hr, max_hr)
        return int(hours * RUN_FALLBACK_TSS_PER_HOUR)

    if workout_type == WorkoutType.SWIM:
        return int(hours * profile.default_swim_tss)

    if workout_type == WorkoutType.STRENGTH:
        return int(hours * profile.default_strength_heavy_tss)

    # Walking, hiking and anything else: the heart does not care about the sport
    if avg_hr is not None:
        return _hr_tss(duration_minutes, avg_hr, max_hr)
    return int(hours * OTHER_FALLBACK_TSS_PER_HOUR)


class BanisterModel:
    """Exponentially weighted fitness/fatigue model over daily TSS."""

    def __init__(self, fitness_decay: float = None, fatigue_decay: float = None):
        """Initialize the model.

        Args:
            fitness_decay: CTL time constant in days - typically 42
            fatigue_decay: ATL time constant in days - typically 7
        """
        self.fitness_decay = fitness_decay or config.FITNESS_DECAY_RATE
        self.fatigue_decay = fatigue_decay or config.FATIGUE_DECAY_RATE

    def step(self, ctl: float, atl: float, day_tss: float):
        """Advance the model by one day and return the new (ctl, atl)."""
        ctl = ctl * (1.0 - 1.0 / self.fitness_decay) + day_tss * (1.0 / self.fitness_decay)
        atl = atl * (1.0 - 1.0 / self.fatigue_decay) + day_tss * (1.0 / self.fatigue_decay)
        return ctl, atl

    @staticmethod
    def daily_loads(logs: Iterable, start: date, end: date) -> pd.Series:
        """Sum TSS per calendar day between start and end, missing days are 0."""
        index = pd.date_range(start=start, end=end, freq="D")
        records = [
            (pd.Timestamp(log.date), float(log.tss or 0))
            for log in logs
            if start <= log.date <= end
        ]
        if not records:
            return pd.Series(0.0, index=index)
        frame = pd.DataFrame(records, columns=["date", "tss"])
        totals = frame.groupby("date")["tss"].sum()
        return totals.reindex(index, fill_value=0.0)

    def performance_history(self, logs: Iterable, start: date, end: date) -> pd.DataFrame:
        """Daily tss/ctl/atl/tsb between start and end.

        The EWMA state is warmed up from the earliest log, so values on `start`
        already reflect any earlier training.

        Args:
            logs: Completed activities (anything exposing date and tss)
            start: First day reported
            end: Last day reported

        Returns:
            DataFrame indexed by date with tss, ctl, atl and tsb columns
        """
        logs = [log for log in logs if log.date <= end]
        first_day = min([log.date for log in logs] + [start])
        loads = self.daily_loads(logs, first_day, end)

        ctl = atl = 0.0
        rows = []
        for day, day_tss in loads.items():
            ctl, atl = self.step(ctl, atl, day_tss)
            rows.append((day.date(), day_tss, ctl, atl, ctl - atl))

        history = pd.DataFrame(rows, columns=["date", "tss", "ctl", "atl", "tsb"]).set_index("date")
        return history.loc[start:end] if not history.empty else history

    def performance_metrics(self, logs: Iterable, target_date: date) -> PerformanceMetrics:
        """Calculate CTL, ATL and TSB on target_date from the full log history."""
        relevant = [log for log in logs if log.date <= target_date]
        if not relevant:
            return ZERO_METRICS

        start = min(log.date for log in relevant)
        loads = self.daily_loads(relevant, start, target_date)

        # Sequential: each day's state depends on the previous one
        ctl = atl = 0.0
        for day_tss in loads.to_numpy():
            ctl, atl = self.step(ctl, atl, float(day_tss))

        return PerformanceMetrics(ctl=ctl, atl=atl, tsb=ctl - atl)

    def project(self, ctl: float, daily_tss: Iterable[float]) -> float:
        """Replay planned daily loads from a starting CTL and return the final CTL."""
        atl = ctl
        for day_tss in daily_tss:
            ctl, atl = self.step(ctl, atl, day_tss)
        return ctl


def calculate_performance_metrics(logs: Iterable, target_date: date) -> PerformanceMetrics:
    """CTL/ATL/TSB on target_date with the configured time constants."""
    return BanisterModel().performance_metrics(logs, target_date)


def week_dates(week_start: date):
    """The seven dates of the week starting at week_start."""
    return [week_start + timedelta(days=offset) for offset in range(7)]
