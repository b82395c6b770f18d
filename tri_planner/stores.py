"""Store interfaces consumed by the season generator, plus simple implementations."""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Protocol

import pandas as pd

from .analysis.athlete import AthleteProfile
from .analysis.rules import RulesConfig
from .analysis.workouts import CompletedLog, PlannedWorkout, WorkoutType
from .config import Config

RECENT_LOAD_WEEKS = 4


class ProfileStore(Protocol):
    def get_current_profile(self) -> Optional[AthleteProfile]: ...


class LogStore(Protocol):
    def get_logs_by_date_range(self, start: date, end: date) -> List[CompletedLog]: ...

    def get_recent_discipline_loads(self) -> Dict[WorkoutType, int]: ...


class PreferencesStore(Protocol):
    def get_rules_config(self) -> RulesConfig: ...


class PlanStore(Protocol):
    def save_plans(self, plans: Iterable[PlannedWorkout]) -> int: ...


def average_weekly_loads(logs: Iterable[CompletedLog], end: date, weeks: int = RECENT_LOAD_WEEKS) -> Dict[WorkoutType, int]:
    """Average weekly TSS per discipline over the `weeks` weeks ending at `end`."""
    start = end - timedelta(weeks=weeks) + timedelta(days=1)
    rows = [(log.workout_type.value, log.tss) for log in logs if start <= log.date <= end]
    if not rows:
        return {}

    df = pd.DataFrame(rows, columns=["workout_type", "tss"])
    weekly = df.groupby("workout_type")["tss"].sum() // weeks
    return {WorkoutType(name): int(total) for name, total in weekly.items()}


class EnvPreferences:
    """Preferences backed by environment configuration."""

    def __init__(self, **overrides):
        self.overrides = overrides

    def get_rules_config(self) -> RulesConfig:
        return Config.get_rules_config(**self.overrides)


class InMemoryTrainingStore:
    """Profile, log and plan store held in memory."""

    def __init__(
        self,
        profile: Optional[AthleteProfile] = None,
        logs: Optional[Iterable[CompletedLog]] = None,
        recent_loads: Optional[Dict[WorkoutType, int]] = None,
        today: Optional[date] = None,
    ):
        self.profile = profile
        self.logs = list(logs or [])
        self.plans: List[PlannedWorkout] = []
        self.recent_loads = recent_loads
        self.today = today

    def get_current_profile(self) -> Optional[AthleteProfile]:
        return self.profile

    def get_logs_by_date_range(self, start: date, end: date) -> List[CompletedLog]:
        return sorted((log for log in self.logs if start <= log.date <= end), key=lambda log: log.date)

    def get_recent_discipline_loads(self) -> Dict[WorkoutType, int]:
        if self.recent_loads is not None:
            return dict(self.recent_loads)
        return average_weekly_loads(self.logs, self.today or date.today())

    def save_plans(self, plans: Iterable[PlannedWorkout]) -> int:
        plans = list(plans)
        self.plans.extend(plans)
        return len(plans)
