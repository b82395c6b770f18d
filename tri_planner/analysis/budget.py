"""Per-discipline split of a weekly TSS target."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional

from .athlete import TrainingBalance
from .workouts import WorkoutType

logger = logging.getLogger(__name__)

STRENGTH_SESSION_TSS = 50
RUN_SAFETY_FACTOR = 1.15
RUN_SAFETY_MARGIN = 15


@dataclass(frozen=True)
class DisciplineBudget:
    """Weekly TSS allowance per discipline."""

    swim_tss: int
    bike_tss: int
    run_tss: int
    strength_tss: int
    total_tss: int

    def for_type(self, workout_type: WorkoutType) -> int:
        return {
            WorkoutType.SWIM: self.swim_tss,
            WorkoutType.BIKE: self.bike_tss,
            WorkoutType.RUN: self.run_tss,
            WorkoutType.STRENGTH: self.strength_tss,
        }.get(workout_type, 0)

    def as_dict(self) -> Dict[WorkoutType, int]:
        return {
            WorkoutType.SWIM: self.swim_tss,
            WorkoutType.BIKE: self.bike_tss,
            WorkoutType.RUN: self.run_tss,
            WorkoutType.STRENGTH: self.strength_tss,
        }


def max_safe_run_tss(recent_run_avg: float) -> int:
    """Highest weekly run TSS considered safe given recent run load."""
    return int(recent_run_avg * RUN_SAFETY_FACTOR) + RUN_SAFETY_MARGIN


def calculate_discipline_budget(
    total_tss: int,
    balance: TrainingBalance,
    strength_sessions: int,
    recent_loads: Optional[Dict[WorkoutType, int]] = None,
) -> DisciplineBudget:
    """Split a weekly TSS target into swim/bike/run/strength allowances.

    Strength is costed first at a flat rate per session. The remaining cardio
    budget is split by the balance percentages. When recent run load is known,
    running is capped at a safe growth over it and the excess moves to the bike.

    Args:
        total_tss: Weekly TSS target
        balance: Discipline percentages
        strength_sessions: Planned strength sessions this week
        recent_loads: Trailing average weekly TSS per discipline

    Returns:
        DisciplineBudget for the week
    """
    strength_tss = max(0, strength_sessions) * STRENGTH_SESSION_TSS
    cardio_budget = max(0, total_tss - strength_tss)

    swim_tss = cardio_budget * balance.swim_percent // 100
    bike_tss = cardio_budget * balance.bike_percent // 100
    run_tss = cardio_budget * balance.run_percent // 100

    if recent_loads and WorkoutType.RUN in recent_loads:
        run_cap = max_safe_run_tss(recent_loads[WorkoutType.RUN] or 0)
        if run_tss > run_cap:
            overflow = run_tss - run_cap
            logger.debug(f"Run budget {run_tss} above safe cap {run_cap}, moving {overflow} TSS to bike")
            run_tss = run_cap
            bike_tss += overflow

    return DisciplineBudget(
        swim_tss=swim_tss,
        bike_tss=bike_tss,
        run_tss=run_tss,
        strength_tss=strength_tss,
        total_tss=swim_tss + bike_tss + run_tss + strength_tss,
    )


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive loads."""
    return int(math.floor(value + 0.5))
