"""Analysis module: load model, periodization, rules engine and schedulers."""

from .budget import DisciplineBudget, calculate_discipline_budget
from .model import BanisterModel, PerformanceMetrics, calculate_performance_metrics, calculate_tss
from .periodization import TrainingPhase, calculate_phase
from .rules import CoachWarning, RulesConfig, RulesEngine, validate_placement
from .season import GenerationResult, SeasonGenerator

__all__ = [
    "BanisterModel",
    "CoachWarning",
    "DisciplineBudget",
    "GenerationResult",
    "PerformanceMetrics",
    "RulesConfig",
    "RulesEngine",
    "SeasonGenerator",
    "TrainingPhase",
    "calculate_discipline_budget",
    "calculate_performance_metrics",
    "calculate_phase",
    "calculate_tss",
    "validate_placement",
]
