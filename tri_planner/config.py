"""Configuration management for the tri-planner training engine."""

import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./tri_planner.db")
    DATABASE_ECHO: bool = _env_flag("DATABASE_ECHO", "false")

    # Load model (Banister EWMA time constants)
    FITNESS_DECAY_RATE: float = float(os.getenv("FITNESS_DECAY_RATE", "42"))  # days
    FATIGUE_DECAY_RATE: float = float(os.getenv("FATIGUE_DECAY_RATE", "7"))  # days

    # Athlete fallbacks when the profile leaves thresholds unset
    MAX_HR: int = int(os.getenv("MAX_HR", "185"))
    FTP: int = int(os.getenv("FTP", "250"))
    DEFAULT_SWIM_TSS: int = int(os.getenv("DEFAULT_SWIM_TSS", "60"))  # per hour
    DEFAULT_STRENGTH_HEAVY_TSS: int = int(os.getenv("DEFAULT_STRENGTH_HEAVY_TSS", "60"))
    DEFAULT_STRENGTH_LIGHT_TSS: int = int(os.getenv("DEFAULT_STRENGTH_LIGHT_TSS", "40"))

    # Iron Brain planning preferences
    SMART_PLANNING: bool = _env_flag("SMART_PLANNING", "true")
    RUN_CONSECUTIVE_ALLOWED: bool = _env_flag("RUN_CONSECUTIVE_ALLOWED", "false")
    STRENGTH_SPACING_HOURS: int = int(os.getenv("STRENGTH_SPACING_HOURS", "48"))
    MECHANICAL_LOAD_MONITORING: bool = _env_flag("MECHANICAL_LOAD_MONITORING", "true")
    ALLOW_COMMUTE_EXEMPTION: bool = _env_flag("ALLOW_COMMUTE_EXEMPTION", "true")
    RAMP_RATE_LIMIT: float = float(os.getenv("RAMP_RATE_LIMIT", "5.0"))  # % per week

    # Season simulation: "damped" (weekly 10% step) or "banister" (daily EWMA replay)
    SEASON_CTL_MODEL: str = os.getenv("SEASON_CTL_MODEL", "damped").lower()

    # Profile validation bounds
    MAX_REALISTIC_CTL: float = 150.0
    MIN_PLAN_WEEKS: float = 2.0
    MAX_PLAN_DAYS: int = 730
    MAX_SEASON_MONTHS: int = 24

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def get_rules_config(cls, **overrides):
        """Build an immutable rules snapshot from the current settings.

        Args:
            **overrides: Field values replacing the configured ones

        Returns:
            RulesConfig snapshot
        """
        from .analysis.rules import RulesConfig

        values = {
            "smart_planning_enabled": cls.SMART_PLANNING,
            "allow_consecutive_runs": cls.RUN_CONSECUTIVE_ALLOWED,
            "strength_spacing_hours": cls.STRENGTH_SPACING_HOURS,
            "monitor_mechanical_load": cls.MECHANICAL_LOAD_MONITORING,
            "allow_commute_exemption": cls.ALLOW_COMMUTE_EXEMPTION,
            "ramp_rate_limit": cls.RAMP_RATE_LIMIT,
        }
        values.update(overrides)
        return RulesConfig(**values)

    @classmethod
    def uses_banister_season_model(cls) -> bool:
        """Whether season simulation replays the daily EWMA instead of the damped step."""
        return cls.SEASON_CTL_MODEL == "banister"

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration values."""
        if cls.STRENGTH_SPACING_HOURS < 0:
            raise ValueError("STRENGTH_SPACING_HOURS must not be negative")
        if cls.RAMP_RATE_LIMIT < 0:
            raise ValueError("RAMP_RATE_LIMIT must not be negative")
        if cls.SEASON_CTL_MODEL not in ("damped", "banister"):
            raise ValueError(
                f"Unknown SEASON_CTL_MODEL '{cls.SEASON_CTL_MODEL}'. Use 'damped' or 'banister'"
            )
        return True

    @classmethod
    def get_log_level(cls, override: Optional[str] = None) -> str:
        """Resolve the logging level name."""
        return (override or cls.LOG_LEVEL).upper()


config = Config()
