"""Database module for the tri-planner training engine."""

from .database import Database, get_db
from .models import TrainingPlanRecord, UserProfileRecord, WorkoutLogRecord
from .repository import TrainingRepository

__all__ = ["Database", "get_db", "TrainingPlanRecord", "UserProfileRecord", "WorkoutLogRecord", "TrainingRepository"]
