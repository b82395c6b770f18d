"""SQLAlchemy-backed profile, log and plan store."""

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from ..analysis.athlete import AthleteProfile
from ..analysis.workouts import CompletedLog, PlannedWorkout, WorkoutType
from ..stores import RECENT_LOAD_WEEKS, average_weekly_loads
from .database import Database, get_db
from .models import TrainingPlanRecord, UserProfileRecord, WorkoutLogRecord

logger = logging.getLogger(__name__)


class TrainingRepository:
    """Persistence adapter implementing the generator's store interfaces."""

    def __init__(self, db: Optional[Database] = None, user_id: str = "default", today: Optional[date] = None):
        self.db = db or get_db()
        self.user_id = user_id
        self.today = today

    def get_current_profile(self) -> Optional[AthleteProfile]:
        with self.db.get_session() as session:
            record = session.query(UserProfileRecord).filter_by(user_id=self.user_id).first()
            return record.to_profile() if record else None

    def save_profile(self, profile: AthleteProfile):
        with self.db.get_session() as session:
            record = session.query(UserProfileRecord).filter_by(user_id=self.user_id).first()
            if record is None:
                record = UserProfileRecord(user_id=self.user_id)
                session.add(record)
            record.update_from(profile)

    def add_log(self, log: CompletedLog):
        with self.db.get_session() as session:
            session.add(WorkoutLogRecord.from_log(log))

    def get_logs_by_date_range(self, start: date, end: date) -> List[CompletedLog]:
        with self.db.get_session() as session:
            records = session.query(WorkoutLogRecord).filter(
                WorkoutLogRecord.date >= start,
                WorkoutLogRecord.date <= end,
            ).order_by(WorkoutLogRecord.date).all()
            return [record.to_log() for record in records]

    def get_all_logs(self) -> List[CompletedLog]:
        with self.db.get_session() as session:
            records = session.query(WorkoutLogRecord).order_by(WorkoutLogRecord.date).all()
            return [record.to_log() for record in records]

    def get_recent_discipline_loads(self) -> Dict[WorkoutType, int]:
        """Average weekly TSS per discipline over the trailing four weeks."""
        end = self.today or date.today()
        start = end - timedelta(weeks=RECENT_LOAD_WEEKS) + timedelta(days=1)
        return average_weekly_loads(self.get_logs_by_date_range(start, end), end)

    def save_plans(self, plans: Iterable[PlannedWorkout]) -> int:
        """Insert or replace plans by id."""
        count = 0
        with self.db.get_session() as session:
            for plan in plans:
                session.merge(TrainingPlanRecord.from_plan(plan))
                count += 1
        logger.info(f"Saved {count} planned workouts")
        return count

    def get_plans_by_date_range(self, start: date, end: date) -> List[PlannedWorkout]:
        with self.db.get_session() as session:
            records = session.query(TrainingPlanRecord).filter(
                TrainingPlanRecord.date >= start,
                TrainingPlanRecord.date <= end,
            ).order_by(TrainingPlanRecord.date).all()
            return [record.to_plan() for record in records]
