"""Database models for the athlete profile, workout logs and training plans."""

import json
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

from ..analysis.athlete import AnchorType, AthleteProfile, TrainingBalance
from ..analysis.workouts import CompletedLog, Intensity, PlannedWorkout, StrengthFocus, WorkoutType

Base = declarative_base()


def _dump(value):
    return json.dumps(value) if value is not None else None


def _load(value):
    return json.loads(value) if value else None


class UserProfileRecord(Base):
    """Athlete profile (single row per user)."""

    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), unique=True, nullable=False, default="default")
    goal_date = Column(Date)
    long_training_day = Column(Integer, default=6)  # 0=Monday
    strength_days = Column(Integer, default=2)
    ftp = Column(Integer)  # watts
    max_hr = Column(Integer)  # bpm
    lthr = Column(Integer)  # bpm
    css_seconds_per_100m = Column(Integer)
    threshold_run_pace = Column(Integer)  # seconds per km
    default_swim_tss = Column(Integer)
    default_strength_heavy_tss = Column(Integer)
    default_strength_light_tss = Column(Integer)
    weekly_availability = Column(Text)  # JSON {weekday: [types]}
    weekly_schedule = Column(Text)  # JSON {weekday: anchor}
    bike_percent = Column(Integer)
    run_percent = Column(Integer)
    swim_percent = Column(Integer)
    weekly_hours_goal = Column(Float)
    weight_kg = Column(Float)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_profile(self) -> AthleteProfile:
        availability = _load(self.weekly_availability)
        schedule = _load(self.weekly_schedule)
        balance = None
        if self.bike_percent is not None:
            balance = TrainingBalance(self.bike_percent, self.run_percent, self.swim_percent)

        profile = AthleteProfile(
            goal_date=self.goal_date,
            long_training_day=self.long_training_day if self.long_training_day is not None else 6,
            strength_days=self.strength_days if self.strength_days is not None else 2,
            ftp=self.ftp,
            max_hr=self.max_hr,
            lthr=self.lthr,
            css_seconds_per_100m=self.css_seconds_per_100m,
            threshold_run_pace=self.threshold_run_pace,
            weekly_availability=(
                {int(day): [WorkoutType(t) for t in types] for day, types in availability.items()}
                if availability is not None else None
            ),
            weekly_schedule=(
                {int(day): AnchorType(anchor) for day, anchor in schedule.items()}
                if schedule is not None else None
            ),
            training_balance=balance,
            weekly_hours_goal=self.weekly_hours_goal,
            weight_kg=self.weight_kg,
        )
        if self.default_swim_tss is not None:
            profile.default_swim_tss = self.default_swim_tss
        if self.default_strength_heavy_tss is not None:
            profile.default_strength_heavy_tss = self.default_strength_heavy_tss
        if self.default_strength_light_tss is not None:
            profile.default_strength_light_tss = self.default_strength_light_tss
        return profile

    def update_from(self, profile: AthleteProfile):
        self.goal_date = profile.goal_date
        self.long_training_day = profile.long_training_day
        self.strength_days = profile.strength_days
        self.ftp = profile.ftp
        self.max_hr = profile.max_hr
        self.lthr = profile.lthr
        self.css_seconds_per_100m = profile.css_seconds_per_100m
        self.threshold_run_pace = profile.threshold_run_pace
        self.default_swim_tss = profile.default_swim_tss
        self.default_strength_heavy_tss = profile.default_strength_heavy_tss
        self.default_strength_light_tss = profile.default_strength_light_tss
        self.weekly_availability = _dump(
            {str(day): [t.value for t in types] for day, types in profile.weekly_availability.items()}
            if profile.weekly_availability is not None else None
        )
        self.weekly_schedule = _dump(
            {str(day): anchor.value for day, anchor in profile.weekly_schedule.items()}
            if profile.weekly_schedule is not None else None
        )
        balance = profile.training_balance
        self.bike_percent = balance.bike_percent if balance else None
        self.run_percent = balance.run_percent if balance else None
        self.swim_percent = balance.swim_percent if balance else None
        self.weekly_hours_goal = profile.weekly_hours_goal
        self.weight_kg = profile.weight_kg

    def __repr__(self):
        return f"<UserProfileRecord(user_id={self.user_id}, goal_date={self.goal_date})>"


class WorkoutLogRecord(Base):
    """Completed workout."""

    __tablename__ = "workout_logs"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, index=True)
    workout_type = Column(String(20), nullable=False)
    title = Column(String(255))
    duration_minutes = Column(Integer, nullable=False)
    computed_tss = Column(Integer)
    avg_heart_rate = Column(Integer)  # bpm
    avg_power = Column(Integer)  # watts
    distance_meters = Column(Float)
    hr_zone_seconds = Column(Text)  # JSON {"Z1": seconds, ...}
    power_zone_seconds = Column(Text)  # JSON
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_log(self) -> CompletedLog:
        return CompletedLog(
            date=self.date,
            workout_type=WorkoutType(self.workout_type),
            duration_minutes=self.duration_minutes,
            computed_tss=self.computed_tss,
            avg_heart_rate=self.avg_heart_rate,
            avg_power=self.avg_power,
            distance_meters=self.distance_meters,
            hr_zone_seconds=_load(self.hr_zone_seconds),
            power_zone_seconds=_load(self.power_zone_seconds),
            title=self.title,
        )

    @classmethod
    def from_log(cls, log: CompletedLog) -> "WorkoutLogRecord":
        return cls(
            date=log.date,
            workout_type=log.workout_type.value,
            title=log.title,
            duration_minutes=log.duration_minutes,
            computed_tss=log.computed_tss,
            avg_heart_rate=log.avg_heart_rate,
            avg_power=log.avg_power,
            distance_meters=log.distance_meters,
            hr_zone_seconds=_dump(log.hr_zone_seconds),
            power_zone_seconds=_dump(log.power_zone_seconds),
        )

    def __repr__(self):
        return f"<WorkoutLogRecord(date={self.date}, type={self.workout_type}, tss={self.computed_tss})>"


class TrainingPlanRecord(Base):
    """Planned workout persisted from a generation run."""

    __tablename__ = "training_plans"

    id = Column(String(36), primary_key=True)
    date = Column(Date, nullable=False, index=True)
    workout_type = Column(String(20), nullable=False)
    sub_type = Column(String(100))
    duration_minutes = Column(Integer, nullable=False)
    planned_tss = Column(Integer, nullable=False)
    strength_focus = Column(String(20))
    intensity = Column(String(20))
    is_commute = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_plan(self) -> PlannedWorkout:
        return PlannedWorkout(
            id=self.id,
            date=self.date,
            workout_type=WorkoutType(self.workout_type),
            duration_minutes=self.duration_minutes,
            planned_tss=self.planned_tss,
            sub_type=self.sub_type,
            strength_focus=StrengthFocus(self.strength_focus) if self.strength_focus else None,
            intensity=Intensity(self.intensity) if self.intensity else None,
            is_commute=bool(self.is_commute),
        )

    @classmethod
    def from_plan(cls, plan: PlannedWorkout) -> "TrainingPlanRecord":
        return cls(
            id=plan.id,
            date=plan.date,
            workout_type=plan.workout_type.value,
            sub_type=plan.sub_type,
            duration_minutes=plan.duration_minutes,
            planned_tss=plan.planned_tss,
            strength_focus=plan.strength_focus.value if plan.strength_focus else None,
            intensity=plan.intensity.value if plan.intensity else None,
            is_commute=plan.is_commute,
        )

    def __repr__(self):
        return f"<TrainingPlanRecord(date={self.date}, type={self.workout_type}, tss={self.planned_tss})>"
