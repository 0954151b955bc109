"""
Coach-facing rollups over workouts, nutrition plans and progress records.

Counting happens in SQL with grouped aggregates. Grouping by week or month is
done in Python on top of per-day rows so the queries stay portable between
SQLite and PostgreSQL.
"""
from datetime import timedelta

from sqlalchemy import and_, case, distinct, func
from sqlalchemy.orm import Session

from fitcoach.errors import ForbiddenError, ValidationError
from fitcoach.models import (
    AssignedWorkout, AthleteProfile, Exercise, NutritionPlan, ProgressRecord, User,
    WorkoutTemplate, WorkoutTemplateExercise,
)
from fitcoach.utils.dates import add_months, utcnow

PERIODS = ("week", "month", "quarter", "year")
GROUPINGS = ("day", "week", "month")

# an assignment without a scheduled date counts on the day it was assigned
workout_day = func.coalesce(AssignedWorkout.scheduled_date, AssignedWorkout.assigned_date)


def period_start(period, today):
    if period == "week":
        return today - timedelta(days=7)
    if period == "month":
        return add_months(today, -1)
    if period == "quarter":
        return add_months(today, -3)
    if period == "year":
        return add_months(today, -12)
    raise ValidationError(errors={"period": [f"Must be one of: {', '.join(PERIODS)}"]})


def resolve_window(period="month", date_from=None, date_to=None, today=None):
    """Inclusive (start, end) dates; explicit bounds win over the named period."""
    today = today or utcnow().date()
    end = date_to or today
    start = date_from or period_start(period, end)
    if start > end:
        raise ValidationError(errors={"date_from": ["Must be on or before date_to"]})
    return start, end


def _rate(part, total, digits=None):
    if not total:
        return 0 if digits is None else None
    return round(part * 100 / total, digits)


def _completed():
    return case((AssignedWorkout.status == "completed", 1))


def trainer_dashboard(db: Session, trainer, period="month", date_from=None, date_to=None, today=None):
    start, end = resolve_window(period, date_from, date_to, today)

    total_athletes = (
        db.query(func.count(AthleteProfile.id))
        .filter(AthleteProfile.trainer_id == trainer.id)
        .scalar()
    )
    assigned, completed, active = (
        db.query(
            func.count(AssignedWorkout.id),
            func.count(_completed()),
            func.count(distinct(case((AssignedWorkout.status == "completed", AssignedWorkout.athlete_id)))),
        )
        .filter(AssignedWorkout.trainer_id == trainer.id, workout_day.between(start, end))
        .one()
    )
    return {
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "summary": {
            "total_athletes": total_athletes,
            "active_athletes": active,
            "workouts_assigned": assigned,
            "workouts_completed": completed,
            "completion_rate": _rate(completed, assigned),
        },
    }


def nutritionist_dashboard(db: Session, nutritionist, period="month", date_from=None, date_to=None, today=None):
    start, end = resolve_window(period, date_from, date_to, today)

    total_clients = (
        db.query(func.count(AthleteProfile.id))
        .filter(AthleteProfile.nutritionist_id == nutritionist.user_id)
        .scalar()
    )
    active_clients = (
        db.query(func.count(distinct(NutritionPlan.athlete_id)))
        .filter(NutritionPlan.nutritionist_id == nutritionist.id, NutritionPlan.status == "active")
        .scalar()
    )
    plans, active_plans = (
        db.query(func.count(NutritionPlan.id), func.count(case((NutritionPlan.status == "active", 1))))
        .filter(NutritionPlan.nutritionist_id == nutritionist.id, NutritionPlan.start_date.between(start, end))
        .one()
    )
    return {
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "summary": {
            "total_clients": total_clients,
            "active_clients": active_clients,
            "nutrition_plans": plans,
            "active_plans": active_plans,
        },
    }


def coach_dashboard(db: Session, user, **kwargs):
    if user.role == "trainer":
        return trainer_dashboard(db, user.trainer_profile, **kwargs)
    if user.role == "nutritionist":
        return nutritionist_dashboard(db, user.nutritionist_profile, **kwargs)
    raise ForbiddenError("Analytics are available to trainers and nutritionists")


def bucket_start(day, group_by):
    if group_by == "day":
        return day
    if group_by == "week":
        return day - timedelta(days=day.weekday())
    if group_by == "month":
        return day.replace(day=1)
    raise ValidationError(errors={"group_by": [f"Must be one of: {', '.join(GROUPINGS)}"]})


def workout_stats(db: Session, trainer, athlete_id=None, period="month", group_by="week", today=None):
    """
    Assignment counts per day, week or month, the most used exercises and
    completion by template difficulty, all limited to this trainer's assignments.
    """
    start, end = resolve_window(period, today=today)
    scope = [AssignedWorkout.trainer_id == trainer.id, workout_day.between(start, end)]
    if athlete_id is not None:
        scope.append(AssignedWorkout.athlete_id == athlete_id)

    daily = (
        db.query(
            workout_day.label("day"),
            AssignedWorkout.status,
            func.count(AssignedWorkout.id),
            func.sum(WorkoutTemplate.duration_minutes),
        )
        .join(WorkoutTemplate, WorkoutTemplate.id == AssignedWorkout.workout_template_id)
        .filter(*scope)
        .group_by(workout_day, AssignedWorkout.status)
        .all()
    )

    buckets = {}
    for day, status, count, minutes in daily:
        key = bucket_start(day, group_by)
        bucket = buckets.setdefault(key, {"total": 0, "completed": 0, "skipped": 0, "minutes": 0})
        bucket["total"] += count
        if status == "completed":
            bucket["completed"] += count
            bucket["minutes"] += minutes or 0
        elif status == "skipped":
            bucket["skipped"] += count

    stats = []
    for key in sorted(buckets, reverse=True):
        bucket = buckets[key]
        stats.append({
            "period": key.isoformat(),
            "total_workouts": bucket["total"],
            "completed_workouts": bucket["completed"],
            "pending_workouts": bucket["total"] - bucket["completed"] - bucket["skipped"],
            "skipped_workouts": bucket["skipped"],
            "avg_duration": round(bucket["minutes"] / bucket["completed"], 1) if bucket["completed"] else None,
        })

    usage = func.count(WorkoutTemplateExercise.id).label("usage")
    popular = (
        db.query(Exercise.id, Exercise.name, Exercise.category, usage)
        .join(WorkoutTemplateExercise, WorkoutTemplateExercise.exercise_id == Exercise.id)
        .join(AssignedWorkout, AssignedWorkout.workout_template_id == WorkoutTemplateExercise.workout_template_id)
        .filter(*scope)
        .group_by(Exercise.id, Exercise.name, Exercise.category)
        .order_by(usage.desc(), Exercise.name)
        .limit(10)
        .all()
    )

    by_difficulty = (
        db.query(WorkoutTemplate.difficulty_level, func.count(AssignedWorkout.id), func.count(_completed()))
        .join(AssignedWorkout, AssignedWorkout.workout_template_id == WorkoutTemplate.id)
        .filter(*scope)
        .group_by(WorkoutTemplate.difficulty_level)
        .order_by(WorkoutTemplate.difficulty_level)
        .all()
    )

    return {
        "period": {"start": start.isoformat(), "end": end.isoformat(), "group_by": group_by},
        "workout_stats": stats,
        "popular_exercises": [
            {"id": id_, "name": name, "category": category, "usage_count": count}
            for id_, name, category, count in popular
        ],
        "completion_by_difficulty": [
            {
                "difficulty_level": level,
                "total_assigned": total,
                "completed": completed,
                "completion_rate": _rate(completed, total, 2),
            }
            for level, total, completed in by_difficulty
        ],
    }


def athlete_performance(db: Session, trainer, days=30, progress_days=90, today=None):
    """Per-athlete completion over the last `days` days, best performers first."""
    today = today or utcnow().date()
    since = today - timedelta(days=days)

    rows = (
        db.query(
            AthleteProfile.id,
            User.first_name,
            User.last_name,
            func.count(AssignedWorkout.id),
            func.count(_completed()),
            func.count(case((AssignedWorkout.status == "skipped", 1))),
            func.max(AssignedWorkout.completed_at),
            func.count(distinct(workout_day)),
        )
        .join(User, User.id == AthleteProfile.user_id)
        .outerjoin(AssignedWorkout, and_(
            AssignedWorkout.athlete_id == AthleteProfile.id,
            AssignedWorkout.trainer_id == trainer.id,
            workout_day.between(since, today),
        ))
        .filter(AthleteProfile.trainer_id == trainer.id)
        .group_by(AthleteProfile.id, User.first_name, User.last_name)
        .all()
    )

    athletes = {}
    for athlete_id, first_name, last_name, total, completed, skipped, last_done, active_days in rows:
        athletes[athlete_id] = {
            "athlete_id": athlete_id,
            "name": f"{first_name} {last_name}",
            "total_workouts": total,
            "completed_workouts": completed,
            "pending_workouts": total - completed - skipped,
            "skipped_workouts": skipped,
            "completion_rate": _rate(completed, total, 2),
            "last_workout_date": last_done.isoformat() if last_done else None,
            "active_days": active_days,
            "progress": {},
        }

    recorded_since = utcnow() - timedelta(days=progress_days)
    progress = (
        db.query(
            ProgressRecord.athlete_id,
            ProgressRecord.record_type,
            func.count(ProgressRecord.id),
            func.min(ProgressRecord.recorded_at),
            func.max(ProgressRecord.recorded_at),
        )
        .join(AthleteProfile, AthleteProfile.id == ProgressRecord.athlete_id)
        .filter(AthleteProfile.trainer_id == trainer.id, ProgressRecord.recorded_at >= recorded_since)
        .group_by(ProgressRecord.athlete_id, ProgressRecord.record_type)
        .all()
    )
    for athlete_id, record_type, count, first, latest in progress:
        athletes[athlete_id]["progress"][record_type] = {
            "records": count,
            "first_record": first.isoformat(),
            "latest_record": latest.isoformat(),
        }

    ranked = sorted(
        athletes.values(),
        key=lambda a: (a["completion_rate"] if a["completion_rate"] is not None else -1, a["completed_workouts"]),
        reverse=True,
    )
    return {"period": {"start": since.isoformat(), "end": today.isoformat()}, "athletes": ranked}
