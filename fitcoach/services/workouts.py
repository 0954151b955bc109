import logging
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from fitcoach.errors import (
    NotFoundError, ConflictError, ValidationError,
    ALREADY_COMPLETED, NOT_ASSIGNED_TO_TRAINER, INVALID_TRANSITION,
)
from fitcoach.models import (
    Exercise, WorkoutTemplate, WorkoutTemplateExercise, AssignedWorkout, WorkoutLog,
    AthleteProfile, ProgressRecord,
)
from fitcoach.services import notifications
from fitcoach.services.email import EmailService
from fitcoach.utils.dates import utcnow


def compute_streak(dates, today=None):
    """Consecutive calendar days, counted back from today, with a completed workout.

    `dates` may be unordered and contain duplicates or datetimes.
    """
    today = today or utcnow().date()
    days = {d.date() if isinstance(d, datetime) else d for d in dates}
    streak = 0
    current = today
    while current in days:
        streak += 1
        current -= timedelta(days=1)
    return streak


# Exercise library

def list_exercises(db: Session, trainer=None, category=None, difficulty=None, search=None):
    query = db.query(Exercise)
    if trainer is not None:
        query = query.filter(or_(Exercise.is_public.is_(True), Exercise.created_by == trainer.id))
    else:
        query = query.filter(Exercise.is_public.is_(True))
    if category:
        query = query.filter(Exercise.category == category)
    if difficulty:
        query = query.filter(Exercise.difficulty_level == difficulty)
    if search:
        query = query.filter(Exercise.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Exercise.name.asc()).all()


def create_exercise(db: Session, trainer, data):
    exercise = Exercise(created_by=trainer.id, **data)
    db.add(exercise)
    db.commit()
    return exercise


# Templates

def create_template(db: Session, trainer, data):
    items = data.get("exercises") or []
    if not items:
        raise ValidationError(errors={"exercises": ["At least one exercise is required"]})

    exercise_ids = {item["exercise_id"] for item in items}
    found = {e.id for e in db.query(Exercise.id).filter(Exercise.id.in_(exercise_ids))}
    missing = sorted(exercise_ids - found)
    if missing:
        raise ValidationError(errors={"exercises": [f"Unknown exercise ids: {missing}"]})

    template = WorkoutTemplate(
        trainer_id=trainer.id,
        name=data["name"],
        description=data.get("description"),
        difficulty_level=data["difficulty_level"],
        duration_minutes=data["duration_minutes"],
        category=data.get("category"),
        is_public=data.get("is_public", False),
    )
    for position, item in enumerate(items, start=1):
        template.exercises.append(
            WorkoutTemplateExercise(
                exercise_id=item["exercise_id"],
                sets=item.get("sets"),
                reps=item.get("reps"),
                weight=item.get("weight"),
                duration_seconds=item.get("duration_seconds"),
                rest_seconds=item.get("rest_seconds"),
                order_index=position,
                notes=item.get("notes"),
            )
        )

    db.add(template)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logging.info(f"Trainer {trainer.id} created workout template {template.id}")
    return template


def _visible_templates(db: Session, trainer=None):
    query = db.query(WorkoutTemplate)
    if trainer is not None:
        return query.filter(or_(WorkoutTemplate.is_public.is_(True), WorkoutTemplate.trainer_id == trainer.id))
    return query.filter(WorkoutTemplate.is_public.is_(True))


def list_templates(db: Session, user, category=None, difficulty=None, my_templates=False):
    trainer = user.trainer_profile if user.is_trainer else None
    query = _visible_templates(db, trainer)
    if trainer is not None and my_templates:
        query = query.filter(WorkoutTemplate.trainer_id == trainer.id)
    if category:
        query = query.filter(WorkoutTemplate.category == category)
    if difficulty:
        query = query.filter(WorkoutTemplate.difficulty_level == difficulty)
    return query.order_by(WorkoutTemplate.created_at.desc(), WorkoutTemplate.id.desc()).all()


def get_template(db: Session, user, template_id):
    trainer = user.trainer_profile if user.is_trainer else None
    template = _visible_templates(db, trainer).filter(WorkoutTemplate.id == template_id).first()
    if template is None:
        raise NotFoundError("Workout template not found")
    return template


# Assignments

def assign_workout(db: Session, trainer, athlete_id, template_id, scheduled_date=None, notes=None, mailer=None):
    athlete = db.get(AthleteProfile, athlete_id)
    if athlete is None:
        raise NotFoundError("Athlete not found")
    if athlete.trainer_id != trainer.id:
        raise ConflictError("Athlete is not assigned to you", code=NOT_ASSIGNED_TO_TRAINER)

    template = _visible_templates(db, trainer).filter(WorkoutTemplate.id == template_id).first()
    if template is None:
        raise NotFoundError("Workout template not found")

    assignment = AssignedWorkout(
        athlete_id=athlete.id,
        trainer_id=trainer.id,
        workout_template_id=template.id,
        assigned_date=utcnow().date(),
        scheduled_date=scheduled_date,
        status="pending",
        notes=notes,
    )
    db.add(assignment)
    try:
        db.flush()
        notification = notifications.build_notification(
            db,
            athlete.user_id,
            "New Workout Assigned",
            f"{trainer.user.full_name} assigned you \"{template.name}\".",
            "workout",
            sender_id=trainer.user_id,
            action_data={"assigned_workout_id": assignment.id},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    notifications.push(notification)
    (mailer or EmailService.from_current_app()).send_workout_assigned(
        athlete.user.email, athlete.user.full_name, template.name, scheduled_date
    )
    return assignment


def list_assigned(db: Session, user, status=None, date_from=None, date_to=None):
    query = db.query(AssignedWorkout)
    if user.is_trainer:
        query = query.filter(AssignedWorkout.trainer_id == user.trainer_profile.id)
    elif user.is_athlete:
        query = query.filter(AssignedWorkout.athlete_id == user.athlete_profile.id)
    else:
        return []

    if status:
        query = query.filter(AssignedWorkout.status == status)
    if date_from:
        query = query.filter(AssignedWorkout.scheduled_date >= date_from)
    if date_to:
        query = query.filter(AssignedWorkout.scheduled_date <= date_to)
    return query.order_by(AssignedWorkout.scheduled_date.desc(), AssignedWorkout.id.desc()).all()


def _athlete_assignment(db: Session, athlete, assignment_id):
    assignment = db.get(AssignedWorkout, assignment_id)
    if assignment is None or assignment.athlete_id != athlete.id:
        raise NotFoundError("Workout not found")
    return assignment


def _transition(db: Session, athlete, assignment_id, status):
    assignment = _athlete_assignment(db, athlete, assignment_id)
    if assignment.status == "completed":
        raise ConflictError("Workout already completed", code=ALREADY_COMPLETED)
    if not assignment.can_transition_to(status):
        raise ConflictError(f"Cannot move workout from {assignment.status} to {status}", code=INVALID_TRANSITION)
    assignment.status = status
    db.commit()
    return assignment


def start_workout(db: Session, athlete, assignment_id):
    return _transition(db, athlete, assignment_id, "in_progress")


def skip_workout(db: Session, athlete, assignment_id):
    return _transition(db, athlete, assignment_id, "skipped")


def complete_workout(db: Session, athlete, assignment_id, exercise_logs=None, notes=None, difficulty_rating=None):
    assignment = _athlete_assignment(db, athlete, assignment_id)
    if assignment.status == "completed":
        raise ConflictError("Workout already completed", code=ALREADY_COMPLETED)
    if not assignment.can_transition_to("completed"):
        raise ConflictError(f"Cannot complete a {assignment.status} workout", code=INVALID_TRANSITION)

    now = utcnow()
    try:
        assignment.status = "completed"
        assignment.completed_at = now
        if notes is not None:
            assignment.notes = notes
        for entry in exercise_logs or []:
            assignment.logs.append(
                WorkoutLog(
                    exercise_id=entry["exercise_id"],
                    sets_completed=entry.get("sets_completed"),
                    reps_completed=entry.get("reps_completed"),
                    weight_used=entry.get("weight_used"),
                    duration_seconds=entry.get("duration_seconds"),
                    rest_seconds=entry.get("rest_seconds"),
                    difficulty_rating=entry.get("difficulty_rating") or difficulty_rating,
                    notes=entry.get("notes"),
                    completed_at=now,
                )
            )
        notification = notifications.build_notification(
            db,
            assignment.trainer.user_id,
            "Workout Completed",
            f"{athlete.user.full_name} completed \"{assignment.template.name}\".",
            "workout",
            sender_id=athlete.user_id,
            action_data={"assigned_workout_id": assignment.id},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logging.info(f"Athlete {athlete.id} completed assignment {assignment.id}")
    notifications.push(notification)
    return assignment


def add_feedback(db: Session, trainer, assignment_id, feedback):
    assignment = db.get(AssignedWorkout, assignment_id)
    if assignment is None or assignment.trainer_id != trainer.id:
        raise NotFoundError("Workout not found")
    assignment.trainer_feedback = feedback
    notification = notifications.build_notification(
        db,
        assignment.athlete.user_id,
        "Trainer Feedback",
        f"{trainer.user.full_name} left feedback on \"{assignment.template.name}\".",
        "workout",
        sender_id=trainer.user_id,
    )
    db.commit()
    notifications.push(notification)
    return assignment


# Dashboards

def _week_bounds(today):
    start = today - timedelta(days=today.weekday())
    return start, start + timedelta(days=6)


def completed_dates(db: Session, athlete):
    rows = (
        db.query(AssignedWorkout.scheduled_date, AssignedWorkout.completed_at)
        .filter(AssignedWorkout.athlete_id == athlete.id, AssignedWorkout.status == "completed")
        .all()
    )
    return [scheduled or completed_at.date() for scheduled, completed_at in rows if scheduled or completed_at]


def athlete_dashboard(db: Session, athlete, today=None):
    today = today or utcnow().date()
    week_start, week_end = _week_bounds(today)
    mine = db.query(AssignedWorkout).filter(AssignedWorkout.athlete_id == athlete.id)

    todays = mine.filter(AssignedWorkout.scheduled_date == today).all()
    week = mine.filter(AssignedWorkout.scheduled_date.between(week_start, week_end))
    upcoming = (
        mine.filter(
            AssignedWorkout.scheduled_date > today,
            AssignedWorkout.scheduled_date <= today + timedelta(days=7),
            AssignedWorkout.status.in_(("pending", "in_progress")),
        )
        .order_by(AssignedWorkout.scheduled_date.asc())
        .all()
    )
    recent_progress = (
        db.query(ProgressRecord)
        .filter(ProgressRecord.athlete_id == athlete.id)
        .order_by(ProgressRecord.recorded_at.desc())
        .limit(5)
        .all()
    )
    return {
        "today_workouts": [w.to_dict() for w in todays],
        "week_stats": {
            "total_workouts": week.count(),
            "completed_workouts": week.filter(AssignedWorkout.status == "completed").count(),
            "pending_workouts": week.filter(AssignedWorkout.status == "pending").count(),
        },
        "current_streak": compute_streak(completed_dates(db, athlete), today),
        "upcoming_workouts": [w.to_dict() for w in upcoming],
        "recent_progress": [p.to_dict() for p in recent_progress],
    }


def trainer_dashboard(db: Session, trainer, today=None):
    today = today or utcnow().date()
    week_start, week_end = _week_bounds(today)
    mine = db.query(AssignedWorkout).filter(AssignedWorkout.trainer_id == trainer.id)
    week = mine.filter(AssignedWorkout.scheduled_date.between(week_start, week_end))

    week_total = week.count()
    week_completed = week.filter(AssignedWorkout.status == "completed").count()
    recent = (
        mine.filter(AssignedWorkout.status == "completed")
        .order_by(AssignedWorkout.completed_at.desc())
        .limit(10)
        .all()
    )
    upcoming = (
        mine.filter(
            AssignedWorkout.scheduled_date >= today,
            AssignedWorkout.scheduled_date <= today + timedelta(days=7),
            AssignedWorkout.status == "pending",
        )
        .order_by(AssignedWorkout.scheduled_date.asc())
        .all()
    )
    return {
        "stats": {
            "total_athletes": db.query(AthleteProfile).filter(AthleteProfile.trainer_id == trainer.id).count(),
            "max_athletes": trainer.max_athletes,
            "workouts_this_week": week_total,
            "completed_this_week": week_completed,
            "completion_rate": round(week_completed / week_total * 100, 1) if week_total else 0,
            "total_templates": trainer.templates.count(),
        },
        "recent_activity": [w.to_dict() for w in recent],
        "upcoming_workouts": [w.to_dict() for w in upcoming],
    }
