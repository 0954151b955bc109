"""Trainer and nutritionist links on athlete profiles.

Capacity is enforced with a conditional counter update on the coach's
profile row. The UPDATE only matches while there is room, and the row write
serializes concurrent linkers, so two requests racing for the last slot
cannot both succeed. The link column itself is changed with a compare-and-set,
so a second request linking the same athlete never claims a second seat.
"""
import logging

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from fitcoach.errors import (
    NotFoundError, ConflictError, ALREADY_ASSIGNED, CAPACITY_EXCEEDED
)
from fitcoach.models import (
    User, TrainerProfile, AthleteProfile, NutritionistProfile, AssignedWorkout, ProgressRecord, UNLIMITED
)
from fitcoach.services import notifications


def _claim_slot(db: Session, model, profile_id, count_column, max_column):
    result = db.execute(
        update(model)
        .where(model.id == profile_id)
        .where(or_(max_column == UNLIMITED, count_column < max_column))
        .values({count_column: count_column + 1})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _release_slot(db: Session, model, profile_id, count_column):
    db.execute(
        update(model)
        .where(model.id == profile_id, count_column > 0)
        .values({count_column: count_column - 1})
        .execution_options(synchronize_session=False)
    )


def _swap_link(db: Session, athlete_id, column, expected, new_value):
    """Compare-and-set on one of the athlete's coach columns; False when another request moved it first."""
    current = column.is_(None) if expected is None else column == expected
    result = db.execute(
        update(AthleteProfile)
        .where(AthleteProfile.id == athlete_id, current)
        .values({column: new_value})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _get_athlete(db: Session, athlete_id):
    athlete = db.get(AthleteProfile, athlete_id)
    if athlete is None:
        raise NotFoundError("Athlete not found")
    return athlete


def assign_athlete_to_trainer(db: Session, athlete_id, trainer_id):
    athlete = _get_athlete(db, athlete_id)
    trainer = db.get(TrainerProfile, trainer_id)
    if trainer is None:
        raise NotFoundError("Trainer not found")
    previous_trainer_id = athlete.trainer_id
    if previous_trainer_id == trainer.id:
        raise ConflictError("Athlete is already assigned to you", code=ALREADY_ASSIGNED)

    try:
        if not _swap_link(db, athlete.id, AthleteProfile.trainer_id, previous_trainer_id, trainer.id):
            raise ConflictError("Athlete assignment changed, reload and try again", code=ALREADY_ASSIGNED)
        if not _claim_slot(db, TrainerProfile, trainer.id, TrainerProfile.athlete_count, TrainerProfile.max_athletes):
            raise ConflictError(
                f"Athlete limit reached ({trainer.max_athletes}). Upgrade your plan to add more athletes.",
                code=CAPACITY_EXCEEDED,
            )
        if previous_trainer_id is not None:
            _release_slot(db, TrainerProfile, previous_trainer_id, TrainerProfile.athlete_count)

        notification = notifications.build_notification(
            db,
            athlete.user_id,
            "New Trainer Assignment",
            f"{trainer.user.full_name} is now your personal trainer.",
            "system",
            sender_id=trainer.user_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(trainer)
    logging.info(f"Athlete {athlete.id} assigned to trainer {trainer.id}")
    notifications.push(notification)
    return athlete


def invite_athlete(db: Session, trainer, email):
    user = db.query(User).filter(User.email == email.strip().lower(), User.role == "athlete").first()
    if user is None or user.athlete_profile is None:
        raise NotFoundError("Athlete not found with this email")
    return assign_athlete_to_trainer(db, user.athlete_profile.id, trainer.id)


def release_athlete(db: Session, trainer, athlete_id):
    athlete = db.get(AthleteProfile, athlete_id)
    if athlete is None or athlete.trainer_id != trainer.id:
        raise NotFoundError("Athlete not found")
    try:
        if not _swap_link(db, athlete.id, AthleteProfile.trainer_id, trainer.id, None):
            raise NotFoundError("Athlete not found")
        _release_slot(db, TrainerProfile, trainer.id, TrainerProfile.athlete_count)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(trainer)
    return athlete


def link_nutritionist(db: Session, athlete, nutritionist_user_id):
    """Stage the athlete to nutritionist link inside the caller's transaction."""
    nutritionist = db.query(NutritionistProfile).filter_by(user_id=nutritionist_user_id).first()
    if nutritionist is None:
        raise NotFoundError("Nutritionist not found")
    previous_user_id = athlete.nutritionist_id
    if previous_user_id == nutritionist_user_id:
        raise ConflictError("Athlete is already linked to this nutritionist", code=ALREADY_ASSIGNED)
    if not _swap_link(db, athlete.id, AthleteProfile.nutritionist_id, previous_user_id, nutritionist_user_id):
        raise ConflictError("Athlete assignment changed, reload and try again", code=ALREADY_ASSIGNED)
    if not _claim_slot(
        db, NutritionistProfile, nutritionist.id, NutritionistProfile.client_count, NutritionistProfile.max_clients
    ):
        raise ConflictError(
            f"Client limit reached ({nutritionist.max_clients}). Upgrade your plan to add more clients.",
            code=CAPACITY_EXCEEDED,
        )
    if previous_user_id is not None:
        previous = db.query(NutritionistProfile).filter_by(user_id=previous_user_id).first()
        if previous is not None:
            _release_slot(db, NutritionistProfile, previous.id, NutritionistProfile.client_count)
    return notifications.build_notification(
        db,
        athlete.user_id,
        "New Nutritionist",
        f"{nutritionist.user.full_name} is now your nutritionist.",
        "nutrition",
        sender_id=nutritionist_user_id,
    )


def assign_nutritionist_to_athlete(db: Session, athlete_id, nutritionist_user_id):
    athlete = _get_athlete(db, athlete_id)
    try:
        notification = link_nutritionist(db, athlete, nutritionist_user_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    notifications.push(notification)
    return athlete


def roster_size(db: Session, trainer):
    return db.query(AthleteProfile).filter(AthleteProfile.trainer_id == trainer.id).count()


def list_trainer_athletes(db: Session, trainer, search=None, page=1, limit=20):
    query = db.query(AthleteProfile).join(User, AthleteProfile.user_id == User.id).filter(
        AthleteProfile.trainer_id == trainer.id
    )
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(User.first_name.ilike(term), User.last_name.ilike(term), User.email.ilike(term)))

    pagination = query.order_by(User.first_name.asc(), User.last_name.asc(), AthleteProfile.id.asc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return {
        "athletes": [_athlete_summary(db, athlete) for athlete in pagination.items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": pagination.total,
            "pages": pagination.pages,
        },
    }


def _athlete_summary(db: Session, athlete):
    workouts = db.query(AssignedWorkout).filter(AssignedWorkout.athlete_id == athlete.id)
    return {
        **athlete.to_dict(),
        "first_name": athlete.user.first_name,
        "last_name": athlete.user.last_name,
        "email": athlete.user.email,
        "phone": athlete.user.phone,
        "profile_image": athlete.user.profile_image,
        "total_workouts": workouts.count(),
        "completed_workouts": workouts.filter(AssignedWorkout.status == "completed").count(),
    }


def get_trainer_athlete(db: Session, trainer, athlete_id):
    athlete = db.get(AthleteProfile, athlete_id)
    if athlete is None or athlete.trainer_id != trainer.id:
        raise NotFoundError("Athlete not found")

    recent_workouts = (
        db.query(AssignedWorkout)
        .filter(AssignedWorkout.athlete_id == athlete.id)
        .order_by(AssignedWorkout.scheduled_date.desc(), AssignedWorkout.id.desc())
        .limit(10)
        .all()
    )
    recent_progress = (
        db.query(ProgressRecord)
        .filter(ProgressRecord.athlete_id == athlete.id)
        .order_by(ProgressRecord.recorded_at.desc())
        .limit(10)
        .all()
    )
    return {
        **_athlete_summary(db, athlete),
        "recent_workouts": [w.to_dict() for w in recent_workouts],
        "recent_progress": [p.to_dict() for p in recent_progress],
    }
