from datetime import date, datetime, timedelta

import pytest

from fitcoach.errors import (
    ConflictError, NotFoundError, ValidationError,
    ALREADY_COMPLETED, INVALID_TRANSITION, NOT_ASSIGNED_TO_TRAINER,
)
from fitcoach.models import AssignedWorkout, Notification, WorkoutLog, WorkoutTemplate
from fitcoach.services import relationships, workouts

from .conftest import RecordingMailer


def _template(db, trainer, exercises, /, **overrides):
    data = {
        "name": "Full body",
        "difficulty_level": "beginner",
        "duration_minutes": 45,
        "is_public": False,
        "exercises": [{"exercise_id": e.id, "sets": 3, "reps": "10"} for e in exercises],
    }
    data.update(overrides)
    return workouts.create_template(db, trainer.trainer_profile, data)


@pytest.fixture
def roster(db, trainer, athlete):
    relationships.assign_athlete_to_trainer(db, athlete.athlete_profile.id, trainer.trainer_profile.id)
    return trainer, athlete


def _assign(db, trainer, athlete, template, scheduled_date=None):
    return workouts.assign_workout(
        db, trainer.trainer_profile, athlete.athlete_profile.id, template.id,
        scheduled_date=scheduled_date, mailer=RecordingMailer(),
    )


@pytest.mark.parametrize("today, dates, expected", [
    (date(2026, 3, 18), [date(2026, 3, 18), date(2026, 3, 17), date(2026, 3, 15)], 2),
    (date(2026, 3, 18), [date(2026, 3, 17), date(2026, 3, 16)], 0),
    (date(2026, 3, 18), [], 0),
    (date(2026, 3, 1), [datetime(2026, 3, 1, 7, 30), date(2026, 2, 28), date(2026, 2, 28)], 2),
])
def test_compute_streak(today, dates, expected):
    assert workouts.compute_streak(dates, today) == expected


def test_template_order_follows_input_position(db, trainer, exercises):
    ordered = [exercises[2], exercises[0], exercises[1]]
    template = _template(db, trainer, ordered)

    rows = template.exercises
    assert [r.order_index for r in rows] == [1, 2, 3]
    assert [r.exercise_id for r in rows] == [e.id for e in ordered]


def test_template_requires_known_exercises(db, trainer, exercises):
    with pytest.raises(ValidationError):
        _template(db, trainer, [], exercises=[])
    with pytest.raises(ValidationError):
        _template(db, trainer, exercises, exercises=[{"exercise_id": 9999}])
    assert db.query(WorkoutTemplate).count() == 0


def test_template_visibility(db, make_user, exercises):
    owner, other = make_user("trainer"), make_user("trainer")
    private = _template(db, owner, exercises, name="Private")
    public = _template(db, owner, exercises, name="Public", is_public=True)

    assert {t.id for t in workouts.list_templates(db, owner)} == {private.id, public.id}
    assert [t.id for t in workouts.list_templates(db, other)] == [public.id]
    assert workouts.list_templates(db, other, my_templates=True) == []
    with pytest.raises(NotFoundError):
        workouts.get_template(db, other, private.id)


def test_assign_requires_own_athlete(db, trainer, athlete, exercises):
    template = _template(db, trainer, exercises)
    with pytest.raises(ConflictError) as exc:
        _assign(db, trainer, athlete, template)
    assert exc.value.code == NOT_ASSIGNED_TO_TRAINER


def test_assign_creates_pending_workout_and_notifies(db, roster, exercises):
    trainer, athlete = roster
    template = _template(db, trainer, exercises)
    mailer = RecordingMailer()

    assignment = workouts.assign_workout(
        db, trainer.trainer_profile, athlete.athlete_profile.id, template.id,
        scheduled_date=date(2026, 3, 20), mailer=mailer,
    )

    assert assignment.status == "pending"
    assert assignment.scheduled_date == date(2026, 3, 20)
    assert db.query(Notification).filter_by(user_id=athlete.id, type="workout").count() == 1
    assert mailer.sent[0][0] == "send_workout_assigned"


def test_completion_is_terminal(db, roster, exercises):
    trainer, athlete = roster
    template = _template(db, trainer, exercises)
    assignment = _assign(db, trainer, athlete, template)

    logs = [{"exercise_id": exercises[0].id, "sets_completed": 3, "reps_completed": "10"}]
    workouts.complete_workout(db, athlete.athlete_profile, assignment.id, exercise_logs=logs, difficulty_rating=7)
    completed_at = assignment.completed_at

    with pytest.raises(ConflictError) as exc:
        workouts.complete_workout(db, athlete.athlete_profile, assignment.id, exercise_logs=logs)

    assert exc.value.code == ALREADY_COMPLETED
    db.refresh(assignment)
    assert assignment.status == "completed"
    assert assignment.completed_at == completed_at
    assert db.query(WorkoutLog).count() == 1
    assert db.query(Notification).filter_by(user_id=trainer.id, type="workout").count() == 1


def test_transitions_are_forward_only(db, roster, exercises):
    trainer, athlete = roster
    template = _template(db, trainer, exercises)
    assignment = _assign(db, trainer, athlete, template)

    workouts.start_workout(db, athlete.athlete_profile, assignment.id)
    with pytest.raises(ConflictError) as exc:
        workouts.start_workout(db, athlete.athlete_profile, assignment.id)
    assert exc.value.code == INVALID_TRANSITION

    workouts.skip_workout(db, athlete.athlete_profile, assignment.id)
    with pytest.raises(ConflictError):
        workouts.complete_workout(db, athlete.athlete_profile, assignment.id)


def test_athlete_cannot_touch_someone_elses_workout(db, roster, exercises, make_user):
    trainer, athlete = roster
    assignment = _assign(db, trainer, athlete, _template(db, trainer, exercises))
    intruder = make_user("athlete")

    with pytest.raises(NotFoundError):
        workouts.complete_workout(db, intruder.athlete_profile, assignment.id)


def test_list_assigned_filters_and_order(db, roster, exercises):
    trainer, athlete = roster
    template = _template(db, trainer, exercises)
    early = _assign(db, trainer, athlete, template, date(2026, 3, 1))
    late = _assign(db, trainer, athlete, template, date(2026, 3, 10))
    workouts.complete_workout(db, athlete.athlete_profile, early.id)

    assert [a.id for a in workouts.list_assigned(db, athlete)] == [late.id, early.id]
    assert [a.id for a in workouts.list_assigned(db, trainer, status="completed")] == [early.id]
    assert [a.id for a in workouts.list_assigned(db, athlete, date_from=date(2026, 3, 5))] == [late.id]


def test_athlete_dashboard_streak(db, roster, exercises, today):
    trainer, athlete = roster
    template = _template(db, trainer, exercises)
    for offset in (0, 1, 3):
        assignment = _assign(db, trainer, athlete, template, today - timedelta(days=offset))
        workouts.complete_workout(db, athlete.athlete_profile, assignment.id)
    _assign(db, trainer, athlete, template, today + timedelta(days=2))

    dashboard = workouts.athlete_dashboard(db, athlete.athlete_profile, today=today)

    assert dashboard["current_streak"] == 2
    assert len(dashboard["today_workouts"]) == 1
    assert len(dashboard["upcoming_workouts"]) == 1


def test_trainer_dashboard_completion_rate(db, roster, exercises, today):
    trainer, athlete = roster
    template = _template(db, trainer, exercises)
    done = _assign(db, trainer, athlete, template, today)
    _assign(db, trainer, athlete, template, today)
    workouts.complete_workout(db, athlete.athlete_profile, done.id)

    stats = workouts.trainer_dashboard(db, trainer.trainer_profile, today=today)["stats"]
    assert stats["total_athletes"] == 1
    assert stats["completion_rate"] == 50.0
    assert db.query(AssignedWorkout).count() == 2
