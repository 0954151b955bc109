import threading

import pytest

from fitcoach import create_app
from fitcoach.config import config, TestingConfig
from fitcoach.errors import ConflictError, NotFoundError, ALREADY_ASSIGNED, CAPACITY_EXCEEDED
from fitcoach.models import Notification, TrainerProfile, UNLIMITED
from fitcoach.extensions import db as _db
from fitcoach.services import identity, relationships

from .conftest import RecordingMailer


def _assign(db, athlete_user, trainer_user):
    return relationships.assign_athlete_to_trainer(
        db, athlete_user.athlete_profile.id, trainer_user.trainer_profile.id
    )


def test_assign_links_athlete_and_notifies(db, trainer, athlete):
    _assign(db, athlete, trainer)

    assert athlete.athlete_profile.trainer_id == trainer.trainer_profile.id
    assert trainer.trainer_profile.athlete_count == 1
    notification = db.query(Notification).filter_by(user_id=athlete.id).one()
    assert notification.title == "New Trainer Assignment"


def test_capacity_is_enforced_at_the_boundary(db, make_user, trainer):
    trainer.trainer_profile.max_athletes = 2
    db.commit()
    athletes = [make_user("athlete") for _ in range(3)]

    _assign(db, athletes[0], trainer)
    _assign(db, athletes[1], trainer)
    with pytest.raises(ConflictError) as exc:
        _assign(db, athletes[2], trainer)

    assert exc.value.code == CAPACITY_EXCEEDED
    assert athletes[2].athlete_profile.trainer_id is None
    assert relationships.roster_size(db, trainer.trainer_profile) == 2
    assert trainer.trainer_profile.athlete_count == 2


def test_unlimited_plan_has_no_cap(db, make_user, trainer):
    trainer.trainer_profile.max_athletes = UNLIMITED
    trainer.trainer_profile.athlete_count = 500
    db.commit()

    _assign(db, make_user("athlete"), trainer)
    assert relationships.roster_size(db, trainer.trainer_profile) == 1


def test_assigning_twice_to_same_trainer_conflicts(db, trainer, athlete):
    _assign(db, athlete, trainer)
    with pytest.raises(ConflictError) as exc:
        _assign(db, athlete, trainer)
    assert exc.value.code == ALREADY_ASSIGNED
    assert trainer.trainer_profile.athlete_count == 1


def test_switching_trainer_frees_previous_slot(db, make_user, athlete):
    first, second = make_user("trainer"), make_user("trainer")
    _assign(db, athlete, first)
    _assign(db, athlete, second)

    db.refresh(first.trainer_profile)
    assert first.trainer_profile.athlete_count == 0
    assert second.trainer_profile.athlete_count == 1
    assert athlete.athlete_profile.trainer_id == second.trainer_profile.id


def test_invite_by_email(db, trainer, make_user):
    athlete = make_user("athlete", email="invitee@example.com")
    relationships.invite_athlete(db, trainer.trainer_profile, "Invitee@Example.com ")
    assert athlete.athlete_profile.trainer_id == trainer.trainer_profile.id

    with pytest.raises(NotFoundError):
        relationships.invite_athlete(db, trainer.trainer_profile, "nobody@example.com")


def test_release_athlete(db, trainer, athlete, make_user):
    _assign(db, athlete, trainer)
    relationships.release_athlete(db, trainer.trainer_profile, athlete.athlete_profile.id)

    assert athlete.athlete_profile.trainer_id is None
    assert trainer.trainer_profile.athlete_count == 0

    stranger = make_user("athlete")
    with pytest.raises(NotFoundError):
        relationships.release_athlete(db, trainer.trainer_profile, stranger.athlete_profile.id)


def test_roster_search_and_order(db, trainer, make_user):
    for first_name in ("Carla", "Ana", "Bruno"):
        _assign(db, make_user("athlete", first_name=first_name), trainer)

    result = relationships.list_trainer_athletes(db, trainer.trainer_profile)
    assert [a["first_name"] for a in result["athletes"]] == ["Ana", "Bruno", "Carla"]
    assert result["pagination"]["total"] == 3

    filtered = relationships.list_trainer_athletes(db, trainer.trainer_profile, search="bru")
    assert [a["first_name"] for a in filtered["athletes"]] == ["Bruno"]

    page = relationships.list_trainer_athletes(db, trainer.trainer_profile, page=2, limit=2)
    assert [a["first_name"] for a in page["athletes"]] == ["Carla"]


def test_trainer_cannot_read_foreign_athlete(db, make_user, athlete):
    owner, other = make_user("trainer"), make_user("trainer")
    _assign(db, athlete, owner)

    detail = relationships.get_trainer_athlete(db, owner.trainer_profile, athlete.athlete_profile.id)
    assert detail["email"] == athlete.email
    with pytest.raises(NotFoundError):
        relationships.get_trainer_athlete(db, other.trainer_profile, athlete.athlete_profile.id)


def test_nutritionist_capacity(db, nutritionist, make_user):
    nutritionist.nutritionist_profile.max_clients = 1
    db.commit()
    first, second = make_user("athlete"), make_user("athlete")

    relationships.assign_nutritionist_to_athlete(db, first.athlete_profile.id, nutritionist.id)
    assert first.athlete_profile.nutritionist_id == nutritionist.id

    with pytest.raises(ConflictError) as exc:
        relationships.assign_nutritionist_to_athlete(db, second.athlete_profile.id, nutritionist.id)
    assert exc.value.code == CAPACITY_EXCEEDED
    assert second.athlete_profile.nutritionist_id is None


def test_deleting_an_athlete_frees_coach_seats(db, trainer, athlete, nutritionist):
    _assign(db, athlete, trainer)
    relationships.assign_nutritionist_to_athlete(db, athlete.athlete_profile.id, nutritionist.id)

    db.delete(athlete)
    db.commit()

    db.refresh(trainer.trainer_profile)
    db.refresh(nutritionist.nutritionist_profile)
    assert trainer.trainer_profile.athlete_count == 0
    assert nutritionist.nutritionist_profile.client_count == 0


@pytest.fixture
def file_app(tmp_path, monkeypatch):
    """App on a file-backed SQLite database so worker threads share one store."""
    class FileDatabaseConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'roster.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30}}

    monkeypatch.setitem(config, "file_testing", FileDatabaseConfig)
    app = create_app("file_testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


def _link_concurrently(app, trainer_id, athlete_ids):
    _db.session.close()
    barrier = threading.Barrier(len(athlete_ids))
    results = []
    lock = threading.Lock()

    def worker(athlete_id):
        with app.app_context():
            barrier.wait()
            try:
                relationships.assign_athlete_to_trainer(_db.session, athlete_id, trainer_id)
                outcome = "ok"
            except ConflictError as e:
                outcome = e.code
            finally:
                _db.session.remove()
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker, args=(athlete_id,)) for athlete_id in athlete_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results


def _register(role, n):
    return identity.register(
        _db.session, f"{role}{n}@example.com", "Password123", f"{role.title()}{n}", "Racer", role,
        mailer=RecordingMailer(),
    )


def test_last_seat_goes_to_exactly_one_concurrent_request(file_app):
    trainer = _register("trainer", 0).trainer_profile
    trainer.max_athletes = 1
    _db.session.commit()
    trainer_id = trainer.id
    athlete_ids = [_register("athlete", n).athlete_profile.id for n in range(8)]

    results = _link_concurrently(file_app, trainer_id, athlete_ids)

    assert sorted(results) == [CAPACITY_EXCEEDED] * 7 + ["ok"]
    _db.session.expire_all()
    trainer = _db.session.get(TrainerProfile, trainer_id)
    assert relationships.roster_size(_db.session, trainer) == 1
    assert trainer.athlete_count == 1


def test_same_athlete_linked_concurrently_takes_one_seat(file_app):
    trainer_id = _register("trainer", 0).trainer_profile.id
    athlete_id = _register("athlete", 0).athlete_profile.id

    results = _link_concurrently(file_app, trainer_id, [athlete_id] * 8)

    assert sorted(results) == [ALREADY_ASSIGNED] * 7 + ["ok"]
    _db.session.expire_all()
    trainer = _db.session.get(TrainerProfile, trainer_id)
    assert relationships.roster_size(_db.session, trainer) == 1
    assert trainer.athlete_count == 1


def test_full_roster_reports_no_capacity(db, trainer, athlete):
    trainer.trainer_profile.max_athletes = 1
    db.commit()
    assert trainer.trainer_profile.to_dict()["has_capacity"] is True

    _assign(db, athlete, trainer)

    profile = trainer.trainer_profile.to_dict()
    assert profile["has_capacity"] is False
    assert profile["is_unlimited"] is False
