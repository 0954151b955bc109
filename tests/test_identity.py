import pytest

from fitcoach.errors import AuthError, ConflictError, ValidationError, DUPLICATE_EMAIL, INVALID_CREDENTIALS
from fitcoach.models import User, TrainerProfile, AthleteProfile, NutritionistProfile, PasswordResetToken
from fitcoach.services import identity

from .conftest import RecordingMailer


def test_register_trainer_creates_profile_with_default_capacity(db):
    mailer = RecordingMailer()
    user = identity.register(db, "Coach@Example.com", "Password123", "Ana", "Silva", "trainer", mailer=mailer)

    assert user.email == "coach@example.com"
    assert user.trainer_profile.max_athletes == 10
    assert user.trainer_profile.subscription_status == "active"
    assert user.trainer_profile.subscription_plan == "basic"
    assert [name for name, _, _ in mailer.sent] == ["send_welcome"]


def test_register_duplicate_email_is_case_insensitive(db, make_user):
    make_user("athlete", email="dup@example.com")

    with pytest.raises(ConflictError) as exc:
        identity.register(db, "DUP@example.com", "Password123", "Other", "User", "trainer")
    assert exc.value.code == DUPLICATE_EMAIL
    assert db.query(User).count() == 1


@pytest.mark.parametrize("role", ["trainer", "athlete", "nutritionist"])
def test_every_user_has_exactly_one_matching_profile(db, make_user, role):
    user = make_user(role)

    counts = {
        "trainer": db.query(TrainerProfile).filter_by(user_id=user.id).count(),
        "athlete": db.query(AthleteProfile).filter_by(user_id=user.id).count(),
        "nutritionist": db.query(NutritionistProfile).filter_by(user_id=user.id).count(),
    }
    assert counts == {r: int(r == role) for r in counts}
    assert user.profile is not None


def test_get_profile_returns_the_role_profile(athlete, nutritionist):
    athlete_view = identity.get_profile(athlete)
    nutritionist_view = identity.get_profile(nutritionist)

    assert athlete_view["role"] == "athlete"
    assert athlete_view["profile"]["id"] == athlete.athlete_profile.id
    assert nutritionist_view["profile"]["max_clients"] == 15


def test_register_rejects_short_password_and_unknown_role(db):
    with pytest.raises(ValidationError):
        identity.register(db, "short@example.com", "abc", "A", "B", "athlete")
    with pytest.raises(ValidationError):
        identity.register(db, "admin@example.com", "Password123", "A", "B", "admin")
    assert db.query(User).count() == 0


def test_authenticate_uses_one_message_for_every_failure(db, make_user):
    user = make_user("athlete", email="login@example.com")

    with pytest.raises(AuthError) as wrong_password:
        identity.authenticate(db, "login@example.com", "not-the-password")
    with pytest.raises(AuthError) as unknown_email:
        identity.authenticate(db, "nobody@example.com", "Password123")

    user.is_active = False
    db.commit()
    with pytest.raises(AuthError) as inactive:
        identity.authenticate(db, "login@example.com", "Password123")

    errors = [wrong_password.value, unknown_email.value, inactive.value]
    assert {e.message for e in errors} == {"Invalid email or password"}
    assert {e.code for e in errors} == {INVALID_CREDENTIALS}


def test_change_password_requires_current_password(db, athlete):
    with pytest.raises(AuthError):
        identity.change_password(db, athlete, "wrong", "NewPassword123")

    identity.change_password(db, athlete, "Password123", "NewPassword123")
    assert identity.authenticate(db, athlete.email, "NewPassword123") is athlete


def test_update_profile_only_touches_fields_for_the_role(db, trainer):
    identity.update_profile(db, trainer, {"bio": "Strength coach", "first_name": "Bruno", "weight": 80})

    assert trainer.first_name == "Bruno"
    assert trainer.trainer_profile.bio == "Strength coach"
    assert not hasattr(trainer.trainer_profile, "weight")


def test_password_reset_flow(app, db, athlete):
    mailer = RecordingMailer()
    reset = identity.forgot_password(db, athlete.email, mailer=mailer)

    assert len(reset.token) == 64
    name, args, _ = mailer.sent[0]
    assert name == "send_password_reset"
    assert args[2].endswith(f"/reset-password?token={reset.token}")

    assert identity.validate_reset_token(db, reset.token)["email"] == athlete.email

    identity.reset_password(db, reset.token, "BrandNew123")
    assert identity.authenticate(db, athlete.email, "BrandNew123") is athlete

    with pytest.raises(ValidationError):
        identity.reset_password(db, reset.token, "Another123")


def test_forgot_password_for_unknown_email_is_silent(db):
    assert identity.forgot_password(db, "ghost@example.com", mailer=RecordingMailer()) is None
    assert db.query(PasswordResetToken).count() == 0
