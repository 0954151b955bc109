import logging
import secrets

from flask import current_app
from sqlalchemy import func
from sqlalchemy.orm import Session

from fitcoach.errors import AuthError, ConflictError, ValidationError, DUPLICATE_EMAIL
from fitcoach.models import (
    User, TrainerProfile, AthleteProfile, NutritionistProfile, PasswordResetToken, ROLES
)
from fitcoach.services.email import EmailService
from fitcoach.utils.dates import utcnow

PASSWORD_MIN_LENGTH = 8

PROFILE_FIELDS = {
    "trainer": ("certification", "specialization", "years_experience", "bio"),
    "nutritionist": ("certification", "specialization", "years_experience", "bio"),
    "athlete": (
        "birth_date", "gender", "height", "weight", "fitness_level", "goals",
        "medical_conditions", "emergency_contact_name", "emergency_contact_phone",
    ),
}
USER_FIELDS = ("first_name", "last_name", "phone")


def normalize_email(email):
    return (email or "").strip().lower()


def validate_password(password):
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(errors={"password": [f"Password must be at least {PASSWORD_MIN_LENGTH} characters"]})


def find_by_email(db: Session, email):
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def new_profile(role):
    """Empty profile row for the given role tag."""
    if role == "trainer":
        return TrainerProfile(max_athletes=10, subscription_plan="basic", subscription_status="active", athlete_count=0)
    if role == "athlete":
        return AthleteProfile()
    if role == "nutritionist":
        return NutritionistProfile(max_clients=15, subscription_plan="basic", subscription_status="active", client_count=0)
    raise ValidationError(errors={"role": [f"Must be one of: {', '.join(ROLES)}"]})


def register(db: Session, email, password, first_name, last_name, role, phone=None, mailer=None):
    email = normalize_email(email)
    validate_password(password)
    profile = new_profile(role)

    if find_by_email(db, email):
        raise ConflictError("User already exists with this email", code=DUPLICATE_EMAIL)

    user = User(
        email=email,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=role,
        phone=phone,
        is_active=True,
    )
    user.set_password(password)
    # profile rides on the same flush as the user
    profile.user = user
    db.add(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logging.info(f"Registered {role} user {user.id}")
    (mailer or EmailService.from_current_app()).send_welcome(user.email, user.full_name, role)
    return user


def authenticate(db: Session, email, password):
    user = find_by_email(db, email)
    if user is None or not user.is_active or not user.check_password(password or ""):
        raise AuthError()
    return user


def change_password(db: Session, user, old_password, new_password):
    if not user.check_password(old_password or ""):
        raise AuthError("Current password is incorrect")
    validate_password(new_password)
    user.set_password(new_password)
    db.commit()
    logging.info(f"Password changed for user {user.id}")


def get_profile(user):
    """User fields plus the role profile matching ``user.role``."""
    return user.to_dict(include_profile=True)


def update_profile(db: Session, user, data):
    for field in USER_FIELDS:
        if field in data and data[field] is not None:
            setattr(user, field, data[field])

    profile = user.profile
    for field in PROFILE_FIELDS[user.role]:
        if field in data:
            setattr(profile, field, data[field])
    db.commit()
    return user


def set_avatar(db: Session, user, image_url):
    user.profile_image = image_url
    db.commit()
    return user


# Password reset

def forgot_password(db: Session, email, mailer=None):
    """Always succeeds from the caller's point of view."""
    user = find_by_email(db, email)
    if user is None or not user.is_active:
        logging.info("Password reset requested for unknown or inactive email")
        return None

    db.query(PasswordResetToken).filter(
        PasswordResetToken.user_id == user.id, PasswordResetToken.used_at.is_(None)
    ).delete(synchronize_session=False)

    reset = PasswordResetToken(
        user_id=user.id,
        token=secrets.token_hex(32),
        expires_at=utcnow() + current_app.config["PASSWORD_RESET_EXPIRES"],
    )
    db.add(reset)
    db.commit()

    frontend = current_app.config["FRONTEND_URL"].rstrip("/")
    reset_url = f"{frontend}/reset-password?token={reset.token}"
    (mailer or EmailService.from_current_app()).send_password_reset(user.email, user.full_name, reset_url)
    return reset


def _valid_token(db: Session, token):
    reset = db.query(PasswordResetToken).filter_by(token=token).first()
    if reset is None or not reset.is_valid():
        raise ValidationError("Invalid or expired reset token", code="INVALID_RESET_TOKEN")
    return reset


def validate_reset_token(db: Session, token):
    reset = _valid_token(db, token)
    return {"valid": True, "email": reset.user.email, "expires_at": reset.expires_at.isoformat()}


def reset_password(db: Session, token, new_password):
    reset = _valid_token(db, token)
    validate_password(new_password)

    user = reset.user
    user.set_password(new_password)
    reset.used_at = utcnow()
    db.query(PasswordResetToken).filter(
        PasswordResetToken.user_id == user.id, PasswordResetToken.id != reset.id
    ).delete(synchronize_session=False)
    db.commit()
    logging.info(f"Password reset completed for user {user.id}")
    return user
