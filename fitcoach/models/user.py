from werkzeug.security import generate_password_hash, check_password_hash

from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat

USERS_TABLE = "users"

ROLES = ("trainer", "athlete", "nutritionist")


class User(db.Model):
    __tablename__ = USERS_TABLE

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    role = db.Column(
        db.String(20),
        db.CheckConstraint("role IN ('trainer','athlete','nutritionist')"),
        nullable=False,
    )
    phone = db.Column(db.String(30))
    profile_image = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    email_verified = db.Column(db.Boolean, default=False, nullable=False)
    stripe_customer_id = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # exactly one of these is populated, selected by `role`
    trainer_profile = db.relationship(
        "TrainerProfile", uselist=False, back_populates="user", cascade="all, delete-orphan"
    )
    athlete_profile = db.relationship(
        "AthleteProfile",
        uselist=False,
        foreign_keys="AthleteProfile.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    nutritionist_profile = db.relationship(
        "NutritionistProfile", uselist=False, back_populates="user", cascade="all, delete-orphan"
    )

    subscriptions = db.relationship("Subscription", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    notifications = db.relationship(
        "Notification",
        foreign_keys="[Notification.user_id]",
        back_populates="user",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )
    sent_messages = db.relationship(
        "Message", foreign_keys="[Message.sender_id]", back_populates="sender", lazy="dynamic", cascade="all, delete-orphan"
    )
    received_messages = db.relationship(
        "Message", foreign_keys="[Message.recipient_id]", back_populates="recipient", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_users_email", "email"),
        db.Index("idx_users_role", "role"),
    )

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def is_trainer(self):
        return self.role == "trainer"

    @property
    def is_athlete(self):
        return self.role == "athlete"

    @property
    def is_nutritionist(self):
        return self.role == "nutritionist"

    @property
    def profile(self):
        if self.role == "trainer":
            return self.trainer_profile
        if self.role == "athlete":
            return self.athlete_profile
        if self.role == "nutritionist":
            return self.nutritionist_profile
        raise ValueError(f"Unknown role: {self.role}")

    def to_dict(self, include_profile=False):
        data = {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "phone": self.phone,
            "profile_image": self.profile_image,
            "is_active": self.is_active,
            "email_verified": self.email_verified,
            "created_at": isoformat(self.created_at),
        }
        if include_profile:
            profile = self.profile
            data["profile"] = profile.to_dict() if profile else None
        return data

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.role})>"
