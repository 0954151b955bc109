from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat

ASSIGNMENT_STATUSES = ("pending", "in_progress", "completed", "skipped")

# forward-only lifecycle; completed and skipped are terminal
ALLOWED_TRANSITIONS = {
    "pending": {"in_progress", "completed", "skipped"},
    "in_progress": {"completed", "skipped"},
    "completed": set(),
    "skipped": set(),
}


class AssignedWorkout(db.Model):
    __tablename__ = "assigned_workouts"

    id = db.Column(db.Integer, primary_key=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False)
    trainer_id = db.Column(db.Integer, db.ForeignKey("trainer_profiles.id", ondelete="CASCADE"), nullable=False)
    workout_template_id = db.Column(
        db.Integer, db.ForeignKey("workout_templates.id", ondelete="CASCADE"), nullable=False
    )
    assigned_date = db.Column(db.Date, nullable=False)
    scheduled_date = db.Column(db.Date)
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('pending','in_progress','completed','skipped')"),
        default="pending",
        nullable=False,
    )
    completed_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    trainer_feedback = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)

    athlete = db.relationship("AthleteProfile", back_populates="assigned_workouts")
    trainer = db.relationship("TrainerProfile", back_populates="assigned_workouts")
    template = db.relationship("WorkoutTemplate")
    logs = db.relationship("WorkoutLog", back_populates="assigned_workout", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("idx_assigned_workouts_athlete", "athlete_id"),
        db.Index("idx_assigned_workouts_date", "scheduled_date"),
    )

    def can_transition_to(self, status):
        return status in ALLOWED_TRANSITIONS.get(self.status, set())

    def to_dict(self, include_logs=False):
        data = {
            "id": self.id,
            "athlete_id": self.athlete_id,
            "athlete_name": self.athlete.user.full_name if self.athlete else None,
            "trainer_id": self.trainer_id,
            "trainer_name": self.trainer.user.full_name if self.trainer else None,
            "workout_template_id": self.workout_template_id,
            "workout_name": self.template.name if self.template else None,
            "duration_minutes": self.template.duration_minutes if self.template else None,
            "difficulty_level": self.template.difficulty_level if self.template else None,
            "assigned_date": isoformat(self.assigned_date),
            "scheduled_date": isoformat(self.scheduled_date),
            "status": self.status,
            "completed_at": isoformat(self.completed_at),
            "notes": self.notes,
            "trainer_feedback": self.trainer_feedback,
        }
        if include_logs:
            data["logs"] = [log.to_dict() for log in self.logs]
        return data
