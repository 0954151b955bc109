from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat


class WorkoutTemplate(db.Model):
    __tablename__ = "workout_templates"

    id = db.Column(db.Integer, primary_key=True)
    trainer_id = db.Column(db.Integer, db.ForeignKey("trainer_profiles.id", ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    difficulty_level = db.Column(
        db.String(20),
        db.CheckConstraint("difficulty_level IN ('beginner','intermediate','advanced')"),
        nullable=False,
    )
    duration_minutes = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(50))
    is_public = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    trainer = db.relationship("TrainerProfile", back_populates="templates")
    exercises = db.relationship(
        "WorkoutTemplateExercise",
        back_populates="template",
        order_by="WorkoutTemplateExercise.order_index",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.Index("idx_workout_templates_trainer", "trainer_id"),
    )

    def to_dict(self, include_exercises=False):
        data = {
            "id": self.id,
            "trainer_id": self.trainer_id,
            "trainer_name": self.trainer.user.full_name if self.trainer else None,
            "name": self.name,
            "description": self.description,
            "difficulty_level": self.difficulty_level,
            "duration_minutes": self.duration_minutes,
            "category": self.category,
            "is_public": self.is_public,
            "exercise_count": len(self.exercises),
            "created_at": isoformat(self.created_at),
        }
        if include_exercises:
            data["exercises"] = [item.to_dict() for item in self.exercises]
        return data


class WorkoutTemplateExercise(db.Model):
    __tablename__ = "workout_template_exercises"

    id = db.Column(db.Integer, primary_key=True)
    workout_template_id = db.Column(
        db.Integer, db.ForeignKey("workout_templates.id", ondelete="CASCADE"), nullable=False
    )
    exercise_id = db.Column(db.Integer, db.ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False)
    sets = db.Column(db.Integer)
    reps = db.Column(db.String(50))
    weight = db.Column(db.String(50))
    duration_seconds = db.Column(db.Integer)
    rest_seconds = db.Column(db.Integer)
    order_index = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text)

    template = db.relationship("WorkoutTemplate", back_populates="exercises")
    exercise = db.relationship("Exercise")

    __table_args__ = (
        db.UniqueConstraint("workout_template_id", "order_index", name="uq_template_exercise_order"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "exercise_id": self.exercise_id,
            "exercise_name": self.exercise.name if self.exercise else None,
            "category": self.exercise.category if self.exercise else None,
            "sets": self.sets,
            "reps": self.reps,
            "weight": self.weight,
            "duration_seconds": self.duration_seconds,
            "rest_seconds": self.rest_seconds,
            "order_index": self.order_index,
            "notes": self.notes,
        }
