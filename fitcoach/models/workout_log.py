from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat


class WorkoutLog(db.Model):
    __tablename__ = "workout_logs"

    id = db.Column(db.Integer, primary_key=True)
    assigned_workout_id = db.Column(
        db.Integer, db.ForeignKey("assigned_workouts.id", ondelete="CASCADE"), nullable=False
    )
    exercise_id = db.Column(db.Integer, db.ForeignKey("exercises.id"), nullable=False)
    sets_completed = db.Column(db.Integer)
    reps_completed = db.Column(db.String(50))
    weight_used = db.Column(db.String(50))
    duration_seconds = db.Column(db.Integer)
    rest_seconds = db.Column(db.Integer)
    difficulty_rating = db.Column(db.Integer, db.CheckConstraint("difficulty_rating BETWEEN 1 AND 10"))
    notes = db.Column(db.Text)
    completed_at = db.Column(db.DateTime, default=utcnow)

    assigned_workout = db.relationship("AssignedWorkout", back_populates="logs")
    exercise = db.relationship("Exercise")

    def to_dict(self):
        return {
            "id": self.id,
            "exercise_id": self.exercise_id,
            "exercise_name": self.exercise.name if self.exercise else None,
            "sets_completed": self.sets_completed,
            "reps_completed": self.reps_completed,
            "weight_used": self.weight_used,
            "duration_seconds": self.duration_seconds,
            "rest_seconds": self.rest_seconds,
            "difficulty_rating": self.difficulty_rating,
            "notes": self.notes,
            "completed_at": isoformat(self.completed_at),
        }
