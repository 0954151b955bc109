from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat


class Exercise(db.Model):
    __tablename__ = "exercises"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    muscle_groups = db.Column(db.JSON, default=list)
    equipment = db.Column(db.String(150))
    instructions = db.Column(db.Text)
    video_url = db.Column(db.String(255))
    image_url = db.Column(db.String(255))
    difficulty_level = db.Column(
        db.String(20),
        db.CheckConstraint("difficulty_level IN ('beginner','intermediate','advanced')"),
    )
    created_by = db.Column(db.Integer, db.ForeignKey("trainer_profiles.id", ondelete="SET NULL"))
    is_public = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.Index("idx_exercises_category", "category"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "muscle_groups": self.muscle_groups or [],
            "equipment": self.equipment,
            "instructions": self.instructions,
            "video_url": self.video_url,
            "image_url": self.image_url,
            "difficulty_level": self.difficulty_level,
            "created_by": self.created_by,
            "is_public": self.is_public,
            "created_at": isoformat(self.created_at),
        }
