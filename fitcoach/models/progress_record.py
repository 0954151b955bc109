from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat

RECORD_TYPES = ("weight", "body_fat", "muscle_mass", "measurements", "photos")


class ProgressRecord(db.Model):
    """Append-only; rows are never updated once written."""

    __tablename__ = "progress_records"

    id = db.Column(db.Integer, primary_key=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False)
    record_type = db.Column(
        db.String(20),
        db.CheckConstraint("record_type IN ('weight','body_fat','muscle_mass','measurements','photos')"),
        nullable=False,
    )
    value = db.Column(db.Float)
    unit = db.Column(db.String(20))
    body_part = db.Column(db.String(50))
    image_url = db.Column(db.String(255))
    notes = db.Column(db.Text)
    recorded_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    athlete = db.relationship("AthleteProfile", back_populates="progress_records")

    __table_args__ = (
        db.Index("idx_progress_athlete_date", "athlete_id", "recorded_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "athlete_id": self.athlete_id,
            "record_type": self.record_type,
            "value": self.value,
            "unit": self.unit,
            "body_part": self.body_part,
            "image_url": self.image_url,
            "notes": self.notes,
            "recorded_at": isoformat(self.recorded_at),
        }
