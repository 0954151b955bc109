from datetime import datetime, time

from sqlalchemy.orm import Session

from fitcoach.errors import ValidationError
from fitcoach.models import ProgressRecord, RECORD_TYPES

# inclusive upper bounds per record type; every value must be >= 0
VALUE_LIMITS = {
    "weight": 500,
    "body_fat": 100,
    "muscle_mass": 500,
    "measurements": 1000,
}


def validate_value(record_type, value):
    if value is None:
        return
    limit = VALUE_LIMITS.get(record_type)
    if value < 0 or (limit is not None and value > limit):
        bound = f"between 0 and {limit}" if limit is not None else "zero or greater"
        raise ValidationError(errors={"value": [f"{record_type} value must be {bound}"]})


def record_progress(db: Session, athlete, record_type, value=None, unit=None, body_part=None,
                    image_url=None, notes=None):
    if record_type not in RECORD_TYPES:
        raise ValidationError(errors={"record_type": [f"Must be one of: {', '.join(RECORD_TYPES)}"]})
    validate_value(record_type, value)

    record = ProgressRecord(
        athlete_id=athlete.id,
        record_type=record_type,
        value=value,
        unit=unit,
        body_part=body_part,
        image_url=image_url,
        notes=notes,
    )
    db.add(record)
    db.commit()
    return record


def list_progress(db: Session, athlete, record_type=None, date_from=None, date_to=None, page=1, limit=50):
    query = db.query(ProgressRecord).filter(ProgressRecord.athlete_id == athlete.id)
    if record_type:
        query = query.filter(ProgressRecord.record_type == record_type)
    if date_from:
        query = query.filter(ProgressRecord.recorded_at >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(ProgressRecord.recorded_at <= datetime.combine(date_to, time.max))

    pagination = query.order_by(ProgressRecord.recorded_at.desc(), ProgressRecord.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return {
        "records": [r.to_dict() for r in pagination.items],
        "pagination": {"page": page, "limit": limit, "total": pagination.total, "pages": pagination.pages},
    }
