from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.core.exceptions import PersistenceError, ValidationError
from salon.core.logger import logger
from salon.models.db_models import OpeningHour

DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

# Limits offered by the opening-hours editor
OPENING_RANGE = (time(0, 0), time(19, 0))
CLOSING_RANGE = (time(9, 0), time(23, 0))


@dataclass(frozen=True)
class OpeningWindow:
    opens_at: time
    closes_at: time

    def bounds(self, day: date):
        return datetime.combine(day, self.opens_at), datetime.combine(day, self.closes_at)


def day_name(day: date) -> str:
    return DAYS[day.weekday()]


def get_hours_for(db: Session, day: date) -> Optional[OpeningWindow]:
    """
    Opening window for the weekday of `day`, or None when the salon is closed.
    A missing row counts as closed all day, as does a row whose times are
    missing or inverted.
    """
    record = db.query(OpeningHour).filter(OpeningHour.day == day_name(day)).first()
    if record is None or record.closed:
        return None

    if record.opening_time is None or record.closing_time is None:
        logger.warning(f"⚠️ Opening hours for {record.day} are incomplete, treating as closed")
        return None
    if record.opening_time >= record.closing_time:
        logger.warning(f"⚠️ Opening hours for {record.day} are inverted, treating as closed")
        return None

    return OpeningWindow(record.opening_time, record.closing_time)


def week_overview(db: Session) -> Dict[str, dict]:
    records = {r.day: r for r in db.query(OpeningHour).all()}
    overview = {}
    for name in DAYS:
        record = records.get(name)
        overview[name] = {
            "open": record.opening_time.strftime("%H:%M") if record and record.opening_time else None,
            "close": record.closing_time.strftime("%H:%M") if record and record.closing_time else None,
            "isClosed": bool(record.closed) if record else False,
        }
    return overview


def _parse_time(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    try:
        return datetime.strptime(value[:5], "%H:%M").time()
    except ValueError:
        return None


def update_week(db: Session, opening_hours: Dict[str, dict]) -> Dict[str, dict]:
    """
    Validates and stores the weekly schedule. Input is keyed by weekday name:
    {"monday": {"open": "09:00", "close": "17:00", "isClosed": False}, ...}.
    All rows are written in one transaction.
    """
    errors = {}
    parsed = {}

    for day, times in opening_hours.items():
        if day not in DAYS:
            errors[f"openingHours.{day}"] = "Invalid day."
            continue

        is_closed = bool(times.get("isClosed", False))
        opens = _parse_time(times.get("open"))
        closes = _parse_time(times.get("close"))

        if not is_closed:
            if opens is None or not OPENING_RANGE[0] <= opens <= OPENING_RANGE[1]:
                errors[f"openingHours.{day}.open"] = "Opening time must be between 00:00 and 19:00."
            if closes is None or not CLOSING_RANGE[0] <= closes <= CLOSING_RANGE[1]:
                errors[f"openingHours.{day}.close"] = "Closing time must be between 09:00 and 23:00."
            if opens is not None and closes is not None and opens >= closes:
                errors[f"openingHours.{day}.close"] = "Closing time must be later than opening time."

        parsed[day] = (None, None, True) if is_closed else (opens, closes, False)

    if errors:
        raise ValidationError(errors)

    try:
        records = {r.day: r for r in db.query(OpeningHour).all()}
        for day, (opens, closes, is_closed) in parsed.items():
            record = records.get(day)
            if record is None:
                record = OpeningHour(day=day)
                db.add(record)
            record.opening_time = opens
            record.closing_time = closes
            record.closed = is_closed
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to save opening hours: {e}")
        raise PersistenceError()

    logger.info(f"🕘 Opening hours updated for: {', '.join(parsed)}")
    return week_overview(db)
