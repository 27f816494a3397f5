from dataclasses import dataclass, asdict
from datetime import date, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.core.exceptions import PersistenceError, ValidationError
from salon.core.logger import logger
from salon.models.db_models import AppSetting

DEFAULT_SHOW_PRICES = False
DEFAULT_WEEKS_AHEAD = 4
WEEKS_AHEAD_RANGE = (1, 8)


@dataclass(frozen=True)
class BookingSettings:
    """Public booking-flow options, loaded once per request from the settings store."""

    show_prices: bool = DEFAULT_SHOW_PRICES
    weeks_ahead: int = DEFAULT_WEEKS_AHEAD

    def bookable_until(self, today: date) -> date:
        return today + timedelta(weeks=self.weeks_ahead)

    def to_dict(self) -> dict:
        return asdict(self)


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def load_booking_settings(db: Session) -> BookingSettings:
    stored = dict(
        db.query(AppSetting.setting_name, AppSetting.setting_value)
        .filter(AppSetting.setting_name.in_(["show_prices", "weeks_ahead"]))
        .all()
    )
    weeks_ahead = _as_int(stored.get("weeks_ahead"), DEFAULT_WEEKS_AHEAD)
    if not WEEKS_AHEAD_RANGE[0] <= weeks_ahead <= WEEKS_AHEAD_RANGE[1]:
        weeks_ahead = DEFAULT_WEEKS_AHEAD

    return BookingSettings(
        show_prices=_as_int(stored.get("show_prices"), int(DEFAULT_SHOW_PRICES)) == 1,
        weeks_ahead=weeks_ahead,
    )


def update_booking_settings(db: Session, show_prices: bool, weeks_ahead: int) -> BookingSettings:
    if not WEEKS_AHEAD_RANGE[0] <= weeks_ahead <= WEEKS_AHEAD_RANGE[1]:
        raise ValidationError({"weeks_ahead": "Must be between 1 and 8 weeks."})

    values = {"show_prices": "1" if show_prices else "0", "weeks_ahead": str(weeks_ahead)}
    try:
        for name, value in values.items():
            record = db.query(AppSetting).filter(AppSetting.setting_name == name).first()
            if record is None:
                db.add(AppSetting(setting_name=name, setting_value=value))
            else:
                record.setting_value = value
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to save booking settings {values}: {e}")
        raise PersistenceError()

    logger.info(f"⚙️ Booking settings saved: {values}")
    return load_booking_settings(db)
