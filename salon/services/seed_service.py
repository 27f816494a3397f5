from datetime import datetime
from typing import Any, Dict

from sqlalchemy.orm import Session

from salon.core.config_loader import get_business_hours
from salon.core.logger import logger
from salon.models.db_models import AppSetting, OpeningHour
from salon.services.opening_hours_service import DAYS
from salon.services.settings_service import DEFAULT_SHOW_PRICES, DEFAULT_WEEKS_AHEAD


def seed_defaults(db: Session, company_config: Dict[str, Any]) -> None:
    """
    First-run data: one opening-hours row per weekday taken from the company
    profile's business_hours (null means closed), and the default booking
    settings. Existing rows are left alone.
    """
    if db.query(OpeningHour).count() == 0:
        for day in DAYS:
            hours = get_business_hours(company_config, day)
            if hours:
                db.add(OpeningHour(
                    day=day,
                    opening_time=datetime.strptime(hours["start"], "%H:%M").time(),
                    closing_time=datetime.strptime(hours["end"], "%H:%M").time(),
                    closed=False,
                ))
            else:
                db.add(OpeningHour(day=day, closed=True))
        logger.info("🌱 Seeded opening hours from company config")

    existing = {name for (name,) in db.query(AppSetting.setting_name).all()}
    defaults = {"show_prices": str(int(DEFAULT_SHOW_PRICES)), "weeks_ahead": str(DEFAULT_WEEKS_AHEAD)}
    for name, value in defaults.items():
        if name not in existing:
            db.add(AppSetting(setting_name=name, setting_value=value))

    db.commit()
