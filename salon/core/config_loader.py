import json
import os
from typing import Dict, Any, Optional

from salon.core.config import settings
from salon.core.logger import logger


def load_company_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads the company profile (name, owner email, default business hours,
    notification templates) from JSON.
    Raises FileNotFoundError if the file is missing, ValueError if it is not valid JSON.
    """
    config_path = path or settings.COMPANY_CONFIG_PATH
    if not os.path.exists(config_path):
        logger.critical(f"❌ Company config '{config_path}' not found")
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Invalid JSON in company config: {e}")
        raise ValueError(f"Invalid JSON in config file: {e}")

    logger.debug(f"Company config loaded for: {config.get('company_name', 'Unknown')}")
    return config


def get_business_hours(config: Dict[str, Any], day_name: str) -> Optional[Dict[str, str]]:
    """
    Default hours for a weekday (monday, tuesday...) as configured in the company profile.
    Returns: Dict {'start': 'HH:MM', 'end': 'HH:MM'} or None if closed.
    """
    hours = config.get("business_hours", {})
    return hours.get(day_name.lower())
