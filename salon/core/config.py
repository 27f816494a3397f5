from pathlib import Path

from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    PROJECT_NAME: str = "Salon Booking"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./salon.db"

    # Business
    BUSINESS_NAME: str = "Plandekapper"
    BUSINESS_TIMEZONE: str = "Europe/Amsterdam"
    BOOKING_BASE_URL: str = "http://localhost:8000/booking"
    COMPANY_CONFIG_PATH: str = str(PROJECT_ROOT / "data" / "company_config.json")

    # Security
    STAFF_TOKEN: str = "dev_staff_token"

    # Notifications
    SMTP_SERVER: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""

    NOTIFICATION_MAX_ATTEMPTS: int = 3
    NOTIFICATION_RETRY_DELAY: float = 2.0

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def database_url(self) -> str:
        # Hosted Postgres hands out postgres:// URLs, SQLAlchemy wants postgresql://
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self.DATABASE_URL


settings = Settings()
