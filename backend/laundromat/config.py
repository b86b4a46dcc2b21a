"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./laundromat.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Photo uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    MAX_PHOTOS_PER_REQUEST: int = 10

    # Ready notifications
    COUNTRY_CODE: str = "27"
    TRUNK_PREFIX: str = "0"
    MESSAGING_LINK_BASE: str = "https://web.whatsapp.com/send"
    COLLECTION_FORM_URL: str = "http://localhost:5000/collection"
    TIMEZONE: str = "Africa/Johannesburg"  # IANA tz for dates shown to customers

    # Reference numbers: prefix + fixed-width digits
    REFERENCE_PREFIX: str = "LAU"
    REFERENCE_DIGITS: int = 6
    REFERENCE_MAX_ATTEMPTS: int = 20

    class Config:
        env_file = ".env"


settings = Settings()
