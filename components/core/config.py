from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database settings
    DB_URL: Optional[str] = None  # Optional full DB URL
    DB_USER: str = "ibankuser"
    DB_PASSWORD: str = "ibankpass"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_NAME: str = "ibank"

    # API settings
    API_VERSION: str = "v1"
    DEBUG: bool = False
    CORS_ORIGINS: List[str] = ["http://127.0.0.1:5500", "http://localhost:5500"]

    # Auth settings
    JWT_SECRET: str = "devsecret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # OTP settings
    OTP_SECRET: Optional[str] = None  # Falls back to JWT_SECRET
    OTP_TTL_MINUTES: int = 5
    OTP_MAX_ATTEMPTS: int = 3
    OTP_UNIQUE_RETRIES: int = 5

    HISTORY_LIMIT: int = 100

    # Mail settings
    MAIL_TRANSPORT: str = "log"  # "log" or "brevo"
    MAIL_FROM: str = "no-reply@ibank.local"
    MAIL_SENDER_NAME: str = "iBank"
    BREVO_API_KEY: Optional[str] = None
    BREVO_API_URL: str = "https://api.brevo.com/v3/smtp/email"
    MAIL_TIMEOUT_SECONDS: float = 10.0

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        validate_default = True

    @property
    def async_db_url(self) -> str:
        """Get asynchronous database URL."""
        if self.DB_URL:
            return self.DB_URL
        return f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def otp_secret(self) -> str:
        """Key used to digest one-time codes."""
        return self.OTP_SECRET or self.JWT_SECRET


@lru_cache()
def get_settings() -> Settings:
    """
    Returns cached Settings instance to avoid reloading .env file on every access
    """
    return Settings()
