# stratify_api/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "StratifyPM API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True
    ENVIRONMENT: str = "development"

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./stratify.db")

    # Security Settings
    # Server-wide secret mixed into every OTP and session token digest
    AUTH_SECRET: str = ""

    # OTP policy
    OTP_TTL_MINUTES: int = 10
    OTP_COOLDOWN_SECONDS: int = 60
    OTP_MAX_PER_HOUR: int = 5
    OTP_MAX_ATTEMPTS: int = 5

    # Session policy
    SESSION_TTL_DAYS: int = 30
    SESSION_COOKIE_NAME: str = "pm_session"
    COOKIE_DOMAIN: Optional[str] = None

    # CORS Settings (comma-separated to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = "http://localhost:5173,https://stratifypm.mayur.app,https://stratifypm.mayur.run"

    # Email delivery: "resend" or "console"
    EMAIL_BACKEND: str = "resend"
    RESEND_API_KEY: str = ""
    RESEND_FROM_EMAIL: str = ""
    RESEND_FROM_NAME: str = "StratifyPM"
    RESEND_API_URL: str = "https://api.resend.com/emails"
    RESEND_TIMEOUT_SECONDS: int = 15

    # Middleware settings
    GZIP_MIN_SIZE: int = 500  # bytes
    MAX_REQUEST_BYTES: int = 5 * 1024 * 1024  # 5MB, conversations carry full message history

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Helper methods for list envs
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Normalize ALLOWED_ORIGINS if provided as comma-separated string env var CORS_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s
