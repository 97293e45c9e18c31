# jobboard/core/config.py
from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Job Search App"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # MongoDB
    MONGODB_URI: str = "mongodb://localhost:27017/job_board"
    MONGODB_DB: str = "job_board"

    # Tokens: one secret per purpose so a token minted for one flow
    # can never verify for another. Override all three in .env / secrets.
    LOGIN_SECRET: str = "change-me-login"
    CONFIRMATION_SECRET: str = "change-me-confirmation"
    RESET_PASSWORD_SECRET: str = "change-me-reset"
    JWT_ALGORITHM: str = "HS256"
    # None keeps login tokens open-ended
    LOGIN_TOKEN_EXPIRE_MINUTES: Optional[int] = 60 * 24 * 7
    CONFIRMATION_TOKEN_EXPIRE_MINUTES: int = 60
    RESET_TOKEN_EXPIRE_MINUTES: int = 15

    # Credential hashing cost (pbkdf2 rounds)
    PASSWORD_HASH_ROUNDS: int = 29000

    # Mail: 'smtp' or 'console'
    MAIL_BACKEND: str = "console"
    MAIL_FROM: str = "No Reply <no-reply@jobsearch.com>"
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_SSL: bool = False
    SMTP_TIMEOUT_SEC: int = 20

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _secrets_are_distinct(self) -> "Settings":
        secrets = {self.LOGIN_SECRET, self.CONFIRMATION_SECRET, self.RESET_PASSWORD_SECRET}
        if len(secrets) != 3:
            raise ValueError("LOGIN_SECRET, CONFIRMATION_SECRET and RESET_PASSWORD_SECRET must differ")
        if self.MAIL_BACKEND not in ("smtp", "console"):
            raise ValueError("MAIL_BACKEND must be 'smtp' or 'console'")
        return self


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, built once by the entrypoint."""
    return Settings()
