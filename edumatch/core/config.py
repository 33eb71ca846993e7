"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "edumatch"

    # JWT verification (tokens are issued by the auth provider)
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # Grading
    # strict: a test question id that does not resolve fails the grading call
    strict_question_resolution: bool = False
    # accumulate: every submission appends a result row
    # reject: a second result for the same (test, student) pair is refused
    duplicate_submission_policy: Literal["accumulate", "reject"] = "accumulate"

    # Reconciliation
    use_application_index: bool = True

    # App
    log_level: str = "INFO"
    debug: bool = True

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
