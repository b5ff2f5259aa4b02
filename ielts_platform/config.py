"""Application configuration objects."""

from __future__ import annotations

import os
from datetime import timedelta
from functools import lru_cache
from typing import Any, Type

from sqlalchemy.pool import NullPool


class BaseConfig:
    """Shared defaults across all environments."""

    APP_NAME = "IELTS Reading Lab"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite+pysqlite:///ielts_dev.db",
    )
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change_me")
    JWT_TOKEN_LOCATION = ("headers", "query_string")
    JWT_QUERY_STRING_NAME = "token"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        seconds=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_SEC", "43200"))
    )
    AI_MODEL_NAME = os.getenv("AI_MODEL_NAME", "gpt-4o-mini")
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY") or os.getenv("AI_API_KEY", "")
    AI_API_KEY = OPENAI_API_KEY  # backwards-compatible alias
    AI_API_BASE = os.getenv("AI_API_BASE", "https://api.openai.com/v1")
    # Total attempts per completion call; 2 means one retry on transient errors.
    AI_API_MAX_RETRIES = int(os.getenv("AI_API_MAX_RETRIES", "2"))
    AI_API_RETRY_BACKOFF = float(os.getenv("AI_API_RETRY_BACKOFF", "2.0"))
    AI_CONNECT_TIMEOUT_SEC = int(os.getenv("AI_CONNECT_TIMEOUT_SEC", "15"))
    AI_READ_TIMEOUT_SEC = int(os.getenv("AI_READ_TIMEOUT_SEC", "60"))
    AI_TEMPERATURE = float(os.getenv("AI_TEMPERATURE", "0.7"))
    AI_READING_MODEL = os.getenv("AI_READING_MODEL") or AI_MODEL_NAME
    READING_PASSAGE_WORD_COUNT = int(os.getenv("READING_PASSAGE_WORD_COUNT", "750"))
    READING_ANSWERS_PER_ATTEMPT = int(os.getenv("READING_ANSWERS_PER_ATTEMPT", "10"))
    READING_PAGE_SIZE = int(os.getenv("READING_PAGE_SIZE", "10"))
    READING_MAX_PAGE_SIZE = int(os.getenv("READING_MAX_PAGE_SIZE", "50"))
    GENERATION_RATE_LIMIT = os.getenv("GENERATION_RATE_LIMIT", "10 per minute")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    RATE_LIMIT_DEFAULTS = [limit.strip() for limit in os.getenv("RATE_LIMIT_DEFAULTS", "200 per minute;1000 per day").split(";") if limit.strip()]
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    JSON_SORT_KEYS = False
    SQLITE_TIMEOUT_SEC = int(os.getenv("SQLITE_TIMEOUT_SEC", "15"))
    SQLITE_BUSY_TIMEOUT_MS = int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "15000"))
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "poolclass": NullPool,
            "connect_args": {"timeout": SQLITE_TIMEOUT_SEC, "check_same_thread": False},
        }
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {
            "pool_pre_ping": True,
            "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
            "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "10")),
            "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", "30")),
        }


class DevConfig(BaseConfig):
    DEBUG = True


class ProdConfig(BaseConfig):
    DEBUG = False


class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    # NullPool would hand every session a fresh, empty in-memory database.
    SQLALCHEMY_ENGINE_OPTIONS: dict[str, Any] = {}
    JWT_SECRET_KEY = "test-secret"
    OPENAI_API_KEY = "test-key"
    AI_API_KEY = OPENAI_API_KEY
    AI_API_RETRY_BACKOFF = 0.0
    RATELIMIT_ENABLED = False


CONFIG_ALIASES: dict[str, Type[BaseConfig]] = {
    "dev": DevConfig,
    "development": DevConfig,
    "prod": ProdConfig,
    "production": ProdConfig,
    "test": TestConfig,
    "testing": TestConfig,
}


@lru_cache
def resolve_config(name_or_class: Any) -> Any:
    """Resolve config argument to the object expected by `app.config.from_object`."""

    if name_or_class is None:
        return DevConfig
    if isinstance(name_or_class, str):
        return CONFIG_ALIASES.get(name_or_class, name_or_class)
    return name_or_class
