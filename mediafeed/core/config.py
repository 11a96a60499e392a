from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings
from enum import Enum

class BaseConfig(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name":True
    }

class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

class CompressionType(str, Enum):
    GZIP = "gz"
    BZIP2 = "bz2"
    ZIP = "zip"

class AppSettings(BaseSettings):
    app_name: str = Field(
        default="mediafeed",
        min_length=1,
        max_length=100,
        alias="APP_NAME"
    )
    app_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        alias="APP_PORT"
    )

    app_host: str = Field(default="0.0.0.0")
    app_reload: bool = Field(default=False)
    app_log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: str = Field(default="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}")
    log_file: str = Field(default="logs/app.log")
    log_rotation: str = Field(default="1 day")
    log_compression: CompressionType = Field(default=CompressionType.GZIP)

    model_config = BaseConfig.model_config

class DatabaseSettings(BaseSettings):
    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")
    postgres_user: str = Field(default="mediafeed", min_length=1, alias="POSTGRES_USER")
    postgres_password: str = Field(default="mediafeed", min_length=1, alias="POSTGRES_PASSWORD")
    postgres_db: str = Field(default="mediafeed", min_length=1, alias="POSTGRES_DB")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, ge=1, le=65535, alias="POSTGRES_PORT")
    debug_sql: bool = Field(default=False)

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    model_config = BaseConfig.model_config


class WorkerSettings(BaseSettings):
    reconcile_interval_minutes: int = Field(default=60, ge=1, alias="RECONCILE_INTERVAL_MINUTES")
    reconcile_at_startup: bool = Field(default=True, alias="RECONCILE_AT_STARTUP")
    model_config = BaseConfig.model_config

class JWTSettings(BaseSettings):
    secret_key: str = Field(default="change-me-change-me-change-me-change-me", min_length=32, alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(default=60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    model_config = BaseConfig.model_config

class FeedSettings(BaseSettings):
    video_ratio: float = Field(default=0.7, gt=0, le=1, alias="FEED_VIDEO_RATIO")
    default_page_size: int = Field(default=5, ge=1, alias="FEED_DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=50, ge=1, alias="FEED_MAX_PAGE_SIZE")
    premium_min_followers: int = Field(default=100, ge=0, alias="PREMIUM_MIN_FOLLOWERS")

    model_config = BaseConfig.model_config


class EngagementSettings(BaseSettings):
    view_cooldown_minutes: int = Field(default=30, ge=0, alias="VIEW_COOLDOWN_MINUTES")
    comment_max_length: int = Field(default=1000, ge=1, alias="COMMENT_MAX_LENGTH")
    toggle_max_attempts: int = Field(default=3, ge=1, alias="TOGGLE_MAX_ATTEMPTS")

    model_config = BaseConfig.model_config
