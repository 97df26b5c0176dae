from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROJECT_NAME = "CivicDesk API"
DEFAULT_API_V1_PREFIX = "/api/v1"
VERSION = "1.0.0"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    PROJECT_NAME: str = DEFAULT_PROJECT_NAME
    API_V1_PREFIX: str = DEFAULT_API_V1_PREFIX
    ENV: str = 'development'
    DEBUG: bool = False

    DB_URL: str = 'sqlite:///./civicdesk.db'
    LOG_LEVEL: str = 'INFO'
    CORS_ORIGINS: list[str] = ['*']

    SECRET_KEY: str = 'change-me'
    ALGORITHM: str = 'HS256'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    AUTO_CREATE_TABLES: bool = False

    LOGIN_MAX_ATTEMPTS: int = 3
    LOGIN_ATTEMPT_WINDOW_MINUTES: int = 60
    LOGIN_LOCKOUT_MINUTES: int = 60

    TITLE_MAX_LEN: int = 200
    DESCRIPTION_MAX_LEN: int = 2000
    CATEGORY_MAX_LEN: int = 100
    THUMBNAIL_MAX_LEN: int = 500

    REALTIME_KEEPALIVE_SECONDS: float = 15.0

    SYNC_DEBOUNCE_SECONDS: float = 0.5
    SYNC_RECONNECT_INITIAL_SECONDS: float = 0.5
    SYNC_RECONNECT_MAX_SECONDS: float = 30.0

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, value):  # type: ignore[override]
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return []
            if value == '*':
                return ['*']
            return [item.strip() for item in value.split(',') if item.strip()]
        return value


settings = Settings()
