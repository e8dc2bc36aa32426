from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROJECT_NAME = "Service Booking Platform API"
DEFAULT_API_V1_PREFIX = "/api/v1"
DEFAULT_JWT_SECRET_KEY = "change-me-dev-only-secret-key-0123456789"
MIN_JWT_SECRET_BYTES = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    PROJECT_NAME: str = DEFAULT_PROJECT_NAME
    API_V1_PREFIX: str = DEFAULT_API_V1_PREFIX
    ENV: str = 'development'
    DEBUG: bool = False

    DB_URL: str = 'sqlite:///./booking.db'
    LOG_LEVEL: str = 'INFO'
    CORS_ORIGINS: list[str] = ['*']
    AUTO_CREATE_TABLES: bool = False

    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET_KEY
    JWT_ALGORITHM: str = 'HS256'
    JWT_ISSUER: str = 'service-booking-platform'
    JWT_AUDIENCE: str = 'service-booking-platform-clients'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_TOKEN_BYTES: int = 64

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

    @field_validator('JWT_SECRET_KEY')
    @classmethod
    def check_secret_length(cls, value: str) -> str:
        if len(value.encode('utf-8')) < MIN_JWT_SECRET_BYTES:
            raise ValueError(f'JWT_SECRET_KEY must be at least {MIN_JWT_SECRET_BYTES} bytes')
        return value

    @field_validator('JWT_ALGORITHM')
    @classmethod
    def check_symmetric_algorithm(cls, value: str) -> str:
        if value not in {'HS256', 'HS384', 'HS512'}:
            raise ValueError('JWT_ALGORITHM must be an HMAC algorithm (HS256, HS384, HS512)')
        return value

    @field_validator('ACCESS_TOKEN_EXPIRE_MINUTES', 'REFRESH_TOKEN_EXPIRE_DAYS', 'REFRESH_TOKEN_BYTES')
    @classmethod
    def check_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('must be positive')
        return value

    @model_validator(mode='after')
    def reject_placeholder_secret_in_production(self) -> 'Settings':
        if self.ENV == 'production' and self.JWT_SECRET_KEY == DEFAULT_JWT_SECRET_KEY:
            raise ValueError('JWT_SECRET_KEY must be set explicitly in production')
        return self


settings = Settings()
