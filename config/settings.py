from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthType(str, Enum):
    API_KEY = 'api_key'
    BEARER = 'bearer'
    BASIC = 'basic'


class WireFormat(str, Enum):
    JSON = 'json'
    XML = 'xml'
    NESTED_JSON = 'nested_json'


class ProviderSettings(BaseModel):
    name: str
    base_url: str
    wire_format: WireFormat
    timeout_seconds: float = Field(default=10.0, gt=0)
    auth_type: AuthType = AuthType.API_KEY
    api_key: str = ''
    api_secret: str | None = None
    bearer_token: str | None = None
    enabled: bool = True


def _default_providers() -> list[ProviderSettings]:
    return [
        ProviderSettings(name='API1', base_url='http://localhost:5000/api1', wire_format=WireFormat.JSON),
        ProviderSettings(name='API2', base_url='http://localhost:5000/api2', wire_format=WireFormat.XML),
        ProviderSettings(
            name='API3',
            base_url='http://localhost:5000/api3',
            wire_format=WireFormat.NESTED_JSON,
            auth_type=AuthType.BASIC,
        ),
    ]


class Settings(BaseSettings):
    # Providers, in registration order (ties in selection go to the first one)
    PROVIDERS: list[ProviderSettings] = Field(default_factory=_default_providers)

    # Resilience
    RETRY_ATTEMPTS: int = Field(default=2, ge=0)
    RETRY_BACKOFF_SECONDS: float = Field(default=2.0, ge=0)
    RETRY_BACKOFF_MAX_SECONDS: float = Field(default=10.0, ge=0)
    CIRCUIT_FAILURE_THRESHOLD: int = Field(default=3, ge=1)
    CIRCUIT_COOLDOWN_SECONDS: float = Field(default=30.0, gt=0)

    HEALTH_PROBE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    QUOTE_DEADLINE_SECONDS: float | None = None

    # Logging
    LOG_DIRECTORY: str = 'logs'
    LOG_CONSOLE_LEVEL: str = 'INFO'
    LOG_FILE_LEVEL: str = 'DEBUG'
    LOG_TO_FILE: bool = True

    # Application
    APP_NAME: str = 'FX Quote Comparison API'
    APP_VERSION: str = '1.0.0'
    ENVIRONMENT: str = 'development'
    DEBUG: bool = False

    model_config = SettingsConfigDict(
        env_file='.env', env_nested_delimiter='__', case_sensitive=False, extra='ignore'
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
