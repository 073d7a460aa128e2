from pathlib import Path
from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Ticket Validation Client'
    VERSION: str = '0.1.0'
    DEBUG: bool = False
    LOG_TO_FILE: bool = False

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []  # add your frontend URL here

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # Ticketing platform API (session start, token rotation, ticket status, votes)
    API_BASE_URL: str = 'http://localhost:5000'
    API_ACCESS_TOKEN: SecretStr = SecretStr('')
    API_TIMEOUT_SECONDS: float = 10.0

    # Validation session timing
    VALIDATION_SESSION_SECONDS: int = 180  # 3 minute session
    COUNTDOWN_TICK_SECONDS: float = 1.0
    TOKEN_ROTATION_SECONDS: float = 10.0
    STATUS_POLL_SECONDS: float = 2.0

    # Device location (geofenced events)
    LOCATION_TIMEOUT_SECONDS: float = 10.0
    LOCATION_HIGH_ACCURACY: bool = True
    LOCATION_MAXIMUM_AGE_SECONDS: float = 0.0  # never accept a cached fix

    # Zone used to read event date/time pairs when the event carries none
    EVENT_TIMEZONE: str = 'UTC'

    # QR rendering
    QR_BOX_SIZE: int = 10
    QR_BORDER: int = 2

    # SSE keep-alive
    SSE_PING_SECONDS: int = 15


settings = Settings()  # type: ignore
