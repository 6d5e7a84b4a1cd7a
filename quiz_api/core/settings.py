from enum import Enum
from typing import FrozenSet, Tuple

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Frontends that may call the API with credentials.
DEFAULT_CORS_ORIGINS: Tuple[str, ...] = (
    "http://localhost:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:5174",
    "https://interactive-quiz-app-1-x1v5.onrender.com",
    "https://interactive-quiz-application-zupt.onrender.com",
)


class DeploymentMode(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"


class FaultPolicy(str, Enum):
    LOG = "log"
    EXIT = "exit"


class Settings(BaseSettings):
    # Environment name; NODE_ENV is accepted for parity with the frontend tooling
    ENV: str = Field(
        default="development",
        validation_alias=AliasChoices("NODE_ENV", "ENV"),
    )

    # Listener
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    SERVER_TIMEOUT_SECONDS: float = 120.0
    KEEP_ALIVE_TIMEOUT_SECONDS: int = 65

    # Database
    DATABASE_URL: str = "sqlite:///./quiz.db"
    DB_AUTO_CREATE: bool = True

    # CORS (one extra origin on top of DEFAULT_CORS_ORIGINS)
    CORS_ORIGIN: str = ""

    # Request limits
    MAX_JSON_BODY_BYTES: int = 10 * 1024
    RATE_LIMIT_REQUESTS: int = 120
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    GZIP_MINIMUM_SIZE: int = 1024

    # Auth
    SESSION_TTL_MINUTES: int = 60 * 24 * 7
    RATE_LIMIT_LOGIN_ATTEMPTS: int = 5
    RATE_LIMIT_LOGIN_WINDOW_SECONDS: int = 15 * 60  # 15 minutes

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_JSON: bool = True
    LOG_FILE: str = "logs/app.log"  # empty disables the file handler
    LOG_MAX_BYTES: int = 5_000_000  # 5 MB
    LOG_BACKUP_COUNT: int = 5

    # Sentry
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.0

    # What to do after an uncaught exception: keep serving or shut down
    FAULT_POLICY: FaultPolicy = FaultPolicy.LOG

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def mode(self) -> DeploymentMode:
        """Deployment mode; names match exactly, anything else behaves like development."""
        try:
            return DeploymentMode(self.ENV)
        except ValueError:
            return DeploymentMode.DEVELOPMENT

    @property
    def env_name(self) -> str:
        return self.ENV or DeploymentMode.DEVELOPMENT.value

    @property
    def allowed_origins(self) -> FrozenSet[str]:
        origins = set(DEFAULT_CORS_ORIGINS)
        if self.CORS_ORIGIN:
            origins.add(self.CORS_ORIGIN.strip())
        return frozenset(origins)


settings = Settings()
