"""Configuration management using pydantic-settings."""

import threading
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Valid log levels
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class CosmosSettings(BaseSettings):
    """Cosmos DB connection settings."""

    model_config = SettingsConfigDict(env_prefix="COSMOS_")

    endpoint: str = Field(
        default="https://localhost:8081/", description="Cosmos DB account endpoint"
    )
    account_key: str = Field(description="Cosmos DB account key")
    database_name: str = Field(default="biotrackr", description="Database name")
    container_name: str = Field(default="records", description="Container name")

    @field_validator("account_key")
    @classmethod
    def validate_account_key(cls, v: str) -> str:
        """Validate account key is not empty."""
        if not v or not v.strip():
            raise ValueError("Cosmos DB account key cannot be empty")
        return v

    @field_validator("database_name", "container_name")
    @classmethod
    def validate_names(cls, v: str) -> str:
        """Validate database and container names are not blank."""
        if not v.strip():
            raise ValueError("Database and container names cannot be blank")
        return v.strip()


class FitbitSettings(BaseSettings):
    """Fitbit Web API settings."""

    model_config = SettingsConfigDict(env_prefix="FITBIT_")

    base_url: str = Field(default="https://api.fitbit.com", description="Fitbit API base URL")
    access_token: str = Field(default="", description="OAuth2 access token")
    timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")
    max_retries: int = Field(default=3, description="Attempts for transient failures")
    retry_delay_seconds: float = Field(default=1.0, description="Base retry backoff")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Strip the trailing slash so paths can be appended."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Base URL must start with http:// or https://, got {v}")
        return v.rstrip("/")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """Validate at least one attempt is made."""
        if v < 1:
            raise ValueError(f"Max retries must be at least 1, got {v}")
        return v


class HTTPSettings(BaseSettings):
    """Read API server settings."""

    model_config = SettingsConfigDict(env_prefix="HTTP_")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {v}")
        return v


class TracingSettings(BaseSettings):
    """OpenTelemetry tracing settings."""

    model_config = SettingsConfigDict(env_prefix="OTEL_")

    enabled: bool = Field(default=False, description="Enable trace export")
    service_name: str = Field(default="biotrackr", description="Reported service name")


class AppSettings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_prefix="APP_")

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or console")
    timezone: str = Field(default="UTC", description="Timezone used to compute today")
    deterministic_ids: bool = Field(
        default=False,
        description="Derive document ids from domain and date instead of random UUIDs",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        normalized = v.upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )
        return normalized

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is valid."""
        normalized = v.lower()
        if normalized not in ("json", "console"):
            raise ValueError(f"Invalid log format '{v}'. Must be 'json' or 'console'")
        return normalized

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate timezone is a known IANA name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{v}'") from e
        return v


class Settings(BaseSettings):
    """Combined application settings."""

    cosmos: CosmosSettings = Field(default_factory=CosmosSettings)
    fitbit: FitbitSettings = Field(default_factory=FitbitSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)
    tracing: TracingSettings = Field(default_factory=TracingSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            cosmos=CosmosSettings(),
            fitbit=FitbitSettings(),
            http=HTTPSettings(),
            tracing=TracingSettings(),
            app=AppSettings(),
        )


# Global settings instance with thread-safe initialization
_settings: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get or create the global settings instance.

    Thread-safe singleton pattern using double-checked locking.
    """
    global _settings
    if _settings is None:
        with _settings_lock:
            # Double-check after acquiring lock
            if _settings is None:
                _settings = Settings.load()
    return _settings
