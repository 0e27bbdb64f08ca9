from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    All settings can be configured via LEAKYBUCKET_* environment variables
    or a .env file.
    """

    # Store backend: redis | memory
    store_backend: str = "redis"

    # Redis settings
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float | None = None  # Seconds, None = block forever

    # Prepended to every bucket name to build the store key
    key_prefix: str = ""

    # Per-operation deadline in seconds applied when callers pass none
    default_timeout: float | None = None

    # Run admission check and increment as one Lua script
    atomic_consume: bool = False

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        """Validate the store backend name."""
        v = v.strip().lower()
        if v not in ("redis", "memory"):
            raise ValueError("store_backend must be 'redis' or 'memory'")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate the log format name."""
        v = v.strip().lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    @field_validator("redis_socket_timeout", "default_timeout")
    @classmethod
    def validate_timeout_positive(cls, v: float | None) -> float | None:
        """Validate timeout values are positive when set."""
        if v is not None and v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    model_config = SettingsConfigDict(
        env_prefix="LEAKYBUCKET_", env_file=".env", extra="ignore"
    )


# Global settings instance
settings = Settings()
