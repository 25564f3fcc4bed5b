from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables.

    Pydantic Settings reads env vars matching field names (case-insensitive),
    prefixed with SVCUTILS_. In development, it also reads from .env if present.
    """

    # Number of trailing path segments kept in an error context location,
    # e.g. 2 -> "svcutils/envelope.py:88"
    location_segments: int = 2

    # Header carrying the request ID in and out of the ASGI adapter
    request_id_header: str = "X-Request-ID"

    model_config = SettingsConfigDict(
        env_prefix="SVCUTILS_",
        env_file=".env",  # Load from .env in development
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


settings = Settings()
