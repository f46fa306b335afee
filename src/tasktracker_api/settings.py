"""
tasktracker_api.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration with defaults that are safe for local dev.
    One instance is attached to the app and injected across layers.
    """

    model_config = SettingsConfigDict(env_prefix="TASKTRACKER_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "tasktracker-api"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "tasktracker-api"
    jwt_audience: str = "tasktracker-clients"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    access_token_ttl_minutes: int = 60
    bcrypt_rounds: int = Field(default=12, ge=4, le=16)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./tasktracker.db"

    # Request shaping
    rate_limit_enabled: bool = True
    max_batch_size: int = 100
    max_page_size: int = 50

    # Families
    invitation_ttl_days: int = 7


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The app factory stores its own Settings on app.state; request dependencies read
# from there so tests can run several apps with different settings side by side.
