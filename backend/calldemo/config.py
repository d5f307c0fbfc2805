"""
LiveCall Demo - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and environment-specific values are loaded from environment variables.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Hierarchy (highest to lowest priority):
    1. Environment variables
    2. .env file
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: str = "development"
    app_debug: bool = True
    app_log_level: str = "INFO"
    log_json: bool = False

    # --- Server ---
    host: str = "0.0.0.0"
    port: int = 3000

    # --- Security ---
    # Empty = allow every origin
    cors_allow_origins: str = ""
    max_body_bytes: int = 64 * 1024

    # --- Rate Limiting ---
    # Transport-level cap per client address (0 disables)
    rate_limit_per_minute: int = 6
    rate_limit_window_seconds: int = 60
    # Per-number throttle, counted over the audit store
    per_number_per_minute: int = 2
    per_number_window_seconds: int = 60

    # --- Audit Store ---
    audit_max_entries: int = 10000   # Bounded in-memory buffer
    phone_hash_salt: str = ""        # Optional salt for phone hashes

    # --- Call Provider ---
    # "mock" = report success without dialing (default)
    # "twilio" = place a real outbound call via the Twilio REST API
    call_provider_mode: str = "mock"
    provider_timeout_seconds: float = 10.0

    # --- Twilio ---
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_from_number: str = ""
    twilio_twiml_url: str = ""
    twilio_status_callback_url: str = ""
    twilio_api_base_url: str = "https://api.twilio.com"

    # --- Voice Script ---
    voice_name: str = "alice"
    voice_brand_name: str = "Gnani AI"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated origins into list, dropping blanks."""
        return [
            origin.strip()
            for origin in self.cors_allow_origins.split(",")
            if origin.strip()
        ]

    @property
    def provider_mode(self) -> str:
        """Normalized call provider mode."""
        return self.call_provider_mode.strip().lower()


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.

    Use dependency injection in routes:
        settings: Settings = Depends(get_settings)
    """
    return Settings()
