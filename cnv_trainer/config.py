"""
Application configuration — reads from environment variables.

Uses pydantic-settings to validate and type-check all config at startup.
The provider credential is normally supplied per session by the credential
collaborator; PROVIDER_API_KEY is only a default for the dev server.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All configuration for the content pipeline and the dev server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Optional default credential ───────────────────────
    provider_api_key: str = ""

    # ── Generative-text provider (OpenAI-compatible API) ──
    provider_model: str = "gemini-2.0-flash"
    provider_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    ai_temperature: float = 0.8
    ai_max_tokens: int = 8192

    # ── Feature flags ────────────────────────────────────
    # USE_MOCKS swaps the real provider for MockContentProvider.
    use_mocks: bool = False

    # ── Session rules ────────────────────────────────────
    scenario_count: int = 10

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    # ── Server (dev/testing only) ────────────────────────
    app_version: str = "0.1.0"
    cors_origins: str = "*"  # comma-separated in production
    max_sessions: int = 100  # live sessions before the oldest is evicted


def get_settings() -> Settings:
    """Create and return the validated settings instance.

    Raises:
        ValidationError: If env vars are present but invalid.
    """
    return Settings()
