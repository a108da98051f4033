from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Claude API (free-form cooking questions)
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-20250514"
    claude_max_tokens: int = 500

    # Timers
    max_timers: int = 5
    timer_tick_seconds: float = 1.0

    # Voice output (edge-tts)
    voice_name: str = "en-US-AriaNeural"
    voice_rate: str = "+0%"

    # Logging
    log_level: str = "INFO"

    # CORS - comma separated, "*" for any origin
    cors_origins: str = "*"

    @property
    def cors_origin_list(self) -> list[str]:
        """Split the configured CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
