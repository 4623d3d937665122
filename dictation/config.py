"""Application configuration. Loads from env vars."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Speech recognition: the browser engine is configured with these on every session start
    RECOGNITION_LANG: str = "es-ES"
    RECOGNITION_CONTINUOUS: bool = True
    RECOGNITION_INTERIM_RESULTS: bool = True

    # Auto-restart after the engine ends a session on its own (mobile browsers do this often)
    RESTART_DELAY_MS: int = 300
    # Restart after a "no-speech" error (engine timed out waiting for audio)
    NO_SPEECH_RESTART_DELAY_MS: int = 100

    # Draft storage: committed story text per session_id, kept in memory for reconnects.
    DRAFTS_ENABLED: bool = True

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path = also write logs to file (empty = console only).
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()
