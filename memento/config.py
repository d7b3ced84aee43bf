"""
Runtime configuration for the memento service.

Values are read from the environment (``MEMENTO_`` prefix) or a ``.env`` file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Single upper bound on track-list length, shared by request validation
# and the tracklist parser.
MAX_TRACKS = 100


class Settings(BaseSettings):
    assets_dir: str = "."  # Directory holding public/logo.* and public/fonts/*
    max_tracks: int = MAX_TRACKS
    photo_fetch_timeout: float = 10.0  # Seconds, remote photo URLs only
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="MEMENTO_", extra="ignore")


settings = Settings()
