"""Application configuration using Pydantic BaseSettings."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Jingler configuration loaded from environment variables."""

    model_config = {"env_prefix": "JINGLER_", "env_file": ".env", "extra": "ignore"}

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "info"

    # Redis / Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    # Directories
    scratch_dir: Path = Path("/tmp/jingler/scratch")
    uploads_dir: Path = Path("/tmp/jingler/uploads")
    records_dir: Path = Path("/tmp/jingler/records")

    # Ingestion
    max_payload_mb: int = 50
    allowed_audio_formats: list[str] = ["mp3", "wav", "m4a", "aac", "ogg", "opus", "flac"]
    http_timeout_seconds: float = 60.0
    http_user_agent: str = "Jingler/1.0"
    ytdlp_binary: str = "yt-dlp"
    ytdlp_timeout_seconds: int = 300

    # Audio platform API
    audiomack_api_base: str = "https://api.audiomack.com/v1"
    audiomack_consumer_key: str = ""
    audiomack_consumer_secret: str = ""

    # Staging
    staging_ttl_seconds: int = 600

    # Mixing
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    ffmpeg_timeout_seconds: int = 600
    output_audio_codec: str = "libmp3lame"
    output_bitrate: str = "192k"
    preview_duration_seconds: int = 30
    auto_mix_best_effort: bool = True

    # Public URL prefix for finalized assets
    uploads_url_prefix: str = "/uploads"


def get_settings() -> Settings:
    """Return settings read from the current environment."""
    return Settings()
