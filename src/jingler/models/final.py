"""Finalized audio asset models."""

import re
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

FINAL_PREFIX = "final-"
FINAL_EXTENSION = ".mp3"

_FINAL_NAME_RE = re.compile(
    r"^final-([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})\.mp3$"
)


def final_filename(audio_id: str) -> str:
    """File name bound to a FinalAudio id."""
    return f"{FINAL_PREFIX}{audio_id}{FINAL_EXTENSION}"


def final_url(audio_id: str, prefix: str = "/uploads") -> str:
    return f"{prefix.rstrip('/')}/{final_filename(audio_id)}"


def final_audio_id_from_url(url: str) -> str | None:
    """Parse the id back out of a final asset URL or path. None if it does not match."""
    name = url.rstrip("/").rsplit("/", 1)[-1]
    m = _FINAL_NAME_RE.match(name)
    return m.group(1) if m else None


class TagFields(BaseModel):
    """Descriptive metadata written into the output container."""

    title: str = Field(..., min_length=1)
    artist: str | None = None
    album: str | None = None
    producer: str | None = None
    year: int | None = Field(default=None, ge=0, le=9999)
    tags: str | None = None

    @property
    def genre(self) -> str | None:
        """Comma separated tags normalised to ``a, b, c``."""
        if not self.tags:
            return None
        parts = [t.strip() for t in self.tags.split(",") if t.strip()]
        return ", ".join(parts) or None


class TagSnapshot(BaseModel):
    """Tags as re-read from a written file."""

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    year: str | None = None
    genre: str | None = None
    producer: str | None = None
    image_data: bytes | None = Field(default=None, repr=False)
    image_mime: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_data)


class CoverChoice(StrEnum):
    """Which image to embed in a finalized asset."""

    NONE = "none"
    ORIGINAL = "original"
    DEFAULT = "default"
    SAVED = "saved"


class CoverArtRef(BaseModel):
    """A user's saved cover image."""

    id: str = Field(..., min_length=1)
    owner_id: str
    file_path: str
    is_default: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class FinalAudio(BaseModel):
    """A finalized asset. ``id`` is also the file name component of ``url``."""

    id: str = Field(..., min_length=1)
    owner_id: str | None = None
    title: str
    artist: str | None = None
    album: str | None = None
    producer: str | None = None
    year: int | None = None
    tags: str | None = None
    cover_art_ref: str | None = None
    url: str
    duration_seconds: float | None = Field(default=None, ge=0)
    file_size: int | None = Field(default=None, ge=0)
    parent_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if final_audio_id_from_url(v) is None:
            raise ValueError(f"URL does not name a final asset: {v}")
        return v

    @model_validator(mode="after")
    def validate_id_binding(self) -> "FinalAudio":
        if final_audio_id_from_url(self.url) != self.id:
            raise ValueError(f"URL {self.url} is not bound to id {self.id}")
        return self

    @property
    def filename(self) -> str:
        return final_filename(self.id)


class IngestResult(BaseModel):
    """Outcome of a one-shot ingest."""

    audio: FinalAudio
    mixed: bool = False
    mix_error: str | None = None
