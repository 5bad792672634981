"""Ingested audio models."""

from enum import StrEnum

from pydantic import BaseModel, Field


class SourceKind(StrEnum):
    """Where an audio payload came from."""

    DIRECT_URL = "direct-url"
    VIDEO_PLATFORM = "video-platform"
    AUDIO_PLATFORM = "audio-platform"
    UPLOAD = "upload"


class SourceMetadata(BaseModel):
    """Metadata reported by a download engine before the audio is fetched."""

    title: str | None = None
    author: str | None = None
    duration: float | None = Field(default=None, ge=0)
    thumbnail_url: str | None = None


class ExtractedMetadata(BaseModel):
    """Descriptive metadata carried from ingestion into staging."""

    title: str | None = None
    artist: str | None = None
    source_kind: SourceKind | None = None
    source_url: str | None = None


class IngestedAudio(BaseModel):
    """Uniform result of resolving any source kind. Never persisted."""

    data: bytes = Field(..., repr=False)
    source_kind: SourceKind
    extracted_title: str | None = None
    extracted_artist: str | None = None
    extracted_cover_art_ref: str | None = None
    duration_seconds: float | None = Field(default=None, ge=0)

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def to_metadata(self, source_url: str | None = None) -> ExtractedMetadata:
        return ExtractedMetadata(
            title=self.extracted_title,
            artist=self.extracted_artist,
            source_kind=self.source_kind,
            source_url=source_url,
        )
