"""Staging entry models."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from jingler.models.audio import ExtractedMetadata


class StagingEntry(BaseModel):
    """An ingested file awaiting user configuration."""

    id: str = Field(..., min_length=1)
    owner_id: str | None = None
    file_path: str
    duration_seconds: float | None = Field(default=None, ge=0)
    extracted_cover_art_ref: str | None = None
    extracted_metadata: ExtractedMetadata | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class StagingLookup(BaseModel):
    """Result of a staging lookup.

    ``reconstructed`` is True when no record existed and the entry was
    rebuilt from the ``staged_{id}.mp3`` naming convention. Such entries carry
    no owner and no metadata.
    """

    entry: StagingEntry
    reconstructed: bool = False
