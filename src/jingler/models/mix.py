"""Jingle and mix specification models."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class JinglePosition(StrEnum):
    """Where a jingle is placed on the main track."""

    START = "start"
    MIDDLE = "middle"
    END = "end"
    START_END = "start-end"


class MixPolicy(StrEnum):
    """How a caller treats a failed mix."""

    STRICT = "strict"
    BEST_EFFORT = "best_effort"


class JingleRef(BaseModel):
    """A user's saved jingle clip. Read-only to the pipeline."""

    id: str = Field(..., min_length=1)
    owner_id: str
    file_path: str
    duration_seconds: float | None = Field(default=None, ge=0)
    name: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class JinglePlacement(BaseModel):
    """One jingle at one position and volume."""

    jingle: JingleRef
    position: JinglePosition = JinglePosition.START
    volume: float = Field(default=1.0, ge=0, le=1)


class MixSpec(BaseModel):
    """Ordered list of jingle placements."""

    placements: list[JinglePlacement] = Field(default_factory=list)

    @field_validator("placements")
    @classmethod
    def validate_placements(cls, v: list[JinglePlacement]) -> list[JinglePlacement]:
        for p in v:
            if not p.jingle.file_path:
                raise ValueError(f"Jingle {p.jingle.id} has no file path")
        return v

    @property
    def is_empty(self) -> bool:
        return not self.placements

    @property
    def jingle_ids(self) -> list[str]:
        seen: list[str] = []
        for p in self.placements:
            if p.jingle.id not in seen:
                seen.append(p.jingle.id)
        return seen


class ResolvedPlacement(BaseModel):
    """A placement with a concrete delay, one per ffmpeg input."""

    jingle_path: str
    offset_ms: int = Field(..., ge=0)
    volume: float = Field(default=1.0, ge=0, le=1)
    jingle_duration: float = Field(default=0.0, ge=0)

    @property
    def end_seconds(self) -> float:
        return self.offset_ms / 1000.0 + self.jingle_duration


class JingleChoice(BaseModel):
    """A placement as requested by the user, before the jingle is looked up."""

    jingle_id: str = Field(..., min_length=1)
    position: JinglePosition = JinglePosition.START
    volume: float = Field(default=1.0, ge=0, le=1)
