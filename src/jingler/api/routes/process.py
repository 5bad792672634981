"""Processing endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from jingler.api.dependencies import get_current_user, get_pipeline_manager
from jingler.api.routes.mix import JingleRequest
from jingler.models.audio import SourceKind
from jingler.models.errors import ValidationError
from jingler.models.final import CoverChoice, TagFields
from jingler.models.plan import User
from jingler.pipeline.manager import PipelineManager

router = APIRouter(prefix="/api/v1", tags=["process"])


class ProcessRequest(BaseModel):
    staging_id: str
    title: str = Field(..., min_length=1)
    artist: str | None = None
    album: str | None = None
    producer: str | None = None
    year: int | None = Field(default=None, ge=0, le=9999)
    tags: str | None = None
    jingles: list[JingleRequest] = Field(default_factory=list)
    cover: CoverChoice = CoverChoice.NONE
    cover_art_id: str | None = None


class IngestRequest(BaseModel):
    source: SourceKind
    url: str
    title: str | None = None
    tags: str | None = None


@router.post("/process")
def process_staged(
    request: ProcessRequest,
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Mix, tag and finalize a staged audio."""
    if not request.title.strip():
        raise ValidationError("Title is required")
    fields = TagFields(
        title=request.title.strip(),
        artist=request.artist,
        album=request.album,
        producer=request.producer,
        year=request.year,
        tags=request.tags,
    )
    audio = manager.process_staged(
        user,
        request.staging_id,
        fields,
        jingles=[j.to_choice() for j in request.jingles],
        cover=request.cover,
        cover_art_id=request.cover_art_id,
    )
    return audio.model_dump(mode="json")


@router.post("/ingest")
def ingest(
    request: IngestRequest,
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Ingest a URL in one step, auto-mixing the user's saved jingles."""
    result = manager.ingest(user, request.source, request.url, request.title, request.tags)
    return {
        **result.audio.model_dump(mode="json"),
        "mixed": result.mixed,
        "mix_error": result.mix_error,
    }
