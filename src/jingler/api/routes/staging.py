"""Staging endpoints."""

from fastapi import APIRouter, Depends, UploadFile
from pydantic import BaseModel

from jingler.api.dependencies import get_current_user, get_pipeline_manager
from jingler.models.audio import SourceKind
from jingler.models.plan import User
from jingler.models.staging import StagingEntry
from jingler.pipeline.manager import PipelineManager

router = APIRouter(prefix="/api/v1", tags=["staging"])


class StageUrlRequest(BaseModel):
    source: SourceKind
    url: str


def _staging_response(entry: StagingEntry, ttl_seconds: int) -> dict:
    meta = entry.extracted_metadata
    return {
        "staging_id": entry.id,
        "duration": entry.duration_seconds,
        "title": meta.title if meta else None,
        "artist": meta.artist if meta else None,
        "has_cover_art": entry.extracted_cover_art_ref is not None,
        "expires_in": ttl_seconds,
    }


@router.post("/stage/upload")
def stage_upload(
    file: UploadFile,
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Stage an uploaded audio file."""
    entry = manager.stage_upload(
        user, file.file.read(), file.filename or "", file.content_type
    )
    return _staging_response(entry, manager.settings.staging_ttl_seconds)


@router.post("/stage/url")
def stage_url(
    request: StageUrlRequest,
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Download and stage audio from a direct URL or a supported platform."""
    entry = manager.stage_from_source(user, request.source, request.url)
    return _staging_response(entry, manager.settings.staging_ttl_seconds)
