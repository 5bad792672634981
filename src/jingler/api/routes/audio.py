"""Finalized audio endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from jingler.api.dependencies import get_current_user, get_pipeline_manager
from jingler.models.errors import NotFoundError
from jingler.models.final import final_audio_id_from_url
from jingler.models.plan import User
from jingler.pipeline.manager import PipelineManager

router = APIRouter(tags=["audio"])


@router.get("/api/v1/audio/{audio_id}")
def get_audio(
    audio_id: str,
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Get a finalized audio record."""
    return manager.get_audio(user, audio_id).model_dump(mode="json")


@router.get("/uploads/{filename}")
def download_audio(
    filename: str,
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Serve a finalized file. The path is derived from the id in the name."""
    audio_id = final_audio_id_from_url(filename)
    if audio_id is None:
        raise NotFoundError("File not found", component="audio", details={"filename": filename})

    path = manager.finalizer.output_path_for(audio_id)
    if not path.exists():
        raise NotFoundError("File not found", component="audio", details={"filename": filename})

    return FileResponse(path=path, media_type="audio/mpeg", filename=filename)
