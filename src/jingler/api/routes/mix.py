"""Mixing endpoints."""

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field
from starlette.background import BackgroundTask

from jingler.api.dependencies import get_current_user, get_pipeline_manager
from jingler.models.mix import JingleChoice, JinglePosition
from jingler.models.plan import User
from jingler.pipeline.manager import PipelineManager

router = APIRouter(prefix="/api/v1", tags=["mix"])


class JingleRequest(BaseModel):
    jingle_id: str
    position: JinglePosition = JinglePosition.START
    volume: float = Field(default=100, ge=0, le=100, description="Percent")

    def to_choice(self) -> JingleChoice:
        return JingleChoice(
            jingle_id=self.jingle_id, position=self.position, volume=self.volume / 100
        )


class MixRequest(BaseModel):
    audio_id: str
    jingles: list[JingleRequest] = Field(..., min_length=1)


class PreviewRequest(BaseModel):
    staging_id: str
    jingles: list[JingleRequest] = Field(..., min_length=1)


@router.post("/mix")
def mix_existing(
    request: MixRequest,
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Mix jingles onto a finalized audio, producing a new audio."""
    audio = manager.mix_existing(
        user, request.audio_id, [j.to_choice() for j in request.jingles]
    )
    return audio.model_dump(mode="json")


@router.post("/mix/preview")
def mix_preview(
    request: PreviewRequest,
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Render a preview of a staged audio with jingles."""
    path = manager.preview(user, request.staging_id, [j.to_choice() for j in request.jingles])
    return FileResponse(
        path=path,
        media_type="audio/mpeg",
        filename=Path(path).name,
        background=BackgroundTask(Path(path).unlink, missing_ok=True),
    )
