"""Cover art library endpoints."""

from fastapi import APIRouter, Depends, Form, UploadFile

from jingler.api.dependencies import get_current_user, get_pipeline_manager
from jingler.models.plan import User
from jingler.pipeline.manager import PipelineManager

router = APIRouter(prefix="/api/v1", tags=["cover-art"])


@router.post("/cover-art")
def upload_cover(
    file: UploadFile,
    is_default: bool = Form(default=False),
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Save a JPEG or PNG cover to the user's library."""
    cover = manager.register_cover(user, file.file.read(), is_default=is_default)
    return cover.model_dump(mode="json", exclude={"file_path"})


@router.get("/cover-art")
def list_covers(
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """List the user's saved covers."""
    return [
        c.model_dump(mode="json", exclude={"file_path"})
        for c in manager.library.list_covers(user.id)
    ]
