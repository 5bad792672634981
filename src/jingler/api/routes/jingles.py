"""Jingle library endpoints."""

from fastapi import APIRouter, Depends, Form, UploadFile

from jingler.api.dependencies import get_current_user, get_pipeline_manager
from jingler.models.plan import User
from jingler.pipeline.manager import PipelineManager

router = APIRouter(prefix="/api/v1", tags=["jingles"])


@router.post("/jingles")
def upload_jingle(
    file: UploadFile,
    name: str | None = Form(default=None),
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Save a jingle to the user's library."""
    jingle = manager.register_jingle(
        user, file.file.read(), file.filename or "", file.content_type, name=name
    )
    return jingle.model_dump(mode="json", exclude={"file_path"})


@router.get("/jingles")
def list_jingles(
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """List the user's saved jingles."""
    return [
        j.model_dump(mode="json", exclude={"file_path"})
        for j in manager.library.list_jingles(user.id)
    ]


@router.delete("/jingles/{jingle_id}")
def delete_jingle(
    jingle_id: str,
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Delete one of the user's jingles."""
    manager.delete_jingle(user, jingle_id)
    return {"deleted": jingle_id}
