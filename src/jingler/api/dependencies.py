"""Dependency injection providers for FastAPI."""

from functools import lru_cache

from fastapi import Header

from jingler.models.errors import ValidationError
from jingler.models.plan import Plan, User
from jingler.pipeline.manager import PipelineManager


@lru_cache
def get_pipeline_manager() -> PipelineManager:
    return PipelineManager()


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_plan: str = Header(default=Plan.FREE.value),
) -> User:
    """Identity forwarded verbatim by the auth layer in front of this service."""
    if not x_user_id:
        raise ValidationError("Missing X-User-Id header")
    try:
        plan = Plan(x_user_plan)
    except ValueError:
        raise ValidationError(
            f"Unknown plan: {x_user_plan}", details={"allowed": [p.value for p in Plan]}
        )
    return User(id=x_user_id, plan=plan)
