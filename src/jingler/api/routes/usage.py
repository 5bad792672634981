"""Usage and plan limit endpoint."""

from fastapi import APIRouter, Depends

from jingler.api.dependencies import get_current_user, get_pipeline_manager
from jingler.models.plan import UsageType, User
from jingler.pipeline.manager import PipelineManager
from jingler.quota.gate import check_limits, count_today, get_plan_limits

router = APIRouter(prefix="/api/v1", tags=["usage"])


@router.get("/usage")
def get_usage(
    user: User = Depends(get_current_user),
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Today's usage counts, limit check and plan limits."""
    history = manager.usage.history(user.id)
    return {
        "plan": user.plan.value,
        "today": {t.value: count_today(history, t) for t in UsageType},
        "limits": check_limits(user, history).model_dump(),
        "plan_limits": get_plan_limits(user.plan).model_dump(mode="json"),
    }
