"""Plan-based feature and limit checks.

Everything here is a pure function of the user's plan and usage history.
Checks run before any expensive work; duration checks run once the duration
is known but before mixing or tagging.
"""

from collections.abc import Iterable
from datetime import UTC, datetime

from jingler.models.errors import QuotaExceeded
from jingler.models.mix import JinglePosition, MixSpec
from jingler.models.plan import (
    DurationCheck,
    LimitCheck,
    Plan,
    PlanLimits,
    UsageRecord,
    UsageType,
    User,
)

FREE_DAILY_MIXES = 5
FREE_DAILY_UPLOADS = 5
FREE_MAX_AUDIO_SECONDS = 300
FREE_MAX_JINGLE_SECONDS = 120
FREE_MAX_EXTERNAL_INGEST_SECONDS = 240

FREE_LIMITS = PlanLimits(
    max_jingles=1,
    max_jingle_duration=FREE_MAX_JINGLE_SECONDS,
    max_external_ingest_duration=FREE_MAX_EXTERNAL_INGEST_SECONDS,
    max_audio_duration=FREE_MAX_AUDIO_SECONDS,
    allowed_positions=[JinglePosition.START],
    volume_control=False,
    daily_mixes=FREE_DAILY_MIXES,
    daily_uploads=FREE_DAILY_UPLOADS,
)

PRO_LIMITS = PlanLimits(
    max_jingles=3,
    allowed_positions=list(JinglePosition),
    volume_control=True,
)

MIX_LIMIT_REASON = (
    "Free tier limit: Maximum 5 mixes per day. Upgrade to PRO for unlimited mixing."
)
UPLOAD_LIMIT_REASON = (
    "Free tier limit: Maximum 5 uploads per day. Upgrade to PRO for unlimited uploads."
)
AUDIO_DURATION_REASON = (
    "Free tier limit: Maximum 5 minutes per audio file. Upgrade to PRO for longer files."
)
JINGLE_DURATION_REASON = (
    "Free tier limit: Maximum 2 minutes per jingle. Upgrade to PRO for longer jingles."
)
EXTERNAL_INGEST_DURATION_REASON = (
    "Free tier limit: Maximum 4 minutes for external ingestion (YouTube/Audiomack). "
    "Upgrade to PRO for longer files."
)

CAPABILITY_REASONS = {
    "can_mix": MIX_LIMIT_REASON,
    "can_upload": UPLOAD_LIMIT_REASON,
}


def is_pro_plan(plan: Plan | str) -> bool:
    return Plan(plan) != Plan.FREE


def get_plan_limits(plan: Plan | str) -> PlanLimits:
    """Return the feature limits for a plan."""
    return PRO_LIMITS if is_pro_plan(plan) else FREE_LIMITS


def count_today(
    usage_history: Iterable[UsageRecord], usage_type: UsageType, now: datetime | None = None
) -> int:
    """Count records of one type on the same UTC calendar day as ``now``."""
    today = (now or datetime.now(UTC)).astimezone(UTC).date()
    count = 0
    for record in usage_history:
        ts = record.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=UTC)
        if record.type == usage_type and ts.astimezone(UTC).date() == today:
            count += 1
    return count


def check_limits(
    user: User, usage_history: Iterable[UsageRecord], now: datetime | None = None
) -> LimitCheck:
    """Evaluate daily caps for a user.

    Pro plans always pass. Free caps are hard: a count at or above the cap
    denies. External ingest is never count-limited; free users are limited
    by duration instead.
    """
    if is_pro_plan(user.plan):
        return LimitCheck(can_mix=True, can_upload=True, can_ingest_external=True)

    history = list(usage_history)
    mixes_today = count_today(history, UsageType.MIX, now)
    uploads_today = count_today(history, UsageType.UPLOAD, now)

    can_mix = mixes_today < FREE_DAILY_MIXES
    can_upload = uploads_today < FREE_DAILY_UPLOADS

    reason = None
    if not can_mix:
        reason = MIX_LIMIT_REASON
    elif not can_upload:
        reason = UPLOAD_LIMIT_REASON

    return LimitCheck(
        can_mix=can_mix,
        can_upload=can_upload,
        can_ingest_external=True,
        reason=reason,
    )


def _check_duration(
    plan: Plan | str, seconds: float | None, limit: float | None, reason: str
) -> DurationCheck:
    if is_pro_plan(plan) or limit is None:
        return DurationCheck(allowed=True)
    # Unknown duration is allowed
    if not seconds:
        return DurationCheck(allowed=True)
    if seconds > limit:
        return DurationCheck(allowed=False, reason=reason)
    return DurationCheck(allowed=True)


def check_audio_duration_limit(plan: Plan | str, seconds: float | None) -> DurationCheck:
    return _check_duration(plan, seconds, FREE_MAX_AUDIO_SECONDS, AUDIO_DURATION_REASON)


def check_jingle_duration_limit(plan: Plan | str, seconds: float | None) -> DurationCheck:
    return _check_duration(plan, seconds, FREE_MAX_JINGLE_SECONDS, JINGLE_DURATION_REASON)


def check_external_ingest_duration_limit(
    plan: Plan | str, seconds: float | None
) -> DurationCheck:
    return _check_duration(
        plan, seconds, FREE_MAX_EXTERNAL_INGEST_SECONDS, EXTERNAL_INGEST_DURATION_REASON
    )


def require(check: LimitCheck | DurationCheck, capability: str = "allowed") -> None:
    """Raise QuotaExceeded when ``check`` denies ``capability``.

    The message names the capability checked, not the first one denied.
    """
    if not getattr(check, capability):
        raise QuotaExceeded(
            CAPABILITY_REASONS.get(capability)
            or check.reason
            or "Plan limit reached. Upgrade to PRO.",
            details={"capability": capability},
        )


def check_mix_spec(plan: Plan | str, spec: MixSpec) -> None:
    """Validate a user-configured mix against the plan's feature limits."""
    limits = get_plan_limits(plan)
    jingle_ids = spec.jingle_ids
    if len(jingle_ids) > limits.max_jingles:
        raise QuotaExceeded(
            f"Your plan allows at most {limits.max_jingles} jingle(s) per mix.",
            details={"requested": len(jingle_ids), "max_jingles": limits.max_jingles},
        )
    for placement in spec.placements:
        if placement.position not in limits.allowed_positions:
            raise QuotaExceeded(
                f"Jingle position '{placement.position}' is only available on PRO plans.",
                details={"position": placement.position.value},
            )
        if not limits.volume_control and placement.volume != 1.0:
            raise QuotaExceeded(
                "Jingle volume control is only available on PRO plans.",
                details={"volume": placement.volume},
            )
        require(check_jingle_duration_limit(plan, placement.jingle.duration_seconds))
