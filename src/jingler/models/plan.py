"""Subscription plan, usage and limit models."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from jingler.models.mix import JinglePosition


class Plan(StrEnum):
    """Subscription tiers. Every tier except FREE is a pro tier."""

    FREE = "free"
    DAILY_UNLIMITED = "daily_unlimited"
    DAILY_250MB = "daily_250mb"
    WEEKLY_UNLIMITED = "weekly_unlimited"
    WEEKLY_300MB = "weekly_300mb"
    MONTHLY_UNLIMITED = "monthly_unlimited"
    MONTHLY_5000MB = "monthly_5000mb"


class UsageType(StrEnum):
    MIX = "mix"
    UPLOAD = "upload"
    EXTERNAL_INGEST = "external_ingest"


class User(BaseModel):
    """Identity supplied verbatim by the auth collaborator."""

    id: str = Field(..., min_length=1)
    plan: Plan = Plan.FREE


class UsageRecord(BaseModel):
    """One audited operation."""

    user_id: str
    type: UsageType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    audio_id: str | None = None
    duration_seconds: float | None = Field(default=None, ge=0)
    file_size: int | None = Field(default=None, ge=0)
    source: str | None = None


class PlanLimits(BaseModel):
    """Feature limits for one plan. ``None`` means unlimited."""

    max_jingles: int = Field(..., ge=0)
    max_jingle_duration: float | None = None
    max_external_ingest_duration: float | None = None
    max_audio_duration: float | None = None
    allowed_positions: list[JinglePosition] = Field(default_factory=list)
    volume_control: bool = False
    daily_mixes: int | None = None
    daily_uploads: int | None = None
    preview_duration: int = 30


class LimitCheck(BaseModel):
    """Result of the daily quota check."""

    can_mix: bool
    can_upload: bool
    can_ingest_external: bool
    reason: str | None = None


class DurationCheck(BaseModel):
    """Result of a duration limit check."""

    allowed: bool
    reason: str | None = None
