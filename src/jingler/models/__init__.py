"""Data models for Jingler."""

from jingler.models.audio import ExtractedMetadata, IngestedAudio, SourceKind, SourceMetadata
from jingler.models.errors import (
    ConfigurationError,
    ErrorResponse,
    ForbiddenError,
    JinglerError,
    MixEngineError,
    NotFoundError,
    PayloadTooLarge,
    QuotaExceeded,
    TagVerifyError,
    TagWriteError,
    UnsupportedFormat,
    UpstreamError,
    ValidationError,
)
from jingler.models.final import (
    CoverArtRef,
    CoverChoice,
    FinalAudio,
    IngestResult,
    TagFields,
    TagSnapshot,
    final_audio_id_from_url,
    final_filename,
    final_url,
)
from jingler.models.mix import (
    JingleChoice,
    JinglePlacement,
    JinglePosition,
    JingleRef,
    MixPolicy,
    MixSpec,
    ResolvedPlacement,
)
from jingler.models.pipeline import PipelineStage
from jingler.models.plan import (
    DurationCheck,
    LimitCheck,
    Plan,
    PlanLimits,
    UsageRecord,
    UsageType,
    User,
)
from jingler.models.staging import StagingEntry, StagingLookup

__all__ = [
    "ConfigurationError",
    "CoverArtRef",
    "CoverChoice",
    "DurationCheck",
    "ErrorResponse",
    "ExtractedMetadata",
    "FinalAudio",
    "ForbiddenError",
    "IngestResult",
    "IngestedAudio",
    "JingleChoice",
    "JinglePlacement",
    "JinglePosition",
    "JingleRef",
    "JinglerError",
    "LimitCheck",
    "MixEngineError",
    "MixPolicy",
    "MixSpec",
    "NotFoundError",
    "PayloadTooLarge",
    "PipelineStage",
    "Plan",
    "PlanLimits",
    "QuotaExceeded",
    "ResolvedPlacement",
    "SourceKind",
    "SourceMetadata",
    "StagingEntry",
    "StagingLookup",
    "TagFields",
    "TagSnapshot",
    "TagVerifyError",
    "TagWriteError",
    "UnsupportedFormat",
    "UpstreamError",
    "UsageRecord",
    "UsageType",
    "User",
    "ValidationError",
    "final_audio_id_from_url",
    "final_filename",
    "final_url",
]
