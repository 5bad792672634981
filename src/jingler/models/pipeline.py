"""Pipeline stage models."""

from enum import StrEnum


class PipelineStage(StrEnum):
    """Stages of the ingestion pipeline, recorded in wrapped error details."""

    RESOLVE = "resolve"
    STAGING = "staging"
    MIXING = "mixing"
    TAGGING = "tagging"
    FINALIZE = "finalize"
