"""Source resolver: dispatch by source kind to a download engine."""

import logging

from jingler.config import get_settings
from jingler.ingest.audio_platform import AudioPlatformEngine
from jingler.ingest.base import DownloadEngine
from jingler.ingest.direct import DirectUrlEngine
from jingler.ingest.validators import validate_audio_format, validate_payload_size
from jingler.ingest.video_platform import VideoPlatformEngine
from jingler.models.audio import IngestedAudio, SourceKind
from jingler.models.errors import JinglerError, UpstreamError, ValidationError
from jingler.models.pipeline import PipelineStage

logger = logging.getLogger(__name__)


class SourceResolver:
    """Turns a (source kind, locator) pair into an IngestedAudio. Writes nothing."""

    def __init__(self, engines: dict[SourceKind, DownloadEngine] | None = None):
        self.settings = get_settings()
        if engines is None:
            direct = DirectUrlEngine()
            engines = {
                SourceKind.DIRECT_URL: direct,
                SourceKind.VIDEO_PLATFORM: VideoPlatformEngine(),
                SourceKind.AUDIO_PLATFORM: AudioPlatformEngine(client=direct.client),
            }
        self.engines = engines

    def resolve(self, source_kind: SourceKind | str, locator: str) -> IngestedAudio:
        try:
            kind = SourceKind(source_kind)
        except ValueError:
            raise ValidationError(
                f"Invalid source kind: {source_kind}",
                details={"allowed": [k.value for k in self.engines]},
            )
        engine = self.engines.get(kind)
        if engine is None:
            raise ValidationError(
                f"Source kind {kind} cannot be resolved from a URL",
                details={"allowed": [k.value for k in self.engines]},
            )

        try:
            metadata = engine.fetch_metadata(locator)
            data = engine.fetch_audio_bytes(locator)
        except JinglerError as e:
            e.details.setdefault("stage", PipelineStage.RESOLVE.value)
            e.details.setdefault("source_kind", kind.value)
            raise
        except Exception as e:
            raise UpstreamError(
                f"Failed to resolve {kind} source: {e}",
                component="resolver",
                details={"stage": PipelineStage.RESOLVE.value, "source_kind": kind.value},
            ) from e

        validate_payload_size(len(data))
        if not data:
            raise UpstreamError(
                "Source returned an empty payload",
                component="resolver",
                details={"source_kind": kind.value},
            )

        logger.info(
            "Resolved %s source %s: %r by %r (%d bytes)",
            kind,
            locator,
            metadata.title,
            metadata.author,
            len(data),
        )
        return IngestedAudio(
            data=data,
            source_kind=kind,
            extracted_title=metadata.title,
            extracted_artist=metadata.author,
            extracted_cover_art_ref=metadata.thumbnail_url,
            duration_seconds=metadata.duration,
        )

    def from_upload(
        self, data: bytes, filename: str, content_type: str | None = None
    ) -> IngestedAudio:
        """Wrap an uploaded payload after type and size checks."""
        if not filename:
            raise ValidationError("No filename provided")
        if not data:
            raise ValidationError("Uploaded file is empty", details={"filename": filename})
        validate_audio_format(filename, content_type)
        validate_payload_size(len(data))
        stem = filename.rsplit("/", 1)[-1].rsplit(".", 1)[0]
        return IngestedAudio(
            data=data,
            source_kind=SourceKind.UPLOAD,
            extracted_title=stem or None,
        )

    def fetch_cover(self, cover_art_ref: str | None) -> bytes | None:
        """Best-effort download of a source thumbnail."""
        engine = self.engines.get(SourceKind.DIRECT_URL)
        if not cover_art_ref or not isinstance(engine, DirectUrlEngine):
            return None
        return engine.fetch_image(cover_art_ref)
