"""Finalizer: binds one id to the record and the output file, then cleans up."""

import logging
import time
import uuid
from collections.abc import Iterable
from pathlib import Path

from jingler.config import get_settings
from jingler.engine.ffmpeg import MediaEngine
from jingler.models.errors import JinglerError
from jingler.models.final import FinalAudio, TagFields, final_filename, final_url
from jingler.models.pipeline import PipelineStage
from jingler.models.plan import UsageType
from jingler.storage.records import FINAL_AUDIO, RecordStore
from jingler.storage.staging import StagingStore
from jingler.storage.usage import UsageLog
from jingler.tagging.tagger import TagEngine

logger = logging.getLogger(__name__)

TEMP_PREFIXES = ("temp_mixed_", "temp_jingle_", "preview_", "cover_")


class Finalizer:
    """Tags, verifies and persists a final asset under a single uuid."""

    def __init__(
        self,
        records: RecordStore | None = None,
        staging: StagingStore | None = None,
        tagger: TagEngine | None = None,
        engine: MediaEngine | None = None,
        usage: UsageLog | None = None,
        uploads_dir: Path | None = None,
        scratch_dir: Path | None = None,
    ):
        self.settings = get_settings()
        self.records = records or RecordStore()
        self.staging = staging or StagingStore(records=self.records)
        self.tagger = tagger or TagEngine()
        self.engine = engine or MediaEngine()
        self.usage = usage or UsageLog(self.records)
        self.uploads_dir = Path(uploads_dir or self.settings.uploads_dir)
        self.scratch_dir = Path(scratch_dir or self.settings.scratch_dir)

    def output_path_for(self, audio_id: str) -> Path:
        return self.uploads_dir / final_filename(audio_id)

    def finalize(
        self,
        source_path: Path,
        fields: TagFields,
        owner_id: str,
        staging_id: str | None = None,
        cover_art_path: Path | None = None,
        cover_art_ref: str | None = None,
        usage_type: UsageType = UsageType.UPLOAD,
        usage_source: str | None = None,
        parent_id: str | None = None,
        temp_paths: Iterable[Path] = (),
    ) -> FinalAudio:
        """Produce a FinalAudio from a mixed or staged file.

        The staging entry (if any) and ``temp_paths`` are removed whether or
        not finalization succeeds. On failure the partial output is removed
        and no record is left behind.
        """
        audio_id = str(uuid.uuid4())
        output_path = self.output_path_for(audio_id)
        persisted = False

        try:
            source_path = Path(source_path)
            input_size = source_path.stat().st_size

            self.tagger.apply_metadata(source_path, output_path, fields, cover_art_path)

            output_size = output_path.stat().st_size
            if output_size != input_size:
                logger.warning(
                    "Size changed across tag write for %s: %d -> %d bytes",
                    output_path.name,
                    input_size,
                    output_size,
                )

            duration = self.engine.try_probe_duration(output_path)

            audio = FinalAudio(
                id=audio_id,
                owner_id=owner_id,
                title=fields.title,
                artist=fields.artist,
                album=fields.album,
                producer=fields.producer,
                year=fields.year,
                tags=fields.genre,
                cover_art_ref=cover_art_ref,
                url=final_url(audio_id, self.settings.uploads_url_prefix),
                duration_seconds=duration,
                file_size=output_size,
                parent_id=parent_id,
            )
            self.records.create(FINAL_AUDIO, audio_id, audio)
            persisted = True

            self.usage.record(
                owner_id,
                usage_type,
                audio_id=audio_id,
                duration_seconds=duration,
                file_size=output_size,
                source=usage_source,
            )
            logger.info("Finalized %s for user %s (%s)", audio_id, owner_id, output_path)
            return audio

        except JinglerError as e:
            self._discard(audio_id, output_path, persisted)
            e.details.setdefault("stage", PipelineStage.FINALIZE.value)
            raise
        except Exception as e:
            self._discard(audio_id, output_path, persisted)
            raise JinglerError(
                f"Finalize failed: {e}",
                component="finalize",
                details={"stage": PipelineStage.FINALIZE.value, "error": type(e).__name__},
            ) from e
        finally:
            self._cleanup(staging_id, temp_paths)

    def get(self, audio_id: str) -> FinalAudio | None:
        return self.records.find(FINAL_AUDIO, audio_id, FinalAudio)

    def _discard(self, audio_id: str, output_path: Path, persisted: bool) -> None:
        output_path.unlink(missing_ok=True)
        if persisted:
            self.records.delete(FINAL_AUDIO, audio_id)
        logger.error("Discarded partial output %s", output_path.name)

    def _cleanup(self, staging_id: str | None, temp_paths: Iterable[Path]) -> None:
        if staging_id:
            self.staging.delete(staging_id)
        for path in temp_paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not delete temp file %s: %s", path, e)
        self.sweep_orphans()

    def sweep_orphans(self, max_age_seconds: int | None = None) -> int:
        """Delete temp files with known prefixes older than ``max_age_seconds``."""
        max_age = max_age_seconds
        if max_age is None:
            max_age = self.settings.staging_ttl_seconds
        cutoff = time.time() - max_age
        removed = 0
        if not self.scratch_dir.exists():
            return 0
        for path in self.scratch_dir.iterdir():
            if not path.is_file() or not path.name.startswith(TEMP_PREFIXES):
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except OSError as e:
                logger.warning("Could not sweep %s: %s", path, e)
        if removed:
            logger.info("Swept %d orphaned temp file(s)", removed)
        return removed
