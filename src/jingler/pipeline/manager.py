"""Pipeline manager: orchestrates quota, ingestion, staging, mixing and finalize."""

import logging
import uuid
from pathlib import Path

from jingler.config import get_settings
from jingler.engine.ffmpeg import MediaEngine
from jingler.ingest.resolver import SourceResolver
from jingler.ingest.validators import validate_audio_format, validate_payload_size
from jingler.mixing.compositor import OverlayCompositor
from jingler.models.audio import ExtractedMetadata, IngestedAudio, SourceKind
from jingler.models.errors import (
    ForbiddenError,
    JinglerError,
    MixEngineError,
    NotFoundError,
    UnsupportedFormat,
    ValidationError,
)
from jingler.models.final import CoverArtRef, CoverChoice, FinalAudio, IngestResult, TagFields
from jingler.models.mix import (
    JingleChoice,
    JinglePlacement,
    JinglePosition,
    JingleRef,
    MixPolicy,
    MixSpec,
)
from jingler.models.pipeline import PipelineStage
from jingler.models.plan import LimitCheck, UsageType, User
from jingler.models.staging import StagingEntry
from jingler.pipeline.finalizer import Finalizer
from jingler.quota.gate import (
    check_audio_duration_limit,
    check_external_ingest_duration_limit,
    check_jingle_duration_limit,
    check_limits,
    check_mix_spec,
    get_plan_limits,
    require,
)
from jingler.storage.library import AssetLibrary
from jingler.storage.records import RecordStore
from jingler.storage.staging import StagingStore
from jingler.storage.usage import UsageLog
from jingler.tagging.tagger import detect_image_mime

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Imported Audio"


class PipelineManager:
    """Entry point for every pipeline operation."""

    def __init__(
        self,
        records: RecordStore | None = None,
        engine: MediaEngine | None = None,
        resolver: SourceResolver | None = None,
        staging: StagingStore | None = None,
        library: AssetLibrary | None = None,
        usage: UsageLog | None = None,
        compositor: OverlayCompositor | None = None,
        finalizer: Finalizer | None = None,
    ):
        self.settings = get_settings()
        self.records = records or RecordStore()
        self.engine = engine or MediaEngine()
        self.resolver = resolver or SourceResolver()
        self.staging = staging or StagingStore(records=self.records)
        self.library = library or AssetLibrary(records=self.records)
        self.usage = usage or UsageLog(self.records)
        self.compositor = compositor or OverlayCompositor(engine=self.engine)
        self.finalizer = finalizer or Finalizer(
            records=self.records, staging=self.staging, engine=self.engine, usage=self.usage
        )

    def check_limits(self, user: User) -> LimitCheck:
        return check_limits(user, self.usage.history(user.id))

    # Staging

    def stage_from_source(
        self, user: User, source_kind: SourceKind | str, url: str
    ) -> StagingEntry:
        """Resolve a remote source and stage it for configuration."""
        require(self.check_limits(user), "can_ingest_external")
        ingested = self.resolver.resolve(source_kind, url)
        return self._stage(user, ingested, source_url=url)

    def stage_upload(
        self, user: User, data: bytes, filename: str, content_type: str | None = None
    ) -> StagingEntry:
        """Stage an uploaded file for configuration."""
        require(self.check_limits(user), "can_upload")
        ingested = self.resolver.from_upload(data, filename, content_type)
        return self._stage(user, ingested)

    def _stage(
        self, user: User, ingested: IngestedAudio, source_url: str | None = None
    ) -> StagingEntry:
        entry = self.staging.create(
            user.id,
            ingested.data,
            ingested.to_metadata(source_url),
            ingested.duration_seconds,
        )
        staged_path = Path(entry.file_path)
        try:
            duration = self.engine.try_probe_duration(staged_path) or ingested.duration_seconds
            entry.duration_seconds = duration

            if ingested.source_kind == SourceKind.UPLOAD:
                require(check_audio_duration_limit(user.plan, duration))
            else:
                require(check_external_ingest_duration_limit(user.plan, duration))

            cover = self.resolver.fetch_cover(ingested.extracted_cover_art_ref)
            if cover is None:
                cover = self.engine.extract_embedded_image(staged_path)
            if cover:
                entry = self.staging.attach_cover(entry, cover)
            else:
                entry = self.staging.update(entry)
        except Exception as e:
            # Disallowed or broken assets never outlive the request that staged them
            self.staging.delete(entry.id)
            if isinstance(e, JinglerError):
                e.details.setdefault("stage", PipelineStage.STAGING.value)
            raise
        return entry

    # Mixing

    def build_mix_spec(self, user: User, choices: list[JingleChoice]) -> MixSpec:
        """Look up the user's jingles and validate the mix against the plan."""
        placements = []
        for choice in choices:
            jingle = self.library.get_jingle(choice.jingle_id, user.id)
            placements.append(
                JinglePlacement(jingle=jingle, position=choice.position, volume=choice.volume)
            )
        spec = MixSpec(placements=placements)
        check_mix_spec(user.plan, spec)
        return spec

    def auto_mix_spec(self, user: User) -> MixSpec:
        """The user's saved jingles at the start, full volume, capped by plan."""
        limits = get_plan_limits(user.plan)
        jingles: list[JingleRef] = self.library.list_jingles(user.id)[: limits.max_jingles]
        return MixSpec(
            placements=[
                JinglePlacement(jingle=j, position=JinglePosition.START, volume=1.0)
                for j in jingles
                if Path(j.file_path).exists()
            ]
        )

    def _composite(
        self, source: Path, spec: MixSpec, policy: MixPolicy
    ) -> tuple[Path, bool, str | None]:
        """Mix ``spec`` onto ``source``.

        Returns:
            Tuple of (audio path, mixed flag, mix error message). Under
            BEST_EFFORT a failed mix returns the unmixed source.
        """
        try:
            return self.compositor.mix(source, spec), True, None
        except MixEngineError as e:
            if policy == MixPolicy.STRICT:
                raise
            logger.warning("Automatic mix failed, using unmixed audio: %s", e.message)
            return source, False, e.message

    def _resolve_cover(
        self,
        user: User,
        entry: StagingEntry,
        choice: CoverChoice,
        cover_art_id: str | None,
    ) -> tuple[Path | None, str | None]:
        """Returns (cover file to embed, saved cover id to record)."""
        if choice == CoverChoice.NONE:
            return None, None
        if choice == CoverChoice.ORIGINAL:
            ref = entry.extracted_cover_art_ref
            if ref and Path(ref).exists():
                return Path(ref), None
            logger.info("No extracted cover for staging entry %s", entry.id)
            return None, None
        if choice == CoverChoice.DEFAULT:
            cover = self.library.default_cover(user.id)
            if cover is None:
                logger.info("User %s has no default cover art", user.id)
                return None, None
            return Path(cover.file_path), cover.id
        if not cover_art_id:
            raise ValidationError("cover_art_id is required when cover is 'saved'")
        cover = self.library.get_cover(cover_art_id, user.id)
        return Path(cover.file_path), cover.id

    # Finalize flows

    def process_staged(
        self,
        user: User,
        staging_id: str,
        fields: TagFields,
        jingles: list[JingleChoice] | None = None,
        cover: CoverChoice = CoverChoice.NONE,
        cover_art_id: str | None = None,
    ) -> FinalAudio:
        """Finalize a staged file with an explicit, user-configured mix."""
        require(self.check_limits(user), "can_upload")
        entry = self.staging.get(staging_id, user.id)
        spec = self.build_mix_spec(user, jingles or [])
        cover_path, cover_ref = self._resolve_cover(user, entry, cover, cover_art_id)

        source = Path(entry.file_path)
        temp_paths = []
        if not spec.is_empty:
            source, _, _ = self._composite(source, spec, MixPolicy.STRICT)
            temp_paths.append(source)

        return self.finalizer.finalize(
            source,
            fields,
            user.id,
            staging_id=entry.id,
            cover_art_path=cover_path,
            cover_art_ref=cover_ref,
            usage_type=UsageType.UPLOAD,
            temp_paths=temp_paths,
        )

    def ingest(
        self,
        user: User,
        source_kind: SourceKind | str,
        url: str,
        title: str | None = None,
        tags: str | None = None,
    ) -> IngestResult:
        """One-shot ingest: stage, auto-mix with saved jingles, finalize."""
        entry = self.stage_from_source(user, source_kind, url)
        meta = entry.extracted_metadata or ExtractedMetadata()
        source = Path(entry.file_path)

        try:
            fields = TagFields(
                title=(title or "").strip() or meta.title or DEFAULT_TITLE,
                artist=meta.artist,
                tags=(tags or "").strip() or None,
            )
            spec = self.auto_mix_spec(user)
            mixed, mix_error = False, None
            temp_paths = []
            if not spec.is_empty:
                policy = MixPolicy.STRICT
                if self.settings.auto_mix_best_effort:
                    policy = MixPolicy.BEST_EFFORT
                source, mixed, mix_error = self._composite(source, spec, policy)
                if mixed:
                    temp_paths.append(source)
        except JinglerError:
            self.staging.delete(entry.id)
            raise

        cover = entry.extracted_cover_art_ref
        audio = self.finalizer.finalize(
            source,
            fields,
            user.id,
            staging_id=entry.id,
            cover_art_path=Path(cover) if cover and Path(cover).exists() else None,
            usage_type=UsageType.EXTERNAL_INGEST,
            usage_source=str(meta.source_kind or source_kind),
            temp_paths=temp_paths,
        )
        return IngestResult(audio=audio, mixed=mixed, mix_error=mix_error)

    def get_audio(self, user: User, audio_id: str) -> FinalAudio:
        audio = self.finalizer.get(audio_id)
        if audio is None:
            raise NotFoundError(
                "Audio not found", component="audio", details={"audio_id": audio_id}
            )
        if audio.owner_id is not None and audio.owner_id != user.id:
            raise ForbiddenError(
                "This audio belongs to another user",
                component="audio",
                details={"audio_id": audio_id},
            )
        return audio

    def mix_existing(
        self, user: User, audio_id: str, jingles: list[JingleChoice]
    ) -> FinalAudio:
        """Mix jingles onto a finalized asset, producing a new derived asset."""
        require(self.check_limits(user), "can_mix")
        parent = self.get_audio(user, audio_id)
        spec = self.build_mix_spec(user, jingles)
        if spec.is_empty:
            raise ValidationError("At least one jingle is required to mix")

        parent_path = self.finalizer.output_path_for(parent.id)
        if not parent_path.exists():
            raise NotFoundError(
                "Audio file is missing", component="audio", details={"audio_id": audio_id}
            )

        mixed, _, _ = self._composite(parent_path, spec, MixPolicy.STRICT)
        temp_paths = [mixed]

        # The mix graph maps audio only, so carry the parent's cover across
        cover_path = None
        image = self.engine.extract_embedded_image(parent_path)
        if image:
            cover_path = self.finalizer.scratch_dir / f"cover_{uuid.uuid4()}.jpg"
            cover_path.parent.mkdir(parents=True, exist_ok=True)
            cover_path.write_bytes(image)
            temp_paths.append(cover_path)

        tag_list = [t.strip() for t in (parent.tags or "").split(",") if t.strip()]
        if "mixed" not in tag_list:
            tag_list.insert(0, "mixed")
        fields = TagFields(
            title=f"{parent.title} (Mixed)",
            artist=parent.artist,
            album=parent.album,
            producer=parent.producer,
            year=parent.year,
            tags=", ".join(tag_list),
        )
        return self.finalizer.finalize(
            mixed,
            fields,
            user.id,
            cover_art_path=cover_path,
            cover_art_ref=parent.cover_art_ref,
            usage_type=UsageType.MIX,
            parent_id=parent.id,
            temp_paths=temp_paths,
        )

    def preview(self, user: User, staging_id: str, jingles: list[JingleChoice]) -> Path:
        """Render a short preview of a staged file with jingles. Nothing is persisted."""
        entry = self.staging.get(staging_id, user.id)
        spec = self.build_mix_spec(user, jingles)
        if spec.is_empty:
            raise ValidationError("At least one jingle is required for a preview")
        return self.compositor.mix(Path(entry.file_path), spec, preview_only=True)

    # Jingles

    def register_jingle(
        self,
        user: User,
        data: bytes,
        filename: str,
        content_type: str | None = None,
        name: str | None = None,
    ) -> JingleRef:
        """Save a jingle after format, size and plan duration checks."""
        if not filename:
            raise ValidationError("No filename provided")
        if not data:
            raise ValidationError("Uploaded jingle is empty")
        validate_audio_format(filename, content_type)
        validate_payload_size(len(data))

        extension = Path(filename).suffix.lstrip(".").lower() or "mp3"
        jingle = self.library.add_jingle(user.id, data, extension=extension, name=name)
        jingle_path = Path(jingle.file_path)
        try:
            duration = self.engine.try_probe_duration(jingle_path)
            require(check_jingle_duration_limit(user.plan, duration))
        except Exception:
            self.library.delete_jingle(jingle.id)
            raise
        jingle.duration_seconds = duration
        return self.library.update_jingle(jingle)

    def delete_jingle(self, user: User, jingle_id: str) -> None:
        """Remove one of the user's jingles and its file."""
        jingle = self.library.get_jingle(jingle_id, user.id)
        self.library.delete_jingle(jingle.id)
        logger.info("Deleted jingle %s for user %s", jingle.id, user.id)

    # Cover art

    def register_cover(
        self, user: User, data: bytes, is_default: bool = False
    ) -> CoverArtRef:
        """Save a cover image. Only JPEG and PNG signatures are accepted."""
        if not data:
            raise ValidationError("Uploaded cover art is empty")
        validate_payload_size(len(data))
        mime = detect_image_mime(data)
        if mime is None:
            raise UnsupportedFormat(
                "Cover art must be a JPEG or PNG image",
                details={"signature": data[:4].hex()},
            )
        extension = "png" if mime == "image/png" else "jpg"
        return self.library.add_cover(user.id, data, is_default=is_default, extension=extension)
