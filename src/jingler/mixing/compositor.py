"""Overlay compositor: places jingles over a main track."""

import logging
import uuid
from pathlib import Path

from jingler.config import get_settings
from jingler.engine.ffmpeg import MediaEngine
from jingler.mixing.filter_graph import (
    MIX_LABEL,
    MixGraphBuilder,
    compute_offset_ms,
    expected_mix_duration,
)
from jingler.models.errors import JinglerError, MixEngineError
from jingler.models.mix import MixSpec, ResolvedPlacement
from jingler.models.pipeline import PipelineStage

logger = logging.getLogger(__name__)

MIXED_PREFIX = "temp_mixed_"
PREVIEW_PREFIX = "preview_"


class OverlayCompositor:
    """Mixes a MixSpec onto a main track through the media engine."""

    def __init__(self, engine: MediaEngine | None = None, scratch_dir: Path | None = None):
        self.settings = get_settings()
        self.engine = engine or MediaEngine()
        self.builder = MixGraphBuilder()
        self.scratch_dir = Path(scratch_dir or self.settings.scratch_dir)

    def resolve_placements(
        self, main_duration: float, spec: MixSpec
    ) -> list[ResolvedPlacement]:
        """Probe each jingle and expand placements into concrete offsets."""
        durations: dict[str, float] = {}
        resolved = []
        for placement in spec.placements:
            path = placement.jingle.file_path
            if path not in durations:
                durations[path] = self.engine.probe_duration(Path(path))
            jingle_duration = durations[path]
            for offset_ms in compute_offset_ms(
                placement.position, main_duration, jingle_duration
            ):
                resolved.append(
                    ResolvedPlacement(
                        jingle_path=path,
                        offset_ms=offset_ms,
                        volume=placement.volume,
                        jingle_duration=jingle_duration,
                    )
                )
        return resolved

    def build_output_args(self, preview_only: bool) -> list[str]:
        args = [
            "-c:a",
            self.settings.output_audio_codec,
            "-b:a",
            self.settings.output_bitrate,
        ]
        if preview_only:
            args.extend(["-t", str(self.settings.preview_duration_seconds)])
        return args

    def mix(self, main_path: Path, spec: MixSpec, preview_only: bool = False) -> Path:
        """Mix ``spec`` onto ``main_path`` and return the temp output path.

        Any failure, including probe failures, surfaces as MixEngineError.
        """
        if spec.is_empty:
            raise MixEngineError("Mix requested with no jingle placements")

        prefix = PREVIEW_PREFIX if preview_only else MIXED_PREFIX
        output_path = self.scratch_dir / f"{prefix}{uuid.uuid4()}.mp3"

        try:
            main_duration = self.engine.probe_duration(Path(main_path))
            placements = self.resolve_placements(main_duration, spec)
            inputs, filter_complex = self.builder.build_filter_graph(str(main_path), placements)

            logger.info(
                "Mixing %d placement(s) onto %s (%.1fs, expected %.1fs)",
                len(placements),
                main_path,
                main_duration,
                expected_mix_duration(main_duration, placements),
            )
            return self.engine.run(
                inputs,
                filter_complex,
                output_path,
                map_label=MIX_LABEL,
                output_args=self.build_output_args(preview_only),
            )
        except JinglerError as e:
            output_path.unlink(missing_ok=True)
            if isinstance(e, MixEngineError):
                e.details.setdefault("stage", PipelineStage.MIXING.value)
                raise
            raise MixEngineError(
                f"Mixing failed: {e.message}",
                details={
                    "stage": PipelineStage.MIXING.value,
                    "cause": type(e).__name__,
                    **e.details,
                },
            ) from e
