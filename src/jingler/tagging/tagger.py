"""Tag-and-verify engine.

Copies the audio to its output path, writes ID3 frames there and, when a
cover image was supplied, re-reads the file and requires a non-empty embedded
image. The tag writer can silently no-op on malformed input, so the read-back
is a post-condition, not a log line.
"""

import logging
import shutil
from datetime import UTC, datetime
from pathlib import Path

from jingler.models.errors import TagVerifyError, TagWriteError
from jingler.models.final import TagFields
from jingler.models.pipeline import PipelineStage
from jingler.tagging.container import Id3Container

logger = logging.getLogger(__name__)

JPEG_SIGNATURE = b"\xff\xd8\xff"
PNG_SIGNATURE = b"\x89PNG"


def detect_image_mime(data: bytes) -> str | None:
    """MIME type from the leading bytes, or None for an unknown signature."""
    if data.startswith(JPEG_SIGNATURE):
        return "image/jpeg"
    if data.startswith(PNG_SIGNATURE):
        return "image/png"
    return None


class TagEngine:
    """Writes metadata and cover art, then verifies the embedding."""

    def __init__(self, container: Id3Container | None = None):
        self.container = container or Id3Container()

    def build_tags(self, fields: TagFields) -> dict:
        return {
            "title": fields.title,
            "artist": fields.artist,
            "album": fields.album,
            "year": fields.year or datetime.now(UTC).year,
            "genre": fields.genre,
            "producer": fields.producer,
        }

    def apply_metadata(
        self,
        input_path: Path,
        output_path: Path,
        fields: TagFields,
        cover_art_path: Path | None = None,
    ) -> Path:
        """Tag a copy of ``input_path`` at ``output_path``."""
        input_path = Path(input_path)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            shutil.copyfile(input_path, output_path)
        except OSError as e:
            raise TagWriteError(
                f"Failed to copy audio for tagging: {e}",
                details={"stage": PipelineStage.TAGGING.value, "input": str(input_path)},
            ) from e

        tags = self.build_tags(fields)

        cover_bytes = None
        if cover_art_path is not None:
            try:
                cover_bytes = Path(cover_art_path).read_bytes()
            except OSError as e:
                raise TagWriteError(
                    f"Failed to read cover art: {e}",
                    details={"stage": PipelineStage.TAGGING.value, "cover": str(cover_art_path)},
                ) from e
            mime = detect_image_mime(cover_bytes)
            if mime is None:
                logger.warning(
                    "Cover art %s has an unrecognised signature %s, embedding anyway",
                    cover_art_path,
                    cover_bytes[:4].hex(),
                )
            tags["image"] = cover_bytes
            tags["image_mime"] = mime or "image/jpeg"

        if not self.container.write(tags, output_path):
            raise TagWriteError(
                "Tag container rejected the write",
                details={"stage": PipelineStage.TAGGING.value, "output": str(output_path)},
            )

        if cover_bytes is not None:
            self.verify_cover(output_path)

        return output_path

    def verify_cover(self, output_path: Path) -> None:
        """Fail unless the written file carries a non-empty embedded image."""
        snapshot = self.container.read(output_path)
        if not snapshot.has_image:
            raise TagVerifyError(
                "Cover art was not embedded in the output file",
                details={
                    "stage": PipelineStage.TAGGING.value,
                    "output": str(output_path),
                    "image_bytes": len(snapshot.image_data or b""),
                },
            )
        logger.info(
            "Verified cover art in %s (%d bytes)", output_path, len(snapshot.image_data)
        )
