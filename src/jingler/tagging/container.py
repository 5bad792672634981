"""ID3v2 tag container backed by mutagen."""

import logging
from pathlib import Path

from mutagen import MutagenError
from mutagen.id3 import APIC, ID3, TALB, TCON, TDRC, TIT2, TPE1, TXXX, ID3NoHeaderError

from jingler.models.final import TagSnapshot

logger = logging.getLogger(__name__)

PRODUCER_DESC = "PRODUCER"
FRONT_COVER = 3


class Id3Container:
    """Writes and reads the tag frames this pipeline uses."""

    def __init__(self, v2_version: int = 3):
        self.v2_version = v2_version

    def write(self, tags: dict, path: Path) -> bool:
        """Write ``tags`` into ``path``. Returns False if mutagen refuses the file.

        Keys: title, artist, album, year, genre, producer, image (bytes),
        image_mime.
        """
        try:
            try:
                id3 = ID3(str(path))
            except ID3NoHeaderError:
                id3 = ID3()

            if tags.get("title"):
                id3.setall("TIT2", [TIT2(encoding=3, text=tags["title"])])
            if tags.get("artist"):
                id3.setall("TPE1", [TPE1(encoding=3, text=tags["artist"])])
            if tags.get("album"):
                id3.setall("TALB", [TALB(encoding=3, text=tags["album"])])
            if tags.get("year"):
                id3.setall("TDRC", [TDRC(encoding=3, text=str(tags["year"]))])
            if tags.get("genre"):
                id3.setall("TCON", [TCON(encoding=3, text=tags["genre"])])
            if tags.get("producer"):
                id3.delall(f"TXXX:{PRODUCER_DESC}")
                id3.add(TXXX(encoding=3, desc=PRODUCER_DESC, text=tags["producer"]))
            if tags.get("image") is not None:
                id3.delall("APIC")
                id3.add(
                    APIC(
                        encoding=3,
                        mime=tags.get("image_mime") or "image/jpeg",
                        type=FRONT_COVER,
                        desc="Cover",
                        data=tags["image"],
                    )
                )

            id3.save(str(path), v2_version=self.v2_version)
            return True
        except (MutagenError, OSError) as e:
            logger.error("Tag write failed for %s: %s", path, e)
            return False

    def read(self, path: Path) -> TagSnapshot:
        """Re-read the tags of ``path``. Missing header reads as empty."""
        try:
            id3 = ID3(str(path))
        except ID3NoHeaderError:
            return TagSnapshot()

        def text(frame_id: str) -> str | None:
            frame = id3.get(frame_id)
            return str(frame.text[0]) if frame and frame.text else None

        image_data = None
        image_mime = None
        pictures = id3.getall("APIC")
        if pictures:
            image_data = pictures[0].data
            image_mime = pictures[0].mime

        return TagSnapshot(
            title=text("TIT2"),
            artist=text("TPE1"),
            album=text("TALB"),
            year=text("TDRC"),
            genre=text("TCON"),
            producer=text(f"TXXX:{PRODUCER_DESC}"),
            image_data=image_data,
            image_mime=image_mime,
        )
