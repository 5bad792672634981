"""A user's saved jingles and cover art."""

import logging
import uuid
from pathlib import Path

from jingler.config import get_settings
from jingler.models.errors import ForbiddenError, NotFoundError
from jingler.models.final import CoverArtRef
from jingler.models.mix import JingleRef
from jingler.storage.records import COVER_ARTS, JINGLES, RecordStore

logger = logging.getLogger(__name__)


class AssetLibrary:
    """Read-mostly user assets. The pipeline never mutates saved files."""

    def __init__(self, records: RecordStore | None = None, base_dir: Path | None = None):
        self.records = records or RecordStore()
        self.base_dir = Path(base_dir or get_settings().uploads_dir)

    def _check_owner(self, owner_id: str, asset_owner: str, kind: str, asset_id: str) -> None:
        if asset_owner != owner_id:
            raise ForbiddenError(
                f"This {kind.replace('_', ' ')} belongs to another user",
                component="library",
                details={f"{kind}_id": asset_id},
            )

    def add_jingle(
        self,
        owner_id: str,
        data: bytes,
        extension: str = "mp3",
        name: str | None = None,
        duration_seconds: float | None = None,
    ) -> JingleRef:
        jingle_id = str(uuid.uuid4())
        path = self.base_dir / "jingles" / f"jingle-{jingle_id}.{extension.lstrip('.') or 'mp3'}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        jingle = JingleRef(
            id=jingle_id,
            owner_id=owner_id,
            file_path=str(path),
            duration_seconds=duration_seconds,
            name=name,
        )
        self.records.create(JINGLES, jingle_id, jingle)
        logger.info("Saved jingle %s for user %s", jingle_id, owner_id)
        return jingle

    def update_jingle(self, jingle: JingleRef) -> JingleRef:
        self.records.update(JINGLES, jingle.id, jingle)
        return jingle

    def delete_jingle(self, jingle_id: str) -> None:
        jingle = self.records.find(JINGLES, jingle_id, JingleRef)
        if jingle is not None:
            Path(jingle.file_path).unlink(missing_ok=True)
            self.records.delete(JINGLES, jingle_id)

    def list_jingles(self, owner_id: str) -> list[JingleRef]:
        return [j for j in self.records.list_all(JINGLES, JingleRef) if j.owner_id == owner_id]

    def get_jingle(self, jingle_id: str, owner_id: str) -> JingleRef:
        jingle = self.records.find(JINGLES, jingle_id, JingleRef)
        if jingle is None:
            raise NotFoundError(
                "Jingle not found", component="library", details={"jingle_id": jingle_id}
            )
        self._check_owner(owner_id, jingle.owner_id, "jingle", jingle_id)
        return jingle

    def add_cover(
        self, owner_id: str, data: bytes, is_default: bool = False, extension: str = "jpg"
    ) -> CoverArtRef:
        cover_id = str(uuid.uuid4())
        path = self.base_dir / "covers" / f"cover-{cover_id}.{extension.lstrip('.') or 'jpg'}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        if is_default:
            for existing in self.list_covers(owner_id):
                if existing.is_default:
                    existing.is_default = False
                    self.records.update(COVER_ARTS, existing.id, existing)
        cover = CoverArtRef(
            id=cover_id, owner_id=owner_id, file_path=str(path), is_default=is_default
        )
        self.records.create(COVER_ARTS, cover_id, cover)
        logger.info("Saved cover art %s for user %s", cover_id, owner_id)
        return cover

    def list_covers(self, owner_id: str) -> list[CoverArtRef]:
        covers = self.records.list_all(COVER_ARTS, CoverArtRef)
        return [c for c in covers if c.owner_id == owner_id]

    def get_cover(self, cover_id: str, owner_id: str) -> CoverArtRef:
        cover = self.records.find(COVER_ARTS, cover_id, CoverArtRef)
        if cover is None:
            raise NotFoundError(
                "Cover art not found", component="library", details={"cover_art_id": cover_id}
            )
        self._check_owner(owner_id, cover.owner_id, "cover_art", cover_id)
        return cover

    def default_cover(self, owner_id: str) -> CoverArtRef | None:
        for cover in self.list_covers(owner_id):
            if cover.is_default:
                return cover
        return None
