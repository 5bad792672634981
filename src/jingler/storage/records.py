"""Record persistence (JSON-based)."""

import logging
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel

from jingler.config import get_settings

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

STAGING = "staging"
FINAL_AUDIO = "final_audio"
JINGLES = "jingles"
COVER_ARTS = "cover_arts"
USAGE = "usage"


class RecordStore:
    """Keyed store of Pydantic models, one JSON file per record.

    No cross-record transactions. Each collection is a directory.
    """

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = Path(base_dir or get_settings().records_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _collection_dir(self, collection: str) -> Path:
        d = self.base_dir / collection
        d.mkdir(parents=True, exist_ok=True)
        return d

    def _path(self, collection: str, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid record key: {key!r}")
        return self._collection_dir(collection) / f"{key}.json"

    def create(self, collection: str, key: str, model: BaseModel) -> Path:
        """Save a Pydantic model as JSON."""
        path = self._path(collection, key)
        path.write_text(model.model_dump_json(indent=2))
        return path

    update = create

    def find(self, collection: str, key: str, model_class: type[M]) -> M | None:
        """Load a Pydantic model from JSON, or None if absent."""
        path = self._path(collection, key)
        if not path.exists():
            return None
        return model_class.model_validate_json(path.read_text())

    def delete(self, collection: str, key: str) -> bool:
        path = self._path(collection, key)
        if path.exists():
            path.unlink()
            logger.debug("Deleted record %s/%s", collection, key)
            return True
        return False

    def list_all(self, collection: str, model_class: type[M]) -> list[M]:
        """All records of a collection, oldest file first."""
        d = self._collection_dir(collection)
        files = sorted(d.glob("*.json"), key=lambda p: p.stat().st_mtime)
        return [model_class.model_validate_json(p.read_text()) for p in files]

