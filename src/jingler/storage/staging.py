"""Staging store: ingested files awaiting user configuration."""

import logging
import re
import time
import uuid
from datetime import UTC, datetime
from pathlib import Path

from jingler.config import get_settings
from jingler.models.audio import ExtractedMetadata
from jingler.models.errors import ForbiddenError, NotFoundError, ValidationError
from jingler.models.staging import StagingEntry, StagingLookup
from jingler.storage.records import STAGING, RecordStore

logger = logging.getLogger(__name__)

STAGED_PREFIX = "staged_"
_STAGING_ID_RE = re.compile(r"^[0-9A-Za-z-]{8,64}$")


class StagingStore:
    """Writes staged payloads under the scratch directory, keyed by id."""

    def __init__(self, records: RecordStore | None = None, scratch_dir: Path | None = None):
        self.settings = get_settings()
        self.records = records or RecordStore()
        self.scratch_dir = Path(scratch_dir or self.settings.scratch_dir)
        self.scratch_dir.mkdir(parents=True, exist_ok=True)

    def staged_path(self, staging_id: str) -> Path:
        """Conventional file path for a staging id."""
        if not _STAGING_ID_RE.match(staging_id or ""):
            raise ValidationError(
                "Invalid staging id", details={"staging_id": staging_id}
            )
        return self.scratch_dir / f"{STAGED_PREFIX}{staging_id}.mp3"

    def cover_path(self, staging_id: str) -> Path:
        return self.scratch_dir / f"{STAGED_PREFIX}{staging_id}_cover.jpg"

    def create(
        self,
        owner_id: str,
        data: bytes,
        extracted: ExtractedMetadata | None = None,
        duration_seconds: float | None = None,
    ) -> StagingEntry:
        """Write ``data`` to a fresh staged file and persist its record."""
        staging_id = str(uuid.uuid4())
        path = self.staged_path(staging_id)
        path.write_bytes(data)

        entry = StagingEntry(
            id=staging_id,
            owner_id=owner_id,
            file_path=str(path),
            duration_seconds=duration_seconds,
            extracted_metadata=extracted,
        )
        self.records.create(STAGING, staging_id, entry)
        logger.info("Staged %d bytes as %s for user %s", len(data), staging_id, owner_id)
        return entry

    def update(self, entry: StagingEntry) -> StagingEntry:
        self.records.update(STAGING, entry.id, entry)
        return entry

    def attach_cover(self, entry: StagingEntry, image: bytes) -> StagingEntry:
        """Save an extracted cover image next to the staged file."""
        path = self.cover_path(entry.id)
        path.write_bytes(image)
        entry.extracted_cover_art_ref = str(path)
        return self.update(entry)

    def lookup(self, staging_id: str) -> StagingLookup:
        """Find an entry by id, falling back to the file naming convention."""
        path = self.staged_path(staging_id)
        entry = self.records.find(STAGING, staging_id, StagingEntry)
        if entry is not None:
            return StagingLookup(entry=entry)

        if path.exists():
            logger.warning(
                "Staging record %s missing, reconstructed from file name %s",
                staging_id,
                path.name,
            )
            cover = self.cover_path(staging_id)
            return StagingLookup(
                entry=StagingEntry(
                    id=staging_id,
                    file_path=str(path),
                    extracted_cover_art_ref=str(cover) if cover.exists() else None,
                ),
                reconstructed=True,
            )

        raise NotFoundError(
            "Staged audio not found or expired. Please upload again.",
            component="staging",
            details={"staging_id": staging_id},
        )

    def get(self, staging_id: str, owner_id: str) -> StagingEntry:
        """Lookup with an ownership check."""
        result = self.lookup(staging_id)
        entry = result.entry
        if entry.owner_id is None:
            logger.warning(
                "Staging entry %s has no recorded owner, granting access to %s",
                staging_id,
                owner_id,
            )
        elif entry.owner_id != owner_id:
            raise ForbiddenError(
                "Staged audio belongs to another user",
                component="staging",
                details={"staging_id": staging_id},
            )
        if not Path(entry.file_path).exists():
            raise NotFoundError(
                "Staged audio file is missing",
                component="staging",
                details={"staging_id": staging_id},
            )
        return entry

    def delete(self, staging_id: str) -> bool:
        """Remove the record, staged file and extracted cover. True if anything was removed."""
        removed = self.records.delete(STAGING, staging_id)
        for path in (self.staged_path(staging_id), self.cover_path(staging_id)):
            if path.exists():
                path.unlink(missing_ok=True)
                removed = True
        if removed:
            logger.info("Deleted staging entry %s", staging_id)
        return removed

    def sweep_expired(self, ttl_seconds: int | None = None) -> int:
        """Delete entries and orphaned staged files older than the TTL."""
        ttl = ttl_seconds or self.settings.staging_ttl_seconds
        now = datetime.now(UTC)
        cleaned = 0

        for entry in self.records.list_all(STAGING, StagingEntry):
            created = entry.created_at
            if created.tzinfo is None:
                created = created.replace(tzinfo=UTC)
            if (now - created).total_seconds() > ttl:
                self.delete(entry.id)
                cleaned += 1

        cutoff = time.time() - ttl
        for path in self.scratch_dir.glob(f"{STAGED_PREFIX}*"):
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink(missing_ok=True)
                cleaned += 1

        if cleaned:
            logger.info("Swept %d expired staging artifact(s)", cleaned)
        return cleaned
