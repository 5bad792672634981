"""Per-user usage history."""

import uuid

from jingler.models.plan import UsageRecord, UsageType
from jingler.storage.records import USAGE, RecordStore


class UsageLog:
    """Append-only audit of metered operations."""

    def __init__(self, records: RecordStore | None = None):
        self.records = records or RecordStore()

    def record(
        self,
        user_id: str,
        usage_type: UsageType,
        audio_id: str | None = None,
        duration_seconds: float | None = None,
        file_size: int | None = None,
        source: str | None = None,
    ) -> UsageRecord:
        entry = UsageRecord(
            user_id=user_id,
            type=usage_type,
            audio_id=audio_id,
            duration_seconds=duration_seconds,
            file_size=file_size,
            source=source,
        )
        self.records.create(USAGE, str(uuid.uuid4()), entry)
        return entry

    def history(self, user_id: str) -> list[UsageRecord]:
        return [r for r in self.records.list_all(USAGE, UsageRecord) if r.user_id == user_id]
