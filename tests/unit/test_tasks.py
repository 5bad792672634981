"""Tests for the staging janitor task."""

import os
import time
from datetime import UTC, datetime, timedelta

from jingler.pipeline.tasks import celery_app, sweep_staging_task
from jingler.storage.records import RecordStore
from jingler.storage.staging import StagingStore
from tests.conftest import fake_mp3_bytes


def test_beat_schedule_registered():
    schedule = celery_app.conf.beat_schedule["sweep-staging"]
    assert schedule["task"] == "jingler.sweep_staging"


def test_sweep_removes_expired_artifacts(isolated_dirs):
    scratch = isolated_dirs["scratch"]
    staging = StagingStore(records=RecordStore(isolated_dirs["records"]), scratch_dir=scratch)
    old = staging.create("u1", fake_mp3_bytes())
    old.created_at = datetime.now(UTC) - timedelta(seconds=700)
    staging.update(old)
    fresh = staging.create("u1", fake_mp3_bytes())

    temp = scratch / "temp_mixed_1234.mp3"
    temp.write_bytes(b"x")
    old_mtime = time.time() - 700
    os.utime(temp, (old_mtime, old_mtime))

    result = sweep_staging_task(ttl_seconds=600)

    assert result == {"staging_removed": 1, "temp_removed": 1}
    assert not temp.exists()
    assert staging.get(fresh.id, "u1")
