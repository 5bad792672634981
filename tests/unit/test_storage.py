"""Tests for record persistence, the staging store, usage log and asset library."""

import os
import time
from datetime import UTC, datetime, timedelta

import pytest

from jingler.models.audio import ExtractedMetadata, SourceKind
from jingler.models.errors import ForbiddenError, NotFoundError, ValidationError
from jingler.models.plan import UsageType
from jingler.models.staging import StagingEntry
from jingler.storage.library import AssetLibrary
from jingler.storage.records import STAGING, RecordStore
from jingler.storage.staging import StagingStore
from jingler.storage.usage import UsageLog
from tests.conftest import JPEG_BYTES, fake_mp3_bytes


@pytest.fixture
def staging(records, scratch_dir):
    return StagingStore(records=records, scratch_dir=scratch_dir)


def age_file(path, seconds: float) -> None:
    old = time.time() - seconds
    os.utime(path, (old, old))


class TestRecordStore:
    def test_create_find_delete(self, records):
        entry = StagingEntry(id="abc12345", file_path="/x.mp3")
        records.create(STAGING, entry.id, entry)
        assert records.find(STAGING, entry.id, StagingEntry) == entry
        assert records.delete(STAGING, entry.id)
        assert records.find(STAGING, entry.id, StagingEntry) is None
        assert not records.delete(STAGING, entry.id)

    @pytest.mark.parametrize("key", ["", "../etc", "a/b", ".hidden"])
    def test_rejects_bad_keys(self, records, key):
        with pytest.raises(ValueError):
            records.find(STAGING, key, StagingEntry)

    def test_default_dir_from_settings(self, isolated_dirs):
        assert RecordStore().base_dir == isolated_dirs["records"]


class TestStagingStore:
    def test_create_and_get(self, staging):
        meta = ExtractedMetadata(title="T", source_kind=SourceKind.DIRECT_URL)
        entry = staging.create("u1", fake_mp3_bytes(), meta, 12.5)

        assert entry.file_path.endswith(f"staged_{entry.id}.mp3")
        got = staging.get(entry.id, "u1")
        assert got.extracted_metadata.title == "T"
        assert got.duration_seconds == 12.5

    def test_other_owner_forbidden(self, staging):
        entry = staging.create("u1", fake_mp3_bytes())
        with pytest.raises(ForbiddenError):
            staging.get(entry.id, "u2")

    def test_missing_is_not_found(self, staging):
        with pytest.raises(NotFoundError, match="expired"):
            staging.lookup("00000000-0000-0000-0000-000000000000")

    @pytest.mark.parametrize("bad_id", ["../../etc/passwd", "short", "a b c d e f g h"])
    def test_invalid_id(self, staging, bad_id):
        with pytest.raises(ValidationError):
            staging.lookup(bad_id)

    def test_reconstructs_from_file_name(self, staging, records, caplog):
        entry = staging.create("u1", fake_mp3_bytes())
        staging.attach_cover(entry, JPEG_BYTES)
        records.delete(STAGING, entry.id)

        result = staging.lookup(entry.id)

        assert result.reconstructed
        assert result.entry.owner_id is None
        assert result.entry.file_path == entry.file_path
        assert result.entry.extracted_cover_art_ref == str(staging.cover_path(entry.id))
        assert "reconstructed" in caplog.text

    def test_reconstructed_entry_grants_access(self, staging, records):
        entry = staging.create("u1", fake_mp3_bytes())
        records.delete(STAGING, entry.id)
        assert staging.get(entry.id, "anyone").id == entry.id

    def test_record_without_file(self, staging, tmp_path):
        entry = staging.create("u1", fake_mp3_bytes())
        staging.staged_path(entry.id).unlink()
        with pytest.raises(NotFoundError, match="missing"):
            staging.get(entry.id, "u1")

    def test_delete_removes_everything(self, staging):
        entry = staging.create("u1", fake_mp3_bytes())
        staging.attach_cover(entry, JPEG_BYTES)

        assert staging.delete(entry.id)

        assert not staging.staged_path(entry.id).exists()
        assert not staging.cover_path(entry.id).exists()
        with pytest.raises(NotFoundError):
            staging.lookup(entry.id)
        assert not staging.delete(entry.id)

    def test_sweep_expired(self, staging, records, scratch_dir):
        old = staging.create("u1", fake_mp3_bytes())
        old.created_at = datetime.now(UTC) - timedelta(seconds=700)
        staging.update(old)
        fresh = staging.create("u1", fake_mp3_bytes())

        orphan = scratch_dir / "staged_orphan-0001.mp3"
        orphan.write_bytes(b"x")
        age_file(orphan, 700)
        unrelated = scratch_dir / "keep.mp3"
        unrelated.write_bytes(b"x")
        age_file(unrelated, 700)

        cleaned = staging.sweep_expired(600)

        assert cleaned == 2
        assert staging.get(fresh.id, "u1")
        with pytest.raises(NotFoundError):
            staging.lookup(old.id)
        assert not orphan.exists()
        assert unrelated.exists()


class TestUsageLog:
    def test_history_is_per_user(self, records):
        log = UsageLog(records)
        log.record("u1", UsageType.MIX, audio_id="a1", file_size=10)
        log.record("u2", UsageType.UPLOAD)
        log.record("u1", UsageType.EXTERNAL_INGEST, source="video-platform")

        history = log.history("u1")
        assert sorted(r.type for r in history) == [UsageType.EXTERNAL_INGEST, UsageType.MIX]
        assert all(r.user_id == "u1" for r in history)


class TestAssetLibrary:
    @pytest.fixture
    def library(self, records, uploads_dir):
        return AssetLibrary(records=records, base_dir=uploads_dir)

    def test_add_and_get_jingle(self, library, uploads_dir):
        jingle = library.add_jingle("u1", b"jingle", extension="wav", name="Intro")
        assert jingle.file_path == str(uploads_dir / "jingles" / f"jingle-{jingle.id}.wav")
        assert library.get_jingle(jingle.id, "u1").name == "Intro"
        assert [j.id for j in library.list_jingles("u1")] == [jingle.id]
        assert library.list_jingles("u2") == []

    def test_jingle_of_other_user(self, library):
        jingle = library.add_jingle("u1", b"jingle")
        with pytest.raises(ForbiddenError, match="belongs to another user"):
            library.get_jingle(jingle.id, "u2")

    def test_missing_jingle(self, library):
        with pytest.raises(NotFoundError):
            library.get_jingle("nope", "u1")

    def test_delete_jingle_removes_file(self, library):
        jingle = library.add_jingle("u1", b"jingle")
        library.delete_jingle(jingle.id)
        assert not os.path.exists(jingle.file_path)
        with pytest.raises(NotFoundError):
            library.get_jingle(jingle.id, "u1")

    def test_single_default_cover(self, library):
        first = library.add_cover("u1", JPEG_BYTES, is_default=True)
        second = library.add_cover("u1", JPEG_BYTES, is_default=True)
        assert library.default_cover("u1").id == second.id
        assert not library.get_cover(first.id, "u1").is_default
        assert library.default_cover("u2") is None

    def test_cover_of_other_user(self, library):
        cover = library.add_cover("u1", JPEG_BYTES)
        with pytest.raises(ForbiddenError, match="cover art belongs"):
            library.get_cover(cover.id, "u2")
