"""Shared test fixtures and fakes."""

import shutil
from pathlib import Path

import pytest

from jingler.engine.ffmpeg import MediaEngine
from jingler.ingest.base import DownloadEngine
from jingler.ingest.resolver import SourceResolver
from jingler.mixing.compositor import OverlayCompositor
from jingler.models.audio import SourceKind, SourceMetadata
from jingler.models.errors import MixEngineError, UpstreamError
from jingler.pipeline.finalizer import Finalizer
from jingler.pipeline.manager import PipelineManager
from jingler.storage.library import AssetLibrary
from jingler.storage.records import RecordStore
from jingler.storage.staging import StagingStore
from jingler.storage.usage import UsageLog
from jingler.tagging.tagger import TagEngine

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _point_dirs(mp: pytest.MonkeyPatch, root: Path) -> dict[str, Path]:
    dirs = {name: root / name for name in ("scratch", "uploads", "records")}
    for d in dirs.values():
        d.mkdir(parents=True, exist_ok=True)
    mp.setenv("JINGLER_SCRATCH_DIR", str(dirs["scratch"]))
    mp.setenv("JINGLER_UPLOADS_DIR", str(dirs["uploads"]))
    mp.setenv("JINGLER_RECORDS_DIR", str(dirs["records"]))
    mp.setenv("JINGLER_AUDIOMACK_CONSUMER_KEY", "")
    mp.setenv("JINGLER_AUDIOMACK_CONSUMER_SECRET", "")
    return dirs


@pytest.fixture(scope="session", autouse=True)
def session_dirs(tmp_path_factory):
    """Keep every test run away from the configured default directories."""
    with pytest.MonkeyPatch.context() as mp:
        yield _point_dirs(mp, tmp_path_factory.mktemp("jingler"))


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Point every configured directory at a per-test temp tree."""
    return _point_dirs(monkeypatch, tmp_path)


@pytest.fixture
def scratch_dir(isolated_dirs):
    return isolated_dirs["scratch"]


@pytest.fixture
def uploads_dir(isolated_dirs):
    return isolated_dirs["uploads"]


@pytest.fixture
def records(isolated_dirs):
    return RecordStore(isolated_dirs["records"])


@pytest.fixture
def cover_file(tmp_path):
    path = tmp_path / "cover.jpg"
    path.write_bytes(JPEG_BYTES)
    return path


def fake_mp3_bytes(size: int = 4096) -> bytes:
    """Bytes that look like an MPEG audio frame header followed by padding."""
    return b"\xff\xfb\x90\x64" + b"\x00" * max(0, size - 4)


class FakeMediaEngine(MediaEngine):
    """MediaEngine that never shells out.

    Durations come from ``durations`` keyed by file name, falling back to
    ``default_duration``. ``run`` copies input 0 to the output and records
    the call. Output durations are registered as the longest-input mix.
    """

    def __init__(
        self,
        scratch_dir: Path | None = None,
        durations: dict[str, float] | None = None,
        default_duration: float = 120.0,
        embedded_image: bytes | None = None,
        fail_run: bool = False,
    ):
        super().__init__(scratch_dir=scratch_dir)
        self.durations = dict(durations or {})
        self.default_duration = default_duration
        self.embedded_image = embedded_image
        self.fail_run = fail_run
        self.runs: list[dict] = []

    def set_duration(self, path: Path | str, seconds: float) -> None:
        self.durations[Path(path).name] = seconds

    def probe_duration(self, path: Path) -> float:
        path = Path(path)
        if not path.exists():
            raise UpstreamError(f"File not found: {path}", component="media_engine")
        return self.durations.get(path.name, self.default_duration)

    def run(self, inputs, filter_graph, output_path, map_label=None, output_args=None):
        self.runs.append(
            {
                "inputs": list(inputs),
                "filter_graph": filter_graph,
                "output_path": Path(output_path),
                "map_label": map_label,
                "output_args": list(output_args or []),
            }
        )
        if self.fail_run:
            raise MixEngineError("FFmpeg exited with code 1", details={"stderr": "boom"})

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(inputs[0], output_path)

        longest = self.probe_duration(Path(inputs[0]))
        for path, delay in _delays(filter_graph, inputs):
            longest = max(longest, delay + self.probe_duration(Path(path)))
        args = list(output_args or [])
        if "-t" in args:
            longest = min(longest, float(args[args.index("-t") + 1]))
        self.set_duration(output_path, longest)
        return output_path

    def extract_embedded_image(self, path: Path) -> bytes | None:
        return self.embedded_image


def _delays(filter_graph: str, inputs: list[str]) -> list[tuple[str, float]]:
    """(input path, delay seconds) for every adelay stage in a graph."""
    result = []
    for stage in filter_graph.split(";\n"):
        if "adelay=" not in stage:
            continue
        index = int(stage[1 : stage.index(":a]")])
        ms = int(stage.split("adelay=")[1].split("|")[0])
        result.append((inputs[index], ms / 1000.0))
    return result


class FakeDownloadEngine(DownloadEngine):
    """DownloadEngine returning canned metadata and bytes."""

    def __init__(
        self,
        source_kind: SourceKind = SourceKind.DIRECT_URL,
        data: bytes | None = None,
        metadata: SourceMetadata | None = None,
        error: Exception | None = None,
    ):
        self.source_kind = source_kind
        self.data = fake_mp3_bytes() if data is None else data
        self.metadata = metadata or SourceMetadata(title="Test Track", author="Test Artist")
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def fetch_metadata(self, locator: str) -> SourceMetadata:
        self.calls.append(("metadata", locator))
        if self.error:
            raise self.error
        return self.metadata

    def fetch_audio_bytes(self, locator: str) -> bytes:
        self.calls.append(("audio", locator))
        if self.error:
            raise self.error
        return self.data


def build_pipeline(dirs: dict[str, Path], engine=None, engines=None):
    """A PipelineManager wired to fakes and the given directories."""
    records = RecordStore(dirs["records"])
    engine = engine or FakeMediaEngine(scratch_dir=dirs["scratch"], default_duration=200.0)
    if engines is None:
        engines = {
            SourceKind.DIRECT_URL: FakeDownloadEngine(SourceKind.DIRECT_URL),
            SourceKind.VIDEO_PLATFORM: FakeDownloadEngine(SourceKind.VIDEO_PLATFORM),
            SourceKind.AUDIO_PLATFORM: FakeDownloadEngine(SourceKind.AUDIO_PLATFORM),
        }
    staging = StagingStore(records=records, scratch_dir=dirs["scratch"])
    usage = UsageLog(records)
    return PipelineManager(
        records=records,
        engine=engine,
        resolver=SourceResolver(engines=engines),
        staging=staging,
        library=AssetLibrary(records=records, base_dir=dirs["uploads"]),
        usage=usage,
        compositor=OverlayCompositor(engine=engine, scratch_dir=dirs["scratch"]),
        finalizer=Finalizer(
            records=records,
            staging=staging,
            tagger=TagEngine(),
            engine=engine,
            usage=usage,
            uploads_dir=dirs["uploads"],
            scratch_dir=dirs["scratch"],
        ),
    )


@pytest.fixture
def pipeline(isolated_dirs):
    return build_pipeline(isolated_dirs)


def add_jingle(pipeline, owner_id: str, duration: float = 10.0, name: str = "Intro"):
    """Save a jingle directly to the library with a known duration."""
    jingle = pipeline.library.add_jingle(owner_id, fake_mp3_bytes(1024), name=name)
    pipeline.engine.set_duration(jingle.file_path, duration)
    jingle.duration_seconds = duration
    return pipeline.library.update_jingle(jingle)
