"""Video platform download engine (yt-dlp subprocess).

Metadata and audio are each fetched through an ordered chain of client
strategies. Each strategy presents a different player client to the platform;
the first one that succeeds wins.
"""

import json
import logging
from abc import ABC, abstractmethod
import re
import subprocess
import tempfile
from pathlib import Path

from jingler.config import get_settings
from jingler.ingest.base import DownloadEngine
from jingler.ingest.validators import validate_payload_size, validate_source_url
from jingler.models.audio import SourceKind, SourceMetadata
from jingler.models.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

VIDEO_URL_RE = re.compile(
    r"^https?://(?:(?:www|m|music)\.)?(?:youtube\.com/(?:watch\?.*v=|shorts/|embed/|live/)"
    r"|youtu\.be/)[\w-]{6,}"
)

PLAYER_CLIENTS = ("web", "android", "ios", "tv_embedded")
PREFERRED_FORMAT = "bestaudio[ext=m4a]/bestaudio[ext=webm]/bestaudio/best"
FALLBACK_FORMAT = "bestaudio/best"


def validate_video_url(url: str) -> str:
    url = validate_source_url(url)
    if not VIDEO_URL_RE.match(url):
        raise ValidationError("Invalid YouTube URL", details={"url": url})
    return url


class YtDlpRunner:
    """Runs yt-dlp and maps failures to UpstreamError."""

    def __init__(self, binary: str | None = None, timeout: int | None = None):
        settings = get_settings()
        self.binary = binary or settings.ytdlp_binary
        self.timeout = timeout or settings.ytdlp_timeout_seconds

    def run(self, args: list[str]) -> str:
        cmd = [self.binary, *args]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError:
            raise UpstreamError(
                "yt-dlp not found. Please install yt-dlp.",
                component="video_platform",
                details={"command": self.binary},
            )
        except subprocess.TimeoutExpired:
            raise UpstreamError(
                f"yt-dlp timed out after {self.timeout}s",
                component="video_platform",
            )
        if result.returncode != 0:
            raise UpstreamError(
                f"yt-dlp failed: {result.stderr.strip()[-300:]}",
                component="video_platform",
                details={"returncode": result.returncode},
            )
        return result.stdout


class ClientStrategy(ABC):
    """One player-client identity. Subclasses implement ``attempt``."""

    def __init__(self, client: str, runner: YtDlpRunner):
        self.client = client
        self.runner = runner

    @property
    def name(self) -> str:
        return self.client

    def base_args(self) -> list[str]:
        return [
            "--no-playlist",
            "--no-warnings",
            "--force-ipv4",
            "--extractor-args",
            f"youtube:player_client={self.client}",
        ]

    @abstractmethod
    def attempt(self, locator: str):
        """Run one fetch with this client. Raises UpstreamError on failure."""


class MetadataStrategy(ClientStrategy):
    def attempt(self, locator: str) -> dict:
        stdout = self.runner.run(["--dump-json", *self.base_args(), locator])
        try:
            return json.loads(stdout)
        except json.JSONDecodeError:
            raise UpstreamError(
                "yt-dlp returned invalid JSON", component="video_platform"
            )


class DownloadStrategy(ClientStrategy):
    def __init__(
        self, client: str, runner: YtDlpRunner, format_selector: str, work_dir: Path
    ):
        super().__init__(client, runner)
        self.format_selector = format_selector
        self.work_dir = work_dir

    @property
    def name(self) -> str:
        return f"{self.client}:{self.format_selector}"

    def attempt(self, locator: str) -> bytes:
        with tempfile.TemporaryDirectory(dir=self.work_dir) as d:
            out_dir = Path(d)
            self.runner.run(
                [
                    *self.base_args(),
                    "-f",
                    self.format_selector,
                    "--extract-audio",
                    "--audio-format",
                    "mp3",
                    "--audio-quality",
                    "0",
                    "--output",
                    str(out_dir / "audio.%(ext)s"),
                    locator,
                ]
            )
            produced = sorted(out_dir.glob("audio.*"))
            mp3 = out_dir / "audio.mp3"
            path = mp3 if mp3.exists() else (produced[0] if produced else None)
            if path is None or path.stat().st_size == 0:
                raise UpstreamError(
                    "yt-dlp finished but produced no audio file",
                    component="video_platform",
                )
            validate_payload_size(path.stat().st_size)
            return path.read_bytes()


class StrategyChain:
    """Tries strategies in order; the first success wins."""

    def __init__(self, strategies: list[ClientStrategy], action: str):
        self.strategies = strategies
        self.action = action

    def run(self, locator: str):
        errors: list[dict] = []
        last: UpstreamError | None = None
        for strategy in self.strategies:
            try:
                result = strategy.attempt(locator)
                if errors:
                    logger.info(
                        "%s succeeded with %s after %d failure(s)",
                        self.action,
                        strategy.name,
                        len(errors),
                    )
                return result
            except UpstreamError as e:
                logger.warning("%s failed with %s: %s", self.action, strategy.name, e.message)
                errors.append({"strategy": strategy.name, "error": e.message})
                last = e

        n = len(self.strategies)
        raise UpstreamError(
            f"Failed to {self.action} after {n} attempts: "
            f"{last.message if last else 'no strategies configured'}",
            component="video_platform",
            details={"attempts": n, "last_cause": last.message if last else None, "errors": errors},
        ) from last


class VideoPlatformEngine(DownloadEngine):
    """YouTube audio via yt-dlp."""

    source_kind = SourceKind.VIDEO_PLATFORM

    def __init__(self, runner: YtDlpRunner | None = None, work_dir: Path | None = None):
        self.settings = get_settings()
        self.runner = runner or YtDlpRunner()
        self.work_dir = Path(work_dir or self.settings.scratch_dir)

    def metadata_chain(self) -> StrategyChain:
        return StrategyChain(
            [MetadataStrategy(client, self.runner) for client in PLAYER_CLIENTS],
            action="get video info",
        )

    def download_chain(self) -> StrategyChain:
        strategies = [
            DownloadStrategy(
                client,
                self.runner,
                PREFERRED_FORMAT if i == 0 else FALLBACK_FORMAT,
                self.work_dir,
            )
            for i, client in enumerate(PLAYER_CLIENTS)
        ]
        return StrategyChain(strategies, action="download audio")

    def fetch_metadata(self, locator: str) -> SourceMetadata:
        url = validate_video_url(locator)
        info = self.metadata_chain().run(url)
        duration = info.get("duration")
        return SourceMetadata(
            title=info.get("title"),
            author=info.get("uploader") or info.get("channel"),
            duration=float(duration) if duration else None,
            thumbnail_url=info.get("thumbnail"),
        )

    def fetch_audio_bytes(self, locator: str) -> bytes:
        url = validate_video_url(locator)
        self.work_dir.mkdir(parents=True, exist_ok=True)
        return self.download_chain().run(url)
