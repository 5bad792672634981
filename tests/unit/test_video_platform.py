"""Tests for the yt-dlp video platform engine and its strategy chains."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from jingler.ingest.video_platform import (
    FALLBACK_FORMAT,
    PLAYER_CLIENTS,
    PREFERRED_FORMAT,
    ClientStrategy,
    StrategyChain,
    VideoPlatformEngine,
    YtDlpRunner,
    validate_video_url,
)
from jingler.models.errors import PayloadTooLarge, UpstreamError, ValidationError

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


class ScriptedRunner(YtDlpRunner):
    """Fails for the listed player clients, succeeds for the rest."""

    def __init__(self, failing_clients=(), info=None, payload=b"audio-bytes"):
        super().__init__(binary="yt-dlp", timeout=5)
        self.failing_clients = set(failing_clients)
        self.info = info or {"title": "Video", "uploader": "Channel", "duration": 212}
        self.payload = payload
        self.calls: list[list[str]] = []

    def run(self, args):
        self.calls.append(args)
        client = next(a for a in args if a.startswith("youtube:player_client=")).split("=")[1]
        if client in self.failing_clients:
            raise UpstreamError(f"blocked for {client}", component="video_platform")
        if "--dump-json" in args:
            return json.dumps(self.info)
        out = Path(args[args.index("--output") + 1].replace("%(ext)s", "mp3"))
        out.write_bytes(self.payload)
        return ""


class Always(ClientStrategy):
    def __init__(self, client, result=None, error=None):
        super().__init__(client, runner=None)
        self.result = result
        self.error = error

    def attempt(self, locator):
        if self.error:
            raise self.error
        return self.result


class TestValidateVideoUrl:
    @pytest.mark.parametrize(
        "url",
        [
            VIDEO_URL,
            "https://youtu.be/dQw4w9WgXcQ",
            "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://www.youtube.com/shorts/abcdefghijk",
        ],
    )
    def test_accepts(self, url):
        assert validate_video_url(url) == url

    @pytest.mark.parametrize(
        "url", ["https://vimeo.com/123", "https://www.youtube.com/", "not a url"]
    )
    def test_rejects(self, url):
        with pytest.raises(ValidationError):
            validate_video_url(url)


class TestStrategyChain:
    def test_strategy_requires_attempt(self):
        with pytest.raises(TypeError):
            ClientStrategy("web", runner=None)

    def test_first_success_wins(self):
        chain = StrategyChain(
            [Always("a", error=UpstreamError("no")), Always("b", result=1), Always("c", result=2)],
            action="test",
        )
        assert chain.run("x") == 1

    def test_all_fail_aggregates(self):
        chain = StrategyChain(
            [Always(c, error=UpstreamError(f"fail {c}")) for c in ("a", "b")], action="get info"
        )
        with pytest.raises(UpstreamError, match="after 2 attempts: fail b") as exc_info:
            chain.run("x")
        details = exc_info.value.details
        assert details["attempts"] == 2
        assert details["last_cause"] == "fail b"
        assert [e["strategy"] for e in details["errors"]] == ["a", "b"]

    def test_non_upstream_errors_propagate(self):
        chain = StrategyChain(
            [Always("a", error=PayloadTooLarge("big")), Always("b", result=1)], action="x"
        )
        with pytest.raises(PayloadTooLarge):
            chain.run("x")


class TestVideoPlatformEngine:
    def test_metadata(self, scratch_dir):
        engine = VideoPlatformEngine(runner=ScriptedRunner(), work_dir=scratch_dir)
        meta = engine.fetch_metadata(VIDEO_URL)
        assert meta.title == "Video"
        assert meta.author == "Channel"
        assert meta.duration == 212.0

    def test_metadata_falls_back_to_channel(self, scratch_dir):
        runner = ScriptedRunner(info={"title": "V", "channel": "Chan"})
        meta = VideoPlatformEngine(runner=runner, work_dir=scratch_dir).fetch_metadata(VIDEO_URL)
        assert meta.author == "Chan"
        assert meta.duration is None

    def test_metadata_client_fallback(self, scratch_dir):
        runner = ScriptedRunner(failing_clients={"web", "android"})
        VideoPlatformEngine(runner=runner, work_dir=scratch_dir).fetch_metadata(VIDEO_URL)
        clients = [
            next(a for a in call if a.startswith("youtube:player_client=")) for call in runner.calls
        ]
        assert clients == [
            "youtube:player_client=web",
            "youtube:player_client=android",
            "youtube:player_client=ios",
        ]

    def test_download(self, scratch_dir):
        runner = ScriptedRunner()
        data = VideoPlatformEngine(runner=runner, work_dir=scratch_dir).fetch_audio_bytes(
            VIDEO_URL
        )
        assert data == b"audio-bytes"
        args = runner.calls[0]
        assert args[args.index("-f") + 1] == PREFERRED_FORMAT
        assert args[args.index("--audio-format") + 1] == "mp3"
        assert "--no-playlist" in args
        # Temporary download directory removed
        assert list(scratch_dir.iterdir()) == []

    def test_download_fallback_uses_generic_format(self, scratch_dir):
        runner = ScriptedRunner(failing_clients={"web"})
        VideoPlatformEngine(runner=runner, work_dir=scratch_dir).fetch_audio_bytes(VIDEO_URL)
        second = runner.calls[1]
        assert second[second.index("-f") + 1] == FALLBACK_FORMAT

    def test_download_all_clients_fail(self, scratch_dir):
        runner = ScriptedRunner(failing_clients=set(PLAYER_CLIENTS))
        engine = VideoPlatformEngine(runner=runner, work_dir=scratch_dir)
        with pytest.raises(UpstreamError, match="after 4 attempts"):
            engine.fetch_audio_bytes(VIDEO_URL)

    def test_empty_output_is_a_failure(self, scratch_dir):
        runner = ScriptedRunner(payload=b"")
        engine = VideoPlatformEngine(runner=runner, work_dir=scratch_dir)
        with pytest.raises(UpstreamError, match="produced no audio"):
            engine.fetch_audio_bytes(VIDEO_URL)
        assert len(runner.calls) == len(PLAYER_CLIENTS)


class TestYtDlpRunner:
    def test_returns_stdout(self):
        result = MagicMock(returncode=0, stdout="{}", stderr="")
        with patch("jingler.ingest.video_platform.subprocess.run", return_value=result) as run:
            assert YtDlpRunner(binary="yt-dlp", timeout=5).run(["--version"]) == "{}"
        assert run.call_args[0][0] == ["yt-dlp", "--version"]

    def test_failure(self):
        result = MagicMock(returncode=1, stdout="", stderr="ERROR: Sign in to confirm")
        with patch("jingler.ingest.video_platform.subprocess.run", return_value=result):
            with pytest.raises(UpstreamError, match="Sign in"):
                YtDlpRunner(binary="yt-dlp", timeout=5).run([VIDEO_URL])

    def test_not_installed(self):
        with patch(
            "jingler.ingest.video_platform.subprocess.run", side_effect=FileNotFoundError
        ):
            with pytest.raises(UpstreamError, match="not found"):
                YtDlpRunner(binary="yt-dlp", timeout=5).run([VIDEO_URL])

    def test_timeout(self):
        with patch(
            "jingler.ingest.video_platform.subprocess.run",
            side_effect=subprocess.TimeoutExpired("yt-dlp", 5),
        ):
            with pytest.raises(UpstreamError, match="timed out"):
                YtDlpRunner(binary="yt-dlp", timeout=5).run([VIDEO_URL])
