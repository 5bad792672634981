"""Media engine: ffprobe/ffmpeg invoked as blocking subprocesses."""

import json
import logging
import subprocess
import uuid
from pathlib import Path

from jingler.config import get_settings
from jingler.models.errors import MixEngineError, UpstreamError

logger = logging.getLogger(__name__)


class MediaEngine:
    """Narrow contract over ffmpeg: probe, run a filter graph, pull cover art."""

    def __init__(self, scratch_dir: Path | None = None):
        self.settings = get_settings()
        self.scratch_dir = Path(scratch_dir or self.settings.scratch_dir)

    def probe(self, path: Path) -> dict:
        """Return ffprobe JSON for a file."""
        if not Path(path).exists():
            raise UpstreamError(
                f"File not found: {path}", component="media_engine", details={"file": str(path)}
            )
        try:
            result = subprocess.run(
                [
                    self.settings.ffprobe_binary,
                    "-v",
                    "quiet",
                    "-print_format",
                    "json",
                    "-show_format",
                    "-show_streams",
                    str(path),
                ],
                capture_output=True,
                text=True,
                timeout=30,
            )
        except FileNotFoundError:
            raise UpstreamError(
                "ffprobe not found. Please install FFmpeg.",
                component="media_engine",
                details={"command": self.settings.ffprobe_binary},
            )
        except subprocess.TimeoutExpired:
            raise UpstreamError(
                "File probe timed out, file may be corrupted",
                component="media_engine",
                details={"file": str(path)},
            )
        if result.returncode != 0:
            raise UpstreamError(
                "File appears to be corrupted or unreadable",
                component="media_engine",
                details={"file": str(path), "stderr": result.stderr[:500]},
            )
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError:
            raise UpstreamError(
                "Failed to parse ffprobe output",
                component="media_engine",
                details={"file": str(path)},
            )

    def probe_duration(self, path: Path) -> float:
        """Duration in seconds of the file's container."""
        probe = self.probe(path)
        try:
            duration = float(probe.get("format", {}).get("duration", 0))
        except (TypeError, ValueError):
            duration = 0.0
        if duration <= 0:
            raise UpstreamError(
                "Could not determine audio duration",
                component="media_engine",
                details={"file": str(path)},
            )
        return duration

    def try_probe_duration(self, path: Path) -> float | None:
        """Like probe_duration but returns None on failure."""
        try:
            return self.probe_duration(path)
        except UpstreamError as e:
            logger.warning("Duration probe failed for %s: %s", path, e.message)
            return None

    def run(
        self,
        inputs: list[str],
        filter_graph: str,
        output_path: Path,
        map_label: str | None = None,
        output_args: list[str] | None = None,
    ) -> Path:
        """Run ffmpeg with one ``-i`` per input and a filter_complex graph."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        cmd = [self.settings.ffmpeg_binary, "-y"]
        for path in inputs:
            cmd.extend(["-i", str(path)])
        if filter_graph:
            cmd.extend(["-filter_complex", filter_graph])
        if map_label:
            cmd.extend(["-map", map_label])
        cmd.extend(output_args or [])
        cmd.append(str(output_path))

        self._execute(cmd)

        if not output_path.exists():
            raise MixEngineError(
                "Output file was not created", details={"output": str(output_path)}
            )
        return output_path

    def extract_embedded_image(self, path: Path) -> bytes | None:
        """Return the embedded cover image of an audio file, or None."""
        cover_path = self.scratch_dir / f"cover_{uuid.uuid4()}.jpg"
        cover_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = [
            self.settings.ffmpeg_binary,
            "-y",
            "-i",
            str(path),
            "-an",
            "-vcodec",
            "copy",
            str(cover_path),
        ]
        try:
            self._execute(cmd)
            if not cover_path.exists() or cover_path.stat().st_size == 0:
                return None
            return cover_path.read_bytes()
        except MixEngineError as e:
            logger.info("No embedded image in %s: %s", path, e.message)
            return None
        finally:
            cover_path.unlink(missing_ok=True)

    def _execute(self, cmd: list[str]) -> None:
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.settings.ffmpeg_timeout_seconds,
            )
        except FileNotFoundError:
            raise MixEngineError(
                "FFmpeg not found. Please install FFmpeg.",
                details={"command": cmd[0]},
            )
        except subprocess.TimeoutExpired:
            raise MixEngineError(
                f"FFmpeg timed out after {self.settings.ffmpeg_timeout_seconds}s",
                details={"command": " ".join(cmd)},
            )

        if result.returncode != 0:
            stderr_text = "\n".join(result.stderr.splitlines()[-30:])
            logger.error("FFmpeg failed (code %d): %s", result.returncode, " ".join(cmd))
            raise MixEngineError(
                f"FFmpeg exited with code {result.returncode}",
                details={"stderr": stderr_text},
            )
