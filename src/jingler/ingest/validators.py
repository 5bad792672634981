"""Source URL, format and payload size validation."""

from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

from jingler.config import get_settings
from jingler.models.errors import PayloadTooLarge, UnsupportedFormat, ValidationError

BYTES_PER_MB = 1024 * 1024


def validate_source_url(url: str, hosts: tuple[str, ...] | None = None) -> str:
    """Require an http(s) URL, optionally on one of ``hosts``. Returns the URL stripped."""
    url = (url or "").strip()
    if not url:
        raise ValidationError("URL is required")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(
            "Invalid URL. Must be http or https.",
            details={"url": url, "scheme": parsed.scheme},
        )
    if hosts is not None:
        host = (parsed.hostname or "").lower()
        if not any(host == h or host.endswith(f".{h}") for h in hosts):
            raise ValidationError(
                f"URL host {host} is not supported for this source",
                details={"url": url, "allowed_hosts": list(hosts)},
            )
    return url


def url_extension(url: str) -> str:
    """Lower-case file extension of the URL path, without the dot."""
    return PurePosixPath(unquote(urlparse(url).path)).suffix.lstrip(".").lower()


def url_title(url: str, fallback: str = "Imported Audio") -> str:
    """File stem of the URL path, used as a default title."""
    stem = PurePosixPath(unquote(urlparse(url).path)).stem
    return stem or fallback


def is_audio_content_type(content_type: str | None) -> bool:
    return bool(content_type) and content_type.split(";")[0].strip().lower().startswith("audio/")


def validate_audio_format(
    name: str, content_type: str | None = None, allowed_formats: list[str] | None = None
) -> None:
    """Accept by extension or by ``audio/*`` content type."""
    allowed = allowed_formats or get_settings().allowed_audio_formats
    ext = PurePosixPath(name).suffix.lstrip(".").lower()
    if ext in allowed or is_audio_content_type(content_type):
        return
    raise UnsupportedFormat(
        f"Unsupported format: .{ext or '?'} ({content_type or 'unknown type'}). "
        f"Allowed: {allowed}",
        details={"extension": ext, "content_type": content_type, "allowed": allowed},
    )


def validate_payload_size(size_bytes: int, max_size_mb: int | None = None) -> None:
    """Raise PayloadTooLarge above the cap."""
    max_mb = max_size_mb or get_settings().max_payload_mb
    if size_bytes > max_mb * BYTES_PER_MB:
        raise PayloadTooLarge(
            f"File too large: {size_bytes / BYTES_PER_MB:.1f}MB exceeds {max_mb}MB limit",
            details={"size_bytes": size_bytes, "max_mb": max_mb},
        )
