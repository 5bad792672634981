"""Shared httpx helpers for the download engines."""

import logging
from collections.abc import Callable

import httpx

from jingler.config import Settings, get_settings
from jingler.ingest.validators import BYTES_PER_MB
from jingler.models.errors import NotFoundError, PayloadTooLarge, UpstreamError

logger = logging.getLogger(__name__)


def create_client(settings: Settings | None = None) -> httpx.Client:
    settings = settings or get_settings()
    return httpx.Client(
        timeout=settings.http_timeout_seconds,
        follow_redirects=True,
        headers={"User-Agent": settings.http_user_agent},
    )


def raise_for_status(response: httpx.Response, component: str) -> None:
    """Map a non-2xx response to NotFoundError or UpstreamError."""
    if response.is_success:
        return
    details = {"url": str(response.request.url), "status_code": response.status_code}
    if response.status_code == 404:
        raise NotFoundError("Source not found", component=component, details=details)
    raise UpstreamError(
        f"Upstream responded with HTTP {response.status_code}",
        component=component,
        details=details,
    )


def stream_bytes(
    client: httpx.Client,
    url: str,
    max_size_mb: int,
    component: str,
    headers: dict | None = None,
    check_headers: Callable[[httpx.Response], None] | None = None,
) -> tuple[bytes, str | None]:
    """GET ``url`` fully into memory, enforcing a hard size cap.

    ``check_headers`` runs on the response before the body is read.

    Returns:
        Tuple of (payload, content type)
    """
    max_bytes = max_size_mb * BYTES_PER_MB
    try:
        with client.stream("GET", url, headers=headers) as response:
            raise_for_status(response, component)
            content_type = response.headers.get("content-type")
            if check_headers is not None:
                check_headers(response)

            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > max_bytes:
                raise PayloadTooLarge(
                    f"File too large: {int(declared) / BYTES_PER_MB:.1f}MB exceeds "
                    f"{max_size_mb}MB limit",
                    details={"size_bytes": int(declared), "max_mb": max_size_mb},
                )

            chunks = []
            received = 0
            for chunk in response.iter_bytes():
                received += len(chunk)
                if received > max_bytes:
                    raise PayloadTooLarge(
                        f"File too large: exceeds {max_size_mb}MB limit",
                        details={"size_bytes": received, "max_mb": max_size_mb},
                    )
                chunks.append(chunk)
    except httpx.HTTPError as e:
        raise UpstreamError(
            f"Download failed: {e}",
            component=component,
            details={"url": url, "error": type(e).__name__},
        ) from e

    logger.debug("Downloaded %d bytes from %s", received, url)
    return b"".join(chunks), content_type
