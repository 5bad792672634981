"""Direct file URL download engine."""

import logging
from urllib.parse import urlparse

import httpx

from jingler.config import get_settings
from jingler.ingest.base import DownloadEngine
from jingler.ingest.http import create_client, stream_bytes
from jingler.ingest.validators import url_title, validate_audio_format, validate_source_url
from jingler.models.audio import SourceKind, SourceMetadata
from jingler.models.errors import JinglerError

logger = logging.getLogger(__name__)


class DirectUrlEngine(DownloadEngine):
    """Fetches an audio file straight from an http(s) URL."""

    source_kind = SourceKind.DIRECT_URL

    def __init__(self, client: httpx.Client | None = None):
        self.settings = get_settings()
        self.client = client or create_client(self.settings)

    def fetch_metadata(self, locator: str) -> SourceMetadata:
        url = validate_source_url(locator)
        return SourceMetadata(title=url_title(url))

    def fetch_audio_bytes(self, locator: str) -> bytes:
        url = validate_source_url(locator)
        path_part = urlparse(url).path

        def check_audio(response: httpx.Response) -> None:
            validate_audio_format(path_part, response.headers.get("content-type"))

        data, content_type = stream_bytes(
            self.client,
            url,
            self.settings.max_payload_mb,
            component="direct_url",
            check_headers=check_audio,
        )
        logger.info("Fetched %d bytes from %s (%s)", len(data), url, content_type)
        return data

    def fetch_image(self, url: str) -> bytes | None:
        """Best-effort fetch of a cover image. None on any upstream failure."""
        try:
            data, content_type = stream_bytes(
                self.client, url, self.settings.max_payload_mb, component="cover_art"
            )
        except JinglerError as e:
            logger.warning("Cover image download failed for %s: %s", url, e.message)
            return None
        if content_type and not content_type.startswith("image/"):
            logger.warning("Cover URL %s returned %s, ignoring", url, content_type)
            return None
        return data or None
