"""Audio platform download engine (Audiomack API)."""

import logging
import time
from urllib.parse import urlparse

import httpx
from oauthlib.oauth1 import SIGNATURE_HMAC
from oauthlib.oauth1 import Client as OAuth1Client

from jingler.config import get_settings
from jingler.ingest.base import DownloadEngine
from jingler.ingest.http import create_client, raise_for_status, stream_bytes
from jingler.ingest.validators import validate_source_url
from jingler.models.audio import SourceKind, SourceMetadata
from jingler.models.errors import (
    ConfigurationError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

AUDIO_PLATFORM_HOSTS = ("audiomack.com",)
COMPONENT = "audio_platform"
MUSIC_TYPES = ("song", "album")


def parse_track_url(url: str) -> tuple[str, str, str]:
    """Split a track URL into (artist slug, track slug, music type).

    ``/artist/track`` is a song. ``/artist/song/slug`` and ``/artist/album/slug``
    name their type, any other deeper path is an album.
    """
    url = validate_source_url(url, hosts=AUDIO_PLATFORM_HOSTS)
    parts = [p for p in urlparse(url).path.split("/") if p]
    if len(parts) < 2:
        raise ValidationError("Invalid Audiomack URL format", details={"url": url})
    if len(parts) == 2:
        return parts[0], parts[1], "song"
    music_type = parts[1] if parts[1] in MUSIC_TYPES else "album"
    return parts[0], parts[2], music_type


class AudioPlatformEngine(DownloadEngine):
    """Public API first, OAuth 1.0a signed request on 401."""

    source_kind = SourceKind.AUDIO_PLATFORM

    def __init__(
        self,
        client: httpx.Client | None = None,
        consumer_key: str | None = None,
        consumer_secret: str | None = None,
        token: tuple[str, str] | None = None,
    ):
        self.settings = get_settings()
        self.client = client or create_client(self.settings)
        self.api_base = self.settings.audiomack_api_base.rstrip("/")
        self.consumer_key = (
            consumer_key if consumer_key is not None else self.settings.audiomack_consumer_key
        )
        self.consumer_secret = (
            consumer_secret
            if consumer_secret is not None
            else self.settings.audiomack_consumer_secret
        )
        self.token = token

    @property
    def has_credentials(self) -> bool:
        return bool(self.consumer_key and self.consumer_secret)

    def sign(self, url: str, method: str) -> dict:
        """OAuth 1.0a HMAC-SHA1 Authorization header for ``method url``."""
        if not self.has_credentials:
            raise ConfigurationError(
                "Audiomack OAuth credentials not configured. Set "
                "JINGLER_AUDIOMACK_CONSUMER_KEY and JINGLER_AUDIOMACK_CONSUMER_SECRET.",
                details={"url": url},
            )
        owner_key, owner_secret = self.token or (None, None)
        oauth = OAuth1Client(
            self.consumer_key,
            client_secret=self.consumer_secret,
            resource_owner_key=owner_key,
            resource_owner_secret=owner_secret,
            signature_method=SIGNATURE_HMAC,
        )
        _, headers, _ = oauth.sign(url, http_method=method)
        return headers

    def request(self, method: str, url: str) -> httpx.Response:
        """Unauthenticated call, retried once signed if the platform answers 401."""
        try:
            response = self.client.request(method, url)
            if response.status_code == 401:
                logger.info("Public %s %s returned 401, retrying with OAuth", method, url)
                response = self.client.request(method, url, headers=self.sign(url, method))
        except httpx.HTTPError as e:
            raise UpstreamError(
                f"Audiomack API error: {e}", component=COMPONENT, details={"url": url}
            ) from e
        raise_for_status(response, COMPONENT)
        return response

    def get_track_info(self, locator: str) -> dict:
        artist_slug, track_slug, music_type = parse_track_url(locator)
        url = f"{self.api_base}/music/{music_type}/{artist_slug}/{track_slug}"
        try:
            data = self.request("GET", url).json()
        except ValueError as e:
            raise UpstreamError(
                "Audiomack API returned invalid JSON", component=COMPONENT
            ) from e
        info = data.get("results", data) if isinstance(data, dict) else None
        if not info:
            raise NotFoundError("Track not found", component=COMPONENT, details={"url": url})
        return info

    def get_streaming_url(self, info: dict) -> str:
        """Stream URL from track info, or a fresh one if absent or expired."""
        streaming_url = info.get("streaming_url")
        timeout = info.get("streaming_url_timeout")
        expired = bool(timeout) and float(timeout) < time.time()
        if streaming_url and not expired:
            return streaming_url

        if not info.get("id"):
            raise UpstreamError("Could not obtain streaming URL", component=COMPONENT)
        url = f"{self.api_base}/music/{info['id']}/play"
        streaming_url = self.request("POST", url).text.strip().strip('"')
        if not streaming_url:
            raise UpstreamError("Could not obtain streaming URL", component=COMPONENT)
        return streaming_url

    def fetch_metadata(self, locator: str) -> SourceMetadata:
        info = self.get_track_info(locator)
        uploader = info.get("uploader") or {}
        duration = info.get("duration")
        try:
            duration = float(duration) if duration else None
        except (TypeError, ValueError):
            duration = None
        return SourceMetadata(
            title=info.get("title") or "Unknown Track",
            author=info.get("artist") or uploader.get("name") or "Unknown Artist",
            duration=duration,
            thumbnail_url=info.get("image"),
        )

    def fetch_audio_bytes(self, locator: str) -> bytes:
        info = self.get_track_info(locator)
        streaming_url = self.get_streaming_url(info)
        # Stream URLs expire within seconds: download before doing anything else
        data, _ = stream_bytes(
            self.client, streaming_url, self.settings.max_payload_mb, component=COMPONENT
        )
        logger.info("Downloaded %d bytes for %s", len(data), locator)
        return data
