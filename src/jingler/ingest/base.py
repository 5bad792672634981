"""Download engine abstract class."""

from abc import ABC, abstractmethod

from jingler.models.audio import SourceKind, SourceMetadata


class DownloadEngine(ABC):
    """One engine per source kind."""

    source_kind: SourceKind

    @abstractmethod
    def fetch_metadata(self, locator: str) -> SourceMetadata:
        """Return title, author and duration for ``locator``."""
        ...

    @abstractmethod
    def fetch_audio_bytes(self, locator: str) -> bytes:
        """Download the audio payload for ``locator``."""
        ...

