"""Abstract base class for the relational media store.

The media store is the source of truth for a site's media inventory: one
row per ``(site_key, hash)``.  Besides batch upsert and deletion it
exposes the read queries behind every chat tool.  Listing queries group
occurrences by asset URL and return plain dict rows, ordered largest
asset first, so the stream encoder can hand them to the browser as-is.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from mediaquery.models.media import FilterCounts, MediaRecord, SiteSummary

Row = dict[str, Any]


class IMediaStore(ABC):
    """Contract for the keyed media-record table."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indexes if they do not exist."""

    # -- Writes --------------------------------------------------------

    @abstractmethod
    async def upsert_batch(self, site_key: str, records: list[MediaRecord], indexed_at: int) -> int:
        """Insert or overwrite *records* in one transaction.

        Re-ingesting a ``(site_key, hash)`` overwrites the row in place.

        Raises
        ------
        mediaquery.utils.errors.StoreError
            If the transaction fails; nothing from this batch is written.
        """

    @abstractmethod
    async def delete_hashes(self, site_key: str, hashes: list[str]) -> int:
        """Delete the rows for *hashes*; returns rows removed."""

    @abstractmethod
    async def delete_site(self, site_key: str) -> int:
        """Delete every row of *site_key*; returns rows removed."""

    # -- Inventory -----------------------------------------------------

    @abstractmethod
    async def list_hashes(self, site_key: str) -> list[str]:
        """Return every hash stored for *site_key*."""

    @abstractmethod
    async def count(self, site_key: str) -> int:
        """Return the number of rows stored for *site_key*."""

    @abstractmethod
    async def list_sites(self, limit: int = 50) -> list[SiteSummary]:
        """Return per-site counts, most recently indexed first."""

    # -- Query tools ---------------------------------------------------

    @abstractmethod
    async def images_without_alt(self, site_key: str) -> list[Row]:
        """Assets whose alt is missing (``NULL``)."""

    @abstractmethod
    async def decorative_images(self, site_key: str) -> list[Row]:
        """Assets whose alt is the empty string."""

    @abstractmethod
    async def page_images(self, site_key: str, page_url: str) -> list[Row]:
        """Every occurrence on one page (ungrouped)."""

    @abstractmethod
    async def large_images(self, site_key: str, min_width: int = 1000) -> list[Row]:
        """Assets at least *min_width* pixels wide."""

    @abstractmethod
    async def lazy_loaded_images(self, site_key: str) -> list[Row]:
        """Assets with ``loading="lazy"`` or detected lazy loading."""

    @abstractmethod
    async def seo_issues(self, site_key: str) -> list[Row]:
        """Assets with missing alt, oversized dimensions or no loading hint."""

    @abstractmethod
    async def most_used_images(self, site_key: str, limit: int = 10) -> list[Row]:
        """Assets ranked by number of occurrences."""

    @abstractmethod
    async def image_occurrences(self, site_key: str, image_url: str) -> list[Row]:
        """Every occurrence of one asset URL across pages."""

    @abstractmethod
    async def orientation_images(self, site_key: str, orientation: str) -> list[Row]:
        """Assets with the given orientation (square, landscape, portrait)."""

    @abstractmethod
    async def type_media(self, site_key: str, media_type: str) -> list[Row]:
        """Assets of a media family (videos, documents, links, icons)."""

    @abstractmethod
    async def format_images(self, site_key: str, file_format: str) -> list[Row]:
        """Assets whose URL mentions the given file format."""

    @abstractmethod
    async def filter_counts(self, site_key: str) -> FilterCounts:
        """Distinct-url counts for every sidebar filter."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this store."""
