"""Abstract base class for page HTML fetchers used by deep analysis."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IPageFetcher(ABC):
    """Contract for retrieving a page's raw HTML."""

    @abstractmethod
    async def fetch_html(self, url: str) -> str:
        """Return the HTML body of *url*.

        Raises
        ------
        mediaquery.utils.errors.PageFetchError
            On a non-2xx response or any transport failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this fetcher."""
