"""httpx-backed page fetcher for deep alt-text analysis.

Pages are fetched directly, or through a CORS/anti-bot proxy as
``{proxy_url}?url=<page>`` when one is configured.
"""

from __future__ import annotations

import httpx
import structlog

from mediaquery.interfaces.page_fetcher import IPageFetcher
from mediaquery.utils.errors import PageFetchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; mediaquery/0.1)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class HttpPageFetcher(IPageFetcher):
    """Fetch raw HTML with a shared :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        proxy_url: str = "",
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._proxy_url = proxy_url
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )

    async def fetch_html(self, url: str) -> str:
        try:
            if self._proxy_url:
                response = await self._client.get(self._proxy_url, params={"url": url})
            else:
                response = await self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise PageFetchError(
                message=f"Timeout fetching {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("page_fetch_failed", url=url, status=status)
            raise PageFetchError(
                message="Failed to fetch page HTML",
                provider_name=self.get_provider_name(),
                status=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise PageFetchError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("page_fetched", url=url, length=len(response.text), proxied=bool(self._proxy_url))
        return response.text

    async def aclose(self) -> None:
        await self._client.aclose()

    def get_provider_name(self) -> str:
        return "http_proxy" if self._proxy_url else "http"
