"""Page HTML fetchers."""

from mediaquery.providers.page_fetcher.http_page_fetcher import HttpPageFetcher

__all__ = ["HttpPageFetcher"]
