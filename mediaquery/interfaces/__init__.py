"""Abstract interfaces for every external collaborator.

Services receive these through constructor injection so they can be
exercised with in-memory fakes and swapped between backends.
"""

from mediaquery.interfaces.cache_provider import ICacheProvider
from mediaquery.interfaces.embedding_provider import IEmbeddingProvider
from mediaquery.interfaces.llm_provider import ILLMProvider
from mediaquery.interfaces.media_store import IMediaStore
from mediaquery.interfaces.page_fetcher import IPageFetcher
from mediaquery.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "ICacheProvider",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IMediaStore",
    "IPageFetcher",
    "IVectorStoreProvider",
]
