"""Media inventory data models.

A :class:`MediaRecord` is one observed occurrence of a media asset on a
crawled page.  Records arrive from the crawler in camelCase JSON and are
stored one row per ``(site_key, hash)``.  Records with descriptive alt
text also get an :class:`EmbeddingRecord` in the vector index so chat
queries like "show me product photos" can be answered by similarity.

``alt`` keeps a three-way distinction that every count in the system
depends on:

    alt is None  -> missing (an accessibility failure)
    alt == ""    -> intentionally decorative (valid per WCAG 1.1.1)
    otherwise    -> filled
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class MediaRecord(BaseModel):
    """One media occurrence on a page, as reported by the crawler."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    hash: str = Field(min_length=1, description="Content+context fingerprint, unique within a site.")
    url: str = Field(min_length=1, description="Absolute URL of the media asset.")
    page_url: str = Field(
        min_length=1,
        validation_alias=AliasChoices("pageUrl", "page_url", "doc"),
        serialization_alias="pageUrl",
        description="URL of the page the asset was found on.",
    )
    type: str | None = Field(default=None, description='Hierarchical tag, e.g. "img > png".')
    alt: str | None = Field(default=None, description='None = missing, "" = decorative.')
    width: int | None = None
    height: int | None = None
    orientation: str | None = None
    category: str | None = None
    loading: str | None = None
    fetch_priority: str | None = Field(
        default=None,
        validation_alias=AliasChoices("fetchPriority", "fetchpriority", "fetch_priority"),
        serialization_alias="fetchPriority",
    )
    is_lazy_loaded: bool = False
    role: str | None = None
    aria_hidden: bool = False
    parent_tag: str | None = None
    has_figcaption: bool = False

    # Only hash, url and page_url can reject a record.  Optional fields are
    # coerced the way the crawler's loose JSON needs, never rejected.

    @field_validator(
        "type",
        "alt",
        "orientation",
        "category",
        "loading",
        "fetch_priority",
        "role",
        "parent_tag",
        mode="before",
    )
    @classmethod
    def _lenient_text(cls, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None

    @field_validator("width", "height", mode="before")
    @classmethod
    def _lenient_dimension(cls, value: Any) -> int | None:
        """Accept floats and numeric strings; zero or unparseable becomes None."""
        if value is None or isinstance(value, bool):
            return None
        try:
            number = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return None
        return number or None

    @field_validator("is_lazy_loaded", "aria_hidden", "has_figcaption", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        return bool(value)

    @property
    def has_description(self) -> bool:
        """True when the record carries non-blank alt text worth embedding."""
        return bool(self.alt and self.alt.strip())


class EmbeddingRecord(BaseModel):
    """Vector representation of a record's alt text plus hydration metadata."""

    model_config = ConfigDict(frozen=True)

    site_key: str
    hash: str
    vector: list[float]
    url: str
    page_url: str
    alt: str

    @property
    def vector_id(self) -> str:
        return vector_id(self.site_key, self.hash)

    def metadata(self) -> dict[str, Any]:
        return {
            "site_key": self.site_key,
            "hash": self.hash,
            "url": self.url,
            "page_url": self.page_url,
            "alt": self.alt,
        }


def vector_id(site_key: str, media_hash: str) -> str:
    """Return the vector-index id for a record; namespaced so sites never collide."""
    return f"{site_key}:{media_hash}"


class VectorMatch(BaseModel):
    """One nearest-neighbour hit, hydrated from stored metadata."""

    model_config = ConfigDict(frozen=True)

    hash: str
    url: str
    page_url: str
    alt: str
    score: float = Field(ge=0.0, le=1.0, description="Cosine similarity (1.0 = identical).")


class FilterCounts(BaseModel):
    """Distinct-url counts for every sidebar filter of one site."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    images: int = 0
    videos: int = 0
    documents: int = 0
    links: int = 0
    icons: int = 0
    empty: int = 0
    decorative: int = 0
    filled: int = 0
    landscape: int = 0
    portrait: int = 0
    square: int = 0
    logos: int = 0
    people: int = 0
    graphics: int = 0
    products: int = 0
    screenshots: int = 0


class SiteSummary(BaseModel):
    """Per-site inventory size and freshness."""

    model_config = ConfigDict(frozen=True)

    site_key: str
    count: int
    last_indexed: int | None = Field(default=None, description="Epoch milliseconds.")


class IngestionSummary(BaseModel):
    """Totals reported back to the crawler after an index-batch call."""

    model_config = ConfigDict(frozen=True)

    indexed: int = 0
    embeddings: int = 0
    chunks: int = 0
