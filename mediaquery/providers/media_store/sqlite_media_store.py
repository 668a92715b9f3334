"""SQLite-backed media store.

Persists crawled media records to a local SQLite database (default
``data/media.db``) using ``aiosqlite`` for async I/O.  Every listing query
groups occurrences by asset URL and orders the biggest assets first; the
per-query row caps come from ``config.yaml`` ``query_limits``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from mediaquery.interfaces.media_store import IMediaStore, Row
from mediaquery.models.media import FilterCounts, MediaRecord, SiteSummary
from mediaquery.utils.errors import StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/media.db")

# SQLite's default bound-parameter ceiling is 999 on older builds.
_DELETE_CHUNK = 500

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS media (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    site_key        TEXT    NOT NULL,
    hash            TEXT    NOT NULL,
    url             TEXT    NOT NULL,
    page_url        TEXT    NOT NULL,
    type            TEXT,
    alt             TEXT,
    width           INTEGER,
    height          INTEGER,
    orientation     TEXT,
    category        TEXT,
    loading         TEXT,
    fetchpriority   TEXT,
    is_lazy_loaded  INTEGER NOT NULL DEFAULT 0,
    role            TEXT,
    aria_hidden     INTEGER NOT NULL DEFAULT 0,
    parent_tag      TEXT,
    has_figcaption  INTEGER NOT NULL DEFAULT 0,
    indexed_at      INTEGER NOT NULL,
    UNIQUE(site_key, hash)
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_media_site ON media(site_key);",
    "CREATE INDEX IF NOT EXISTS idx_media_site_url ON media(site_key, url);",
    "CREATE INDEX IF NOT EXISTS idx_media_site_page ON media(site_key, page_url);",
    "CREATE INDEX IF NOT EXISTS idx_media_site_alt ON media(site_key, alt);",
]

_UPSERT_SQL = """\
INSERT INTO media (
    site_key, hash, url, page_url, type, alt, width, height, orientation,
    category, loading, fetchpriority, is_lazy_loaded, role, aria_hidden,
    parent_tag, has_figcaption, indexed_at
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(site_key, hash)
DO UPDATE SET url            = excluded.url,
              page_url       = excluded.page_url,
              type           = excluded.type,
              alt            = excluded.alt,
              width          = excluded.width,
              height         = excluded.height,
              orientation    = excluded.orientation,
              category       = excluded.category,
              loading        = excluded.loading,
              fetchpriority  = excluded.fetchpriority,
              is_lazy_loaded = excluded.is_lazy_loaded,
              role           = excluded.role,
              aria_hidden    = excluded.aria_hidden,
              parent_tag     = excluded.parent_tag,
              has_figcaption = excluded.has_figcaption,
              indexed_at     = excluded.indexed_at;
"""

# Grouped-by-asset listing.  ``{where}`` is always one of the constant
# predicates below, never caller input.
_GROUPED_SQL = """\
SELECT url, MAX(width) AS width, MAX(height) AS height,
       COUNT(*) AS occurrences{columns}
FROM media
WHERE site_key = ? AND {where}
GROUP BY url
ORDER BY MAX(width * height) DESC
LIMIT ?
"""

_WITHOUT_ALT_SQL = _GROUPED_SQL.format(columns="", where="alt IS NULL")
_DECORATIVE_SQL = _GROUPED_SQL.format(columns="", where="alt = ''")
_LARGE_SQL = _GROUPED_SQL.format(columns="", where="width >= ?")
_LAZY_SQL = _GROUPED_SQL.format(columns="", where="(loading = 'lazy' OR is_lazy_loaded = 1)")
_ORIENTATION_SQL = _GROUPED_SQL.format(columns="", where="orientation = ?")
_TYPE_SQL = _GROUPED_SQL.format(columns=", type", where="type LIKE ?")
_FORMAT_SQL = _GROUPED_SQL.format(columns=", type", where="LOWER(url) LIKE ?")

_SEO_ISSUES_SQL = """\
SELECT url, MAX(width) AS width, MAX(height) AS height,
       COUNT(*) AS occurrences,
       CASE
           WHEN MAX(CASE WHEN alt IS NULL THEN 1 ELSE 0 END) = 1 THEN 'missing_alt'
           WHEN MAX(width) > 2000 OR MAX(height) > 2000 THEN 'oversized'
           WHEN MAX(CASE WHEN loading IS NULL THEN 1 ELSE 0 END) = 1 THEN 'missing_loading'
           ELSE 'ok'
       END AS issue_type
FROM media
WHERE site_key = ?
  AND (alt IS NULL OR width > 2000 OR height > 2000 OR loading IS NULL)
GROUP BY url
ORDER BY MAX(width * height) DESC
LIMIT ?
"""

_PAGE_IMAGES_SQL = """\
SELECT hash, url, page_url, alt, width, height, loading, fetchpriority, is_lazy_loaded
FROM media
WHERE site_key = ? AND page_url = ?
ORDER BY width * height DESC
LIMIT ?
"""

_MOST_USED_SQL = """\
SELECT url,
       COUNT(*) AS usage_count,
       COUNT(DISTINCT page_url) AS page_count,
       MAX(width) AS max_width,
       MAX(height) AS max_height
FROM media
WHERE site_key = ?
GROUP BY url
ORDER BY usage_count DESC
LIMIT ?
"""

_OCCURRENCES_SQL = """\
SELECT hash, url, page_url, alt, width, height, loading, parent_tag, is_lazy_loaded
FROM media
WHERE site_key = ? AND url = ?
ORDER BY page_url, indexed_at
LIMIT ?
"""

_IMAGE = "type LIKE 'img >%' AND type NOT LIKE '%svg'"

# Per-URL 0/1 flags: a URL is in a bucket when any of its occurrences is.
_URL_FLAGS: dict[str, str] = {
    "is_image": _IMAGE,
    "any_missing": _IMAGE + " AND alt IS NULL",
    "any_decorative": _IMAGE + " AND alt = ''",
    "is_video": "type LIKE 'video >%'",
    "is_document": "type LIKE 'document >%'",
    "is_link": "type LIKE 'link >%' AND type NOT LIKE '%svg'",
    "is_icon": "type LIKE '%svg'",
    "is_landscape": "orientation = 'landscape'",
    "is_portrait": "orientation = 'portrait'",
    "is_square": "orientation = 'square'",
    "is_logo": "category = 'logos'",
    "is_people": "category = 'people-photos'",
    "is_graphic": "category = 'graphics-ui'",
    "is_product": "category = 'products'",
    "is_screenshot": "category = 'screenshots'",
}

_PER_URL_COLUMNS = ",\n".join(
    f"           MAX(CASE WHEN {predicate} THEN 1 ELSE 0 END) AS {name}"
    for name, predicate in _URL_FLAGS.items()
)

# Each image URL gets exactly one alt state, taking the first of missing,
# decorative, filled seen across its occurrences, so the three alt buckets
# partition ``images``.
_FILTER_COUNTS_SQL = f"""\
WITH per_url AS (
    SELECT url,
{_PER_URL_COLUMNS}
    FROM media
    WHERE site_key = ?
    GROUP BY url
)
SELECT
    COUNT(*) AS total,
    SUM(is_image) AS images,
    SUM(is_video) AS videos,
    SUM(is_document) AS documents,
    SUM(is_link) AS links,
    SUM(is_icon) AS icons,
    SUM(any_missing) AS empty,
    SUM(CASE WHEN any_missing = 0 AND any_decorative = 1 THEN 1 ELSE 0 END) AS decorative,
    SUM(CASE WHEN is_image = 1 AND any_missing = 0 AND any_decorative = 0 THEN 1 ELSE 0 END) AS filled,
    SUM(is_landscape) AS landscape,
    SUM(is_portrait) AS portrait,
    SUM(is_square) AS square,
    SUM(is_logo) AS logos,
    SUM(is_people) AS people,
    SUM(is_graphic) AS graphics,
    SUM(is_product) AS products,
    SUM(is_screenshot) AS screenshots
FROM per_url
"""

_SITES_SQL = """\
SELECT site_key, COUNT(*) AS count, MAX(indexed_at) AS last_indexed
FROM media
GROUP BY site_key
ORDER BY last_indexed DESC
LIMIT ?
"""

# Media families recognised by ``type_media``; the crawler tags types as
# "<family> > <subtype>" and SVGs by suffix.
_TYPE_PATTERNS: dict[str, str] = {
    "videos": "video >%",
    "documents": "document >%",
    "links": "link >%",
    "icons": "%svg",
}


def _record_params(site_key: str, record: MediaRecord, indexed_at: int) -> tuple[Any, ...]:
    return (
        site_key,
        record.hash,
        record.url,
        record.page_url,
        record.type,
        record.alt,
        record.width,
        record.height,
        record.orientation,
        record.category,
        record.loading,
        record.fetch_priority,
        int(record.is_lazy_loaded),
        record.role,
        int(record.aria_hidden),
        record.parent_tag,
        int(record.has_figcaption),
        indexed_at,
    )


class SQLiteMediaStore(IMediaStore):
    """aiosqlite implementation of :class:`IMediaStore`.

    Parameters
    ----------
    db_path:
        SQLite file location; parent directories are created on
        :meth:`initialize`.
    default_limit, large_images_limit, page_images_limit:
        Row caps for listing queries.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        default_limit: int = 1000,
        large_images_limit: int = 500,
        page_images_limit: int = 500,
    ) -> None:
        self._db_path = Path(db_path)
        self._default_limit = default_limit
        self._large_images_limit = large_images_limit
        self._page_images_limit = page_images_limit

    async def initialize(self) -> None:
        """Create the media table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("media_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_batch(self, site_key: str, records: list[MediaRecord], indexed_at: int) -> int:
        """Write *records* in a single transaction (all or nothing)."""
        if not records:
            return 0
        params = [_record_params(site_key, r, indexed_at) for r in records]
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.executemany(_UPSERT_SQL, params)
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Media batch upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("media_batch_upserted", site_key=site_key, rows=len(records))
        return len(records)

    async def delete_hashes(self, site_key: str, hashes: list[str]) -> int:
        """Delete rows by hash, in slices that fit SQLite's parameter limit."""
        if not hashes:
            return 0
        deleted = 0
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                for start in range(0, len(hashes), _DELETE_CHUNK):
                    chunk = hashes[start : start + _DELETE_CHUNK]
                    placeholders = ",".join("?" for _ in chunk)
                    cursor = await db.execute(
                        f"DELETE FROM media WHERE site_key = ? AND hash IN ({placeholders})",
                        (site_key, *chunk),
                    )
                    deleted += cursor.rowcount
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Media delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("media_hashes_deleted", site_key=site_key, requested=len(hashes), deleted=deleted)
        return deleted

    async def delete_site(self, site_key: str) -> int:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute("DELETE FROM media WHERE site_key = ?", (site_key,))
                deleted = cursor.rowcount
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Site delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("media_site_deleted", site_key=site_key, deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    async def list_hashes(self, site_key: str) -> list[str]:
        rows = await self._fetch_all("SELECT hash FROM media WHERE site_key = ?", (site_key,))
        return [row["hash"] for row in rows]

    async def count(self, site_key: str) -> int:
        rows = await self._fetch_all(
            "SELECT COUNT(*) AS count FROM media WHERE site_key = ?", (site_key,)
        )
        return int(rows[0]["count"]) if rows else 0

    async def list_sites(self, limit: int = 50) -> list[SiteSummary]:
        rows = await self._fetch_all(_SITES_SQL, (limit,))
        return [SiteSummary(**row) for row in rows]

    # ------------------------------------------------------------------
    # Query tools
    # ------------------------------------------------------------------

    async def images_without_alt(self, site_key: str) -> list[Row]:
        return await self._fetch_all(_WITHOUT_ALT_SQL, (site_key, self._default_limit))

    async def decorative_images(self, site_key: str) -> list[Row]:
        return await self._fetch_all(_DECORATIVE_SQL, (site_key, self._default_limit))

    async def page_images(self, site_key: str, page_url: str) -> list[Row]:
        return await self._fetch_all(
            _PAGE_IMAGES_SQL, (site_key, page_url, self._page_images_limit)
        )

    async def large_images(self, site_key: str, min_width: int = 1000) -> list[Row]:
        return await self._fetch_all(
            _LARGE_SQL, (site_key, min_width, self._large_images_limit)
        )

    async def lazy_loaded_images(self, site_key: str) -> list[Row]:
        return await self._fetch_all(_LAZY_SQL, (site_key, self._default_limit))

    async def seo_issues(self, site_key: str) -> list[Row]:
        return await self._fetch_all(_SEO_ISSUES_SQL, (site_key, self._default_limit))

    async def most_used_images(self, site_key: str, limit: int = 10) -> list[Row]:
        return await self._fetch_all(_MOST_USED_SQL, (site_key, limit))

    async def image_occurrences(self, site_key: str, image_url: str) -> list[Row]:
        return await self._fetch_all(
            _OCCURRENCES_SQL, (site_key, image_url, self._default_limit)
        )

    async def orientation_images(self, site_key: str, orientation: str) -> list[Row]:
        return await self._fetch_all(
            _ORIENTATION_SQL, (site_key, orientation, self._default_limit)
        )

    async def type_media(self, site_key: str, media_type: str) -> list[Row]:
        pattern = _TYPE_PATTERNS.get(media_type)
        if pattern is None:
            raise ValueError(f"Unknown media type: {media_type!r}")
        return await self._fetch_all(_TYPE_SQL, (site_key, pattern, self._default_limit))

    async def format_images(self, site_key: str, file_format: str) -> list[Row]:
        pattern = f"%{file_format.lower()}%"
        return await self._fetch_all(_FORMAT_SQL, (site_key, pattern, self._default_limit))

    async def filter_counts(self, site_key: str) -> FilterCounts:
        rows = await self._fetch_all(_FILTER_COUNTS_SQL, (site_key,))
        if not rows:
            return FilterCounts()
        return FilterCounts(**{k: v or 0 for k, v in rows[0].items()})

    def get_provider_name(self) -> str:
        return "sqlite_media"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_all(self, sql: str, params: tuple[Any, ...]) -> list[Row]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(sql, params)
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Media query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return [dict(r) for r in rows]
