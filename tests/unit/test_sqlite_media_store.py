"""Unit tests for SQLiteMediaStore against real aiosqlite files under tmp_path."""

from __future__ import annotations

import pytest

from mediaquery.providers.media_store.sqlite_media_store import SQLiteMediaStore
from mediaquery.utils.errors import StoreError

SITE = "example.com"


class TestWrites:
    @pytest.mark.asyncio
    async def test_upsert_and_count(self, media_store: SQLiteMediaStore, record) -> None:
        written = await media_store.upsert_batch(SITE, [record(i) for i in range(3)], 1000)
        assert written == 3
        assert await media_store.count(SITE) == 3

    @pytest.mark.asyncio
    async def test_upsert_empty_is_noop(self, media_store: SQLiteMediaStore) -> None:
        assert await media_store.upsert_batch(SITE, [], 1000) == 0

    @pytest.mark.asyncio
    async def test_upsert_same_hash_replaces_row(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(SITE, [record(1, alt=None)], 1000)
        await media_store.upsert_batch(SITE, [record(1, alt="now described")], 2000)

        assert await media_store.count(SITE) == 1
        counts = await media_store.filter_counts(SITE)
        assert counts.empty == 0
        assert counts.filled == 1

    @pytest.mark.asyncio
    async def test_same_hash_on_two_sites_is_two_rows(
        self, media_store: SQLiteMediaStore, record
    ) -> None:
        await media_store.upsert_batch("a.com", [record(1)], 1000)
        await media_store.upsert_batch("b.com", [record(1)], 1000)
        assert await media_store.count("a.com") == 1
        assert await media_store.count("b.com") == 1

    @pytest.mark.asyncio
    async def test_delete_hashes_scoped_to_site(
        self, media_store: SQLiteMediaStore, record
    ) -> None:
        await media_store.upsert_batch("a.com", [record(1), record(2)], 1000)
        await media_store.upsert_batch("b.com", [record(1)], 1000)

        deleted = await media_store.delete_hashes("a.com", ["h1", "missing"])

        assert deleted == 1
        assert await media_store.list_hashes("a.com") == ["h2"]
        assert await media_store.count("b.com") == 1

    @pytest.mark.asyncio
    async def test_delete_many_hashes_in_slices(
        self, media_store: SQLiteMediaStore, record
    ) -> None:
        await media_store.upsert_batch(SITE, [record(i) for i in range(1200)], 1000)
        deleted = await media_store.delete_hashes(SITE, [f"h{i}" for i in range(1200)])
        assert deleted == 1200
        assert await media_store.count(SITE) == 0

    @pytest.mark.asyncio
    async def test_delete_site(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(SITE, [record(i) for i in range(4)], 1000)
        assert await media_store.delete_site(SITE) == 4
        assert await media_store.count(SITE) == 0

    @pytest.mark.asyncio
    async def test_store_error_wraps_sqlite_failures(self, tmp_path) -> None:
        store = SQLiteMediaStore(db_path=tmp_path / "uninitialized.db")
        with pytest.raises(StoreError):
            await store.count(SITE)


class TestInventory:
    @pytest.mark.asyncio
    async def test_list_sites_newest_first(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch("old.com", [record(1)], 1000)
        await media_store.upsert_batch("new.com", [record(1), record(2)], 5000)

        sites = await media_store.list_sites(limit=50)

        assert [s.site_key for s in sites] == ["new.com", "old.com"]
        assert sites[0].count == 2
        assert sites[0].last_indexed == 5000

    @pytest.mark.asyncio
    async def test_list_sites_respects_limit(self, media_store: SQLiteMediaStore, record) -> None:
        for i in range(3):
            await media_store.upsert_batch(f"s{i}.com", [record(1)], 1000 + i)
        assert len(await media_store.list_sites(limit=2)) == 2


class TestFilterCounts:
    @pytest.mark.asyncio
    async def test_alt_tristate(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(
            SITE,
            [record(1, alt=None), record(2, alt=""), record(3, alt="a red shoe")],
            1000,
        )

        counts = await media_store.filter_counts(SITE)

        assert counts.images == 3
        assert counts.empty == 1
        assert counts.decorative == 1
        assert counts.filled == 1

    @pytest.mark.asyncio
    async def test_alt_buckets_partition_images(self, media_store: SQLiteMediaStore, record) -> None:
        shoe = "https://example.com/img/shoe.jpg"
        divider = "https://example.com/img/divider.png"
        logo = "https://example.com/img/logo.png"
        await media_store.upsert_batch(
            SITE,
            [
                record(1, url=shoe, pageUrl="https://example.com/a", alt=None),
                record(2, url=shoe, pageUrl="https://example.com/b", alt="a red shoe"),
                record(3, url=divider, pageUrl="https://example.com/a", alt=""),
                record(4, url=divider, pageUrl="https://example.com/b", alt="divider"),
                record(5, url=logo, pageUrl="https://example.com/a", alt="Acme logo"),
            ],
            1000,
        )

        counts = await media_store.filter_counts(SITE)

        assert counts.images == 3
        assert (counts.empty, counts.decorative, counts.filled) == (1, 1, 1)
        assert counts.empty + counts.decorative + counts.filled == counts.images

    @pytest.mark.asyncio
    async def test_counts_distinct_urls(self, media_store: SQLiteMediaStore, record) -> None:
        shared = "https://example.com/img/logo.png"
        await media_store.upsert_batch(
            SITE,
            [
                record(1, url=shared, pageUrl="https://example.com/a", category="logos"),
                record(2, url=shared, pageUrl="https://example.com/b", category="logos"),
            ],
            1000,
        )

        counts = await media_store.filter_counts(SITE)

        assert counts.total == 1
        assert counts.logos == 1

    @pytest.mark.asyncio
    async def test_type_families(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(
            SITE,
            [
                record(1, type="video > mp4", url="https://example.com/v.mp4"),
                record(2, type="document > pdf", url="https://example.com/d.pdf"),
                record(3, type="img > svg", url="https://example.com/i.svg"),
                record(4, type="link > html", url="https://example.com/page"),
            ],
            1000,
        )

        counts = await media_store.filter_counts(SITE)

        assert counts.videos == 1
        assert counts.documents == 1
        assert counts.icons == 1
        assert counts.links == 1
        assert counts.images == 0

    @pytest.mark.asyncio
    async def test_unknown_site_is_all_zero(self, media_store: SQLiteMediaStore) -> None:
        counts = await media_store.filter_counts("nobody.com")
        assert counts.total == 0
        assert counts.images == 0


class TestQueryTools:
    @pytest.mark.asyncio
    async def test_images_without_alt_groups_by_url(
        self, media_store: SQLiteMediaStore, record
    ) -> None:
        url = "https://example.com/img/hero.jpg"
        await media_store.upsert_batch(
            SITE,
            [
                record(1, url=url, alt=None, pageUrl="https://example.com/a"),
                record(2, url=url, alt=None, pageUrl="https://example.com/b"),
                record(3, alt=""),
                record(4),
            ],
            1000,
        )

        rows = await media_store.images_without_alt(SITE)

        assert len(rows) == 1
        assert rows[0]["url"] == url
        assert rows[0]["occurrences"] == 2

    @pytest.mark.asyncio
    async def test_decorative_images(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(SITE, [record(1, alt=""), record(2, alt=None)], 1000)
        rows = await media_store.decorative_images(SITE)
        assert [r["url"] for r in rows] == ["https://example.com/img/1.jpg"]

    @pytest.mark.asyncio
    async def test_large_images_threshold_and_order(
        self, media_store: SQLiteMediaStore, record
    ) -> None:
        await media_store.upsert_batch(
            SITE,
            [
                record(1, width=999, height=500),
                record(2, width=1200, height=800),
                record(3, width=3000, height=2000),
            ],
            1000,
        )

        rows = await media_store.large_images(SITE, 1000)

        assert [r["width"] for r in rows] == [3000, 1200]

    @pytest.mark.asyncio
    async def test_lazy_loaded_images(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(
            SITE,
            [
                record(1, loading="lazy"),
                record(2, isLazyLoaded=True),
                record(3, loading="eager"),
            ],
            1000,
        )
        rows = await media_store.lazy_loaded_images(SITE)
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_page_images(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(
            SITE,
            [record(1, pageUrl="https://example.com/"), record(2, pageUrl="https://example.com/x")],
            1000,
        )
        rows = await media_store.page_images(SITE, "https://example.com/")
        assert [r["hash"] for r in rows] == ["h1"]

    @pytest.mark.asyncio
    async def test_seo_issues_labels(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(
            SITE,
            [
                record(1, alt=None, loading="lazy"),
                record(2, width=2500, height=1000, loading="lazy"),
                record(3, loading=None),
                record(4, loading="lazy"),
            ],
            1000,
        )

        rows = await media_store.seo_issues(SITE)
        issues = {r["url"].rsplit("/", 1)[-1]: r["issue_type"] for r in rows}

        assert issues == {
            "1.jpg": "missing_alt",
            "2.jpg": "oversized",
            "3.jpg": "missing_loading",
        }

    @pytest.mark.asyncio
    async def test_most_used_images(self, media_store: SQLiteMediaStore, record) -> None:
        popular = "https://example.com/img/logo.png"
        await media_store.upsert_batch(
            SITE,
            [
                record(1, url=popular, pageUrl="https://example.com/a"),
                record(2, url=popular, pageUrl="https://example.com/b"),
                record(3, url=popular, pageUrl="https://example.com/b"),
                record(4),
            ],
            1000,
        )

        rows = await media_store.most_used_images(SITE, limit=1)

        assert len(rows) == 1
        assert rows[0]["url"] == popular
        assert rows[0]["usage_count"] == 3
        assert rows[0]["page_count"] == 2

    @pytest.mark.asyncio
    async def test_image_occurrences(self, media_store: SQLiteMediaStore, record) -> None:
        url = "https://example.com/img/team.jpg"
        await media_store.upsert_batch(
            SITE,
            [
                record(1, url=url, pageUrl="https://example.com/b", alt="team"),
                record(2, url=url, pageUrl="https://example.com/a", alt=None),
            ],
            1000,
        )
        rows = await media_store.image_occurrences(SITE, url)
        assert [r["page_url"] for r in rows] == ["https://example.com/a", "https://example.com/b"]

    @pytest.mark.asyncio
    async def test_orientation_images(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(
            SITE, [record(1, orientation="square"), record(2, orientation="portrait")], 1000
        )
        rows = await media_store.orientation_images(SITE, "square")
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_type_media(self, media_store: SQLiteMediaStore, record) -> None:
        await media_store.upsert_batch(
            SITE, [record(1, type="video > mp4"), record(2)], 1000
        )
        rows = await media_store.type_media(SITE, "videos")
        assert len(rows) == 1
        assert rows[0]["type"] == "video > mp4"

    @pytest.mark.asyncio
    async def test_type_media_unknown_family(self, media_store: SQLiteMediaStore) -> None:
        with pytest.raises(ValueError):
            await media_store.type_media(SITE, "holograms")

    @pytest.mark.asyncio
    async def test_format_images_case_insensitive(
        self, media_store: SQLiteMediaStore, record
    ) -> None:
        await media_store.upsert_batch(
            SITE,
            [record(1, url="https://example.com/A.PNG"), record(2, url="https://example.com/b.jpg")],
            1000,
        )
        rows = await media_store.format_images(SITE, "PNG")
        assert [r["url"] for r in rows] == ["https://example.com/A.PNG"]

    @pytest.mark.asyncio
    async def test_listing_limit(self, tmp_path, record) -> None:
        store = SQLiteMediaStore(db_path=tmp_path / "limited.db", default_limit=2)
        await store.initialize()
        await store.upsert_batch(SITE, [record(i, alt=None) for i in range(5)], 1000)
        assert len(await store.images_without_alt(SITE)) == 2
