"""Unit tests for the ordered regex fallback."""

from __future__ import annotations

import pytest

from mediaquery.models.media import FilterCounts
from mediaquery.models.query import CountResult, FilterCountsResult, RowListResult
from mediaquery.services.pattern_matcher import PATTERN_RULES, match_pattern, match_rule
from mediaquery.services.query_tools import ToolContext

SITE = "example.com"


@pytest.fixture()
def ctx(mock_media_store) -> ToolContext:
    return ToolContext(store=mock_media_store, site_key=SITE, large_image_min_width=1200)


class TestRuleOrder:
    def test_declared_order(self) -> None:
        assert [rule.name for rule in PATTERN_RULES] == [
            "fileFormat",
            "homePage",
            "altTextWith",
            "altTextWithout",
            "decorativeCount",
            "imageCount",
            "videoCount",
            "squareCount",
            "landscapeCount",
            "portraitCount",
            "missingAlt",
            "decorative",
            "landscapeImages",
            "portraitImages",
            "squareImages",
            "videos",
            "documents",
            "icons",
            "filterCounts",
            "mostUsed",
            "largeImages",
            "lazyLoading",
            "seoIssues",
        ]

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("Show me PNG images", "fileFormat"),
            ("how many jpg files are there", "fileFormat"),
            ("images on the home page", "homePage"),
            ("How many images have alt text?", "altTextWith"),
            ("how many images are missing alt text?", "altTextWithout"),
            ("How many images do not carry alt-text", "altTextWithout"),
            ("how many decorative images", "decorativeCount"),
            ("How many images are there?", "imageCount"),
            ("count the videos", "videoCount"),
            ("how many square images", "imageCount"),
            ("total square ones", "squareCount"),
            ("how many horizontal shots", "landscapeCount"),
            ("which images are missing alt text", "missingAlt"),
            ("list decorative images", "decorative"),
            ("show landscape images", "landscapeImages"),
            ("find vertical pictures", "portraitImages"),
            ("display square images", "squareImages"),
            ("show me the videos", "videos"),
            ("list all PDF documents", "documents"),
            ("show icons", "icons"),
            ("give me a breakdown", "filterCounts"),
            ("what are the most used images", "mostUsed"),
            ("find the largest images", "largeImages"),
            ("images without lazy loading", "lazyLoading"),
            ("run an seo audit", "seoIssues"),
        ],
    )
    def test_first_match_wins(self, query: str, expected: str) -> None:
        rule = match_rule(query)
        assert rule is not None
        assert rule.name == expected

    def test_no_match(self) -> None:
        assert match_rule("tell me a joke about cats") is None


class TestHandlers:
    @pytest.mark.asyncio
    async def test_count_uses_filter_counts(self, ctx: ToolContext, mock_media_store) -> None:
        mock_media_store.filter_counts.return_value = FilterCounts(empty=4, images=9)

        result = await match_pattern(ctx, "How many images are missing alt text?")

        assert result == CountResult(count=4, label="images without alt text")

    @pytest.mark.asyncio
    async def test_file_format_extracts_format(self, ctx: ToolContext, mock_media_store) -> None:
        result = await match_pattern(ctx, "Show me all WEBP images")

        assert isinstance(result, RowListResult)
        assert result.tool == "getFormatImages"
        mock_media_store.format_images.assert_awaited_once_with(SITE, "webp")

    @pytest.mark.asyncio
    async def test_home_page_uses_site_root(self, ctx: ToolContext, mock_media_store) -> None:
        await match_pattern(ctx, "what's on the homepage")
        mock_media_store.page_images.assert_awaited_once_with(SITE, "https://example.com/")

    @pytest.mark.asyncio
    async def test_most_used_parses_top_n(self, ctx: ToolContext, mock_media_store) -> None:
        await match_pattern(ctx, "top 5 most used images")
        mock_media_store.most_used_images.assert_awaited_once_with(SITE, 5)

    @pytest.mark.asyncio
    async def test_large_uses_configured_threshold(self, ctx: ToolContext, mock_media_store) -> None:
        await match_pattern(ctx, "show oversized images")
        mock_media_store.large_images.assert_awaited_once_with(SITE, 1200)

    @pytest.mark.asyncio
    async def test_orientation_listing(self, ctx: ToolContext, mock_media_store) -> None:
        result = await match_pattern(ctx, "show portrait images")
        assert result.tool == "getOrientationImages"
        mock_media_store.orientation_images.assert_awaited_once_with(SITE, "portrait")

    @pytest.mark.asyncio
    async def test_media_type_listing(self, ctx: ToolContext, mock_media_store) -> None:
        result = await match_pattern(ctx, "list the svg icons")
        # "svg" is a file format, which is checked first.
        assert result.tool == "getFormatImages"

        mock_media_store.reset_mock()
        result = await match_pattern(ctx, "show icons")
        assert result.tool == "getTypeMedia"
        mock_media_store.type_media.assert_awaited_once_with(SITE, "icons")

    @pytest.mark.asyncio
    async def test_filter_counts(self, ctx: ToolContext) -> None:
        result = await match_pattern(ctx, "show me the stats")
        assert isinstance(result, FilterCountsResult)

    @pytest.mark.asyncio
    async def test_unmatched_returns_none(self, ctx: ToolContext, mock_media_store) -> None:
        assert await match_pattern(ctx, "hello there") is None
        mock_media_store.filter_counts.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, ctx: ToolContext, mock_media_store) -> None:
        mock_media_store.seo_issues.side_effect = RuntimeError("db gone")
        with pytest.raises(RuntimeError):
            await match_pattern(ctx, "seo problems")
