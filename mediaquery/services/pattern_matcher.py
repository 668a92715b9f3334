"""Deterministic regex fallback for chat queries.

:data:`PATTERN_RULES` is tested in order against the lowercased query and
the first match wins.  Order is load-bearing: specific count questions
("how many ... without alt text") must precede the generic ones ("how many
... image"), and listing rules precede the broad keyword rules at the end.
"""

from __future__ import annotations

import re
from typing import Awaitable, Callable, NamedTuple

import structlog

from mediaquery.models.query import CountResult, FilterCountsResult, RowListResult
from mediaquery.services.query_tools import ToolContext

logger = structlog.get_logger(logger_name=__name__)

PatternResult = CountResult | RowListResult | FilterCountsResult
PatternHandler = Callable[[ToolContext, str], Awaitable[PatternResult]]

_FORMAT = re.compile(r"\b(png|jpe?g|webp|gif|svg|bmp|ico|avif)\b")
_TOP_N = re.compile(r"top\s+(\d+)")
_COUNT = r"\b(how\s+many|count|total)\b"
_LIST = r"\b(show|find|get|list|display)\b"


class PatternRule(NamedTuple):
    name: str
    pattern: re.Pattern[str]
    handler: PatternHandler


def _count(field: str, label: str) -> PatternHandler:
    async def handler(ctx: ToolContext, query: str) -> PatternResult:
        counts = await ctx.store.filter_counts(ctx.site_key)
        return CountResult(count=getattr(counts, field), label=label)

    return handler


def _orientation(orientation: str) -> PatternHandler:
    async def handler(ctx: ToolContext, query: str) -> PatternResult:
        rows = await ctx.store.orientation_images(ctx.site_key, orientation)
        return RowListResult(tool="getOrientationImages", rows=rows)

    return handler


def _media_type(media_type: str) -> PatternHandler:
    async def handler(ctx: ToolContext, query: str) -> PatternResult:
        rows = await ctx.store.type_media(ctx.site_key, media_type)
        return RowListResult(tool="getTypeMedia", rows=rows)

    return handler


async def _file_format(ctx: ToolContext, query: str) -> PatternResult:
    match = _FORMAT.search(query)
    file_format = match.group(1) if match else "png"
    rows = await ctx.store.format_images(ctx.site_key, file_format)
    return RowListResult(tool="getFormatImages", rows=rows)


async def _home_page(ctx: ToolContext, query: str) -> PatternResult:
    rows = await ctx.store.page_images(ctx.site_key, f"https://{ctx.site_key}/")
    return RowListResult(tool="getPageImages", rows=rows)


async def _missing_alt(ctx: ToolContext, query: str) -> PatternResult:
    return RowListResult(
        tool="getImagesWithoutAlt", rows=await ctx.store.images_without_alt(ctx.site_key)
    )


async def _decorative(ctx: ToolContext, query: str) -> PatternResult:
    return RowListResult(
        tool="getDecorativeImages", rows=await ctx.store.decorative_images(ctx.site_key)
    )


async def _filter_counts(ctx: ToolContext, query: str) -> PatternResult:
    return FilterCountsResult(counts=await ctx.store.filter_counts(ctx.site_key))


async def _most_used(ctx: ToolContext, query: str) -> PatternResult:
    match = _TOP_N.search(query)
    limit = int(match.group(1)) if match else 10
    rows = await ctx.store.most_used_images(ctx.site_key, max(limit, 1))
    return RowListResult(tool="getMostUsedImages", rows=rows)


async def _large(ctx: ToolContext, query: str) -> PatternResult:
    rows = await ctx.store.large_images(ctx.site_key, ctx.large_image_min_width)
    return RowListResult(tool="getLargeImages", rows=rows)


async def _lazy(ctx: ToolContext, query: str) -> PatternResult:
    return RowListResult(
        tool="getLazyLoadedImages", rows=await ctx.store.lazy_loaded_images(ctx.site_key)
    )


async def _seo(ctx: ToolContext, query: str) -> PatternResult:
    return RowListResult(tool="getSeoIssues", rows=await ctx.store.seo_issues(ctx.site_key))


PATTERN_RULES: tuple[PatternRule, ...] = (
    PatternRule("fileFormat", _FORMAT, _file_format),
    PatternRule(
        "homePage",
        re.compile(r"\b(home\s*page|homepage|index|root\s*page|landing\s*page|main\s*page)\b"),
        _home_page,
    ),
    PatternRule(
        "altTextWith",
        re.compile(_COUNT + r".*\b(has|have|with)\b.*\balt[\s-]?text\b"),
        _count("filled", "images with alt text"),
    ),
    PatternRule(
        "altTextWithout",
        re.compile(
            _COUNT + r".*\b(does\s+not|do\s+not|don't|without|missing|no)\b.*\balt[\s-]?text\b"
        ),
        _count("empty", "images without alt text"),
    ),
    PatternRule(
        "decorativeCount",
        re.compile(_COUNT + r".*\bdecorative\b"),
        _count("decorative", "decorative images"),
    ),
    PatternRule(
        "imageCount",
        re.compile(_COUNT + r".*\b(image|photo|picture)"),
        _count("images", "images"),
    ),
    PatternRule(
        "videoCount",
        re.compile(_COUNT + r".*\b(video|movie)"),
        _count("videos", "videos"),
    ),
    PatternRule(
        "squareCount",
        re.compile(_COUNT + r".*\bsquare\b"),
        _count("square", "square images"),
    ),
    PatternRule(
        "landscapeCount",
        re.compile(_COUNT + r".*\b(landscape|horizontal)"),
        _count("landscape", "landscape images"),
    ),
    PatternRule(
        "portraitCount",
        re.compile(_COUNT + r".*\b(portrait|vertical)"),
        _count("portrait", "portrait images"),
    ),
    PatternRule("missingAlt", re.compile(r"\b(missing|without|no)\s+(alt|alt[\s-]text)\b"), _missing_alt),
    PatternRule("decorative", re.compile(r"\bdecorative\b"), _decorative),
    PatternRule(
        "landscapeImages",
        re.compile(_LIST + r".*\b(landscape|horizontal)\b"),
        _orientation("landscape"),
    ),
    PatternRule(
        "portraitImages",
        re.compile(_LIST + r".*\b(portrait|vertical)\b"),
        _orientation("portrait"),
    ),
    PatternRule("squareImages", re.compile(_LIST + r".*\bsquare\b"), _orientation("square")),
    PatternRule("videos", re.compile(_LIST + r".*\b(video|movie)"), _media_type("videos")),
    PatternRule("documents", re.compile(_LIST + r".*\b(document|pdf)"), _media_type("documents")),
    PatternRule("icons", re.compile(_LIST + r".*\b(icon|svg)"), _media_type("icons")),
    PatternRule(
        "filterCounts",
        re.compile(r"\b(breakdown|summary|all\s+counts?|filter\s+counts?|stats)\b"),
        _filter_counts,
    ),
    PatternRule(
        "mostUsed",
        re.compile(r"\b(most|top|frequently|commonly|highest)[\s-]*(used|referenced|popular)\b"),
        _most_used,
    ),
    PatternRule("largeImages", re.compile(r"\b(largest|biggest|oversized|big|heavy|large)\b"), _large),
    PatternRule("lazyLoading", re.compile(r"\b(lazy|loading)\b"), _lazy),
    PatternRule("seoIssues", re.compile(r"\b(seo|issue|problem|audit)\b"), _seo),
)


def match_rule(query: str) -> PatternRule | None:
    """Return the first rule whose pattern matches *query*, if any."""
    lowered = query.lower()
    for rule in PATTERN_RULES:
        if rule.pattern.search(lowered):
            return rule
    return None


async def match_pattern(ctx: ToolContext, query: str) -> PatternResult | None:
    rule = match_rule(query)
    if rule is None:
        return None
    logger.debug("pattern_matched", rule=rule.name, site_key=ctx.site_key)
    return await rule.handler(ctx, query.lower())
