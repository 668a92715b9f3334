"""Media-store query tools exposed to the LLM.

Each tool is a member of :class:`QueryTool`; its JSON schema (sent with the
tool-calling request) and its handler (run when the model picks it) live in
two tables keyed by that enum.  Both tables are checked against the enum at
import time, so a tool added to one place but not the others fails fast
with :class:`ConfigurationError` instead of silently never dispatching.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog

from mediaquery.interfaces.media_store import IMediaStore
from mediaquery.models.query import FilterCountsResult, RowListResult
from mediaquery.utils.errors import ConfigurationError, ValidationError

logger = structlog.get_logger(logger_name=__name__)

ORIENTATIONS = ("square", "landscape", "portrait")
MEDIA_TYPES = ("videos", "documents", "links", "icons")


class QueryTool(str, Enum):
    IMAGES_WITHOUT_ALT = "getImagesWithoutAlt"
    DECORATIVE_IMAGES = "getDecorativeImages"
    LARGE_IMAGES = "getLargeImages"
    LAZY_LOADED_IMAGES = "getLazyLoadedImages"
    PAGE_IMAGES = "getPageImages"
    SEO_ISSUES = "getSeoIssues"
    MOST_USED_IMAGES = "getMostUsedImages"
    IMAGE_OCCURRENCES = "getImageOccurrences"
    ORIENTATION_IMAGES = "getOrientationImages"
    TYPE_MEDIA = "getTypeMedia"
    FORMAT_IMAGES = "getFormatImages"
    FILTER_COUNTS = "getFilterCounts"


@dataclass(frozen=True)
class ToolContext:
    """What every handler needs: the store, the tenant and tunables."""

    store: IMediaStore
    site_key: str
    large_image_min_width: int = 1000


ToolResult = RowListResult | FilterCountsResult
ToolHandler = Callable[[ToolContext, dict[str, Any]], Awaitable[ToolResult]]

# ---------------------------------------------------------------------------
# Argument coercion (model output is untrusted)
# ---------------------------------------------------------------------------


def _required_str(args: dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required", details=[key])
    return value.strip()


def _choice(args: dict[str, Any], key: str, choices: tuple[str, ...]) -> str:
    value = _required_str(args, key).lower()
    if value not in choices:
        raise ValidationError(f"{key} must be one of {', '.join(choices)}", details=[key])
    return value


def _positive_int(args: dict[str, Any], key: str, default: int) -> int:
    value = args.get(key)
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{key} must be a number", details=[key]) from exc
    if number < 1:
        raise ValidationError(f"{key} must be positive", details=[key])
    return number


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _rows(tool: QueryTool, rows: list[dict[str, Any]]) -> RowListResult:
    return RowListResult(tool=tool.value, rows=rows)


async def _images_without_alt(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    return _rows(QueryTool.IMAGES_WITHOUT_ALT, await ctx.store.images_without_alt(ctx.site_key))


async def _decorative_images(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    return _rows(QueryTool.DECORATIVE_IMAGES, await ctx.store.decorative_images(ctx.site_key))


async def _large_images(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    min_width = _positive_int(args, "minWidth", ctx.large_image_min_width)
    return _rows(QueryTool.LARGE_IMAGES, await ctx.store.large_images(ctx.site_key, min_width))


async def _lazy_loaded_images(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    return _rows(QueryTool.LAZY_LOADED_IMAGES, await ctx.store.lazy_loaded_images(ctx.site_key))


async def _page_images(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    page_url = _required_str(args, "pageUrl")
    return _rows(QueryTool.PAGE_IMAGES, await ctx.store.page_images(ctx.site_key, page_url))


async def _seo_issues(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    return _rows(QueryTool.SEO_ISSUES, await ctx.store.seo_issues(ctx.site_key))


async def _most_used_images(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    limit = _positive_int(args, "limit", 10)
    return _rows(QueryTool.MOST_USED_IMAGES, await ctx.store.most_used_images(ctx.site_key, limit))


async def _image_occurrences(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    image_url = _required_str(args, "imageUrl")
    return _rows(
        QueryTool.IMAGE_OCCURRENCES, await ctx.store.image_occurrences(ctx.site_key, image_url)
    )


async def _orientation_images(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    orientation = _choice(args, "orientation", ORIENTATIONS)
    return _rows(
        QueryTool.ORIENTATION_IMAGES,
        await ctx.store.orientation_images(ctx.site_key, orientation),
    )


async def _type_media(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    media_type = _choice(args, "mediaType", MEDIA_TYPES)
    return _rows(QueryTool.TYPE_MEDIA, await ctx.store.type_media(ctx.site_key, media_type))


async def _format_images(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    file_format = _required_str(args, "format")
    return _rows(QueryTool.FORMAT_IMAGES, await ctx.store.format_images(ctx.site_key, file_format))


async def _filter_counts(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    return FilterCountsResult(counts=await ctx.store.filter_counts(ctx.site_key))


TOOL_HANDLERS: dict[QueryTool, ToolHandler] = {
    QueryTool.IMAGES_WITHOUT_ALT: _images_without_alt,
    QueryTool.DECORATIVE_IMAGES: _decorative_images,
    QueryTool.LARGE_IMAGES: _large_images,
    QueryTool.LAZY_LOADED_IMAGES: _lazy_loaded_images,
    QueryTool.PAGE_IMAGES: _page_images,
    QueryTool.SEO_ISSUES: _seo_issues,
    QueryTool.MOST_USED_IMAGES: _most_used_images,
    QueryTool.IMAGE_OCCURRENCES: _image_occurrences,
    QueryTool.ORIENTATION_IMAGES: _orientation_images,
    QueryTool.TYPE_MEDIA: _type_media,
    QueryTool.FORMAT_IMAGES: _format_images,
    QueryTool.FILTER_COUNTS: _filter_counts,
}

# ---------------------------------------------------------------------------
# Schemas (OpenAI tool format)
# ---------------------------------------------------------------------------

# tool -> (description, properties, required)
_TOOL_SPECS: dict[QueryTool, tuple[str, dict[str, Any], tuple[str, ...]]] = {
    QueryTool.IMAGES_WITHOUT_ALT: (
        'Get images missing alt text (alt IS NULL). Accessibility issues. '
        'Do NOT confuse with decorative (alt="").',
        {},
        (),
    ),
    QueryTool.DECORATIVE_IMAGES: (
        'Get decorative images (alt=""). Intentionally empty per WCAG for decorative content.',
        {},
        (),
    ),
    QueryTool.LARGE_IMAGES: (
        "Get oversized images above width threshold. For performance optimization.",
        {"minWidth": {"type": "number", "description": "Min width in pixels (default 1000)"}},
        (),
    ),
    QueryTool.LAZY_LOADED_IMAGES: (
        'Get images with loading="lazy" attribute. For lazy loading queries.',
        {},
        (),
    ),
    QueryTool.PAGE_IMAGES: (
        "Get all images from a specific page URL.",
        {
            "pageUrl": {
                "type": "string",
                "description": "Complete page URL (e.g. https://example.com/about)",
            }
        },
        ("pageUrl",),
    ),
    QueryTool.SEO_ISSUES: (
        "Get comprehensive SEO audit: missing alt, oversized images, missing lazy loading. "
        "For general audits.",
        {},
        (),
    ),
    QueryTool.MOST_USED_IMAGES: (
        'Get most frequently used images. Shows usage count, page count. For "most used", '
        '"top images" queries.',
        {"limit": {"type": "number", "description": "Number of results (default 10)"}},
        (),
    ),
    QueryTool.IMAGE_OCCURRENCES: (
        "Get all occurrences of a specific image URL across pages. Shows alt text per occurrence.",
        {"imageUrl": {"type": "string", "description": "Full image URL"}},
        ("imageUrl",),
    ),
    QueryTool.ORIENTATION_IMAGES: (
        'Get images by orientation. For "show square/landscape/portrait images" queries.',
        {
            "orientation": {
                "type": "string",
                "description": "square, landscape, or portrait",
                "enum": list(ORIENTATIONS),
            }
        },
        ("orientation",),
    ),
    QueryTool.TYPE_MEDIA: (
        'Get media by type. For "show videos/documents/PDFs/icons" queries.',
        {
            "mediaType": {
                "type": "string",
                "description": "videos, documents, links, or icons",
                "enum": list(MEDIA_TYPES),
            }
        },
        ("mediaType",),
    ),
    QueryTool.FORMAT_IMAGES: (
        'Get images by file format. For "PNG images", "JPEG files", "WEBP images" queries.',
        {
            "format": {
                "type": "string",
                "description": "File format: png, jpg, jpeg, webp, gif, svg, etc.",
            }
        },
        ("format",),
    ),
    QueryTool.FILTER_COUNTS: (
        "Get ALL filter counts matching sidebar UI. Returns types, accessibility, orientation, "
        'categories. For "how many" or "stats".',
        {},
        (),
    ),
}


def _schema(tool: QueryTool) -> dict[str, Any]:
    description, properties, required = _TOOL_SPECS[tool]
    return {
        "type": "function",
        "function": {
            "name": tool.value,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": list(required),
            },
        },
    }


def _check_registry() -> None:
    for table_name, table in (("TOOL_HANDLERS", TOOL_HANDLERS), ("_TOOL_SPECS", _TOOL_SPECS)):
        missing = [t.value for t in QueryTool if t not in table]
        if missing:
            raise ConfigurationError(f"{table_name} is missing tools: {', '.join(missing)}")


_check_registry()

TOOL_SCHEMAS: list[dict[str, Any]] = [_schema(tool) for tool in QueryTool]


async def execute_tool(ctx: ToolContext, name: str, arguments: dict[str, Any]) -> ToolResult:
    """Run the tool named *name*.

    Raises
    ------
    ValidationError
        If *name* is not a known tool or its arguments are unusable.
    """
    try:
        tool = QueryTool(name)
    except ValueError as exc:
        raise ValidationError(f"Unknown tool: {name}") from exc
    logger.debug("tool_dispatch", tool=tool.value, site_key=ctx.site_key)
    return await TOOL_HANDLERS[tool](ctx, arguments)
