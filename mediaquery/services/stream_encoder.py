"""Server-sent event encoding of chat answers.

Each frame is ``data: {json}\\n\\n`` with keys ``chunk`` and optionally
``tool``, ``count``, ``images``, ``error`` and ``done``.  The intro sentence
for a result is always sent before its payload so the client can render
"Found N images." before the list arrives.

Termination: every stream ends with exactly one ``{"chunk": "", "done": true}``
frame.  When resolution or rendering raises, a single ``{"error": ...}``
frame precedes it.  A client disconnect cancels the generator; that is
logged and re-raised without writing further frames.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Callable, Iterator

import structlog

from mediaquery.models.query import (
    ChatTurn,
    CountResult,
    FilterCountsResult,
    HelpResult,
    NoMatchResult,
    RowListResult,
)
from mediaquery.services import prompts
from mediaquery.services.query_resolver import SEMANTIC_TOOL, QueryResolver
from mediaquery.utils.errors import MediaQueryError

logger = structlog.get_logger(logger_name=__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

Frame = dict[str, Any]


def encode_frame(payload: Frame) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class StreamEncoder:
    """Turn a resolved chat result into an async stream of SSE frames."""

    def __init__(self, resolver: QueryResolver, inline_preview: int = 5) -> None:
        self._resolver = resolver
        self._inline_preview = inline_preview
        self._renderers: dict[type, Callable[[Any, str], Iterator[Frame]]] = {
            CountResult: self._render_count,
            RowListResult: self._render_rows,
            FilterCountsResult: self._render_filter_counts,
            HelpResult: self._render_help,
            NoMatchResult: self._render_no_match,
        }

    async def stream(
        self,
        query: str,
        site_key: str,
        history: list[ChatTurn] | None = None,
    ) -> AsyncIterator[str]:
        try:
            result = await self._resolver.resolve(query, site_key, history)
            for frame in self._renderers[type(result)](result, site_key):
                yield encode_frame(frame)
        except asyncio.CancelledError:
            logger.info("chat_stream_cancelled", site_key=site_key)
            raise
        except Exception as exc:
            message = exc.message if isinstance(exc, MediaQueryError) else str(exc)
            logger.error("chat_stream_failed", site_key=site_key, error=str(exc))
            yield encode_frame({"error": message or type(exc).__name__})

        yield encode_frame({"chunk": "", "done": True})

    # ------------------------------------------------------------------
    # Renderers (one per result variant)
    # ------------------------------------------------------------------

    def _render_count(self, result: CountResult, site_key: str) -> Iterator[Frame]:
        if result.count > 0:
            text = f"There are **{result.count} {result.label}** on **{site_key}**."
        else:
            text = f"No {result.label} found on **{site_key}**."
        yield {"chunk": text, "tool": result.tool, "count": result.count}

    def _render_rows(self, result: RowListResult, site_key: str) -> Iterator[Frame]:
        rows = result.rows
        if not rows:
            yield {
                "chunk": prompts.empty_result_text(result.tool, site_key),
                "tool": result.tool,
                "count": 0,
            }
            return

        if result.tool == SEMANTIC_TOOL:
            intro = f"Found **{len(rows)} relevant images** matching your query."
        else:
            intro = f"Found **{len(rows)} images**."
        yield {"chunk": intro, "tool": result.tool, "count": len(rows)}

        if result.tool == "getImageOccurrences":
            shown = rows[: self._inline_preview]
            yield {
                "chunk": "\n".join(
                    prompts.occurrence_text(i, row) for i, row in enumerate(shown, start=1)
                )
            }
            if len(rows) > len(shown):
                yield {"chunk": f"\n...and **{len(rows) - len(shown)} more** occurrences."}
        else:
            yield {"chunk": " Preview below:\n\n", "images": rows}

    def _render_filter_counts(self, result: FilterCountsResult, site_key: str) -> Iterator[Frame]:
        yield {
            "chunk": f"Here are the filter counts for **{site_key}**, exactly matching your sidebar:\n\n",
            "tool": result.tool,
        }
        yield {"chunk": prompts.filter_counts_text(result.counts.model_dump())}

    def _render_help(self, result: HelpResult, site_key: str) -> Iterator[Frame]:
        yield {"chunk": prompts.help_text(site_key)}

    def _render_no_match(self, result: NoMatchResult, site_key: str) -> Iterator[Frame]:
        yield {"chunk": prompts.NO_MATCH_TEXT, "tool": "help", "count": 0}
