"""Chat query resolution: an ordered fallback chain.

Stages run strictly in sequence and the first one that produces a result
wins; later (more expensive) stages never run after an earlier success:

    1. greeting     -- "what can you do?" style meta-queries
    2. tool calling -- the LLM picks one :class:`QueryTool`
    3. patterns     -- :data:`PATTERN_RULES`, first match wins
    4. semantic     -- embed the query, nearest neighbours in the vector store
    5. no match     -- canned examples

Inference failures in stages 2 and 4 are logged and treated as "nothing
found" so the caller always gets an answer.  The resolver only returns a
:data:`ResolvedResult`; turning it into text is the encoder's job.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from mediaquery.interfaces.embedding_provider import IEmbeddingProvider
from mediaquery.interfaces.llm_provider import ILLMProvider
from mediaquery.interfaces.media_store import IMediaStore
from mediaquery.interfaces.vector_store_provider import IVectorStoreProvider
from mediaquery.models.media import VectorMatch
from mediaquery.models.query import (
    ChatTurn,
    HelpResult,
    NoMatchResult,
    ResolvedResult,
    RowListResult,
)
from mediaquery.services.pattern_matcher import match_pattern
from mediaquery.services.prompts import CHAT_SYSTEM_PROMPT
from mediaquery.services.query_tools import TOOL_SCHEMAS, ToolContext, ToolResult, execute_tool

logger = structlog.get_logger(logger_name=__name__)

_GREETING = re.compile(r"\b(help|what.*can.*(answer|do)|what.*questions|capabilities)\b")
_SEMANTIC_TRIGGER = re.compile(r"\b(products?|people|team|logos?|similar|like|photos?)\b")

SEMANTIC_TOOL = "semanticSearch"


class QueryResolver:
    """Resolve one chat query against a site's media inventory."""

    def __init__(
        self,
        media_store: IMediaStore,
        llm: ILLMProvider,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        history_turns: int = 4,
        semantic_top_k: int = 20,
        tool_temperature: float = 0.1,
        tool_max_tokens: int = 150,
        large_image_min_width: int = 1000,
    ) -> None:
        self._media_store = media_store
        self._llm = llm
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._history_turns = history_turns
        self._semantic_top_k = semantic_top_k
        self._tool_temperature = tool_temperature
        self._tool_max_tokens = tool_max_tokens
        self._large_image_min_width = large_image_min_width

    async def resolve(
        self,
        query: str,
        site_key: str,
        history: list[ChatTurn] | None = None,
    ) -> ResolvedResult:
        lowered = query.lower()

        if _GREETING.search(lowered):
            logger.info("chat_stage_resolved", stage="greeting", site_key=site_key)
            return HelpResult()

        ctx = ToolContext(
            store=self._media_store,
            site_key=site_key,
            large_image_min_width=self._large_image_min_width,
        )

        tool_result = await self._try_tool_call(ctx, query, history or [])
        if tool_result is not None:
            logger.info("chat_stage_resolved", stage="tool", tool=tool_result.tool, site_key=site_key)
            return tool_result

        # Store failures here are not swallowed; the encoder reports them.
        pattern_result = await match_pattern(ctx, query)
        if pattern_result is not None:
            logger.info(
                "chat_stage_resolved", stage="pattern", tool=pattern_result.tool, site_key=site_key
            )
            return pattern_result

        if _SEMANTIC_TRIGGER.search(lowered):
            rows = await self._try_semantic_search(query, site_key)
            if rows:
                logger.info("chat_stage_resolved", stage="semantic", site_key=site_key, rows=len(rows))
                return RowListResult(tool=SEMANTIC_TOOL, rows=rows)

        logger.info("chat_stage_resolved", stage="no_match", site_key=site_key)
        return NoMatchResult()

    # ------------------------------------------------------------------
    # Stage 2: tool calling
    # ------------------------------------------------------------------

    def _build_messages(self, query: str, history: list[ChatTurn]) -> list[dict[str, str]]:
        recent = history[-self._history_turns :] if self._history_turns > 0 else []
        return [
            {"role": "system", "content": CHAT_SYSTEM_PROMPT},
            *({"role": turn.role, "content": turn.content} for turn in recent),
            {"role": "user", "content": query},
        ]

    async def _try_tool_call(
        self, ctx: ToolContext, query: str, history: list[ChatTurn]
    ) -> ToolResult | None:
        try:
            call = await self._llm.call_tools(
                messages=self._build_messages(query, history),
                tools=TOOL_SCHEMAS,
                temperature=self._tool_temperature,
                max_tokens=self._tool_max_tokens,
            )
            if call is None:
                return None
            return await execute_tool(ctx, call.name, call.arguments)
        except Exception as exc:
            logger.warning("tool_call_failed", error=str(exc), site_key=ctx.site_key)
            return None

    # ------------------------------------------------------------------
    # Stage 4: semantic search
    # ------------------------------------------------------------------

    async def _try_semantic_search(self, query: str, site_key: str) -> list[dict[str, Any]]:
        try:
            vector = await self._embedding_provider.embed_single(query)
            matches = await self._vector_store.query(vector, site_key, top_k=self._semantic_top_k)
        except Exception as exc:
            logger.warning("semantic_search_failed", error=str(exc), site_key=site_key)
            return []
        return _group_matches(matches)


def _group_matches(matches: list[VectorMatch]) -> list[dict[str, Any]]:
    """Collapse occurrences of the same asset URL, best score first."""
    grouped: dict[str, dict[str, Any]] = {}
    for match in sorted(matches, key=lambda m: m.score, reverse=True):
        row = grouped.get(match.url)
        if row is None:
            grouped[match.url] = {
                "url": match.url,
                "alt": match.alt,
                "page_url": match.page_url,
                "pages": [match.page_url],
                "occurrences": 1,
                "score": round(match.score, 4),
            }
            continue
        row["occurrences"] += 1
        if match.page_url not in row["pages"]:
            row["pages"].append(match.page_url)
    return list(grouped.values())
