"""Per-image alt-text suggestions with WCAG/SEO impact scores.

For one ``(site, page, image, occurrence)`` tuple the service fetches the
page, locates the ``occurrence``-th matching ``<img>``, extracts its
structural context, asks the LLM for a suggestion and scores the current
and suggested alt text.  Results are cached as JSON for a week by default;
a cache hit is returned with ``cached: true``.

Model output is parsed leniently: prose around the JSON, markdown fences
and outright non-JSON replies all degrade to a low-confidence synthesized
result instead of an error.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

from mediaquery.interfaces.cache_provider import ICacheProvider
from mediaquery.interfaces.llm_provider import ILLMProvider
from mediaquery.interfaces.page_fetcher import IPageFetcher
from mediaquery.models.analysis import AltTextAnalysis
from mediaquery.services.alt_text_scoring import calculate_impact, extract_keywords
from mediaquery.services.html_context import build_page_context, find_images
from mediaquery.services.prompts import ALT_TEXT_SYSTEM_PROMPT, alt_text_user_prompt
from mediaquery.utils.errors import NotFoundError, ValidationError

logger = structlog.get_logger(logger_name=__name__)

_FALLBACK_ALT = "Unable to generate alt text"
_FALLBACK_CONFIDENCE = 0.7
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def analysis_cache_key(site_key: str, page_url: str, image_url: str, occurrence: int) -> str:
    return f"analysis:{site_key}:{page_url}:{image_url}:{occurrence}"


class DeepAnalysisService:
    """Generate and memoize alt-text suggestions for single image occurrences."""

    def __init__(
        self,
        page_fetcher: IPageFetcher,
        llm: ILLMProvider,
        cache: ICacheProvider,
        cache_ttl: int = 604800,
    ) -> None:
        self._page_fetcher = page_fetcher
        self._llm = llm
        self._cache = cache
        self._cache_ttl = cache_ttl

    async def analyze(
        self,
        image_url: str,
        page_url: str,
        occurrence: int,
        site_key: str,
    ) -> dict[str, Any]:
        """Return the camelCase analysis payload for one image occurrence.

        Raises
        ------
        ValidationError
            If any field is missing or ``occurrence`` is not a non-negative int.
        PageFetchError
            If the page cannot be fetched.
        NotFoundError
            If the image, or that occurrence of it, is not on the page.
        LLMError
            If the suggestion request itself fails.
        """
        self._validate(image_url, page_url, occurrence, site_key)

        key = analysis_cache_key(site_key, page_url, image_url, occurrence)
        cached = await self._cache.get(key)
        if cached:
            logger.info("analysis_cache_hit", site_key=site_key, image_url=image_url)
            data = json.loads(cached) if isinstance(cached, str) else dict(cached)
            return {**data, "cached": True}

        html = await self._page_fetcher.fetch_html(page_url)
        images = find_images(html, image_url)
        if not images:
            raise NotFoundError("Image not found on page")
        if occurrence >= len(images):
            raise NotFoundError(
                f"Occurrence {occurrence} not found. Only {len(images)} instances exist."
            )

        context = build_page_context(images[occurrence])
        keywords = extract_keywords(context)

        raw = await self._llm.complete(
            system_prompt=ALT_TEXT_SYSTEM_PROMPT,
            user_prompt=alt_text_user_prompt(context, keywords),
            temperature=0.3,
            max_tokens=500,
        )
        reply = _parse_reply(raw, keywords)

        suggested = reply.get("suggestedAlt")
        image_type = str(reply.get("type") or "informative")
        if not isinstance(suggested, str) or (not suggested and image_type != "decorative"):
            suggested = _FALLBACK_ALT

        analysis = AltTextAnalysis(
            suggested_alt=suggested,
            reasoning=str(reply.get("reasoning") or ""),
            wcag_compliance=str(reply.get("wcagCompliance") or "1.1.1"),
            type=image_type,
            keywords=_string_list(reply.get("keywords")) or keywords,
            confidence=_confidence(reply.get("confidence")),
            impact=calculate_impact(context.current_alt, suggested, context, keywords),
            page_context=context,
            occurrence=occurrence,
            total_occurrences=len(images),
        )
        payload = analysis.model_dump(by_alias=True)

        await self._cache.set(key, json.dumps(payload), ttl=self._cache_ttl)
        logger.info(
            "analysis_generated",
            site_key=site_key,
            image_url=image_url,
            occurrence=occurrence,
            total_occurrences=len(images),
        )
        return payload

    @staticmethod
    def _validate(image_url: str, page_url: str, occurrence: Any, site_key: str) -> None:
        missing = [
            name
            for name, value in (
                ("imageUrl", image_url),
                ("pageUrl", page_url),
                ("siteKey", site_key),
            )
            if not value
        ]
        if missing:
            raise ValidationError(
                "imageUrl, pageUrl, occurrence, and siteKey are required", details=missing
            )
        if isinstance(occurrence, bool) or not isinstance(occurrence, int) or occurrence < 0:
            raise ValidationError(
                "occurrence must be a non-negative integer", details=["occurrence"]
            )


def _parse_reply(raw: str, keywords: list[str]) -> dict[str, Any]:
    """Extract the first JSON object from the model reply, or synthesize one."""
    text = raw.strip()
    if text.startswith("```"):
        text = "\n".join(
            line for line in text.split("\n") if not line.strip().startswith("```")
        ).strip()
    if not text.startswith("{"):
        match = _JSON_OBJECT.search(text)
        if match:
            text = match.group(0)

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None

    if isinstance(data, dict):
        return data

    logger.warning("analysis_json_parse_failed", response_preview=raw[:200])
    return {
        "suggestedAlt": raw.strip() or _FALLBACK_ALT,
        "reasoning": "Generated using basic prompt",
        "wcagCompliance": "1.1.1",
        "type": "informative",
        "keywords": keywords,
        "confidence": _FALLBACK_CONFIDENCE,
    }


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, (str, int, float))]


def _confidence(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return _FALLBACK_CONFIDENCE
    if not 0.0 < number <= 1.0:
        return _FALLBACK_CONFIDENCE
    return number
