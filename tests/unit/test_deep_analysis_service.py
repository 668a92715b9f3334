"""Unit tests for DeepAnalysisService."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from mediaquery.interfaces.page_fetcher import IPageFetcher
from mediaquery.providers.cache.memory_cache import MemoryCacheProvider
from mediaquery.services.deep_analysis_service import DeepAnalysisService, analysis_cache_key
from mediaquery.utils.errors import LLMError, NotFoundError, PageFetchError, ValidationError

SITE = "example.com"
PAGE_URL = "https://example.com/shop"
IMAGE_URL = "https://cdn.example.com/shoe.jpg"

HTML = f"""
<html><body><main>
  <h1>Trail running collection</h1>
  <div><p>Grippy outsoles for muddy mountain trails.</p><img src="{IMAGE_URL}" alt="shoe"></div>
  <aside><img src="{IMAGE_URL}"></aside>
</main></body></html>
"""

LLM_REPLY = {
    "suggestedAlt": "Trail running shoe with grippy outsole on a muddy mountain path",
    "reasoning": "Describes the product and its purpose",
    "wcagCompliance": "1.1.1",
    "type": "informative",
    "keywords": ["trail", "running"],
    "confidence": 0.9,
}


@pytest.fixture()
def page_fetcher() -> MagicMock:
    fetcher = MagicMock(spec=IPageFetcher)
    fetcher.fetch_html = AsyncMock(return_value=HTML)
    fetcher.get_provider_name.return_value = "mock_fetcher"
    return fetcher


@pytest.fixture()
def cache() -> MemoryCacheProvider:
    return MemoryCacheProvider(max_size=10)


@pytest.fixture()
def service(page_fetcher, mock_llm, cache) -> DeepAnalysisService:
    mock_llm.complete.return_value = json.dumps(LLM_REPLY)
    return DeepAnalysisService(page_fetcher=page_fetcher, llm=mock_llm, cache=cache, cache_ttl=60)


class TestValidation:
    @pytest.mark.asyncio
    async def test_missing_fields(self, service: DeepAnalysisService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await service.analyze("", PAGE_URL, 0, "")
        assert exc_info.value.details == ["imageUrl", "siteKey"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("occurrence", [-1, True, "0", None])
    async def test_bad_occurrence(self, service: DeepAnalysisService, occurrence) -> None:
        with pytest.raises(ValidationError):
            await service.analyze(IMAGE_URL, PAGE_URL, occurrence, SITE)


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_generates_payload(self, service: DeepAnalysisService, mock_llm) -> None:
        result = await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

        assert result["suggestedAlt"] == LLM_REPLY["suggestedAlt"]
        assert result["confidence"] == 0.9
        assert result["keywords"] == ["trail", "running"]
        assert result["occurrence"] == 0
        assert result["totalOccurrences"] == 2
        assert result["pageContext"]["currentAlt"] == "shoe"
        assert result["pageContext"]["nearestHeading"] == {
            "tag": "H1",
            "text": "Trail running collection",
        }
        assert result["impact"]["improvement"]["overall"] > 0
        assert "cached" not in result
        assert mock_llm.complete.call_args.kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_second_occurrence(self, service: DeepAnalysisService) -> None:
        result = await service.analyze(IMAGE_URL, PAGE_URL, 1, SITE)

        assert result["pageContext"]["sectionContext"] == "sidebar"
        assert result["pageContext"]["currentAlt"] is None

    @pytest.mark.asyncio
    async def test_cache_hit(self, service: DeepAnalysisService, page_fetcher, mock_llm, cache) -> None:
        first = await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)
        second = await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

        assert second == {**first, "cached": True}
        page_fetcher.fetch_html.assert_awaited_once()
        mock_llm.complete.assert_awaited_once()
        assert await cache.get(analysis_cache_key(SITE, PAGE_URL, IMAGE_URL, 0)) is not None

    @pytest.mark.asyncio
    async def test_occurrences_are_cached_separately(
        self, service: DeepAnalysisService, page_fetcher
    ) -> None:
        await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)
        await service.analyze(IMAGE_URL, PAGE_URL, 1, SITE)
        assert page_fetcher.fetch_html.await_count == 2

    @pytest.mark.asyncio
    async def test_image_not_on_page(self, service: DeepAnalysisService, page_fetcher) -> None:
        page_fetcher.fetch_html.return_value = "<html><body><p>nothing</p></body></html>"

        with pytest.raises(NotFoundError, match="Image not found on page"):
            await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

    @pytest.mark.asyncio
    async def test_occurrence_out_of_range(self, service: DeepAnalysisService) -> None:
        with pytest.raises(NotFoundError, match="Occurrence 5 not found. Only 2 instances exist."):
            await service.analyze(IMAGE_URL, PAGE_URL, 5, SITE)

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, service: DeepAnalysisService, page_fetcher) -> None:
        page_fetcher.fetch_html.side_effect = PageFetchError("Failed to fetch page HTML", status=404)

        with pytest.raises(PageFetchError):
            await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

    @pytest.mark.asyncio
    async def test_llm_failure_propagates(self, service: DeepAnalysisService, mock_llm, cache) -> None:
        mock_llm.complete.side_effect = LLMError("upstream down")

        with pytest.raises(LLMError):
            await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)
        assert await cache.get(analysis_cache_key(SITE, PAGE_URL, IMAGE_URL, 0)) is None


class TestReplyParsing:
    @pytest.mark.asyncio
    async def test_fenced_json(self, service: DeepAnalysisService, mock_llm) -> None:
        mock_llm.complete.return_value = f"```json\n{json.dumps(LLM_REPLY)}\n```"

        result = await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

        assert result["suggestedAlt"] == LLM_REPLY["suggestedAlt"]

    @pytest.mark.asyncio
    async def test_json_inside_prose(self, service: DeepAnalysisService, mock_llm) -> None:
        mock_llm.complete.return_value = f"Here you go: {json.dumps(LLM_REPLY)} Hope it helps."

        result = await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

        assert result["reasoning"] == LLM_REPLY["reasoning"]

    @pytest.mark.asyncio
    async def test_plain_text_reply_is_synthesized(self, service: DeepAnalysisService, mock_llm) -> None:
        mock_llm.complete.return_value = "Muddy trail running shoe"

        result = await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

        assert result["suggestedAlt"] == "Muddy trail running shoe"
        assert result["confidence"] == 0.7
        assert result["type"] == "informative"
        assert result["reasoning"] == "Generated using basic prompt"

    @pytest.mark.asyncio
    async def test_out_of_range_confidence(self, service: DeepAnalysisService, mock_llm) -> None:
        mock_llm.complete.return_value = json.dumps({**LLM_REPLY, "confidence": 7})

        result = await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

        assert result["confidence"] == 0.7

    @pytest.mark.asyncio
    async def test_decorative_keeps_empty_alt(self, service: DeepAnalysisService, mock_llm) -> None:
        mock_llm.complete.return_value = json.dumps(
            {**LLM_REPLY, "suggestedAlt": "", "type": "decorative"}
        )

        result = await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

        assert result["suggestedAlt"] == ""
        assert result["type"] == "decorative"

    @pytest.mark.asyncio
    async def test_empty_informative_alt_is_replaced(
        self, service: DeepAnalysisService, mock_llm
    ) -> None:
        mock_llm.complete.return_value = json.dumps({**LLM_REPLY, "suggestedAlt": ""})

        result = await service.analyze(IMAGE_URL, PAGE_URL, 0, SITE)

        assert result["suggestedAlt"] == "Unable to generate alt text"
