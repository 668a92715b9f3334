"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When ``openai_base_url`` is configured (TogetherAI, a local vLLM server,
any OpenAI-compatible gateway) the client points at that URL instead of
the default OpenAI endpoint.
"""

from __future__ import annotations

import json
from typing import Any

import openai
import structlog

from mediaquery.config.settings import Settings
from mediaquery.interfaces.llm_provider import ILLMProvider
from mediaquery.models.query import ToolCall
from mediaquery.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat-completions API.

    Uses ``gpt-4o-mini`` by default for both alt-text suggestions and tool
    selection; override with ``OPENAI_TEXT_MODEL``.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        # 25s keeps the call inside typical proxy request timeouts.
        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(25.0, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} timed out after 25s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    async def call_tools(
        self,
        messages: list[dict[str, str]],
        tools: list[dict[str, Any]],
        temperature: float = 0.1,
        max_tokens: int = 150,
    ) -> ToolCall | None:
        """Let the model choose one function; ``None`` if it replied in text."""
        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=messages,
                tools=tools,
                tool_choice="auto",
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} timed out after 25s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices:
            return None
        tool_calls = response.choices[0].message.tool_calls
        if not tool_calls:
            return None

        function = tool_calls[0].function
        try:
            arguments = json.loads(function.arguments) if function.arguments else {}
        except json.JSONDecodeError as exc:
            raise LLMError(
                message=f"{self._provider_label} returned malformed tool arguments",
                provider_name=self.get_provider_name(),
            ) from exc
        if not isinstance(arguments, dict):
            arguments = {}

        logger.info(
            "openai_tool_call",
            model=self._text_model,
            tool=function.name,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return ToolCall(name=function.name, arguments=arguments)

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return self._provider_label
