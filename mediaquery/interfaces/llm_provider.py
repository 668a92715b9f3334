"""Abstract base class for LLM service providers.

Two call shapes are needed: plain completion (alt-text suggestions) and
tool calling (chat queries routed to a media-store function).  Any
OpenAI-compatible chat endpoint can serve both.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from mediaquery.models.query import ToolCall


class ILLMProvider(ABC):
    """Contract for chat-completion services."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the actual request or data.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Raises
        ------
        mediaquery.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    async def call_tools(
        self,
        messages: list[dict[str, str]],
        tools: list[dict[str, Any]],
        temperature: float = 0.1,
        max_tokens: int = 150,
    ) -> ToolCall | None:
        """Ask the model to pick one of *tools* for the conversation.

        Parameters
        ----------
        messages:
            Chat messages (``{"role", "content"}``) including the system prompt.
        tools:
            Function definitions in OpenAI tool-schema format.

        Returns
        -------
        ToolCall or None
            The first tool call the model made, or ``None`` when it answered
            in plain text instead.

        Raises
        ------
        mediaquery.utils.errors.LLMError
            If the API call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this LLM provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""
