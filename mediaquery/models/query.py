"""Chat query models.

The resolver returns exactly one :data:`ResolvedResult` variant per query;
the stream encoder owns turning each variant into text.  Variants are
discriminated on ``kind`` so they can be rebuilt from plain dicts.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from mediaquery.models.media import FilterCounts


class ChatTurn(BaseModel):
    """One prior message in the conversation history."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ToolCall(BaseModel):
    """A function selected by the LLM, with its decoded arguments."""

    model_config = ConfigDict(frozen=True)

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Resolved result variants
# ---------------------------------------------------------------------------

class CountResult(BaseModel):
    """A single scalar count, e.g. "images without alt text"."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["count"] = "count"
    tool: str = "filterCount"
    count: int
    label: str


class RowListResult(BaseModel):
    """Rows returned by a listing tool or semantic search."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rows"] = "rows"
    tool: str
    rows: list[dict[str, Any]] = Field(default_factory=list)


class FilterCountsResult(BaseModel):
    """The full sidebar filter breakdown."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["filter_counts"] = "filter_counts"
    tool: str = "getFilterCounts"
    counts: FilterCounts


class HelpResult(BaseModel):
    """Conversational meta-query ("what can you do?")."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["help"] = "help"


class NoMatchResult(BaseModel):
    """No stage could answer the query."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["no_match"] = "no_match"


ResolvedResult = Annotated[
    Union[CountResult, RowListResult, FilterCountsResult, HelpResult, NoMatchResult],
    Field(discriminator="kind"),
]
