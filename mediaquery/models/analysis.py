"""Deep-analysis (alt-text suggestion) models.

Serialized with camelCase keys because the browser panel consumes the
cached JSON verbatim.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Heading(BaseModel):
    """Nearest heading found while walking up from the image."""

    model_config = ConfigDict(frozen=True)

    tag: str
    text: str


class PageContext(BaseModel):
    """Structural context around one ``<img>`` occurrence."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    surrounding_text: str = ""
    parent_element: str = "unknown"
    nearest_heading: Heading | None = None
    section_context: str = "body"
    current_alt: str | None = None


class AltTextAnalysis(BaseModel):
    """Combined LLM suggestion and before/after impact scores."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    suggested_alt: str
    reasoning: str = ""
    wcag_compliance: str = "1.1.1"
    type: str = "informative"
    keywords: list[str] = Field(default_factory=list)
    confidence: float = 0.7
    impact: dict[str, Any] = Field(default_factory=dict)
    page_context: PageContext
    occurrence: int
    total_occurrences: int
