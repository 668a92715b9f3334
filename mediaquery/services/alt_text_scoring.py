"""Alt-text keyword extraction and before/after impact scoring.

Pure functions, no I/O.  Scores are additive point tables capped at 100:

* SEO (0-100): length band, keyword presence, descriptive vocabulary and
  overlap with the nearest heading or surrounding text; graded A/B/C/D.
* Accessibility (0-100): presence, length, absence of redundant phrases
  ("image of") and word count; compliant at 70 or above.  Decorative images
  score 100 only with ``alt=""``.
"""

from __future__ import annotations

import re
from typing import Any

from mediaquery.models.analysis import PageContext

_STOP_WORDS = frozenset(
    {
        "this", "that", "these", "those", "they", "them", "their",
        "what", "which", "when", "where", "while", "with", "from",
        "about", "after", "before", "under", "over", "between",
        "have", "been", "were", "would", "should", "could",
        "more", "most", "some", "such", "into", "through",
    }
)

_REDUNDANT_PHRASES = ("image of", "picture of", "graphic of", "photo of", "icon of")

_DESCRIPTIVE_WORD = re.compile(r"\b[a-z]{5,}\b", re.IGNORECASE)

_MAX_KEYWORDS = 5


def extract_keywords(context: PageContext) -> list[str]:
    """Up to five keyword candidates from the heading and surrounding text."""
    keywords: dict[str, None] = {}

    if context.nearest_heading and context.nearest_heading.text:
        for word in context.nearest_heading.text.lower().split():
            if len(word) > 3 and word not in _STOP_WORDS:
                keywords.setdefault(word)

    if context.surrounding_text:
        words = [
            w
            for w in context.surrounding_text.lower().split()
            if len(w) > 4 and w not in _STOP_WORDS
        ]
        for word in words[:10]:
            keywords.setdefault(word)

    return list(keywords)[:_MAX_KEYWORDS]


def seo_score(alt_text: str, context: PageContext, keywords: list[str]) -> dict[str, Any]:
    score = 0
    factors: list[dict[str, Any]] = []

    def _add(points: int, factor: str) -> None:
        nonlocal score
        score += points
        factors.append({"factor": factor, "points": points})

    length = len(alt_text)
    if 50 <= length <= 125:
        _add(30, "Optimal length (50-125 chars)")
    elif 30 <= length < 50:
        _add(20, "Acceptable length")
    elif length > 125:
        _add(10, "Too long (>125 chars)")
    else:
        _add(5, "Too short (<30 chars)")

    lowered = alt_text.lower()
    keyword_hits = sum(1 for kw in keywords if kw.lower() in lowered)
    if keyword_hits >= 1:
        _add(30, f"Contains {keyword_hits} relevant keyword(s)")
    else:
        _add(0, "No relevant keywords")

    if len(_DESCRIPTIVE_WORD.findall(alt_text)) >= 3:
        _add(20, "Descriptive language")
    else:
        _add(10, "Could be more descriptive")

    heading_text = context.nearest_heading.text if context.nearest_heading else ""
    context_words = set((heading_text or context.surrounding_text or "").lower().split())
    matches = sum(1 for word in lowered.split() if word in context_words)
    if matches >= 2:
        _add(20, "Matches page context")
    elif matches == 1:
        _add(10, "Partially matches context")
    else:
        _add(0, "No context match")

    if score >= 80:
        grade = "A"
    elif score >= 60:
        grade = "B"
    elif score >= 40:
        grade = "C"
    else:
        grade = "D"

    return {"score": min(score, 100), "factors": factors, "grade": grade}


def a11y_score(alt_text: str, image_type: str = "informative") -> dict[str, Any]:
    issues: list[str] = []

    if image_type == "decorative":
        if alt_text == "":
            score = 100
        else:
            score = 50
            issues.append('Decorative images should have empty alt text (alt="")')
        return {"score": score, "issues": issues, "wcagLevel": "A", "compliant": score == 100}

    if not alt_text or not alt_text.strip():
        issues.append("WCAG 1.1.1 FAIL: Missing alt text for non-decorative image")
        return {"score": 0, "issues": issues, "wcagLevel": "A", "compliant": False}

    score = 40

    if len(alt_text) <= 125:
        score += 30
    else:
        issues.append("Alt text may be too long for screen readers (>125 chars)")
        score += 15

    lowered = alt_text.lower()
    if any(phrase in lowered for phrase in _REDUNDANT_PHRASES):
        issues.append('Avoid phrases like "image of" or "picture of"')
        score += 5
    else:
        score += 15

    if len(alt_text.split()) >= 3:
        score += 15
    else:
        issues.append("Alt text could be more descriptive")
        score += 5

    return {
        "score": min(score, 100),
        "issues": issues,
        "wcagLevel": "A",
        "compliant": score >= 70,
    }


def _half_up(value: float) -> int:
    return int(value + 0.5)


def calculate_impact(
    current_alt: str | None,
    suggested_alt: str,
    context: PageContext,
    keywords: list[str],
) -> dict[str, Any]:
    """Score the current and suggested alt text and report the deltas."""
    current = current_alt or ""
    current_seo = seo_score(current, context, keywords)
    suggested_seo = seo_score(suggested_alt, context, keywords)
    current_a11y = a11y_score(current)
    suggested_a11y = a11y_score(suggested_alt)

    current_overall = _half_up((current_seo["score"] + current_a11y["score"]) / 2)
    suggested_overall = _half_up((suggested_seo["score"] + suggested_a11y["score"]) / 2)

    return {
        "current": {
            "seo": current_seo["score"],
            "a11y": current_a11y["score"],
            "overall": current_overall,
        },
        "suggested": {
            "seo": suggested_seo["score"],
            "a11y": suggested_a11y["score"],
            "overall": suggested_overall,
        },
        "improvement": {
            "seo": suggested_seo["score"] - current_seo["score"],
            "a11y": suggested_a11y["score"] - current_a11y["score"],
            "overall": suggested_overall - current_overall,
        },
        "details": {"seo": suggested_seo, "a11y": suggested_a11y},
    }
