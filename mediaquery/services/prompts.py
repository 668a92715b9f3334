"""Prompt text and canned chat copy.

Everything the LLM or the chat user reads verbatim lives here so wording
changes never touch control flow.  The alt-text prompts encode WCAG 1.1.1
and SEO guidance; the chat texts are the fixed replies for help, no-match
and empty tool results.
"""

from __future__ import annotations

from typing import Any

from mediaquery.models.analysis import PageContext

# ---------------------------------------------------------------------------
# Chat: tool selection
# ---------------------------------------------------------------------------

CHAT_SYSTEM_PROMPT = """\
You are a helpful image analysis assistant. Based on the conversation context \
and user's query, call the appropriate function to retrieve data.

Available functions:
- getImagesWithoutAlt: Find images missing alt text
- getDecorativeImages: Find images with empty alt (alt="")
- getLargeImages: Find oversized images
- getLazyLoadedImages: Find images with lazy loading
- getSeoIssues: Find SEO problems
- getOrientationImages: Find images by orientation (square/landscape/portrait)
- getMostUsedImages: Find most frequently used images
- getImageOccurrences: Find every page a specific image URL appears on
- getFilterCounts: Get ALL filter counts (use for "breakdown", "stats", "all counts")
- getTypeMedia: Find videos, documents, links, or icons
- getFormatImages: Find images by file format (PNG, JPG, WEBP, GIF, SVG, etc.)
- getPageImages: Find images from a specific page URL (e.g., "home page" = https://example.com/)

Important notes:
- alt IS NULL means missing (an accessibility failure); alt="" means decorative (intentional)
- For "home page" queries, use getPageImages with the site's root URL
- For file format queries like "PNG images", use getFormatImages with format="png"
- Use conversation context to understand follow-up questions like "how about X?" or "show me those"

Call the most appropriate function based on the user's query."""

# ---------------------------------------------------------------------------
# Chat: canned replies
# ---------------------------------------------------------------------------


def help_text(site_key: str) -> str:
    """Capability summary sent for greeting / "what can you do" queries."""
    return (
        f"I can help you analyze images on **{site_key}**. Here's what I can do:\n\n"
        "🔍 **Find Issues:**\n"
        "• Images missing alt text\n"
        "• Oversized images (performance issues)\n"
        "• Images without lazy loading\n"
        '• Decorative images (alt="")\n'
        "• Comprehensive SEO audits\n\n"
        "🧠 **Semantic Search:**\n"
        '• "Show me product images"\n'
        '• "Find images with people"\n'
        '• "Display team photos"\n\n'
        "💬 **Quick Queries:**\n"
        '• "Which images are missing alt text?"\n'
        '• "Show me videos"\n'
        '• "How many square images?"\n'
        '• "Give me all filter counts"\n\n'
        "Ask naturally - I understand context from previous questions!"
    )


NO_MATCH_TEXT = (
    "I couldn't find a specific answer for that query. Here's what I can help with:\n\n"
    "• **'how many images?'** - Get image counts\n"
    "• **'show me videos'** - Display videos\n"
    "• **'missing alt text'** - Find accessibility issues\n"
    "• **'large images'** - Find oversized images\n"
    "• **'product images'** - Semantic search (uses AI)\n\n"
    "Try rephrasing your question to match one of these patterns!"
)

_EMPTY_RESULT_TEXT: dict[str, str] = {
    "getImagesWithoutAlt": (
        "✅ Great news! All images on **{site}** have alt text. No accessibility issues found!"
    ),
    "getDecorativeImages": (
        "No decorative images found on **{site}**. This means no images are using "
        '`alt=""` (which is used for purely decorative content per WCAG guidelines).'
    ),
    "getLargeImages": (
        "✅ No oversized images found! All images on **{site}** are optimally sized "
        "for performance."
    ),
    "getLazyLoadedImages": (
        "No images with lazy loading detected on **{site}**. Consider adding "
        '`loading="lazy"` to improve page performance!'
    ),
}


def empty_result_text(tool: str, site_key: str) -> str:
    template = _EMPTY_RESULT_TEXT.get(tool, "No results found for your query on **{site}**.")
    return template.format(site=site_key)


def filter_counts_text(counts: dict[str, int]) -> str:
    """Four-section breakdown matching the sidebar filters."""
    return (
        "📊 **TYPES**\n"
        f"• All Media: **{counts['total']}**\n"
        f"• Images: **{counts['images']}**\n"
        f"• Videos: **{counts['videos']}**\n"
        f"• Links: **{counts['links']}**\n"
        f"• SVGs: **{counts['icons']}**\n\n"
        "♿ **ACCESSIBILITY**\n"
        f"• Filled: **{counts['filled']}**\n"
        f"• Decorative: **{counts['decorative']}**\n"
        f"• Empty: **{counts['empty']}**\n\n"
        "📐 **ORIENTATION**\n"
        f"• Landscape: **{counts['landscape']}**\n"
        f"• Portrait: **{counts['portrait']}**\n"
        f"• Square: **{counts['square']}**\n\n"
        "🏷️ **CATEGORIES**\n"
        f"• Graphics & UI: **{counts['graphics']}**\n"
        f"• Logos: **{counts['logos']}**\n"
        f"• People: **{counts['people']}**\n"
        f"• Products: **{counts['products']}**\n"
        f"• Screenshots: **{counts['screenshots']}**"
    )


def occurrence_text(index: int, row: dict[str, Any]) -> str:
    return (
        f"\n{index}. `{row.get('url')}`\n"
        f"   📄 Page: {row.get('page_url')}\n"
        f"   🏷️ Alt: {row.get('alt') or '❌ Missing'}\n"
        f"   📏 Size: {row.get('width')}×{row.get('height')}px\n"
    )


SUGGESTED_QUESTIONS: dict[str, dict[str, Any]] = {
    "seo": {
        "name": "SEO & Performance",
        "questions": [
            "Which images are missing alt text?",
            "Find oversized images slowing down page load",
            "Show images without lazy loading",
            "Images on the homepage that need optimization",
        ],
    },
    "accessibility": {
        "name": "Accessibility & Compliance",
        "questions": [
            "Accessibility audit: images without alt text",
            "Find images that should be marked decorative",
            "Images with accessibility issues",
            "WCAG compliance check for images",
        ],
    },
    "developer": {
        "name": "Technical & Implementation",
        "questions": [
            "Images without srcset for responsive design",
            "Find images missing lazy loading attribute",
            "Performance bottlenecks from large images",
            "Images that should use modern formats",
        ],
    },
    "content": {
        "name": "Content Quality",
        "questions": [
            "Images with poor or missing descriptions",
            "Pages that need better imagery",
            "Images that need better context",
            "Content quality issues with images",
        ],
    },
    "admin": {
        "name": "Site Overview",
        "questions": [
            "Overall image health report",
            "Most common issues across the site",
            "Pages with the most image problems",
            "Quick wins for site improvement",
        ],
    },
}

# ---------------------------------------------------------------------------
# Deep analysis: alt-text generation
# ---------------------------------------------------------------------------

WCAG_GUIDELINES = """
WCAG 1.1.1 (Level A) - Non-text Content:

1. INFORMATIVE IMAGES:
   - Describe the PURPOSE, not just visual details
   - Keep under 125 characters
   - Include context-relevant information
   - Don't start with "image of" or "picture of"

2. DECORATIVE IMAGES:
   - Use alt="" (empty string)
   - Images that don't add information
   - Purely aesthetic elements

3. FUNCTIONAL IMAGES:
   - Describe the ACTION, not the image
   - Example: "Submit form" not "Green button"

4. COMPLEX IMAGES (charts, diagrams):
   - Brief description in alt
   - Long description elsewhere (longdesc or nearby text)

5. AVOID:
   - Redundant text already in surrounding content
   - Phrases like "image of", "graphic of"
   - File names or technical jargon
"""

SEO_GUIDELINES = """
SEO Best Practices for Alt Text:

1. KEYWORD USAGE:
   - Include 1-2 relevant keywords naturally
   - Don't keyword stuff
   - Match page topic and user intent

2. DESCRIPTIVE & SPECIFIC:
   - Be specific about what the image shows
   - Help search engines understand context
   - Improve image search visibility

3. LENGTH:
   - Optimal: 50-125 characters
   - Too short: less context for search engines
   - Too long: may be truncated by screen readers

4. NATURAL LANGUAGE:
   - Write for humans first, search engines second
   - Use complete sentences when appropriate
   - Maintain readability
"""

ALT_TEXT_SYSTEM_PROMPT = f"""\
You are an expert accessibility (WCAG 2.1) and SEO specialist focused on \
creating optimal alt text for images.

{WCAG_GUIDELINES}

{SEO_GUIDELINES}

YOUR TASK:
Analyze the provided image context and generate alt text that:
1. Meets WCAG 1.1.1 compliance
2. Includes relevant SEO keywords naturally
3. Is concise (50-125 characters)
4. Describes PURPOSE over appearance
5. Matches the content context

RESPONSE FORMAT:
Return a JSON object with:
{{
  "suggestedAlt": "The actual alt text (50-125 chars)",
  "reasoning": "Brief explanation of why this alt text is effective",
  "wcagCompliance": "1.1.1",
  "type": "informative|decorative|functional",
  "keywords": ["keyword1", "keyword2"],
  "confidence": 0.85
}}

If the image appears DECORATIVE (no informational value), return:
{{
  "suggestedAlt": "",
  "reasoning": "Image is decorative and should use empty alt text",
  "wcagCompliance": "1.1.1",
  "type": "decorative",
  "keywords": [],
  "confidence": 0.90
}}"""


def alt_text_user_prompt(context: PageContext, keywords: list[str]) -> str:
    """Render the CONTEXT block for one image occurrence."""
    lines = ["CONTEXT:", ""]
    if context.nearest_heading:
        lines.append(
            f'Heading: "{context.nearest_heading.text}" ({context.nearest_heading.tag})'
        )
    if context.section_context:
        lines.append(f"Section: {context.section_context}")
    if context.parent_element:
        lines.append(f"Parent: <{context.parent_element}>")
    if context.surrounding_text:
        lines.extend(["", "Surrounding Text:", f'"{context.surrounding_text}"'])
    if context.current_alt:
        lines.extend(["", f'Current Alt Text: "{context.current_alt}"'])
    if keywords:
        lines.extend(["", f"Page Keywords: {', '.join(keywords)}"])
    lines.extend(
        ["", "GENERATE: Optimal alt text following WCAG and SEO guidelines. Return JSON only."]
    )
    return "\n".join(lines)
