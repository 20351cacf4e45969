"""Parse free-form review text from the model into a structured Review.

The model is asked for "Overall Assessment", "Issues Found", "Suggestions"
and "Can Auto-Fix" sections, but nothing forces it to comply. The parser is
a line classifier: it walks the text once, switches section when it meets a
heading, and files every other non-blank line under the current section.
Missing, repeated or reordered headings never raise; in the worst case
everything ends up in the summary.
"""

import logging
import re
from typing import Literal

from src.models.review import Review

logger = logging.getLogger(__name__)

Section = Literal["summary", "issues", "suggestions", "auto_fix"]

# Trigger phrase -> section. Longer phrases first so that "issues found" wins
# over "issues".
SECTION_TRIGGERS: dict[str, Section] = {
    "overall assessment": "summary",
    "summary": "summary",
    "issues found": "issues",
    "issues": "issues",
    "problems": "issues",
    "suggestions": "suggestions",
    "improvements": "suggestions",
    "can auto-fix": "auto_fix",
    "can auto fix": "auto_fix",
    "can autofix": "auto_fix",
    "automatically fix": "auto_fix",
}

SUMMARY_FALLBACK_CHARS = 200

# List numbers, bullets and markdown emphasis/heading markers before a heading
_LEADING_DECORATION = re.compile(r"^(?:\s*(?:#+|[-*+>]|\d+[.)]|\*\*|__|_)\s*)+")
_AFFIRMATIVE = re.compile(r"\b(yes|true)\b", re.IGNORECASE)


def classify_line(line: str) -> tuple[Section, str] | None:
    """Classify a line as a section heading.

    A line starting with a trigger phrase (after markdown decoration) is a
    heading when the phrase is followed by the end of the line or a colon,
    when the line ends with a colon, or when it is styled as a heading
    (``#`` or wrapped in bold). Styled and colon-terminated headings may carry a
    qualifier such as "Issues Found (by severity)".

    Args:
        line: One line of model output

    Returns:
        ``(section, inline_value)`` for a heading, where ``inline_value`` is
        any text after the colon; None for ordinary content lines
    """
    stripped = line.strip()
    decoration = _LEADING_DECORATION.match(stripped)
    prefix = decoration.group(0) if decoration else ""
    text = stripped[len(prefix) :]
    lowered = text.lower()
    bold = ("**" in prefix or "__" in prefix) and stripped.rstrip(":").endswith(
        ("**", "__")
    )
    styled = "#" in prefix or bold

    for trigger, section in SECTION_TRIGGERS.items():
        if not lowered.startswith(trigger):
            continue

        rest = text[len(trigger) :].lstrip("*_ \t")
        label_line = text.rstrip("*_ \t").endswith(":")
        if rest and not (styled or label_line or rest.startswith(":")):
            # "Summary of the changes ..." is prose, not a heading
            return None

        _, colon, value = rest.partition(":")
        inline_value = value.strip().lstrip("*_").strip() if colon else ""
        return section, inline_value

    return None


def is_affirmative(value: str) -> bool:
    return bool(_AFFIRMATIVE.search(value))


def parse_review(raw_text: str) -> Review:
    """Convert raw model text into a Review.

    Args:
        raw_text: Final text of the review conversation

    Returns:
        Review with summary, ordered issues and suggestions, and the explicit
        auto-fix marker
    """
    summary_parts: list[str] = []
    issues: list[str] = []
    suggestions: list[str] = []
    can_auto_fix = False

    current: Section = "summary"
    awaiting_auto_fix_value = False

    for line in raw_text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue

        heading = classify_line(stripped)
        if heading is not None:
            section, inline_value = heading
            awaiting_auto_fix_value = False

            if section == "auto_fix":
                if inline_value:
                    can_auto_fix = is_affirmative(inline_value)
                else:
                    awaiting_auto_fix_value = True
                continue

            current = section
            if not inline_value:
                continue
            stripped = inline_value

        elif awaiting_auto_fix_value:
            # Heading without a value: the next line answers it
            can_auto_fix = is_affirmative(stripped)
            awaiting_auto_fix_value = False
            continue

        if current == "summary":
            summary_parts.append(stripped)
        elif current == "issues":
            issues.append(stripped)
        else:
            suggestions.append(stripped)

    summary = " ".join(summary_parts).strip()
    if not summary:
        summary = raw_text[:SUMMARY_FALLBACK_CHARS]

    logger.debug(
        f"Parsed review: {len(issues)} issues, {len(suggestions)} suggestions, "
        f"can_auto_fix={can_auto_fix}"
    )

    return Review(
        summary=summary,
        issues=issues,
        suggestions=suggestions,
        can_auto_fix=can_auto_fix,
        raw_text=raw_text,
    )
