"""Tests for turning model review text into a Review."""

import pytest

from src.utils.review_parser import (
    SUMMARY_FALLBACK_CHARS,
    classify_line,
    parse_review,
)

WELL_FORMED = """\
**Overall Assessment:** The module is readable but has two bugs.

**Issues Found:**
1. `total` is never initialised before the loop.
2. The callback swallows errors.

**Suggestions:**
- Initialise `total` to 0.
- Re-raise errors after logging them.

**Can Auto-Fix:** Yes
"""


class TestClassifyLine:
    @pytest.mark.parametrize(
        "line, expected",
        [
            ("## Issues Found", ("issues", "")),
            ("**Suggestions:**", ("suggestions", "")),
            ("3. Improvements:", ("suggestions", "")),
            ("Overall Assessment: Looks good", ("summary", "Looks good")),
            ("- **Can Auto-Fix:** No", ("auto_fix", "No")),
            ("Problems", ("issues", "")),
            ("## Issues Found (by severity)", ("issues", "")),
            ("**Suggestions for Improvement**", ("suggestions", "")),
            ("Issues found in this file:", ("issues", "")),
            ("### Summary of changes: mostly renames", ("summary", "mostly renames")),
        ],
    )
    def test_headings(self, line, expected):
        assert classify_line(line) == expected

    @pytest.mark.parametrize(
        "line",
        [
            "Summary of the change is below",
            "1. Issues with naming are minor",
            "The suggestions above are optional",
            "- **Issues** with naming are minor",
        ],
    )
    def test_prose_is_not_a_heading(self, line):
        assert classify_line(line) is None


class TestParseReview:
    def test_well_formed_review(self):
        review = parse_review(WELL_FORMED)

        assert review.summary == "The module is readable but has two bugs."
        assert review.issues == [
            "1. `total` is never initialised before the loop.",
            "2. The callback swallows errors.",
        ]
        assert review.suggestions == [
            "- Initialise `total` to 0.",
            "- Re-raise errors after logging them.",
        ]
        assert review.can_auto_fix is True
        assert review.raw_text == WELL_FORMED

    def test_auto_fix_value_on_next_line(self):
        review = parse_review("Summary: fine\nCan Auto-Fix:\n\nNo, needs design work")

        assert review.can_auto_fix is False

    def test_auto_fix_true_on_next_line(self):
        review = parse_review("Summary: fine\n### Can auto-fix\nTrue")

        assert review.can_auto_fix is True

    def test_missing_sections_fall_back_to_raw_text(self):
        raw_text = "Issues:\n" + "x" * 300

        review = parse_review(raw_text)

        assert review.issues == ["x" * 300]
        assert review.summary == raw_text[:SUMMARY_FALLBACK_CHARS]

    def test_text_without_headings_is_summary(self):
        review = parse_review("Nothing to report.\nThe code is fine.")

        assert review.summary == "Nothing to report. The code is fine."
        assert review.issues == []
        assert review.suggestions == []
        assert review.can_auto_fix is False

    def test_repeated_headings_accumulate_in_order(self):
        raw_text = (
            "Issues:\n- first\nSuggestions:\n- use a map\n"
            "Issues:\n- second\nSuggestions:\n- add tests"
        )

        review = parse_review(raw_text)

        assert review.issues == ["- first", "- second"]
        assert review.suggestions == ["- use a map", "- add tests"]

    def test_empty_text(self):
        review = parse_review("")

        assert review.summary == ""
        assert review.issues == []


class TestAutoFixAvailable:
    def test_suggestions_make_a_review_fixable(self):
        review = parse_review("Summary: ok\nSuggestions:\n- rename x\nCan Auto-Fix: No")

        assert review.can_auto_fix is False
        assert review.auto_fix_available is True

    def test_explicit_marker_without_suggestions(self):
        review = parse_review("Summary: ok\nCan Auto-Fix: Yes")

        assert review.suggestions == []
        assert review.auto_fix_available is True

    def test_neither_marker_nor_suggestions(self):
        review = parse_review("Summary: ok\nIssues:\n- none really")

        assert review.auto_fix_available is False


def test_parse_plain_headings():
    review = parse_review(
        "Overall Assessment: Looks fine.\nIssues Found:\nunused variable x\n"
        "Suggestions:\nremove x"
    )

    assert review.summary == "Looks fine."
    assert review.issues == ["unused variable x"]
    assert review.suggestions == ["remove x"]


def test_parse_headings_with_qualifiers():
    review = parse_review(
        "Overall Assessment: ok\n## Issues Found (by severity)\n- unused variable x\n"
        "**Suggestions for Improvement**\n- remove x\n"
    )

    assert review.summary == "ok"
    assert review.issues == ["- unused variable x"]
    assert review.suggestions == ["- remove x"]
    assert review.auto_fix_available is True
