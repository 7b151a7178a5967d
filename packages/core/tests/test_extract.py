"""Tests for model reply extraction."""

import json

from prgate_core.extract import extract, strip_fences
from prgate_core.models import ReviewFinding

VALID_JSON = json.dumps(
    {
        "score": 7.5,
        "verdict": "request-changes",
        "findings": [
            {"severity": "high", "file": "src/app.py", "line": 12, "issue": "SQL built by string concat", "fix": "Use params"}
        ],
    }
)


# ---------------------------------------------------------------------------
# Direct JSON
# ---------------------------------------------------------------------------


class TestDirectJson:
    def test_reads_all_fields(self):
        outcome = extract(VALID_JSON)
        assert outcome.score == 7.5
        assert outcome.verdict == "request-changes"
        assert outcome.findings == [
            ReviewFinding(severity="high", file="src/app.py", line=12, issue="SQL built by string concat", fix="Use params")
        ]

    def test_score_round_trips_exactly(self):
        for score in (0, 0.1, 8.75, 9.0, 9.999, 10):
            assert extract(json.dumps({"score": score})).score == score

    def test_missing_verdict_defaults_to_request_changes(self):
        assert extract('{"score": 9.5}').verdict == "request-changes"

    def test_missing_findings_defaults_to_empty(self):
        assert extract('{"score": 9.5, "verdict": "approve"}').findings == []

    def test_missing_score_is_none_not_zero(self):
        outcome = extract('{"verdict": "approve", "findings": []}')
        assert outcome.score is None

    def test_null_score_is_none(self):
        assert extract('{"score": null}').score is None

    def test_boolean_score_is_none(self):
        assert extract('{"score": true}').score is None

    def test_numeric_string_score_accepted(self):
        assert extract('{"score": "8.5"}').score == 8.5

    def test_non_finite_json_literals_are_not_scores(self):
        for literal in ("NaN", "Infinity", "-Infinity"):
            assert extract(f'{{"score": {literal}, "verdict": "reject"}}').score is None

    def test_non_finite_numbers_are_not_scores(self):
        assert extract('{"score": 1e999}').score is None
        assert extract('{"score": "inf"}').score is None
        assert extract('{"score": "nan"}').score is None

    def test_non_finite_literal_keeps_rest_of_review(self):
        outcome = extract('{"score": NaN, "verdict": "reject", "findings": [{"severity": "high", "issue": "x"}]}')
        assert outcome.verdict == "reject"
        assert len(outcome.findings) == 1

    def test_verdict_case_and_spelling_normalized(self):
        assert extract('{"score": 9, "verdict": "APPROVE"}').verdict == "approve"
        assert extract('{"score": 9, "verdict": "request_changes"}').verdict == "request-changes"

    def test_unknown_verdict_becomes_request_changes(self):
        assert extract('{"score": 9, "verdict": "ship it"}').verdict == "request-changes"

    def test_severity_aliases_mapped(self):
        payload = {
            "score": 5,
            "findings": [
                {"severity": "critical", "issue": "a"},
                {"severity": "nitpick", "issue": "b"},
                {"severity": "weird", "issue": "c"},
                {"issue": "d"},
            ],
        }
        severities = [f.severity for f in extract(json.dumps(payload)).findings]
        assert severities == ["high", "low", "medium", "medium"]

    def test_non_integer_line_becomes_none(self):
        payload = {"score": 5, "findings": [{"severity": "low", "issue": "x", "line": "near the top"}]}
        assert extract(json.dumps(payload)).findings[0].line is None

    def test_string_findings_kept_other_types_dropped(self):
        payload = {"score": 5, "findings": ["plain text issue", 42, None]}
        findings = extract(json.dumps(payload)).findings
        assert findings == [ReviewFinding(severity="medium", issue="plain text issue")]

    def test_findings_not_a_list_becomes_empty(self):
        assert extract('{"score": 5, "findings": "none"}').findings == []

    def test_deeply_nested_json_does_not_raise(self):
        outcome = extract("[" * 200000)
        assert outcome.score is None
        assert outcome.verdict == "request-changes"

    def test_json_array_is_not_a_review(self):
        # Falls through to the prose heuristics, which find nothing useful.
        outcome = extract("[1, 2, 3]")
        assert outcome.score is None
        assert outcome.verdict == "request-changes"


# ---------------------------------------------------------------------------
# Fenced JSON
# ---------------------------------------------------------------------------


class TestFencedJson:
    def test_json_fence(self):
        outcome = extract(f"```json\n{VALID_JSON}\n```")
        assert outcome.score == 7.5
        assert len(outcome.findings) == 1

    def test_plain_fence_with_surrounding_prose(self):
        text = f"Here is my review:\n```\n{VALID_JSON}\n```\nThanks!"
        assert extract(text).score == 7.5

    def test_fenced_equals_inner_content(self):
        inner = json.dumps({"score": 9.5, "verdict": "approve", "findings": [{"severity": "low", "issue": "typo"}]})
        assert extract(f"```json\n{inner}\n```") == extract(inner)

    def test_multiline_json_inside_fence(self):
        inner = json.dumps({"score": 6, "verdict": "reject"}, indent=2)
        outcome = extract(f"```json\n{inner}\n```")
        assert outcome.score == 6
        assert outcome.verdict == "reject"

    def test_strip_fences_drops_fence_lines_and_outside_text(self):
        assert strip_fences("intro\n```json\n{}\n```\noutro") == "{}"


# ---------------------------------------------------------------------------
# Prose heuristics
# ---------------------------------------------------------------------------


class TestProseFallback:
    def test_end_to_end_example(self):
        text = "Looks solid.\nscore: 8.5\nverdict: request-changes\n- missing null check on line 42"
        outcome = extract(text)
        assert outcome.score == 8.5
        assert outcome.verdict == "request-changes"
        assert outcome.findings == [ReviewFinding(severity="medium", issue="missing null check on line 42", fix=None)]

    def test_score_is_case_insensitive(self):
        assert extract("SCORE = 9").score == 9.0

    def test_first_score_wins(self):
        # Known imprecision: the first number after "score" is taken.
        assert extract("Would score 7.5 but rating 6.0\nFinal score: 6.0").score == 7.5

    def test_overflowing_prose_score_is_none(self):
        assert extract("score: " + "9" * 400).score is None

    def test_no_score_is_none(self):
        assert extract("I approve this change.").score is None

    def test_verdict_first_match_wins(self):
        assert extract("I would reject this, not approve it.").verdict == "reject"

    def test_verdict_whole_word_only(self):
        # "approved" is not the whole word "approve".
        assert extract("Score: 9. Previously approved.").verdict == "request-changes"

    def test_verdict_case_insensitive(self):
        assert extract("Score: 9.5 — APPROVE").verdict == "approve"

    def test_bullets_with_dash_and_star(self):
        text = "score 4\n- first issue\n* second issue\n-not a bullet\n  - indented is ignored"
        issues = [f.issue for f in extract(text).findings]
        assert issues == ["first issue", "second issue"]

    def test_non_bullet_lines_ignored(self):
        assert extract("score 9\nNothing else to say.").findings == []

    def test_empty_text(self):
        outcome = extract("")
        assert outcome.score is None
        assert outcome.verdict == "request-changes"
        assert outcome.findings == []
