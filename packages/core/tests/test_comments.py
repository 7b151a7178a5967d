"""Tests for bot comment classification."""

from prgate_core.comments import classify, comment_status
from prgate_core.models import Comment


def _comment(body="", author="greptile-apps[bot]", id=1):
    return Comment(id=id, author=author, created_at=None, url=None, body=body)


class TestFiltering:
    def test_keeps_comments_by_author(self):
        filtered, _ = classify([_comment("Nice"), _comment("Mine", author="alice")])
        assert [c.author for c in filtered] == ["greptile-apps[bot]"]

    def test_keeps_comments_mentioning_identity_in_body(self):
        filtered, _ = classify([_comment("Summary by Greptile: LGTM", author="github-actions[bot]")])
        assert len(filtered) == 1

    def test_match_is_case_insensitive(self):
        filtered, _ = classify([_comment("x", author="GREPTILE[bot]")])
        assert len(filtered) == 1

    def test_order_preserved(self):
        comments = [_comment("a", id=1), _comment("b", author="bob", id=2), _comment("c", id=3)]
        filtered, _ = classify(comments)
        assert [c.id for c in filtered] == [1, 3]

    def test_custom_identity(self):
        comments = [_comment("x"), _comment("y", author="coderabbit[bot]")]
        filtered, _ = classify(comments, identity="coderabbit")
        assert [c.author for c in filtered] == ["coderabbit[bot]"]


class TestStatus:
    def test_empty_is_pending(self):
        assert classify([]) == ([], "pending")

    def test_only_foreign_comments_is_pending(self):
        assert classify([_comment("LGTM", author="alice")])[1] == "pending"

    def test_changes_requested_phrases(self):
        for body in ("Changes requested: fix x", "Please request changes", "verdict: REQUEST-CHANGES"):
            assert comment_status([_comment(body)]) == "changes_requested"

    def test_approved_phrases(self):
        assert comment_status([_comment("Approved!")]) == "approved"
        assert comment_status([_comment("lgtm")]) == "approved"

    def test_changes_requested_beats_approved(self):
        comments = [_comment("LGTM overall"), _comment("Changes requested on auth.py")]
        assert comment_status(comments) == "changes_requested"

    def test_unclear_non_empty_defaults_to_changes_requested(self):
        assert comment_status([_comment("Consider renaming this variable.")]) == "changes_requested"

    def test_classification_is_repeatable(self):
        comments = [_comment("LGTM", id=1), _comment("hm", author="bob", id=2)]
        assert classify(comments) == classify(comments)
