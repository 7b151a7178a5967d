"""Tests for diff truncation."""

from prgate_core.utils.diff import truncate_diff


def test_short_diff_unchanged():
    assert truncate_diff(b"+added\n-removed\n", 100) == ("+added\n-removed\n", False)


def test_truncates_by_bytes():
    text, truncated = truncate_diff(b"abcdef", 4)
    assert text == "abcd"
    assert truncated is True


def test_drops_split_multibyte_character():
    raw = "abé".encode("utf-8")  # é is two bytes
    assert truncate_diff(raw, 3) == ("ab", True)


def test_keeps_multibyte_character_ending_on_boundary():
    raw = "abécd".encode("utf-8")
    assert truncate_diff(raw, 4) == ("abé", True)


def test_invalid_bytes_dropped():
    assert truncate_diff(b"ok\xffok", 100) == ("okok", False)


def test_logs_warning_when_truncated(caplog):
    with caplog.at_level("WARNING", logger="prgate_core.utils.diff"):
        truncate_diff(b"x" * 10, 5)
    assert "truncated from 10 to 5 bytes" in caplog.text
