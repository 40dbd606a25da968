"""Tests for credential redaction helpers"""

from __future__ import annotations

from tabgrouper.utils.redaction import redact, redact_url


def test_redact_is_stable_and_hides_value():
    first = redact("sk-ant-secret")

    assert first == redact("sk-ant-secret")
    assert first.startswith("hash:")
    assert "secret" not in first
    assert first != redact("sk-ant-other")


def test_redact_missing_value():
    assert redact(None) == "hash:missing"
    assert redact("") == "hash:missing"


def test_redact_url_masks_key_parameter():
    url = "https://generativelanguage.googleapis.com/v1beta/models/m:generateContent?key=AIza-secret"

    masked = redact_url(url)

    assert "AIza-secret" not in masked
    assert masked.startswith("https://generativelanguage.googleapis.com/v1beta/models/m:generateContent?key=hash:")


def test_redact_url_keeps_other_parameters():
    masked = redact_url("https://example.test/path?alt=json&token=abc")

    assert "alt=json" in masked
    assert "abc" not in masked


def test_redact_url_without_query_is_unchanged():
    assert redact_url("http://localhost:11434/api/chat") == "http://localhost:11434/api/chat"
