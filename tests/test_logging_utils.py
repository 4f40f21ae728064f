"""Tests for logging helpers."""

import logging

from common.logging_utils import Timer, configure_logging, extra_context, is_debug_enabled, safe_url


class TestSafeUrl:
    """Credential masking."""

    def test_strips_credentials(self):
        """User info in URLs is masked."""
        assert safe_url("https://user:pw@proxy.example.com/mod") == "https://[REDACTED]@proxy.example.com/mod"

    def test_masks_sensitive_query(self):
        """Token-like query values are masked, others kept."""
        out = safe_url("https://proxy.example.com/x?token=abc&page=2")
        assert "abc" not in out
        assert "page=2" in out

    def test_plain_url_unchanged(self):
        """URLs without secrets are untouched."""
        assert safe_url("https://proxy.golang.org/example.com/m/@v/list") == (
            "https://proxy.golang.org/example.com/m/@v/list"
        )


class TestHelpers:
    """Structured logging helpers."""

    def test_extra_context_drops_none(self):
        """None values are left out of the extra mapping."""
        assert extra_context(event="x", target=None, count=0) == {"event": "x", "count": 0}

    def test_timer(self):
        """The timer measures a non-negative duration."""
        with Timer() as t:
            pass
        assert t.duration_ms() >= 0

    def test_configure_logging_level(self, monkeypatch):
        """The level comes from the environment or the argument."""
        monkeypatch.setenv("MODBUMP_LOG_LEVEL", "DEBUG")
        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging()
            assert is_debug_enabled(logging.getLogger("modbump.test"))
            configure_logging("warning")
            assert not is_debug_enabled(logging.getLogger("modbump.test"))
        finally:
            root.setLevel(previous)
