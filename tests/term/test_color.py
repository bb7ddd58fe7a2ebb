"""Tests for colour helpers."""

from __future__ import annotations

from deploy_progress.term import color


class TestColor:
    def test_disabled_returns_text_unchanged(self):
        assert color.green("ok") == "ok"
        assert color.faint("[0.1s]") == "[0.1s]"

    def test_enabled_wraps_text_in_ansi_codes(self):
        color.enable()
        assert color.green("ok") == "\x1b[32mok\x1b[0m"
        assert color.faint("ok") == "\x1b[2mok\x1b[0m"
        assert color.red("no") == "\x1b[1;31mno\x1b[0m"

    def test_empty_text_is_not_styled(self):
        color.enable()
        assert color.emphasize("") == ""

    def test_detects_forced_colour(self, monkeypatch):
        monkeypatch.setenv("DEPLOY_PROGRESS_COLOR", "1")
        monkeypatch.setattr(color, "_enabled", None)
        assert color.is_enabled() is True

    def test_detects_no_color(self, monkeypatch):
        monkeypatch.delenv("DEPLOY_PROGRESS_COLOR", raising=False)
        monkeypatch.setenv("NO_COLOR", "")
        monkeypatch.setattr(color, "_enabled", None)
        assert color.is_enabled() is False
