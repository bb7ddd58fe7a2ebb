"""Tests for elastic tab stop alignment."""

from __future__ import annotations

import io

from deploy_progress.term.tabwriter import TabbedFileWriter, TabWriter, display_width


def _format(text: str, min_width: int = 0, padding: int = 1) -> str:
    buf = io.StringIO()
    tw = TabWriter(buf, min_width, padding)
    tw.write(text)
    tw.flush()
    return buf.getvalue()


class TestDisplayWidth:
    def test_ignores_ansi_escapes(self):
        assert display_width("\x1b[2mab\x1b[0m") == 2

    def test_ignores_cursor_control(self):
        assert display_width("\x1b[1A\x1b[2Kabc") == 3


class TestTabWriter:
    def test_aligns_columns(self):
        out = _format("a\tbbb\tc\naaaa\tb\tc\n")
        assert out == "a    bbb c\naaaa b   c\n"

    def test_line_without_cells_ends_column_block(self):
        out = _format("x\ty\n\nlonger\tz\n")
        assert out == "x y\n\nlonger z\n"

    def test_min_width(self):
        out = _format("a\tb\n", min_width=4)
        assert out == "a   b\n"

    def test_colored_cells_align_with_plain_cells(self):
        out = _format("\x1b[2mab\x1b[0m\tc\nabcd\te\n")
        assert out == "\x1b[2mab\x1b[0m   c\nabcd e\n"

    def test_buffers_until_flush(self):
        buf = io.StringIO()
        tw = TabWriter(buf, 0, 1)
        tw.write("a\tb\n")
        assert buf.getvalue() == ""
        tw.flush()
        assert buf.getvalue() == "a b\n"

    def test_flush_without_content_writes_nothing(self):
        buf = io.StringIO()
        TabWriter(buf, 0, 1).flush()
        assert buf.getvalue() == ""

    def test_table_layout(self):
        """Same settings as a progress table: min width 2, padding 2."""
        buf = io.StringIO()
        tw = TabWriter(buf, 2, 2)
        tw.write("  \tRevision\tRollout\n")
        tw.write("  PRIMARY\t3\t[in progress]\n")
        tw.flush()
        assert buf.getvalue() == (
            "           Revision  Rollout\n"
            "  PRIMARY  3         [in progress]\n"
        )


class TestTabbedFileWriter:
    def test_pads_cells_to_minimum_width(self):
        file = io.StringIO()
        writer = TabbedFileWriter(file)
        writer.write("- Stack\t[not started]\t\n")
        writer.flush()
        assert file.getvalue() == "- Stack" + " " * 13 + "[not started]" + " " * 7 + "\n"

    def test_isatty_follows_file(self):
        assert TabbedFileWriter(io.StringIO()).isatty() is False
