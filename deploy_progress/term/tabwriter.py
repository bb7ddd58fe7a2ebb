"""Elastic tab stop alignment for tab separated progress output.

Components separate columns with ``\\t``.  ``TabWriter`` buffers everything
written to it and, on ``flush()``, pads each tab terminated cell so that
cells in the same column line up.  A column block is a run of consecutive
lines that all have a cell in that column; the text after the last tab of a
line is never padded and does not take part in alignment.

Cell widths are measured in terminal cells with ANSI escapes stripped, so
coloured status text lines up with plain text.
"""

from __future__ import annotations

import re
from typing import Any

from rich.cells import cell_len

_ANSI_PATTERN = re.compile(r"\x1b\[[0-9;?]*[a-zA-Z]")

# Settings for the live progress sink.
MIN_CELL_WIDTH = 20
CELL_PADDING_WIDTH = 2


def display_width(text: str) -> int:
    """Terminal width of ``text`` ignoring ANSI escape sequences."""
    return cell_len(_ANSI_PATTERN.sub("", text))


class TabWriter:
    """Align tab separated cells written to it before forwarding to ``out``.

    Args:
        out: Destination with a ``write(str)`` method.
        min_width: Minimum width of a padded cell, padding included.
        padding: Extra characters added to the widest cell of a column.
        pad_char: Character used to pad cells.
    """

    def __init__(
        self,
        out: Any,
        min_width: int,
        padding: int,
        pad_char: str = " ",
    ):
        self._out = out
        self.min_width = min_width
        self.padding = padding
        self.pad_char = pad_char
        self._buf: list[str] = []

    def write(self, text: str) -> int:
        self._buf.append(text)
        return len(text)

    def flush(self) -> None:
        """Format all buffered text and write it to the destination."""
        text = "".join(self._buf)
        self._buf.clear()
        if not text:
            return
        lines = [line.split("\t") for line in text.split("\n")]
        chunks: list[str] = []
        self._format(lines, 0, len(lines), [], chunks)
        self._out.write("".join(chunks))

    def _format(
        self,
        lines: list[list[str]],
        line0: int,
        line1: int,
        widths: list[int],
        chunks: list[str],
    ) -> None:
        column = len(widths)
        this = line0
        while this < line1:
            if column >= len(lines[this]) - 1:
                this += 1
                continue
            # This line starts a block of cells in ``column``.
            self._write_lines(lines, line0, this, widths, chunks)
            line0 = this
            width = self.min_width
            while this < line1 and column < len(lines[this]) - 1:
                width = max(width, display_width(lines[this][column]) + self.padding)
                this += 1
            widths.append(width)
            self._format(lines, line0, this, widths, chunks)
            widths.pop()
            line0 = this
        self._write_lines(lines, line0, line1, widths, chunks)

    def _write_lines(
        self,
        lines: list[list[str]],
        line0: int,
        line1: int,
        widths: list[int],
        chunks: list[str],
    ) -> None:
        for i in range(line0, line1):
            for j, cell in enumerate(lines[i]):
                chunks.append(cell)
                if j < len(widths):
                    chunks.append(self.pad_char * (widths[j] - display_width(cell)))
            if i + 1 < len(lines):
                chunks.append("\n")


class TabbedFileWriter:
    """A terminal sink that aligns progress columns before writing.

    Wraps a file (usually ``sys.stderr``) and exposes the ``write`` /
    ``flush`` / ``fileno`` / ``isatty`` surface the render driver needs.
    """

    def __init__(self, file: Any):
        self.file = file
        self._tabs = TabWriter(file, MIN_CELL_WIDTH, CELL_PADDING_WIDTH)

    def write(self, text: str) -> int:
        return self._tabs.write(text)

    def flush(self) -> None:
        self._tabs.flush()
        self.file.flush()

    def fileno(self) -> int:
        return self.file.fileno()

    def isatty(self) -> bool:
        try:
            return self.file.isatty()
        except (AttributeError, ValueError):
            return False
