"""Renderer protocol, leaf components and static composites.

A renderer writes a fixed number of text lines to a writer and returns how
many it wrote, so the render driver knows how many lines to erase before the
next frame.  Components never keep the writer they are handed.

Composites render their children into an intermediate buffer and write it to
the destination in one piece: if any child fails, nothing from that pass is
written.
"""

from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from deploy_progress.term.tabwriter import TabWriter

NESTED_COMPONENT_PADDING = 2  # Leading spaces for rendering a nested component.


class Writer(Protocol):
    def write(self, text: str, /) -> int: ...


@runtime_checkable
class Renderer(Protocol):
    def render(self, out: Writer) -> int:
        """Write to ``out`` and return the number of lines written."""
        ...


@runtime_checkable
class DynamicRenderer(Renderer, Protocol):
    async def done(self) -> None:
        """Return once the renderer will not change anymore."""
        ...


class RenderError(Exception):
    """Raised when a component fails to render."""


@dataclass(frozen=True)
class RenderOptions:
    padding: int = 0  # Leading spaces before rendering a component.


def nested_render_options(opts: RenderOptions) -> RenderOptions:
    """Options for a component nested one level under ``opts``."""
    return RenderOptions(padding=opts.padding + NESTED_COMPONENT_PADDING)


def render_components(out: Writer, components: list[Renderer]) -> int:
    """Render ``components`` in order, writing to ``out`` only if all succeed."""
    buf = io.StringIO()
    num_lines = 0
    for component in components:
        num_lines += component.render(buf)
    out.write(buf.getvalue())
    return num_lines


# =============================================================================
# Leaf components
# =============================================================================


class NoopComponent:
    """Renders nothing."""

    def render(self, out: Writer) -> int:
        return 0


@dataclass
class SingleLineComponent:
    text: str = ""
    padding: int = 0

    def render(self, out: Writer) -> int:
        out.write(" " * self.padding + self.text + "\n")
        return 1


@dataclass
class TableComponent:
    """A titled table with aligned columns.

    Tables without rows are not rendered at all, so an empty table does not
    flash on screen while the first events are still being fetched.
    """

    title: str
    header: list[str]
    rows: list[list[str]]
    padding: int = 0  # Leading spaces before the title.
    min_cell_width: int = 2
    gap_width: int = 2  # Spaces between columns.
    column_char: str = " "

    def render(self, out: Writer) -> int:
        if not self.rows:
            return 0

        buf = io.StringIO()
        buf.write(" " * self.padding + self.title + "\n")
        tw = TabWriter(buf, self.min_cell_width, self.gap_width, self.column_char)
        indent = " " * (self.padding + NESTED_COMPONENT_PADDING)
        rows = [self.header, *self.rows]
        for row in rows:
            tw.write(indent + "\t".join(row) + "\n")
        tw.flush()
        out.write(buf.getvalue())
        return 1 + len(rows)


# =============================================================================
# Composites
# =============================================================================


@dataclass
class TreeComponent:
    """A root renderer followed by its children."""

    root: Renderer
    children: list[Renderer] = field(default_factory=list)

    def render(self, out: Writer) -> int:
        return render_components(out, [self.root, *self.children])


@dataclass
class DynamicTreeComponent:
    """A tree that is done once its root and dynamic children are done."""

    root: DynamicRenderer
    children: list[Renderer] = field(default_factory=list)

    def render(self, out: Writer) -> int:
        return TreeComponent(self.root, self.children).render(out)

    async def done(self) -> None:
        await asyncio.gather(
            *(
                child.done()
                for child in self.children
                if isinstance(child, DynamicRenderer)
            )
        )
        await self.root.done()


class SuffixWriter:
    """Writer that adds ``suffix`` before every newline it forwards.

    Used to add empty trailing columns so nested content aligns with the
    columns of the lines around it.
    """

    def __init__(self, out: Writer, suffix: str):
        self._out = out
        self.suffix = suffix

    def write(self, text: str) -> int:
        self._out.write(text.replace("\n", self.suffix + "\n"))
        return len(text)
