"""Proportional summary bars.

A summary bar splits a fixed width between categories in proportion to
their values, e.g. task counts per state:

    >>> bar = new([Datum(4, "W"), Datum(2, "H"), Datum(2, "A"), Datum(1, "T")], width=10)
    >>> buf = io.StringIO(); bar.render(buf); buf.getvalue()
    'WWWWWHHAAT'

Units are allocated with the largest remainder method: each value first
gets the floor of its exact share, then the units left over go one at a time
to the values with the largest fractional parts, ties going to the earlier
value.  The bar is written without a trailing newline and counts as zero
lines.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from deploy_progress.progress.components import Writer


class SummaryBarError(ValueError):
    """Raised for a summary bar that cannot be drawn."""


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def calculate_portions(values: list[int], width: int) -> list[int] | None:
    """Split ``width`` units proportionally to ``values``.

    Returns None if the values sum up to zero.
    """
    total = sum(values)
    if total <= 0:
        return None

    estimates = []
    for index, value in enumerate(values):
        raw = value / total * width
        floor = math.floor(raw)
        estimates.append((raw - floor, index, max(floor, 0)))

    units_left = width - sum(portion for _, _, portion in estimates)
    portions = [0] * len(values)
    # Stable sort keeps the original order between equal remainders.
    for remainder, index, portion in sorted(estimates, key=lambda e: e[0], reverse=True):
        if units_left > 0:
            portion += 1
            units_left -= 1
        portions[index] = portion
    return portions


def _has_negative_value(values: list[int]) -> bool:
    return any(v < 0 for v in values)


@dataclass
class SummaryBarComponent:
    """Summary bar where ``data[i]`` is drawn with ``representations[i]``."""

    length: int
    data: list[int]
    representations: list[str]
    empty_representation: str = ""

    @classmethod
    def new(
        cls,
        length: int,
        data: list[int],
        representations: list[str],
        empty_representation: str = "",
    ) -> SummaryBarComponent:
        """Validate the inputs and build a bar.

        Raises:
            SummaryBarError: If the length is not positive, there are fewer
                representations than values, or a value is negative.
        """
        if length <= 0:
            raise SummaryBarError(f"invalid length {length} for summary bar")
        if len(representations) < len(data):
            raise SummaryBarError(
                "not enough representations: "
                f"{_plural(len(representations), 'representation', 'representations')} "
                f"for {_plural(len(data), 'data value', 'data values')}"
            )
        if _has_negative_value(data):
            raise SummaryBarError("input data contains negative values")
        return cls(length, data, representations, empty_representation)

    def render(self, out: Writer) -> int:
        portions = calculate_portions(self.data, self.length)
        if portions is None:
            out.write(self.empty_representation * self.length)
            return 0
        out.write(
            "".join(
                self.representations[i] * portion for i, portion in enumerate(portions)
            )
        )
        return 0


@dataclass(frozen=True)
class Datum:
    """A value and the character drawing it."""

    value: int
    representation: str


@dataclass
class SummaryBar:
    """Summary bar built from ``Datum`` items, validated when rendered."""

    data: list[Datum] = field(default_factory=list)
    width: int = 0
    empty_rep: str = ""

    def render(self, out: Writer) -> int:
        """Write the bar to ``out``.

        Raises:
            SummaryBarError: If the width is not positive or a value is
                negative.
        """
        if self.width <= 0:
            raise SummaryBarError(f"invalid width {self.width} for summary bar")
        values = [d.value for d in self.data]
        if _has_negative_value(values):
            raise SummaryBarError("input data contains negative values")
        portions = calculate_portions(values, self.width)
        if portions is None:
            out.write(self.empty_rep * self.width)
            return 0
        out.write(
            "".join(
                self.data[i].representation * portion
                for i, portion in enumerate(portions)
            )
        )
        return 0


def new(data: list[Datum], *, width: int = 0, empty_rep: str = "") -> SummaryBar:
    """Build a summary bar; its configuration is checked at render time."""
    return SummaryBar(data=list(data), width=width, empty_rep=empty_rep)
