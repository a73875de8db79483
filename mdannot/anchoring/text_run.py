"""Addressable text runs and selection boundary points."""

from __future__ import annotations

from typing import Any

from attrs import define, field

from .types import TextRunList


@define(slots=True)
class TextRun:
    """Visible text run located in the flattened text.

    Attributes:
        text: Text content of the run.
        start: Offset of the run's first character in the flattened text.
        end: Offset one past the run's last character.
        node: Backing tree node, when the run comes from a rendered tree.
    """

    text: str
    start: int
    end: int
    node: Any = field(default=None, eq=False, repr=False)


@define(frozen=True, slots=True, order=True)
class BoundaryPoint:
    """Selection boundary inside a specific text run.

    Points order by run index first and by local offset second, which is
    their document order.

    Attributes:
        run: Index of the text run holding the point.
        offset: Character offset inside that run.
    """

    run: int
    offset: int


@define(frozen=True, slots=True)
class Selection:
    """Immutable snapshot of a user selection.

    Attributes:
        anchor: Point where the selection started.
        focus: Point where the selection ended; may precede ``anchor``.
    """

    anchor: BoundaryPoint
    focus: BoundaryPoint


def build_runs(
    texts: list[str], nodes: list[Any] | None = None
) -> TextRunList:
    """Lay out consecutive text runs over the flattened text.

    Args:
        texts: Text of every run in render order.
        nodes: Optional backing nodes, parallel to ``texts``.

    Returns:
        Runs carrying their cumulative offsets.
    """

    runs: TextRunList = []
    offset = 0
    for index, text in enumerate(texts):
        node = nodes[index] if nodes is not None else None
        runs.append(TextRun(text, offset, offset + len(text), node=node))
        offset += len(text)
    return runs


def flatten(runs: TextRunList) -> str:
    """Return the flattened text of ``runs``."""

    return "".join(run.text for run in runs)
