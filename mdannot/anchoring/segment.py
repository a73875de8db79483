"""Renderable pieces of a text run."""

from __future__ import annotations

from typing import Any

from attrs import define, field

from .types import SegmentList


@define(frozen=True, slots=True)
class Segment:
    """Maximal span of a run sharing the same covering annotations.

    Attributes:
        start: Offset of the segment in the flattened text.
        end: Offset one past the segment's last character.
        text: Text of the segment.
        ids: Annotation ids covering the segment; empty for plain text.
        active: Whether the draft highlight covers the segment.
    """

    start: int
    end: int
    text: str
    ids: tuple[str, ...] = ()
    active: bool = False

    @property
    def is_multiple(self) -> bool:
        """Whether more than one annotation covers the segment."""

        return len(self.ids) > 1

    @property
    def is_plain(self) -> bool:
        return not self.ids and not self.active

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "ids": list(self.ids),
            "active": self.active,
        }


@define(slots=True)
class RunSegments:
    """Partition of a single text run.

    Attributes:
        run: Index of the partitioned run.
        segments: Ordered segments covering the run's text.
    """

    run: int
    segments: SegmentList = field(factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run": self.run,
            "segments": [seg.to_dict() for seg in self.segments],
        }
