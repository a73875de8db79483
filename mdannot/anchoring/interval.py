"""Half-open character intervals over the flattened text."""

from __future__ import annotations

from attrs import define


@define(frozen=True, slots=True)
class Interval:
    """Half-open span ``[start, end)`` of the flattened text.

    Attributes:
        start: Offset of the first character in the span.
        end: Offset one past the last character in the span.
    """

    start: int
    end: int

    def intersects(self, other: Interval) -> bool:
        """Return whether the two half-open spans share a character."""

        return self.start < other.end and self.end > other.start

    def contains(self, start: int, end: int) -> bool:
        """Return whether ``[start, end)`` lies fully inside this span."""

        return self.start <= start and end <= self.end

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


@define(frozen=True, slots=True)
class AnchoredInterval(Interval):
    """Validated interval tied to the annotation it anchors.

    Attributes:
        id: Identifier of the anchored annotation.
    """

    id: str = ""

    def to_dict(self) -> dict[str, int | str]:  # type: ignore[override]
        return {"start": self.start, "end": self.end, "id": self.id}
