"""Positional comment attached to a span of a document."""

from __future__ import annotations

from typing import Any

from attrs import define, field

from .interval import Interval


def _parse_range(data: Any) -> Interval | None:  # noqa: ANN401
    """Return the stored range or ``None`` when it is malformed.

    Args:
        data: Raw ``range`` value from a stored annotation.

    Returns:
        The interval when both bounds are integers and ``end > start``.
    """

    if not isinstance(data, dict):
        return None

    start = data.get("start")
    end = data.get("end")

    # Booleans are integers in Python but never valid offsets.
    if not isinstance(start, int) or isinstance(start, bool):
        return None
    if not isinstance(end, int) or isinstance(end, bool):
        return None
    if end <= start:
        return None

    return Interval(start, end)


@define(slots=True)
class Annotation:
    """Positional comment attached to a span of a document.

    Attributes:
        id: Opaque identifier, stable for the annotation's lifetime.
        selected_text: Snapshot of the quoted span at creation time.
        comment: Free-form comment text; the only mutable field.
        timestamp: Creation instant in milliseconds since the epoch.
        range: Interval captured at creation time, if any.
    """

    id: str
    selected_text: str
    comment: str = ""
    timestamp: int = 0
    range: Interval | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """Return the portable representation with camelCase keys."""

        data: dict[str, Any] = {
            "id": self.id,
            "selectedText": self.selected_text,
            "comment": self.comment,
            "timestamp": self.timestamp,
        }
        if self.range is not None:
            data["range"] = self.range.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Annotation:
        """Build an annotation from its portable representation.

        Args:
            data: Mapping as produced by ``to_dict`` or the browser app.

        Returns:
            The parsed ``Annotation``. Malformed ranges are dropped.
        """

        timestamp = data.get("timestamp") or 0
        if not isinstance(timestamp, (int, float)):
            timestamp = 0
        return cls(
            id=str(data.get("id", "")),
            selected_text=str(data.get("selectedText") or ""),
            comment=str(data.get("comment") or ""),
            timestamp=int(timestamp),
            range=_parse_range(data.get("range")),
        )
