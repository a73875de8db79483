"""Serialize annotations into a Markdown feedback digest."""

from __future__ import annotations

from bisect import bisect_right

from attrs import define

from .annotation import Annotation
from .reconciler import resolve_interval
from .types import AnnotationList, LineStarts, LiteralCursors


@define(frozen=True, slots=True)
class FeedbackConfig:
    """Options controlling the feedback digest.

    Attributes:
        header_text: Text emitted before the entries; blank to omit.
        include_line_numbers: Add line references to entry headings.
    """

    header_text: str = ""
    include_line_numbers: bool = False


def line_starts(text: str) -> LineStarts:
    """Return the offset of the first character of every line.

    Args:
        text: Flattened document text.

    Returns:
        Ascending offsets; index ``i`` holds the start of line ``i + 1``.
    """

    starts = [0]
    for index, char in enumerate(text):
        if char == "\n":
            starts.append(index + 1)
    return starts


def line_number(starts: LineStarts, offset: int) -> int:
    """Return the 1-based line holding ``offset``.

    Args:
        starts: Line start offsets as returned by ``line_starts``.
        offset: Character offset in the text.

    Returns:
        Position of the greatest line start ``<= offset``, plus one.
    """

    return max(bisect_right(starts, offset), 1)


def line_reference(
    annotation: Annotation,
    text: str,
    starts: LineStarts,
    cursors: LiteralCursors,
) -> str | None:
    """Return ``"Line N"`` or ``"Lines N-M"`` for an annotation."""

    if not text:
        return None

    interval = resolve_interval(annotation, text, cursors)
    if interval is None:
        return None

    start_line = line_number(starts, interval.start)
    end_line = line_number(starts, max(interval.start, interval.end - 1))
    if start_line == end_line:
        return f"Line {start_line}"
    return f"Lines {start_line}-{end_line}"


def format_quoted_text(text: str) -> str:
    """Prefix every line of ``text`` with a block-quote marker."""

    return "\n".join(f"> {line}" for line in text.split("\n"))


def generate_feedback_text(
    annotations: AnnotationList,
    text: str = "",
    header: str = "",
    include_line_numbers: bool = False,
) -> str:
    """Build the feedback digest for ``annotations``.

    Entries follow insertion order, not document order.

    Args:
        annotations: Annotations in insertion order.
        text: Flattened document text used for line references.
        header: Optional header placed above the entries.
        include_line_numbers: Whether to add line references.

    Returns:
        The digest, ending with exactly one newline.
    """

    header = header.strip()
    starts = line_starts(text) if include_line_numbers and text else []
    cursors: LiteralCursors = {}

    parts: list[str] = []
    if header:
        parts.append(f"{header}\n\n")

    for index, annotation in enumerate(annotations, start=1):
        reference = (
            line_reference(annotation, text, starts, cursors)
            if include_line_numbers
            else None
        )
        heading = f"### {index}. {reference}" if reference else f"### {index}."

        parts.append(f"{heading}\n\n")
        parts.append(f"{format_quoted_text(annotation.selected_text)}\n\n")
        parts.append(f"{annotation.comment}\n\n")

    return "".join(parts).strip() + "\n"


def export_feedback(
    annotations: AnnotationList, text: str, config: FeedbackConfig
) -> str:
    """Build the digest from a ``FeedbackConfig``."""

    return generate_feedback_text(
        annotations,
        text,
        header=config.header_text,
        include_line_numbers=config.include_line_numbers,
    )
