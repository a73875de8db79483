"""Tests for the annotation session controller."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from bs4 import BeautifulSoup

from mdannot import storage
from mdannot.anchoring import (
    Annotation,
    BoundaryPoint,
    FeedbackConfig,
    Interval,
    Selection,
)
from mdannot.render import runs_from_text
from mdannot.session import AnnotationSession, Notice, SessionState
from mdannot.share import ShareError

DOCUMENT = "Hello world.\n\nGoodbye."


def _annotate(
    session: AnnotationSession, start: int, end: int, comment: str
) -> Annotation | None:
    """Select ``[start, end)``, draft a comment and commit it."""

    assert session.select_range(start, end) == Interval(start, end)
    assert session.begin_draft()
    return session.commit(comment)


def test_selection_workflow_creates_annotation(
    session: AnnotationSession, manual_timers: list[Any]
) -> None:
    """A selection becomes an annotation once a comment is committed."""

    session.load_markdown(DOCUMENT)
    assert session.text == "Hello world.\nGoodbye.\n"

    interval = session.select(
        Selection(BoundaryPoint(0, 11), BoundaryPoint(0, 6))
    )
    assert interval == Interval(6, 11)
    assert session.state is SessionState.SELECTING
    assert session.selected_text == "world"

    assert session.begin_draft()
    assert session.state is SessionState.DRAFTING
    assert session.draft == Interval(6, 11)

    # The draft is highlighted without being an annotation yet.
    active = [
        segment
        for entry in session.segments()
        for segment in entry.segments
        if segment.active
    ]
    assert [segment.text for segment in active] == ["world"]
    assert session.annotations == []

    annotation = session.commit("  greeting  ")
    assert annotation == Annotation(
        id="a1",
        selected_text="world",
        comment="greeting",
        timestamp=1000,
        range=Interval(6, 11),
    )
    assert session.state is SessionState.IDLE
    assert session.draft is None
    assert session.annotations == [annotation]

    # The write is debounced until the timer fires.
    assert session.store.load(session.key) == []
    manual_timers[-1].fire()
    assert session.store.load(session.key) == [annotation]


def test_empty_comment_keeps_drafting(session: AnnotationSession) -> None:
    session.load_markdown(DOCUMENT)
    session.select_range(0, 5)
    session.begin_draft()

    assert session.commit("   ") is None
    assert session.state is SessionState.DRAFTING
    assert session.annotations == []


def test_overlapping_selection_is_rejected(
    session: AnnotationSession,
) -> None:
    """Overlaps are refused with a notice; touching spans are fine."""

    session.load_markdown(DOCUMENT)
    first = _annotate(session, 6, 11, "greeting")
    assert first is not None

    assert _annotate(session, 8, 15, "overlap") is None
    assert session.notice is Notice.OVERLAP_REJECTED
    assert session.state is SessionState.IDLE
    assert session.annotations == [first]

    # The next selection clears the notice.
    second = _annotate(session, 11, 12, "punctuation")
    assert session.notice is None
    assert second is not None
    assert [a.id for a in session.annotations] == ["a1", "a2"]


def test_unmappable_selection_returns_to_idle(
    session: AnnotationSession,
) -> None:
    session.load_markdown(DOCUMENT)
    session.select_range(0, 5)

    outside = Selection(BoundaryPoint(0, 2), BoundaryPoint(9, 0))
    assert session.select(outside) is None
    assert session.state is SessionState.IDLE
    assert session.pending is None

    collapsed = Selection(BoundaryPoint(0, 2), BoundaryPoint(0, 2))
    assert session.select(collapsed) is None
    assert session.select(None) is None
    assert not session.begin_draft()


def test_selection_ignored_while_drafting(
    session: AnnotationSession,
) -> None:
    session.load_markdown(DOCUMENT)
    session.select_range(0, 5)
    session.begin_draft()

    assert session.select_range(6, 11) is None
    assert session.pending == Interval(0, 5)

    session.cancel()
    assert session.state is SessionState.IDLE
    assert session.draft is None


def test_clear_selection(session: AnnotationSession) -> None:
    session.load_markdown(DOCUMENT)
    session.select_range(0, 5)
    session.clear_selection()

    assert session.state is SessionState.IDLE
    assert session.selected_text == ""


def test_edit_replaces_comment(session: AnnotationSession) -> None:
    """Editing swaps in a new list with the updated annotation."""

    session.load_markdown(DOCUMENT)
    original = _annotate(session, 6, 11, "greeting")
    before = session.annotations

    assert session.edit("a1")
    assert session.state is SessionState.EDITING
    assert session.pending == Interval(6, 11)
    assert session.selected_text == "world"

    # Overlap rules do not apply to edits.
    updated = session.commit("salutation")

    assert updated is not None
    assert updated.comment == "salutation"
    assert updated.range == original.range
    assert updated.timestamp == original.timestamp
    assert session.annotations is not before
    assert before[0].comment == "greeting"
    assert session.state is SessionState.IDLE


def test_edit_unknown_annotation(session: AnnotationSession) -> None:
    session.load_markdown(DOCUMENT)
    assert not session.edit("missing")
    assert session.state is SessionState.IDLE


def test_delete_and_clear(
    session: AnnotationSession, data_dir: Path
) -> None:
    session.load_markdown(DOCUMENT)
    _annotate(session, 0, 5, "one")
    _annotate(session, 6, 11, "two")
    session.flush()

    assert session.delete("a1")
    assert not session.delete("a1")
    assert [a.id for a in session.annotations] == ["a2"]

    session.clear()
    session.flush()

    assert session.annotations == []
    assert not (data_dir / f"{session.key}.json").exists()


def test_annotations_survive_reload(
    session: AnnotationSession, data_dir: Path
) -> None:
    """A new session on the same text finds the stored annotations."""

    session.load_markdown(DOCUMENT)
    _annotate(session, 0, 5, "one")
    session.flush()

    other = AnnotationSession(store=storage.AnnotationStore(data_dir))
    other.load_markdown(DOCUMENT)
    assert other.annotations == session.annotations

    # Changing the text starts a fresh annotation set.
    other.load_markdown(DOCUMENT + " Edited.")
    assert other.annotations == []


def test_legacy_overlaps_render_as_multiple(
    session: AnnotationSession,
) -> None:
    text = "alpha beta gamma"
    session.store.save(
        "legacy",
        [
            Annotation(id="x", selected_text="alpha beta", comment="1"),
            Annotation(id="y", selected_text="beta gamma", comment="2"),
            Annotation(id="z", selected_text="delta", comment="3"),
        ],
    )
    session.load_runs(runs_from_text(text), "legacy")

    assert [(i.start, i.end) for i in session.intervals()] == [
        (0, 10),
        (6, 16),
    ]
    assert [a.id for a in session.orphaned()] == ["z"]

    multiple = [
        segment.text
        for entry in session.segments()
        for segment in entry.segments
        if segment.is_multiple
    ]
    assert multiple == ["beta"]

    with pytest.raises(ValueError):
        session.highlighted_html()


def test_highlighted_html(session: AnnotationSession) -> None:
    session.load_markdown(DOCUMENT)
    _annotate(session, 6, 11, "greeting")

    soup = BeautifulSoup(session.highlighted_html(), "html.parser")
    mark = soup.find("mark")

    assert mark is not None
    assert mark.get_text() == "world"
    assert mark["data-annotation-id"] == "a1"


def test_export_uses_current_text(session: AnnotationSession) -> None:
    session.load_markdown(DOCUMENT)
    _annotate(session, 13, 20, "farewell")

    config = FeedbackConfig(header_text="## Notes", include_line_numbers=True)
    assert session.export(config) == (
        "## Notes\n\n### 1. Line 2\n\n> Goodbye\n\nfarewell\n"
    )
    assert session.export() == "### 1.\n\n> Goodbye\n\nfarewell\n"


def test_open_shared_loads_document(session: AnnotationSession) -> None:
    def fetch(code: str) -> dict[str, str]:
        return {"markdown": "# Shared", "shareCode": code.strip().upper()}

    assert session.open_shared(" x7km3p ", fetch=fetch)

    assert session.share_code == "X7KM3P"
    assert session.key == "annotations_share_X7KM3P"
    assert session.markdown == "# Shared"
    assert session.text == "Shared\n"


def test_open_shared_failure_keeps_session(
    session: AnnotationSession,
) -> None:
    session.load_markdown(DOCUMENT)
    key = session.key

    def fetch(code: str) -> dict[str, str]:
        raise ShareError("not_found", "gone")

    with pytest.raises(ShareError):
        session.open_shared("X7KM3P", fetch=fetch)

    assert session.key == key
    assert session.share_code is None


def test_superseded_share_request_is_dropped(
    session: AnnotationSession,
) -> None:
    """Only the most recent request may switch the document."""

    def fetch_second(code: str) -> dict[str, str]:
        return {"markdown": "second", "shareCode": code}

    def fetch_first(code: str) -> dict[str, str]:
        # A newer request completes while this one is in flight.
        assert session.open_shared("BBBBBB", fetch=fetch_second)
        return {"markdown": "first", "shareCode": code}

    assert not session.open_shared("AAAAAA", fetch=fetch_first)
    assert session.markdown == "second"
    assert session.share_code == "BBBBBB"


def test_whitespace_only_selection_is_ignored(
    session: AnnotationSession,
) -> None:
    """A selection of blanks cannot become an annotation."""

    session.load_runs(runs_from_text("Hello   world"), "blanks")

    assert session.select_range(5, 8) is None
    assert session.state is SessionState.IDLE
    assert not session.begin_draft()
    assert session.commit("note") is None
    assert session.annotations == []


def test_selection_is_trimmed(session: AnnotationSession) -> None:
    """Edge whitespace is left out of the quote and the stored range."""

    session.load_markdown(DOCUMENT)

    assert session.select_range(6, 13) == Interval(6, 12)
    assert session.selected_text == "world."
    assert session.begin_draft()

    annotation = session.commit("greeting")
    assert annotation is not None
    assert annotation.range == Interval(6, 12)
    assert annotation.selected_text == "world."

    # The stored range survives reconciliation unchanged.
    assert [(i.start, i.end) for i in session.intervals()] == [(6, 12)]
    assert session.orphaned() == []
    assert session.export(FeedbackConfig(include_line_numbers=True)) == (
        "### 1. Line 1\n\n> world.\n\ngreeting\n"
    )


def test_background_share_requests(session: AnnotationSession) -> None:
    """A slow response is dropped once a newer request has started."""

    first = session.begin_share_request("AAAAAA")
    second = session.begin_share_request("BBBBBB")

    newer = {"markdown": "second", "shareCode": "BBBBBB"}
    assert session.complete_share_request(second, newer)

    older = {"markdown": "first", "shareCode": "AAAAAA"}
    assert not session.complete_share_request(first, older)
    assert session.markdown == "second"
    assert session.share_code == "BBBBBB"
