"""Tests for composing highlight segments."""

from __future__ import annotations

from mdannot.anchoring import (
    AnchoredInterval,
    Interval,
    Segment,
    build_runs,
    compose_segments,
    highlighted,
    segments_for,
)


def _texts(composed: list) -> list[list[tuple[str, tuple[str, ...]]]]:
    return [[(s.text, s.ids) for s in entry.segments] for entry in composed]


def test_runs_without_intervals_stay_plain() -> None:
    runs = build_runs(["Hello ", "world"])
    composed = compose_segments(runs, [])

    assert _texts(composed) == [[("Hello ", ())], [("world", ())]]
    assert highlighted(composed) == []


def test_interval_splits_runs_at_breakpoints() -> None:
    """Runs are cut at interval edges lying strictly inside them."""

    runs = build_runs(["Hello world", ".\n", "Goodbye."])
    composed = compose_segments(runs, [AnchoredInterval(6, 11, id="a")])

    assert _texts(composed) == [
        [("Hello ", ()), ("world", ("a",))],
        [(".\n", ())],
        [("Goodbye.", ())],
    ]
    assert composed[0].segments[1] == Segment(6, 11, "world", ("a",))


def test_interval_spanning_runs_tags_every_piece() -> None:
    runs = build_runs(["one two", " ", "three four"])
    composed = compose_segments(runs, [AnchoredInterval(4, 13, id="a")])

    assert _texts(composed) == [
        [("one ", ()), ("two", ("a",))],
        [(" ", ())],
        [("three", ("a",)), (" four", ())],
    ]
    assert [s.text for s in segments_for(composed, "a")] == ["two", "three"]


def test_whitespace_segments_are_never_tagged() -> None:
    """Covered line breaks and spaces render plain."""

    runs = build_runs(["ab", "\n", "cd"])
    composed = compose_segments(runs, [AnchoredInterval(0, 5, id="a")])

    assert composed[1].segments == [Segment(2, 3, "\n")]
    assert composed[1].segments[0].is_plain


def test_overlapping_intervals_tag_multiple_ids() -> None:
    """Overlaps from legacy data still render, marked as multiple."""

    runs = build_runs(["abcdefghij"])
    intervals = [
        AnchoredInterval(0, 6, id="a"),
        AnchoredInterval(4, 10, id="b"),
    ]
    composed = compose_segments(runs, intervals)

    segments = composed[0].segments
    assert [(s.text, s.ids) for s in segments] == [
        ("abcd", ("a",)),
        ("ef", ("a", "b")),
        ("ghij", ("b",)),
    ]
    assert [s.is_multiple for s in segments] == [False, True, False]


def test_composition_is_idempotent() -> None:
    runs = build_runs(["alpha beta", "\n", "gamma delta"])
    intervals = [
        AnchoredInterval(6, 10, id="a"),
        AnchoredInterval(11, 16, id="b"),
    ]

    first = compose_segments(runs, intervals)
    second = compose_segments(runs, intervals)

    assert first == second
    assert [e.to_dict() for e in first] == [e.to_dict() for e in second]


def test_draft_marks_active_segments_only() -> None:
    """The draft highlight never adds an annotation id."""

    runs = build_runs(["Hello world"])
    composed = compose_segments(
        runs, [AnchoredInterval(0, 5, id="a")], draft=Interval(6, 11)
    )

    segments = composed[0].segments
    assert [(s.text, s.ids, s.active) for s in segments] == [
        ("Hello", ("a",), False),
        (" ", (), False),
        ("world", (), True),
    ]
    assert segments_for(composed, "a") == [segments[0]]


def test_empty_runs_have_no_segments() -> None:
    runs = build_runs(["", "x"])
    composed = compose_segments(runs, [AnchoredInterval(0, 1, id="a")])

    assert composed[0].segments == []
    assert composed[1].segments == [Segment(0, 1, "x", ("a",))]
