"""Tests for the insertion-time overlap guard."""

from __future__ import annotations

import pytest

from mdannot.anchoring import AnchoredInterval, Interval, has_overlap


@pytest.mark.parametrize(
    ("proposed", "expected"),
    [
        (Interval(0, 5), False),
        (Interval(0, 6), True),
        (Interval(7, 9), True),
        (Interval(3, 12), True),
        (Interval(10, 12), False),
    ],
)
def test_half_open_intersection(proposed: Interval, expected: bool) -> None:
    """Only spans sharing at least one character overlap."""

    existing = [AnchoredInterval(5, 10, id="a")]
    assert has_overlap(proposed, existing) is expected


def test_overlap_is_symmetric() -> None:
    """A rejected pair is rejected in either insertion order."""

    first = Interval(2, 8)
    second = Interval(6, 12)

    assert has_overlap(first, [second])
    assert has_overlap(second, [first])


def test_no_existing_intervals_accepts() -> None:
    assert not has_overlap(Interval(0, 1), [])
