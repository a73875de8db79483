"""Shared fixtures for the test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from mdannot import storage
from mdannot.session import AnnotationSession


class ManualTimer:
    """Stand-in for ``threading.Timer`` that only fires on demand."""

    created: list["ManualTimer"] = []

    def __init__(
        self,
        interval: float,
        function: Callable[..., Any],
        args: tuple[Any, ...] = (),
    ) -> None:
        self.interval = interval
        self.function = function
        self.args = args
        self.daemon = False
        self.started = False
        self.cancelled = False
        ManualTimer.created.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.function(*self.args)


@pytest.fixture
def data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point the annotation store at a temporary directory."""

    directory = tmp_path / "data"
    monkeypatch.setattr(storage, "DATA_DIR", directory)
    return directory


@pytest.fixture
def manual_timers() -> list[ManualTimer]:
    """Return the timers created during the test, oldest first."""

    ManualTimer.created = []
    return ManualTimer.created


@pytest.fixture
def timer_factory() -> type[ManualTimer]:
    """Return the timer class to hand to a ``DebouncedWriter``."""

    return ManualTimer


@pytest.fixture
def session(
    data_dir: Path, manual_timers: list[ManualTimer]
) -> AnnotationSession:
    """Return a session with deterministic ids, clock and timers."""

    store = storage.AnnotationStore(data_dir)
    writer = storage.DebouncedWriter(store, timer_factory=ManualTimer)
    counter = {"value": 0}

    def next_id() -> str:
        counter["value"] += 1
        return f"a{counter['value']}"

    return AnnotationSession(
        store=store, writer=writer, clock=lambda: 1000, id_factory=next_id
    )
