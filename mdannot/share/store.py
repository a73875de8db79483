"""Time-limited storage of shared documents."""

from __future__ import annotations

import time
from typing import Callable

from attrs import define

# Shared documents live for seven days.
TTL_SECONDS = 7 * 24 * 60 * 60


@define(slots=True)
class ShareRecord:
    """Stored shared document.

    Attributes:
        markdown: Shared document text.
        created_at: Creation time in seconds since the epoch.
    """

    markdown: str
    created_at: float

    @property
    def expires_at(self) -> float:
        return self.created_at + TTL_SECONDS


class MemoryShareStore:
    """In-memory store that forgets records once they expire."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._records: dict[str, ShareRecord] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, code: str) -> ShareRecord | None:
        """Return the live record for ``code``, dropping expired ones."""

        record = self._records.get(code)
        if record is None:
            return None
        if self._clock() >= record.expires_at:
            del self._records[code]
            return None
        return record

    def exists(self, code: str) -> bool:
        return self.get(code) is not None

    def put(self, code: str, markdown: str) -> ShareRecord:
        """Store ``markdown`` under ``code`` with a fresh expiry."""

        record = ShareRecord(markdown=markdown, created_at=self._clock())
        self._records[code] = record
        return record
