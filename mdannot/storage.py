"""Local persistence of annotations and the last session."""

from __future__ import annotations

try:
    import orjson  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover - optional dependency
    orjson = None  # type: ignore[assignment]

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable

from mdannot.anchoring import Annotation
from mdannot.anchoring.types import AnnotationList

logger = logging.getLogger(__name__)

JSONDict = dict[str, Any]

# Directory holding annotation files and the session record.
DATA_DIR = Path(os.environ.get("MDANNOT_DATA_DIR", Path.home() / ".mdannot"))

SESSION_STORAGE_KEY = "markdown_annotator_session_v1"

# Delay used to coalesce bursts of edits into a single write.
SAVE_DELAY_SECONDS = 0.5


def json_dumps(data: object) -> str:
    """Serialize ``data`` using orjson when it is installed."""

    if orjson is not None:
        return orjson.dumps(data).decode()
    return json.dumps(data, ensure_ascii=False)


def json_loads(data: str | bytes) -> object:
    """Deserialize JSON using orjson when it is installed."""

    if orjson is not None:
        return orjson.loads(data)
    if isinstance(data, (bytes, bytearray)):
        return json.loads(data.decode())
    return json.loads(data)


def content_hash(text: str) -> str:
    """Return the 32-bit rolling hash of ``text`` as a decimal string.

    The hash runs over UTF-16 code units, ``h = h * 31 + unit`` wrapped
    to a signed 32-bit integer, so keys match the browser application.

    Args:
        text: Document text to hash.

    Returns:
        Signed decimal representation of the hash.
    """

    encoded = text.encode("utf-16-le")
    value = 0
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF

    # Reinterpret as a signed 32-bit integer.
    if value >= 0x80000000:
        value -= 0x100000000
    return str(value)


def storage_key(text: str, share_code: str | None = None) -> str:
    """Return the key the annotations of a document are stored under.

    Shared documents are keyed by their share code so every visit reaches
    the same annotations; local documents are keyed by a hash of their
    text, so editing the text starts a new annotation set.

    Args:
        text: Document text.
        share_code: Code of the shared document, if any.

    Returns:
        Storage key for the annotation list.
    """

    if share_code:
        return f"annotations_share_{share_code.upper()}"
    return f"annotations_{content_hash(text)}"


class AnnotationStore:
    """Directory-backed store holding one JSON file per storage key."""

    def __init__(self, data_dir: Path | None = None) -> None:
        self.data_dir = data_dir or DATA_DIR

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def load(self, key: str) -> AnnotationList:
        """Return the annotations stored under ``key``.

        Missing files yield an empty list; unreadable ones are logged and
        yield an empty list as well.
        """

        path = self._path(key)
        if not path.exists():
            return []

        try:
            data = json_loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error(
                "Failed to parse stored annotations %s: %s", path, exc
            )
            return []

        if not isinstance(data, list):
            logger.error("Stored annotations in %s are not a list", path)
            return []

        return [
            Annotation.from_dict(item)
            for item in data
            if isinstance(item, dict)
        ]

    def save(self, key: str, annotations: AnnotationList) -> None:
        """Write ``annotations`` under ``key``, replacing previous data."""

        self.data_dir.mkdir(parents=True, exist_ok=True)
        payload = json_dumps([a.to_dict() for a in annotations])
        self._path(key).write_text(payload, encoding="utf-8")

    def remove(self, key: str) -> None:
        """Delete the annotations stored under ``key``."""

        self._path(key).unlink(missing_ok=True)


class DebouncedWriter:
    """Coalesce rapid saves into one delayed write per key.

    Writes are fire-and-forget: failures are logged and never reach the
    caller.
    """

    def __init__(
        self,
        store: AnnotationStore,
        delay: float = SAVE_DELAY_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self.store = store
        self.delay = delay
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pending: dict[str, AnnotationList] = {}
        self._timers: dict[str, threading.Timer] = {}

    def schedule(self, key: str, annotations: AnnotationList) -> None:
        """Queue ``annotations`` to be written under ``key``."""

        with self._lock:
            self._pending[key] = list(annotations)
            previous = self._timers.pop(key, None)
            if previous is not None:
                previous.cancel()

            timer = self._timer_factory(self.delay, self._write, args=(key,))
            timer.daemon = True
            self._timers[key] = timer

        # Started outside the lock since the callback acquires it.
        timer.start()

    def cancel(self, key: str) -> None:
        """Drop any pending write for ``key``."""

        with self._lock:
            self._pending.pop(key, None)
            timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def flush(self) -> None:
        """Write every pending annotation list immediately."""

        with self._lock:
            keys = list(self._pending)
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        for key in keys:
            self._write(key)

    def _write(self, key: str) -> None:
        with self._lock:
            annotations = self._pending.pop(key, None)
            self._timers.pop(key, None)
        if annotations is None:
            return

        try:
            self.store.save(key, annotations)
        except OSError as exc:
            logger.warning("Failed to save annotations under %s: %s", key, exc)


def read_session(data_dir: Path | None = None) -> JSONDict | None:
    """Return the last session record, or ``None`` when unusable.

    Args:
        data_dir: Directory holding the record; defaults to ``DATA_DIR``.

    Returns:
        Mapping with at least a ``markdown`` string.
    """

    path = (data_dir or DATA_DIR) / f"{SESSION_STORAGE_KEY}.json"
    try:
        if not path.exists():
            return None
        parsed = json_loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Failed to read session storage: %s", exc)
        return None

    if not isinstance(parsed, dict):
        return None
    if not isinstance(parsed.get("markdown"), str) or not parsed["markdown"]:
        return None
    return parsed


def write_session(payload: JSONDict, data_dir: Path | None = None) -> None:
    """Persist the session record, logging failures."""

    directory = data_dir or DATA_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{SESSION_STORAGE_KEY}.json"
        path.write_text(json_dumps(payload), encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to write session storage: %s", exc)
