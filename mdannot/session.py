"""Session controller owning a document's annotations."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable
from uuid import uuid4

from mdannot.anchoring import (
    Annotation,
    FeedbackConfig,
    Interval,
    Selection,
    compose_segments,
    export_feedback,
    has_overlap,
    map_selection,
    orphaned,
    reconcile,
    selection_for_interval,
)
from mdannot.anchoring.reconciler import trim_interval
from mdannot.anchoring.types import (
    AnchoredIntervalList,
    AnnotationList,
    RunSegmentsList,
    TextRunList,
)
from mdannot.render import RenderedDocument, apply_segments, render_markdown
from mdannot.share.client import fetch_shared_content
from mdannot.storage import AnnotationStore, DebouncedWriter, storage_key

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Interaction states of an annotation session."""

    IDLE = "idle"
    SELECTING = "selecting"
    DRAFTING = "drafting"
    EDITING = "editing"


class Notice(Enum):
    """Transient, non-blocking notices for the user."""

    OVERLAP_REJECTED = "overlap_rejected"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return uuid4().hex


class AnnotationSession:
    """Annotation list of one document and the selection workflow.

    The session is the only writer of its annotation list and replaces
    the list as a whole on every change. Persistence goes through a
    debounced writer.

    Attributes:
        state: Current interaction state.
        annotations: Annotations in insertion order.
        runs: Text runs of the current rendering.
        text: Flattened text of the current rendering.
        key: Storage key of the annotation list.
        markdown: Markdown source of the document, when rendered here.
        share_code: Code of the shared document being viewed, if any.
        pending: Interval of the current selection or edited annotation.
        selected_text: Text quoted by the pending selection.
        draft: Interval highlighted while a comment is being drafted.
        editing_id: Identifier of the annotation being edited.
        notice: Last transient notice, cleared by the next selection.
    """

    def __init__(
        self,
        store: AnnotationStore | None = None,
        writer: DebouncedWriter | None = None,
        clock: Callable[[], int] = _now_ms,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self.store = store or AnnotationStore()
        self.writer = writer or DebouncedWriter(self.store)
        self._clock = clock
        self._id_factory = id_factory
        self._generation = 0

        self.state = SessionState.IDLE
        self.annotations: AnnotationList = []
        self.markdown: str | None = None
        self.document: RenderedDocument | None = None
        self.runs: TextRunList = []
        self.text = ""
        self.key: str | None = None
        self.share_code: str | None = None
        self._reset_interaction()
        self.notice: Notice | None = None

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def load_markdown(
        self, markdown: str, share_code: str | None = None
    ) -> None:
        """Render ``markdown`` and load the annotations stored for it.

        Args:
            markdown: Document source.
            share_code: Code of the shared document, when viewing one.
        """

        document = render_markdown(markdown)
        self.markdown = markdown
        self.document = document
        self._load(document.runs, storage_key(markdown, share_code))
        self.share_code = share_code.upper() if share_code else None

    def load_runs(self, runs: TextRunList, key: str) -> None:
        """Use already laid out runs, such as those of another renderer."""

        self.markdown = None
        self.document = None
        self.share_code = None
        self._load(runs, key)

    def _load(self, runs: TextRunList, key: str) -> None:
        self.runs = runs
        self.text = "".join(run.text for run in runs)
        self.key = key
        self.annotations = self.store.load(key)
        self._reset_interaction()
        logger.debug(
            "Loaded %d annotations under %s", len(self.annotations), key
        )

    def begin_share_request(self, code: str) -> int:
        """Register a share request and return its token.

        Only the most recently registered request may switch the
        document, so a slow response cannot replace a newer one.
        """

        self._generation += 1
        logger.debug("Share request %d for %s", self._generation, code)
        return self._generation

    def complete_share_request(
        self, token: int, result: dict[str, Any]
    ) -> bool:
        """Load the document fetched for the request ``token``.

        Args:
            token: Value returned by ``begin_share_request``.
            result: Mapping with ``markdown`` and ``shareCode``.

        Returns:
            ``True`` when the document was loaded, ``False`` when a newer
            request superseded this one.
        """

        if token != self._generation:
            logger.debug("Dropping superseded share request %d", token)
            return False

        self.load_markdown(result["markdown"], share_code=result["shareCode"])
        return True

    def open_shared(
        self,
        code: str,
        fetch: Callable[[str], dict[str, Any]] = fetch_shared_content,
    ) -> bool:
        """Fetch a shared document and switch the session to it.

        Callers fetching in the background use ``begin_share_request``
        and ``complete_share_request`` directly. Failures leave the
        session untouched.

        Args:
            code: Share code as typed by the user.
            fetch: Function retrieving the shared document.

        Returns:
            ``True`` when the document was loaded, ``False`` when the
            request was superseded while it was in flight.

        Throws:
            ShareError: When the share service reports a failure.
        """

        token = self.begin_share_request(code)
        return self.complete_share_request(token, fetch(code))

    # ------------------------------------------------------------------
    # Selection workflow
    # ------------------------------------------------------------------

    def _reset_interaction(self) -> None:
        self.state = SessionState.IDLE
        self.pending: Interval | None = None
        self.selected_text = ""
        self.draft: Interval | None = None
        self.editing_id: str | None = None

    def select(self, selection: Selection | None) -> Interval | None:
        """Capture a user selection.

        Args:
            selection: Snapshot of the selection's boundary points.

        Returns:
            The mapped interval trimmed of surrounding whitespace, or
            ``None`` when the selection cannot be mapped or covers only
            whitespace, in which case the session returns to idle.
        """

        if self.state in (SessionState.DRAFTING, SessionState.EDITING):
            return None

        self.notice = None
        interval = map_selection(selection, self.runs)
        if interval is not None:
            interval = trim_interval(interval, self.text)
        if interval is None:
            logger.debug("Selection could not be mapped; ignoring it")
            self._reset_interaction()
            return None

        self.state = SessionState.SELECTING
        self.pending = interval
        self.selected_text = self.text[interval.start : interval.end]
        return interval

    def select_range(self, start: int, end: int) -> Interval | None:
        """Select ``[start, end)`` through a synthetic selection."""

        selection = selection_for_interval(self.runs, Interval(start, end))
        return self.select(selection)

    def clear_selection(self) -> None:
        if self.state == SessionState.SELECTING:
            self._reset_interaction()

    def begin_draft(self) -> bool:
        """Start drafting a comment for the current selection."""

        if self.state != SessionState.SELECTING or self.pending is None:
            return False

        self.state = SessionState.DRAFTING
        self.draft = self.pending
        return True

    def edit(self, annotation_id: str) -> bool:
        """Start editing the comment of an existing annotation.

        Args:
            annotation_id: Identifier of the annotation to edit.

        Returns:
            ``True`` when the annotation exists and editing started.
        """

        if self.state in (SessionState.DRAFTING, SessionState.EDITING):
            return False

        annotation = self.get(annotation_id)
        if annotation is None:
            return False

        # Map the on-screen highlight back through its boundary points.
        pending = None
        for interval in self.intervals():
            if interval.id == annotation_id:
                selection = selection_for_interval(self.runs, interval)
                pending = map_selection(selection, self.runs)
                break

        self.state = SessionState.EDITING
        self.pending = pending
        self.selected_text = annotation.selected_text
        self.draft = None
        self.editing_id = annotation_id
        return True

    def commit(self, comment: str) -> Annotation | None:
        """Commit the drafted or edited comment.

        Args:
            comment: Comment text; surrounding whitespace is removed.

        Returns:
            The created or updated annotation, or ``None`` when nothing
            was committed.
        """

        comment = comment.strip()
        if not comment:
            return None

        if self.state == SessionState.EDITING:
            return self._commit_edit(comment)
        if self.state == SessionState.DRAFTING:
            return self._commit_draft(comment)
        return None

    def _commit_edit(self, comment: str) -> Annotation | None:
        updated = None
        annotations: AnnotationList = []
        for annotation in self.annotations:
            if annotation.id == self.editing_id:
                updated = Annotation(
                    id=annotation.id,
                    selected_text=annotation.selected_text,
                    comment=comment,
                    timestamp=annotation.timestamp,
                    range=annotation.range,
                )
                annotation = updated
            annotations.append(annotation)

        self._reset_interaction()
        if updated is not None:
            self._replace(annotations)
        return updated

    def _commit_draft(self, comment: str) -> Annotation | None:
        interval = self.pending
        if interval is None:
            self._reset_interaction()
            return None

        if has_overlap(interval, self.intervals()):
            logger.info(
                "Rejected annotation at %d-%d: overlaps an existing one",
                interval.start,
                interval.end,
            )
            self.notice = Notice.OVERLAP_REJECTED
            self._reset_interaction()
            return None

        annotation = Annotation(
            id=self._id_factory(),
            selected_text=self.selected_text,
            comment=comment,
            timestamp=self._clock(),
            range=interval,
        )
        self._reset_interaction()
        self._replace([*self.annotations, annotation])
        return annotation

    def cancel(self) -> None:
        """Abandon the current draft or edit."""

        if self.state in (SessionState.DRAFTING, SessionState.EDITING):
            self._reset_interaction()

    # ------------------------------------------------------------------
    # Annotation list
    # ------------------------------------------------------------------

    def get(self, annotation_id: str) -> Annotation | None:
        for annotation in self.annotations:
            if annotation.id == annotation_id:
                return annotation
        return None

    def delete(self, annotation_id: str) -> bool:
        """Remove a single annotation."""

        remaining = [a for a in self.annotations if a.id != annotation_id]
        if len(remaining) == len(self.annotations):
            return False
        if self.editing_id == annotation_id:
            self._reset_interaction()
        self._replace(remaining)
        return True

    def clear(self) -> None:
        """Remove every annotation of the document, stored ones included."""

        self.annotations = []
        self._reset_interaction()
        if self.key is not None:
            self.writer.cancel(self.key)
            self.store.remove(self.key)

    def _replace(self, annotations: AnnotationList) -> None:
        self.annotations = annotations
        if self.key is not None:
            self.writer.schedule(self.key, annotations)

    def flush(self) -> None:
        """Write pending changes to storage now."""

        self.writer.flush()

    # ------------------------------------------------------------------
    # Rendering and export
    # ------------------------------------------------------------------

    def intervals(self) -> AnchoredIntervalList:
        return reconcile(self.annotations, self.text)

    def orphaned(self) -> AnnotationList:
        return orphaned(self.annotations, self.text)

    def segments(self) -> RunSegmentsList:
        """Compose highlight segments, including the draft highlight."""

        return compose_segments(self.runs, self.intervals(), draft=self.draft)

    def highlighted_html(self) -> str:
        """Return the rendered document with highlights applied."""

        if self.document is None:
            raise ValueError("Session has no rendered document")
        return apply_segments(self.document, self.segments())

    def export(self, config: FeedbackConfig | None = None) -> str:
        """Return the feedback digest of the annotations."""

        return export_feedback(
            self.annotations, self.text, config or FeedbackConfig()
        )
