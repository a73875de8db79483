"""Anchor, highlight and export annotations over HTTP."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter  # type: ignore[import-not-found]
from fastapi.responses import (  # type: ignore[import-not-found]
    JSONResponse,
    PlainTextResponse,
)
from pydantic import BaseModel  # type: ignore[import-not-found]

from mdannot.anchoring import (
    compose_segments,
    generate_feedback_text,
    orphaned,
    reconcile,
)
from mdannot.render import apply_segments, render_markdown

from ..utils import annotations_from_payload

router = APIRouter(prefix="/api")


class SegmentsRequest(BaseModel):
    """Request body for composing highlight segments."""

    markdown: str
    annotations: list[dict[str, Any]] = []


class FeedbackRequest(BaseModel):
    """Request body for exporting feedback."""

    markdown: str = ""
    annotations: list[dict[str, Any]] = []
    header: str = ""
    includeLineNumbers: bool = False


@router.post("/segments")
async def segments(payload: SegmentsRequest) -> JSONResponse:
    """Reconcile annotations against a document and compose segments.

    Args:
        payload: Document source and its annotations.

    Returns:
        The flattened text, validated intervals, orphaned annotation ids,
        per-run segments and the highlighted HTML.
    """

    document = render_markdown(payload.markdown)
    annotations = annotations_from_payload(payload.annotations)

    intervals = reconcile(annotations, document.text)
    composed = compose_segments(document.runs, intervals)

    return JSONResponse(
        {
            "text": document.text,
            "intervals": [interval.to_dict() for interval in intervals],
            "orphaned": [a.id for a in orphaned(annotations, document.text)],
            "runs": [entry.to_dict() for entry in composed],
            "html": apply_segments(document, composed),
        }
    )


@router.post("/feedback")
async def feedback(payload: FeedbackRequest) -> PlainTextResponse:
    """Return the feedback digest for the given annotations."""

    text = render_markdown(payload.markdown).text if payload.markdown else ""
    annotations = annotations_from_payload(payload.annotations)

    digest = generate_feedback_text(
        annotations,
        text,
        header=payload.header,
        include_line_numbers=payload.includeLineNumbers,
    )
    return PlainTextResponse(digest, media_type="text/markdown")
