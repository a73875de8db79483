"""Render Markdown and expose its visible text runs."""

from __future__ import annotations

import copy
from typing import Any

from attrs import define, field
from bs4 import BeautifulSoup, Comment, NavigableString
from markdown_it import MarkdownIt

from mdannot.anchoring import build_runs, flatten
from mdannot.anchoring.types import RunSegmentsList, TextRunList

# Elements whose strings are never displayed.
_INVISIBLE = {"script", "style", "head", "title", "template"}

_PARSER: MarkdownIt | None = None


def _markdown_parser() -> MarkdownIt:
    """Return the shared Markdown parser, creating it on first use."""

    global _PARSER
    if _PARSER is None:
        _PARSER = (
            MarkdownIt("commonmark", {"html": False})
            .enable("table")
            .enable("strikethrough")
        )
    return _PARSER


def markdown_to_html(markdown: str) -> str:
    """Convert Markdown source into an HTML fragment."""

    return _markdown_parser().render(markdown)


@define(slots=True)
class RenderedDocument:
    """Rendered document along with its text runs.

    Attributes:
        soup: Parsed HTML tree of the document.
        runs: Visible text runs in render order.
        text: Flattened text, the concatenation of ``runs``.
    """

    soup: Any = field(repr=False)
    runs: TextRunList = field(factory=list, repr=False)
    text: str = ""


def _visible_strings(soup: Any) -> list[NavigableString]:  # noqa: ANN401
    """Collect displayed strings of ``soup`` in document order."""

    strings: list[NavigableString] = []
    for node in soup.descendants:
        if not isinstance(node, NavigableString) or isinstance(node, Comment):
            continue
        if node.parent is not None and node.parent.name in _INVISIBLE:
            continue
        strings.append(node)
    return strings


def parse_html(html: str) -> RenderedDocument:
    """Parse an HTML fragment into a rendered document.

    Args:
        html: HTML markup of the rendered document.

    Returns:
        The document tree, its text runs and flattened text.
    """

    soup = BeautifulSoup(html, "html.parser")
    strings = _visible_strings(soup)
    runs = build_runs([str(s) for s in strings], nodes=list(strings))
    return RenderedDocument(soup=soup, runs=runs, text=flatten(runs))


def render_markdown(markdown: str) -> RenderedDocument:
    """Render Markdown source and extract its text runs."""

    return parse_html(markdown_to_html(markdown))


def _mark(soup: Any, text: str, ids: tuple[str, ...], active: bool) -> Any:
    """Create the ``<mark>`` element wrapping a highlighted segment."""

    classes = []
    if ids:
        classes.append("annotation")
    if len(ids) > 1:
        classes.append("annotation-multiple")
    if active:
        classes.append("annotation-active")

    mark = soup.new_tag("mark")
    mark["class"] = " ".join(classes)
    if ids:
        mark["data-annotation-id"] = " ".join(ids)
    if active:
        mark["data-active"] = "true"
    mark.string = text
    return mark


def apply_segments(
    document: RenderedDocument, composed: RunSegmentsList
) -> str:
    """Return the document HTML with composed segments highlighted.

    The tree held by ``document`` is left untouched; highlights are
    inserted into a copy of it.

    Args:
        document: Rendered document whose runs were composed.
        composed: Output of ``compose_segments`` for ``document.runs``.

    Returns:
        HTML markup with ``<mark>`` elements around tagged segments.
    """

    tree = copy.copy(document.soup)
    strings = _visible_strings(tree)

    for entry in composed:
        if all(segment.is_plain for segment in entry.segments):
            continue

        node = strings[entry.run]
        replacements: list[Any] = []
        for segment in entry.segments:
            if segment.is_plain:
                replacements.append(NavigableString(segment.text))
            else:
                replacements.append(
                    _mark(tree, segment.text, segment.ids, segment.active)
                )

        # Swap the original string for its pieces, keeping their order.
        node.replace_with(*replacements)

    return str(tree)


def runs_from_text(text: str) -> TextRunList:
    """Expose plain text as runs split at line breaks.

    Line breaks get runs of their own, as block boundaries do in a
    rendered tree.
    """

    pieces: list[str] = []
    for line in text.split("\n"):
        pieces.extend([line, "\n"])
    pieces.pop()
    return [run for run in build_runs(pieces) if run.text]


__all__ = [
    "RenderedDocument",
    "apply_segments",
    "markdown_to_html",
    "parse_html",
    "render_markdown",
    "runs_from_text",
]
