"""Command line interface for annotating Markdown documents."""

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Callable, Optional

import click
import yaml  # type: ignore
from dotenv import load_dotenv

from mdannot.anchoring import FeedbackConfig, Interval, has_overlap
from mdannot.session import AnnotationSession, Notice
from mdannot.share import ShareError
from mdannot.share import client as share_client
from mdannot.storage import json_dumps, read_session, write_session
from mdannot.xlsx import write_workbook

try:
    __version__ = version("mdannot")
except PackageNotFoundError:
    __version__ = "0.0.1-dev"


@click.group()
@click.option("--debug/--no-debug", default=False)
@click.option("--trace/--no-trace", default=False)
@click.option(
    "--log-file",
    type=click.Path(file_okay=True, dir_okay=False),
    envvar="MDANNOT_LOG_FILE",
)
@click.version_option(__version__, prog_name="mdannot")
def cli(debug: bool, trace: bool, log_file: Optional[str] = None) -> None:
    """Configure logging and load environment variables.

    Args:
        debug: Toggle debug logging.
        trace: Toggle trace logging.
        log_file: Optional path to the log file.
    """
    if trace:
        level = 1
    elif debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        filename=log_file,
        level=level,
        format="[%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if trace:
        logging.debug("Trace mode is on")
    if debug:
        logging.debug("Debug mode is on")
    load_dotenv()


def document_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the options selecting which document a command works on."""

    func = click.option(
        "--share",
        "share_code",
        default=None,
        help="Share code of a remotely stored document.",
    )(func)
    return click.option(
        "--file",
        "-f",
        "file_path",
        type=click.Path(exists=True, dir_okay=False),
        default=None,
        help="Markdown file to annotate.",
    )(func)


def _open_session(
    file_path: Optional[str], share_code: Optional[str]
) -> AnnotationSession:
    """Load the requested document into a new session.

    Without ``--file`` or ``--share`` the document of the previous
    invocation is reused.

    Args:
        file_path: Markdown file given with ``--file``.
        share_code: Share code given with ``--share``.

    Returns:
        Session holding the document and its stored annotations.

    Throws:
        click.ClickException: If the shared document cannot be fetched.
        click.UsageError: If there is no document to work on.
    """

    session = AnnotationSession()

    if share_code:
        try:
            session.open_shared(share_code, share_client.fetch_shared_content)
        except ShareError as exc:
            raise click.ClickException(exc.message) from exc
    elif file_path:
        markdown = Path(file_path).read_text(encoding="utf-8")
        session.load_markdown(markdown)
    else:
        # Fall back to the document used last time.
        previous = read_session()
        if previous is None:
            raise click.UsageError(
                "Pass --file or --share to pick a document."
            )
        session.load_markdown(previous["markdown"], previous.get("shareCode"))

    write_session(
        {"markdown": session.markdown, "shareCode": session.share_code}
    )
    return session


def _free_occurrence(session: AnnotationSession, snippet: str) -> int:
    """Return the first occurrence of ``snippet`` clear of annotations.

    When every occurrence is taken the first one is returned, so the
    caller reports the overlap; ``-1`` means the text is absent.
    """

    taken = session.intervals()
    first = session.text.find(snippet)
    index = first
    while index != -1:
        candidate = Interval(index, index + len(snippet))
        if not has_overlap(candidate, taken):
            return index
        index = session.text.find(snippet, index + 1)
    return first


def _write_or_echo(content: str, output_path: Optional[str]) -> None:
    """Write ``content`` to ``output_path`` or print it."""

    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
    else:
        click.echo(content, nl=False)


@cli.command()
@document_options
@click.option("--start", type=int, default=None, help="First offset.")
@click.option("--end", type=int, default=None, help="Offset past the end.")
@click.option(
    "--text",
    "snippet",
    default=None,
    help="Annotate the first occurrence of this text instead of offsets.",
)
@click.option("--comment", required=True, help="Comment text.")
def add(
    file_path: Optional[str],
    share_code: Optional[str],
    start: Optional[int],
    end: Optional[int],
    snippet: Optional[str],
    comment: str,
) -> None:
    """Annotate a span of the document.

    Args:
        file_path: Markdown file to annotate.
        share_code: Share code of the document to annotate.
        start: Offset of the first selected character.
        end: Offset one past the last selected character.
        snippet: Text to select instead of giving offsets.
        comment: Comment attached to the selection.
    """

    session = _open_session(file_path, share_code)

    # Resolve the span either from the snippet or from explicit offsets.
    if snippet:
        index = _free_occurrence(session, snippet)
        if index == -1:
            raise click.ClickException(f"Text not found: {snippet!r}")
        start, end = index, index + len(snippet)
    elif start is None or end is None:
        raise click.UsageError("Give both --start and --end, or --text.")

    if session.select_range(start, end) is None:
        raise click.ClickException("The selection is empty or out of range.")

    session.begin_draft()
    annotation = session.commit(comment)
    if session.notice == Notice.OVERLAP_REJECTED:
        raise click.ClickException(
            "Annotations can't overlap. Select text outside existing ones."
        )
    if annotation is None:
        raise click.UsageError("The comment must not be empty.")

    session.flush()
    click.echo(annotation.id)


@cli.command("list")
@document_options
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "yaml", "xlsx"]),
    default="json",
    help="Output format.",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(file_okay=True, dir_okay=False),
    default=None,
    help="Write output to FILE instead of the console.",
)
def list_annotations(
    file_path: Optional[str],
    share_code: Optional[str],
    output_format: str = "json",
    output_path: Optional[str] = None,
) -> None:
    """List the annotations of a document.

    Annotations whose text can no longer be found are kept and reported
    with the ``orphaned`` status.

    Args:
        file_path: Markdown file whose annotations to list.
        share_code: Share code of the document.
        output_format: Format of the listing.
        output_path: Optional destination file.
    """

    session = _open_session(file_path, share_code)

    if output_format == "xlsx":
        if output_path is None:
            raise click.UsageError("Output file is required for xlsx format.")
        write_workbook(session.annotations, session.text, Path(output_path))
        return

    lost = {a.id for a in session.orphaned()}
    items = [
        {**a.to_dict(), "status": "orphaned" if a.id in lost else "anchored"}
        for a in session.annotations
    ]

    if output_format == "json":
        content = json_dumps(items) + "\n"
    else:
        content = yaml.safe_dump(items, allow_unicode=True, sort_keys=False)
    _write_or_echo(content, output_path)


@cli.command()
@document_options
@click.argument("annotation_id")
@click.option("--comment", required=True, help="New comment text.")
def edit(
    file_path: Optional[str],
    share_code: Optional[str],
    annotation_id: str,
    comment: str,
) -> None:
    """Replace the comment of an annotation."""

    session = _open_session(file_path, share_code)
    if not session.edit(annotation_id):
        raise click.ClickException(f"No annotation with id {annotation_id}")

    if session.commit(comment) is None:
        raise click.UsageError("The comment must not be empty.")
    session.flush()


@cli.command()
@document_options
@click.argument("annotation_id")
def delete(
    file_path: Optional[str], share_code: Optional[str], annotation_id: str
) -> None:
    """Delete a single annotation."""

    session = _open_session(file_path, share_code)
    if not session.delete(annotation_id):
        raise click.ClickException(f"No annotation with id {annotation_id}")
    session.flush()


@cli.command()
@document_options
@click.confirmation_option(
    prompt="Are you sure you want to clear all annotations?"
)
def clear(file_path: Optional[str], share_code: Optional[str]) -> None:
    """Delete every annotation of a document."""

    session = _open_session(file_path, share_code)
    count = len(session.annotations)
    session.clear()
    click.echo(f"Removed {count} annotations")


@cli.command()
@document_options
@click.option("--header", default="", help="Text placed above the entries.")
@click.option(
    "--line-numbers/--no-line-numbers",
    default=False,
    show_default=True,
    help="Add line references to the entry headings.",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(file_okay=True, dir_okay=False),
    default=None,
    help="Write the feedback to FILE instead of the console.",
)
def export(
    file_path: Optional[str],
    share_code: Optional[str],
    header: str = "",
    line_numbers: bool = False,
    output_path: Optional[str] = None,
) -> None:
    """Export the annotations as Markdown feedback.

    Args:
        file_path: Markdown file whose annotations to export.
        share_code: Share code of the document.
        header: Header text of the digest.
        line_numbers: Whether headings carry line references.
        output_path: Optional destination file.
    """

    session = _open_session(file_path, share_code)
    config = FeedbackConfig(
        header_text=header, include_line_numbers=line_numbers
    )
    _write_or_echo(session.export(config), output_path)


@cli.command()
@document_options
@click.option(
    "--output",
    "output_path",
    type=click.Path(file_okay=True, dir_okay=False),
    default=None,
    help="Write the HTML to FILE instead of the console.",
)
def highlight(
    file_path: Optional[str],
    share_code: Optional[str],
    output_path: Optional[str] = None,
) -> None:
    """Render the document as HTML with its annotations highlighted."""

    session = _open_session(file_path, share_code)
    _write_or_echo(session.highlighted_html(), output_path)


@cli.group()
def share() -> None:
    """Share documents through the share service."""


@share.command("create")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
def share_create(file_path: str) -> None:
    """Upload a Markdown file and print its share code and link."""

    markdown = Path(file_path).read_text(encoding="utf-8")
    try:
        result = share_client.create_share(markdown)
    except ShareError as exc:
        raise click.ClickException(exc.message) from exc

    click.echo(f"{result['code']} {result.get('url', '')}".rstrip())
    if result.get("expiresAt"):
        click.echo(f"Expires at {result['expiresAt']}")


@share.command("get")
@click.argument("code")
@click.option(
    "--output",
    "output_path",
    type=click.Path(file_okay=True, dir_okay=False),
    default=None,
    help="Write the document to FILE instead of the console.",
)
def share_get(code: str, output_path: Optional[str] = None) -> None:
    """Download the document shared under CODE."""

    try:
        result = share_client.fetch_shared_content(code)
    except ShareError as exc:
        raise click.ClickException(exc.message) from exc
    _write_or_echo(result["markdown"], output_path)
