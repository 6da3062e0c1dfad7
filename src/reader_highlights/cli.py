from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import typer
import yaml

from .codec import highlights_to_payload
from .config import ReaderConfig, load_config
from .content import ContentError, load_book
from .models import SelectionAnchor
from .rendering import render_document_text
from .session import ReaderSession
from .storage import PersistenceError, build_backend_from_config
from .store import HighlightStore, LoadResult, SaveResult

app = typer.Typer(help="Reader highlights CLI.", no_args_is_help=True)


def _content_option() -> Any:
    return typer.Option(
        ...,
        "--content",
        exists=True,
        readable=True,
        dir_okay=False,
        help="Section file (.yaml/.yml/.json) or .epub book.",
    )


def _config_option() -> Any:
    return typer.Option(None, "--config", "-c")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING...)."
    ),
) -> None:
    """Select, store and render highlights over document text."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def sections(
    content: Path = _content_option(),
    config: Path | None = _config_option(),
) -> None:
    """List the sections of a book with their highlight counts."""
    _, session = _build_session(content, config)
    for document in session.book.documents:
        result = _open_section(session, document.doc_id)
        _report_load_warning(result)
        count = sum(len(ranges) for ranges in result.highlights.values())
        typer.echo(f"{document.doc_id}\t{document.title}\t{count} highlight(s)")


@app.command()
def show(
    content: Path = _content_option(),
    section: str | None = typer.Option(None, "--section", "-s"),
    config: Path | None = _config_option(),
    block_numbers: bool | None = typer.Option(
        None,
        "--block-numbers/--no-block-numbers",
        help="Override display.show_block_numbers.",
    ),
) -> None:
    """Print a section with its highlights styled."""
    cfg, session = _build_session(content, config)
    if block_numbers is not None:
        cfg.display.show_block_numbers = block_numbers
    _report_load_warning(_open_section(session, section))
    typer.echo(render_document_text(session.current, session.store, cfg.display))


@app.command()
def highlight(
    content: Path = _content_option(),
    section: str = typer.Option(..., "--section", "-s"),
    start_block: int = typer.Option(..., "--start-block", min=0),
    end_block: int = typer.Option(..., "--end-block", min=0),
    start_offset: int | None = typer.Option(
        None,
        "--start-offset",
        help="Offset in the start block; omit to start at the block beginning.",
    ),
    end_offset: int | None = typer.Option(
        None,
        "--end-offset",
        help="Offset in the end block; omit to run to the block end.",
    ),
    config: Path | None = _config_option(),
) -> None:
    """Highlight the text between two (block, offset) endpoints."""
    _, session = _build_session(content, config)
    _report_load_warning(_open_section(session, section))
    block_count = len(session.current.blocks)
    for name, value in (("--start-block", start_block), ("--end-block", end_block)):
        if value >= block_count:
            raise typer.BadParameter(
                f"{name} {value} out of range; section has {block_count} block(s)."
            )
    if start_offset is None:
        start_offset = 0
    if end_offset is None:
        end_offset = len(session.current.blocks[end_block].text)
    result = session.apply_selection(
        SelectionAnchor(start_block, start_offset),
        SelectionAnchor(end_block, end_offset),
    )
    _exit_on_failed_save(result)
    typer.echo(json.dumps(highlights_to_payload(result.highlights), indent=2))


@app.command()
def export(
    content: Path = _content_option(),
    section: str | None = typer.Option(
        None, "--section", "-s", help="Export one section; defaults to all."
    ),
    config: Path | None = _config_option(),
) -> None:
    """Emit stored highlights as JSON keyed by section id."""
    _, session = _build_session(content, config)
    doc_ids = (
        [section] if section else [doc.doc_id for doc in session.book.documents]
    )
    exported: Dict[str, Any] = {}
    for doc_id in doc_ids:
        result = _open_section(session, doc_id)
        _report_load_warning(result)
        exported[doc_id] = highlights_to_payload(result.highlights)
    typer.echo(json.dumps({"sections": exported}, indent=2))


@app.command()
def clear(
    content: Path = _content_option(),
    section: str = typer.Option(..., "--section", "-s"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation."),
    config: Path | None = _config_option(),
) -> None:
    """Remove every highlight of a section."""
    _, session = _build_session(content, config)
    _open_section(session, section)
    if not yes:
        typer.confirm(
            f"Are you sure you want to clear all highlights for '{section}'?",
            abort=True,
        )
    result = session.clear()
    _exit_on_failed_save(result)
    typer.echo(f"Cleared highlights for {section}")


@app.command("print-config")
def print_config(config: Path | None = _config_option()) -> None:
    """Print the effective configuration as YAML."""
    cfg = load_config(config)
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False))


def main() -> None:
    app()


def _build_session(
    content: Path, config: Path | None
) -> Tuple[ReaderConfig, ReaderSession]:
    """Load config + content and wire a session over the configured backend."""
    cfg = load_config(config)
    try:
        book = load_book(content)
    except ContentError as exc:
        raise typer.BadParameter(str(exc)) from exc
    store = HighlightStore(build_backend_from_config(cfg), key_prefix=cfg.key_prefix)
    return cfg, ReaderSession(book, store)


def _open_section(session: ReaderSession, section: str | None) -> LoadResult:
    try:
        return session.open(section)
    except KeyError as exc:
        raise typer.BadParameter(f"Unknown section '{section}'.") from exc
    except PersistenceError as exc:
        typer.echo(f"Error: unable to read stored highlights ({exc}).", err=True)
        raise typer.Exit(code=1) from exc


def _report_load_warning(result: LoadResult) -> None:
    if result.warning:
        typer.echo(
            f"Warning: stored highlights for {result.document_id} were unreadable "
            f"and have been reset ({result.warning}).",
            err=True,
        )


def _exit_on_failed_save(result: SaveResult) -> None:
    if not result.saved:
        typer.echo(
            f"Error: highlights for {result.document_id} were not saved and may "
            f"not survive a reload ({result.error}).",
            err=True,
        )
        raise typer.Exit(code=1)


if __name__ == "__main__":
    main()
