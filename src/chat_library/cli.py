"""CLI entry point for chat-library."""

import logging
from pathlib import Path

import click
import uvicorn

from .config import get_log_level
from .errors import FormatError
from .export import load_document, thread_to_markdown

logger = logging.getLogger(__name__)


@click.group()
def main():
    """Organize, search and export conversation threads."""
    logging.basicConfig(level=get_log_level(), format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the web interface."""
    click.echo(f"Starting chat-library on http://{host}:{port}")
    uvicorn.run("chat_library.server:create_app", factory=True, host=host, port=port, reload=False)


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(path: Path):
    """Check that PATH is an importable conversation file."""
    try:
        threads, groups = load_document(path.read_bytes())
    except FormatError as e:
        logger.debug("Validation failed for %s", path)
        raise click.ClickException(str(e))

    messages = sum(len(t.messages) for t in threads)
    click.echo(f"{path.name}: {len(threads)} threads, {messages} messages, {len(groups)} groups")


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--thread", "thread_id", default=None, help="Only render the thread with this id.")
def markdown(path: Path, thread_id: str | None):
    """Render the threads in PATH as Markdown."""
    try:
        threads, groups = load_document(path.read_bytes())
    except FormatError as e:
        raise click.ClickException(str(e))

    if thread_id:
        threads = [t for t in threads if t.id == thread_id]
        if not threads:
            raise click.ClickException(f"Thread not found: {thread_id}")

    by_id = {g.id: g for g in groups}
    rendered = [thread_to_markdown(t, by_id.get(t.group_id)) for t in threads]
    click.echo("\n\n".join(rendered))
