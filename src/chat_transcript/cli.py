"""Command-line interface for inspecting persisted chat transcripts."""

import logging
from pathlib import Path

import click

from . import __version__
from .display_text import get_chat_panel_title, resolve_display_text
from .errors import InvalidStateError, TranscriptFormatError
from .markdown_exporter import export_transcript_to_file, generate_transcript_filename
from .models import SerializedChatTranscript
from .serializer import loads_transcript
from .transcript import ChatTranscript


def _load(path: str) -> SerializedChatTranscript:
    try:
        return loads_transcript(Path(path).read_bytes())
    except TranscriptFormatError as e:
        raise click.ClickException(f"{path}: {e}") from e


def _restore(path: str, record: SerializedChatTranscript) -> ChatTranscript:
    try:
        return ChatTranscript.from_serialized(record)
    except InvalidStateError as e:
        raise click.ClickException(f"{path}: {e}") from e


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def main(verbose: bool):
    """Chat Transcript - Inspect and export persisted chat transcripts."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("transcript_file", type=click.Path(exists=True, dir_okay=False))
def show(transcript_file: str):
    """Print the title, model and turns of a transcript."""
    record = _load(transcript_file)
    transcript = _restore(transcript_file, record)

    click.echo(f"Title: {transcript.get_chat_title()}")
    click.echo(f"Model: {transcript.model_id}")
    click.echo(f"Session: {transcript.session_id}")
    if record.selected_repos:
        click.echo(f"Repositories: {', '.join(repo.name for repo in record.selected_repos)}")
    click.echo("")

    for message in transcript.get_messages():
        label = "You" if message.speaker == "human" else "Assistant"
        click.echo(f"[{label}] {resolve_display_text(message) or ''}")
        if message.error is not None:
            click.echo(f"  ! {message.error.name}: {message.error.message}")


@main.command()
@click.argument("transcript_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--no-truncate", is_flag=True, help="Print the full derived title.")
def title(transcript_file: str, no_truncate: bool):
    """Print the chat title of a transcript."""
    transcript = _restore(transcript_file, _load(transcript_file))
    if no_truncate and not transcript.get_custom_chat_title():
        last_human_message = transcript.get_last_human_message()
        text = resolve_display_text(last_human_message) if last_human_message else None
        click.echo(get_chat_panel_title(text, truncate_title=False))
    else:
        click.echo(transcript.get_chat_title())


@main.command()
@click.argument("transcript_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    default=None,
    help="Output markdown file (default: derived from the title).",
    type=click.Path(dir_okay=False),
)
def export(transcript_file: str, output: str | None):
    """Export a transcript to markdown."""
    record = _load(transcript_file)
    if output is None:
        output = str(Path(transcript_file).parent / generate_transcript_filename(record))
    export_transcript_to_file(record, output)
    click.echo(f"Exported {len(record.interactions)} interactions to {output}")


if __name__ == "__main__":
    main()
