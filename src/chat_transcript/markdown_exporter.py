"""Markdown exporter for serialized chat transcripts.

Exports transcripts to markdown format with:
- Header block with metadata (session ID, model, interaction count)
- Turns separated by horizontal rules
- Turn numbers and speakers as bold headers
- Attached context files as a bullet list
- Generation errors in italics
"""

from email.utils import parsedate_to_datetime
from pathlib import Path

from .display_text import display_line_range, get_chat_panel_title, resolve_display_text
from .ignore import uri_path
from .models import ChatMessage, ContextItem, SerializedChatTranscript, range_from_data


def _format_timestamp(value: str | None) -> str:
    """Format an HTTP-date session timestamp as 'YYYY-MM-DD HH:MM:SS'."""
    if not value:
        return "Unknown"
    try:
        return parsedate_to_datetime(value).strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, TypeError):
        # If parsing fails, return original value as string
        return str(value)


def _format_context_item(item: ContextItem) -> str:
    path = uri_path(item.uri)
    range_ = range_from_data(item.range)
    if range_ is not None:
        path = f"{path}:{display_line_range(range_)}"
    return f"- `{path}`"


def _format_context_files(message: ChatMessage) -> str:
    """Format attached context files as a bullet list."""
    if not message.context_files:
        return ""
    lines = ["**Context:**"]
    lines.extend(_format_context_item(item) for item in message.context_files)
    return "\n".join(lines)


def _format_error(message: ChatMessage) -> str:
    if message.error is None:
        return ""
    error = message.error
    text = error.user_message or error.message
    return f"*Error ({error.name}): {text}*"


def message_to_markdown(message: ChatMessage, message_number: int = 0) -> str:
    """Convert a single turn to markdown format.

    Args:
        message: The ChatMessage to convert.
        message_number: The 1-based turn number (0 means don't include header).

    Returns:
        Markdown string representation of the turn.
    """
    lines = []

    if message_number > 0:
        lines.append(f"## Message {message_number}: **{message.speaker.upper()}**")
        lines.append("")

    content = resolve_display_text(message)
    if content and content.strip():
        lines.append(content)
        lines.append("")

    context = _format_context_files(message)
    if context:
        lines.append(context)
        lines.append("")

    error = _format_error(message)
    if error:
        lines.append(error)
        lines.append("")

    lines.append("---")
    lines.append("")

    return "\n".join(lines)


def transcript_to_markdown(record: SerializedChatTranscript) -> str:
    """Convert a serialized transcript to markdown format."""
    lines = []

    lines.append("# Chat Transcript")
    lines.append("")

    if record.chat_title:
        lines.append(f"**Title:** {record.chat_title}")
    else:
        lines.append(f"**Title:** {_derived_title(record)}")
    lines.append("")

    lines.append("## Metadata")
    lines.append("")
    lines.append(f"- **Session ID:** `{record.id}`")
    lines.append(f"- **Model:** `{record.chat_model}`")
    lines.append(f"- **Last interaction:** {_format_timestamp(record.last_interaction_timestamp)}")
    lines.append(f"- **Interactions:** {len(record.interactions)}")
    if record.selected_repos:
        repos = ", ".join(repo.name for repo in record.selected_repos)
        lines.append(f"- **Repositories:** {repos}")
    lines.append("")
    lines.append("---")
    lines.append("")

    number = 0
    for interaction in record.interactions:
        for message in (interaction.human_message, interaction.assistant_message):
            if message is None:
                continue
            number += 1
            lines.append(message_to_markdown(message, message_number=number))

    return "\n".join(lines)


def _derived_title(record: SerializedChatTranscript) -> str:
    if not record.interactions:
        return get_chat_panel_title(None)
    return get_chat_panel_title(resolve_display_text(record.interactions[-1].human_message))


def export_transcript_to_file(record: SerializedChatTranscript, output_path: Path | str) -> None:
    """Export a single transcript to a markdown file."""
    Path(output_path).write_text(transcript_to_markdown(record), encoding="utf-8")


def _sanitize_filename(name: str, max_length: int = 50) -> str:
    """Sanitize a string to be safe for use as a filename.

    Replaces any characters that are not alphanumeric, hyphen, underscore,
    or period with underscores. Also limits the length.
    """
    safe_name = "".join(c if c.isalnum() or c in ("-", "_", ".") else "_" for c in name)
    return safe_name[:max_length]


def generate_transcript_filename(record: SerializedChatTranscript) -> str:
    """Generate a filename for a transcript's markdown export."""
    name = record.chat_title or _derived_title(record)

    date_str = ""
    try:
        date_str = parsedate_to_datetime(record.last_interaction_timestamp).strftime("%Y%m%d")
    except (ValueError, TypeError):
        pass

    safe_name = _sanitize_filename(name)
    if date_str:
        return f"{date_str}_{safe_name}.md"
    return f"{safe_name}.md"
