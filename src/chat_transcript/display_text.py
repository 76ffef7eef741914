"""Display text for chat turns and chat titles.

Human turns get their ``@file`` mentions turned into markdown links of the
form ``[_@path_](target)``; assistant turns get their code fences balanced.
Titles strip those links back to plain ``@path`` text.
"""

import re

from .models import ASSISTANT, HUMAN, ChatMessage, ContextItem, Range, range_from_data
from .ignore import uri_path

NEW_CHAT_TITLE = "New Chat"
MAX_TITLE_LENGTH = 25

# '@path' or '@path:12' or '@path:12-20', not already inside a '[_..._]' link
_MENTION_REGEX = re.compile(r"(?<!\[_)@([^\s:@\[\]()]*[^\s:@\[\]().,;!?])(?::(\d+)(?:-(\d+))?)?")
# Markdown links produced for mentions: '[_@FILENAME_](target)'
_MARKDOWN_LINK_REGEX = re.compile(r"\[_(.+?)_]\((.+?)\)")
_CODE_FENCE = "```"


def display_line_range(range_: Range) -> str:
    """Format a range as 1-based inclusive lines, e.g. ``"3-7"``."""
    start = range_.start.line + 1
    end = range_.end.line
    # An end at character 0 stops before that line
    if range_.end.character != 0 or end < range_.start.line + 1:
        end += 1
    return f"{start}-{end}" if end != start else str(start)


def _link_target(item: ContextItem) -> str:
    range_ = range_from_data(item.range)
    if range_ is None:
        return item.uri
    start, _, end = display_line_range(range_).partition("-")
    return f"{item.uri}#L{start}-L{end}" if end else f"{item.uri}#L{start}"


def _find_mentioned_item(mention: str, items: list[ContextItem]) -> ContextItem | None:
    for item in items:
        path = uri_path(item.uri)
        if path == mention or path.endswith("/" + mention.lstrip("/")):
            return item
    return None


def create_display_text_with_file_links(text: str, context_files: list[ContextItem]) -> str:
    """Replace ``@file`` mentions that match attached context files with links."""
    if not context_files:
        return text

    def replace_mention(match: re.Match) -> str:
        item = _find_mentioned_item(match.group(1), context_files)
        if item is None:
            return match.group(0)
        return f"[_{match.group(0)}_]({_link_target(item)})"

    return _MENTION_REGEX.sub(replace_mention, text)


def reformat_bot_message_for_chat(text: str, prefix: str = "") -> str:
    """Trim trailing whitespace and close an unterminated code block."""
    reformatted = prefix + text.rstrip()
    if reformatted.count(_CODE_FENCE) % 2 == 1:
        reformatted += "\n" + _CODE_FENCE
    return reformatted


def get_chat_panel_title(
    last_display_text: str | None,
    truncate_title: bool = True,
    max_length: int = MAX_TITLE_LENGTH,
) -> str:
    """Derive a short chat title from the display text of a human turn."""
    if not last_display_text:
        return NEW_CHAT_TITLE
    title = _MARKDOWN_LINK_REGEX.sub(r"\1", last_display_text).strip()
    if not truncate_title:
        return title
    if len(title) > max_length:
        return f"{title[:max_length].strip()}..."
    return title


def resolve_display_text(message: ChatMessage) -> str | None:
    """Return the display text for a turn, deriving it from ``text`` if needed."""
    if message.display_text:
        return message.display_text
    if message.speaker == HUMAN and message.text:
        return create_display_text_with_file_links(message.text, message.context_files or [])
    if message.speaker == ASSISTANT and message.text:
        return reformat_bot_message_for_chat(message.text)
    return message.text
