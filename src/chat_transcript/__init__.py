"""Chat Transcript - In-memory model and persisted format of a chat session.

This module provides:
- ChatTranscript: the turn-alternating state machine for one chat session
- Serializer: conversion to the persisted transcript record and JSON bytes
- Display text: file-link rendering, bot reformatting and chat titles
- Markdown Exporter: convert persisted transcripts to markdown
"""

__version__ = "0.1.0"

from .display_text import (
    NEW_CHAT_TITLE,
    create_display_text_with_file_links,
    get_chat_panel_title,
    reformat_bot_message_for_chat,
    resolve_display_text,
)
from .errors import InvalidStateError, RateLimitError, TranscriptFormatError, error_to_chat_error
from .ignore import IgnorePolicy, is_ignored_file
from .models import (
    ChatError,
    ChatMessage,
    ContextItem,
    Message,
    Position,
    Range,
    RangeData,
    Repo,
    SerializedChatInteraction,
    SerializedChatTranscript,
    Speaker,
)
from .serializer import (
    dumps_transcript,
    loads_transcript,
    prepare_message_for_transport,
    to_range_data,
    to_serialized_transcript,
)
from .transcript import ChatTranscript

__all__ = [
    # Version
    "__version__",
    # Transcript
    "ChatTranscript",
    # Models
    "ChatError",
    "ChatMessage",
    "ContextItem",
    "Message",
    "Position",
    "Range",
    "RangeData",
    "Repo",
    "SerializedChatInteraction",
    "SerializedChatTranscript",
    "Speaker",
    # Errors
    "InvalidStateError",
    "RateLimitError",
    "TranscriptFormatError",
    "error_to_chat_error",
    # Ignore rules
    "IgnorePolicy",
    "is_ignored_file",
    # Display text
    "NEW_CHAT_TITLE",
    "create_display_text_with_file_links",
    "get_chat_panel_title",
    "reformat_bot_message_for_chat",
    "resolve_display_text",
    # Serializer
    "dumps_transcript",
    "loads_transcript",
    "prepare_message_for_transport",
    "to_range_data",
    "to_serialized_transcript",
]
