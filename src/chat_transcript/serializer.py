"""Conversion of chat transcripts to their persisted and transport forms.

Everything here is pure: transcripts are read, never mutated, and the JSON
codec works on bytes so callers decide where the data is stored.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

import orjson

from .display_text import resolve_display_text
from .errors import InvalidStateError, TranscriptFormatError
from .models import (
    ASSISTANT,
    HUMAN,
    ChatMessage,
    RangeData,
    Range,
    SerializedChatInteraction,
    SerializedChatTranscript,
    range_to_data,
)

if TYPE_CHECKING:
    from .transcript import ChatTranscript

logger = logging.getLogger(__name__)


def to_range_data(value: Range | RangeData | None) -> RangeData | None:
    """Convert a live ``Range`` into plain ``{start, end}`` data."""
    return range_to_data(value)


def _with_display_text(message: ChatMessage) -> ChatMessage:
    return replace(message.copy(), display_text=resolve_display_text(message))


def message_to_serialized_interaction(
    human_message: ChatMessage,
    assistant_message: ChatMessage | None = None,
) -> SerializedChatInteraction:
    """Pair a human turn with its reply, materializing display text on both."""
    if human_message.speaker != HUMAN:
        raise InvalidStateError(
            f"expected human message to have speaker == 'human', got {human_message.speaker}"
        )
    if assistant_message is not None and assistant_message.speaker != ASSISTANT:
        raise InvalidStateError(
            f"expected bot message to have speaker == 'assistant', got {assistant_message.speaker}"
        )
    return SerializedChatInteraction(
        human_message=_with_display_text(human_message),
        assistant_message=_with_display_text(assistant_message) if assistant_message else None,
    )


def to_serialized_transcript(transcript: "ChatTranscript") -> SerializedChatTranscript:
    """Snapshot a transcript into its persisted record.

    Turns are walked two at a time; a trailing human turn yields an
    interaction whose ``assistant_message`` is ``None``.

    Raises:
        InvalidStateError: If a turn at an even offset is not a human turn.
    """
    messages = transcript.get_messages()
    interactions = []
    for i in range(0, len(messages), 2):
        assistant_message = messages[i + 1] if i + 1 < len(messages) else None
        interactions.append(message_to_serialized_interaction(messages[i], assistant_message))

    logger.debug(f"Serialized transcript {transcript.session_id} with {len(interactions)} interaction(s)")
    return SerializedChatTranscript(
        id=transcript.session_id,
        chat_model=transcript.model_id,
        chat_title=transcript.get_custom_chat_title(),
        last_interaction_timestamp=transcript.session_id,
        interactions=interactions,
        selected_repos=transcript.get_selected_repos(),
    )


def prepare_message_for_transport(message: ChatMessage) -> ChatMessage:
    """Copy a turn with display text resolved and context ranges dehydrated."""
    copied = message.copy()
    context_files = copied.context_files
    if context_files is not None:
        context_files = [replace(item, range=to_range_data(item.range)) for item in context_files]
    return replace(
        copied,
        display_text=resolve_display_text(message),
        context_files=context_files,
    )


def dumps_transcript(transcript: "ChatTranscript | SerializedChatTranscript") -> bytes:
    """Encode a transcript (or an already serialized record) as indented JSON."""
    if not isinstance(transcript, SerializedChatTranscript):
        transcript = to_serialized_transcript(transcript)
    return orjson.dumps(transcript.to_dict(), option=orjson.OPT_INDENT_2)


def loads_transcript(data: bytes | str) -> SerializedChatTranscript:
    """Decode a persisted transcript.

    Raises:
        TranscriptFormatError: If the data is not valid JSON or lacks
            required fields.
    """
    try:
        return SerializedChatTranscript.from_dict(orjson.loads(data))
    except orjson.JSONDecodeError as e:
        raise TranscriptFormatError(f"Invalid transcript JSON: {e}") from e
    except (KeyError, TypeError, AttributeError) as e:
        raise TranscriptFormatError(f"Malformed transcript record: {e!r}") from e
