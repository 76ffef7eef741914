"""Pytest configuration and shared fixtures."""

import pytest

from chat_transcript import ChatTranscript, ContextItem, Message, Position, Range

SESSION_ID = "Mon, 15 Jan 2024 10:00:00 GMT"


@pytest.fixture
def transcript():
    """Return an empty transcript with a fixed session ID."""
    return ChatTranscript("anthropic/claude-3-sonnet", session_id=SESSION_ID)


@pytest.fixture
def conversation(transcript):
    """Return a transcript with one full interaction and a pending human turn."""
    transcript.add_human_message(Message(text="hi"))
    transcript.add_bot_message(Message(text="hello"))
    transcript.add_human_message(Message(text="bye"))
    return transcript


@pytest.fixture
def context_items():
    """Return context items, one of which is ignored by the default policy."""
    return [
        ContextItem(uri="file:///repo/src/main.py", range=Range(Position(2, 0), Position(6, 0))),
        ContextItem(uri="file:///repo/.env"),
        ContextItem(uri="file:///repo/README.md"),
    ]
