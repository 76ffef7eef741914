"""Data models for chat transcripts.

The in-memory records use snake_case attributes; ``to_dict``/``from_dict``
convert to and from the camelCase wire form used by persisted transcripts.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Literal, TypedDict

Speaker = Literal["human", "assistant"]

HUMAN: Speaker = "human"
ASSISTANT: Speaker = "assistant"


class PositionData(TypedDict):
    line: int
    character: int


class RangeData(TypedDict):
    """Plain, JSON-safe form of a range."""

    start: PositionData
    end: PositionData


@dataclass(frozen=True)
class Position:
    """Zero-based line/character position in a document."""

    line: int
    character: int

    def is_before(self, other: "Position") -> bool:
        return (self.line, self.character) < (other.line, other.character)


@dataclass(frozen=True)
class Range:
    """Live range object.

    Unlike ``RangeData`` this is not a plain mapping, so it has to be
    dehydrated (see ``serializer.to_range_data``) before it goes on the wire.
    """

    start: Position
    end: Position

    @classmethod
    def from_lines(cls, start_line: int, end_line: int) -> "Range":
        return cls(Position(start_line, 0), Position(end_line, 0))

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, position: Position) -> bool:
        return not position.is_before(self.start) and not self.end.is_before(position)


def range_from_data(data: "Range | RangeData | None") -> Range | None:
    """Rehydrate a plain range mapping into a ``Range``."""
    if data is None or isinstance(data, Range):
        return data
    return Range(
        Position(data["start"]["line"], data["start"]["character"]),
        Position(data["end"]["line"], data["end"]["character"]),
    )


def range_to_data(value: "Range | RangeData | None") -> RangeData | None:
    """Dehydrate a range into its plain mapping form."""
    if value is None:
        return None
    if isinstance(value, Range):
        return {
            "start": {"line": value.start.line, "character": value.start.character},
            "end": {"line": value.end.line, "character": value.end.character},
        }
    return {
        "start": {"line": value["start"]["line"], "character": value["start"]["character"]},
        "end": {"line": value["end"]["line"], "character": value["end"]["character"]},
    }


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class ContextItem:
    """A reference to source material attached to a human turn.

    ``range`` may hold either a live ``Range`` or its dehydrated ``RangeData``.
    """

    uri: str
    range: Range | RangeData | None = None
    type: str = "file"  # 'file' or 'symbol'
    source: str | None = None  # 'user', 'embeddings', 'search', ...
    content: str | None = None
    title: str | None = None
    repo_name: str | None = None
    revision: str | None = None

    def copy(self) -> "ContextItem":
        range_ = self.range if isinstance(self.range, Range) else range_to_data(self.range)
        return replace(self, range=range_)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire form (range always dehydrated)."""
        return _drop_none(
            {
                "uri": self.uri,
                "range": range_to_data(self.range),
                "type": self.type,
                "source": self.source,
                "content": self.content,
                "title": self.title,
                "repoName": self.repo_name,
                "revision": self.revision,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContextItem":
        return cls(
            uri=data["uri"],
            range=range_from_data(data.get("range")),
            type=data.get("type", "file"),
            source=data.get("source"),
            content=data.get("content"),
            title=data.get("title"),
            repo_name=data.get("repoName"),
            revision=data.get("revision"),
        )


@dataclass
class ChatError:
    """Normalized payload describing a failed assistant generation."""

    name: str
    message: str
    kind: str | None = None  # e.g. 'RateLimitError'
    retry_after: str | None = None
    limit: int | None = None
    user_message: str | None = None
    retry_message: str | None = None
    feature: str | None = None
    upgrade_is_available: bool | None = None

    def copy(self) -> "ChatError":
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "kind": self.kind,
                "name": self.name,
                "message": self.message,
                "retryAfter": self.retry_after,
                "limit": self.limit,
                "userMessage": self.user_message,
                "retryMessage": self.retry_message,
                "feature": self.feature,
                "upgradeIsAvailable": self.upgrade_is_available,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatError":
        return cls(
            name=data.get("name", "Error"),
            message=data.get("message", ""),
            kind=data.get("kind"),
            retry_after=data.get("retryAfter"),
            limit=data.get("limit"),
            user_message=data.get("userMessage"),
            retry_message=data.get("retryMessage"),
            feature=data.get("feature"),
            upgrade_is_available=data.get("upgradeIsAvailable"),
        )


@dataclass
class Message:
    """Turn content supplied by a caller, before a speaker is assigned."""

    text: str | None = None
    context_files: list[ContextItem] | None = None


@dataclass(frozen=True)
class ChatMessage:
    """A single turn in a chat transcript.

    Turns are immutable; the transcript replaces a turn instead of editing it.
    """

    speaker: Speaker
    text: str | None = None
    display_text: str | None = None
    context_files: list[ContextItem] | None = None  # human turns only
    error: ChatError | None = None  # assistant turns only

    def copy(self) -> "ChatMessage":
        """Return a copy that shares no mutable state with this turn."""
        return replace(
            self,
            context_files=(
                [item.copy() for item in self.context_files]
                if self.context_files is not None
                else None
            ),
            error=self.error.copy() if self.error is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {"speaker": self.speaker}
        if self.text is not None:
            data["text"] = self.text
        if self.display_text is not None:
            data["displayText"] = self.display_text
        if self.context_files is not None:
            data["contextFiles"] = [item.to_dict() for item in self.context_files]
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatMessage":
        """Create from dictionary."""
        context_files = data.get("contextFiles")
        error = data.get("error")
        return cls(
            speaker=data["speaker"],
            text=data.get("text"),
            display_text=data.get("displayText"),
            context_files=(
                [ContextItem.from_dict(item) for item in context_files]
                if context_files is not None
                else None
            ),
            error=ChatError.from_dict(error) if error is not None else None,
        )


@dataclass
class Repo:
    """A repository included in a session's context scope."""

    name: str
    id: str

    def copy(self) -> "Repo":
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "id": self.id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Repo":
        return cls(name=data["name"], id=data["id"])


@dataclass
class SerializedChatInteraction:
    """One human turn paired with its assistant reply (or ``None``)."""

    human_message: ChatMessage
    assistant_message: ChatMessage | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "humanMessage": self.human_message.to_dict(),
            "assistantMessage": (
                self.assistant_message.to_dict() if self.assistant_message else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SerializedChatInteraction":
        assistant = data.get("assistantMessage")
        return cls(
            human_message=ChatMessage.from_dict(data["humanMessage"]),
            assistant_message=ChatMessage.from_dict(assistant) if assistant else None,
        )


@dataclass
class SerializedChatTranscript:
    """Persisted form of a chat session."""

    id: str
    chat_model: str
    last_interaction_timestamp: str
    interactions: list[SerializedChatInteraction] = field(default_factory=list)
    chat_title: str | None = None
    selected_repos: list[Repo] | None = None  # stored under enhancedContext

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "chatModel": self.chat_model,
            "lastInteractionTimestamp": self.last_interaction_timestamp,
            "interactions": [interaction.to_dict() for interaction in self.interactions],
        }
        if self.chat_title is not None:
            data["chatTitle"] = self.chat_title
        if self.selected_repos is not None:
            data["enhancedContext"] = {
                "selectedRepos": [repo.to_dict() for repo in self.selected_repos]
            }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SerializedChatTranscript":
        enhanced_context = data.get("enhancedContext") or {}
        repos = enhanced_context.get("selectedRepos")
        return cls(
            id=data["id"],
            chat_model=data["chatModel"],
            last_interaction_timestamp=data.get("lastInteractionTimestamp", data["id"]),
            interactions=[
                SerializedChatInteraction.from_dict(item)
                for item in data.get("interactions", [])
            ],
            chat_title=data.get("chatTitle"),
            selected_repos=[Repo.from_dict(r) for r in repos] if repos is not None else None,
        )
