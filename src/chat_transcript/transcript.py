"""In-memory model of a single chat session.

A transcript holds the ordered turns of one session and keeps them strictly
alternating: human, assistant, human, assistant, ... An odd number of turns
means the last human turn is still waiting for a reply.

The model is not thread-safe. One orchestrator drives each instance and
serializes its calls.
"""

import logging
from dataclasses import replace
from email.utils import formatdate

from .display_text import NEW_CHAT_TITLE, get_chat_panel_title, resolve_display_text
from .errors import InvalidStateError, error_to_chat_error
from .ignore import IgnorePolicy
from .models import (
    ASSISTANT,
    HUMAN,
    ChatError,
    ChatMessage,
    ContextItem,
    Message,
    Repo,
    SerializedChatTranscript,
    Speaker,
    range_from_data,
)
from .serializer import to_serialized_transcript

logger = logging.getLogger(__name__)


def _copy_repos(repos: list[Repo] | None) -> list[Repo] | None:
    return [repo.copy() for repo in repos] if repos is not None else None


def _new_session_id() -> str:
    """Current UTC time as an HTTP date, e.g. 'Tue, 14 May 2024 10:00:00 GMT'."""
    return formatdate(usegmt=True)


class ChatTranscript:
    """Ordered turns of one chat session plus its title and repo scope."""

    def __init__(
        self,
        model_id: str,
        messages: list[ChatMessage] | None = None,
        session_id: str | None = None,
        custom_chat_title: str | None = None,
        selected_repos: list[Repo] | None = None,
        ignore_policy: IgnorePolicy | None = None,
    ):
        self.model_id = model_id
        self._messages: list[ChatMessage] = [message.copy() for message in messages or []]
        self._session_id = session_id or _new_session_id()
        self._custom_chat_title = custom_chat_title
        self._selected_repos = _copy_repos(selected_repos)
        self._ignore_policy = ignore_policy or IgnorePolicy()

    @property
    def session_id(self) -> str:
        return self._session_id

    def is_empty(self) -> bool:
        return not self._messages

    def set_last_message_context(self, context_items: list[ContextItem]) -> None:
        """Attach context to the last (human) turn, dropping ignored files."""
        if not self._messages:
            raise InvalidStateError("no last message")
        last_message = self._messages[-1]
        if last_message.speaker != HUMAN:
            raise InvalidStateError("cannot set context on assistant turn")

        self._messages[-1] = replace(last_message, context_files=self._filter_context(context_items))

    def _filter_context(self, context_items: list[ContextItem]) -> list[ContextItem]:
        """Copy the context items that are not ignored, keeping their order."""
        kept = [item.copy() for item in context_items if not self._ignore_policy.is_ignored(item.uri)]
        if len(kept) != len(context_items):
            logger.debug(f"Dropped {len(context_items) - len(kept)} ignored context item(s)")
        return kept

    def add_human_message(self, message: Message) -> None:
        if self._messages and self._messages[-1].speaker == HUMAN:
            logger.debug("Rejected human turn following a human turn")
            raise InvalidStateError("cannot add human after human")
        self._messages.append(
            ChatMessage(
                speaker=HUMAN,
                text=message.text,
                context_files=(
                    self._filter_context(message.context_files)
                    if message.context_files is not None
                    else None
                ),
            )
        )
        logger.debug(f"Added human turn at index {len(self._messages) - 1}")

    def add_bot_message(self, message: Message, display_text: str | None = None) -> None:
        """Append an assistant turn.

        An empty assistant turn at the end (a placeholder carrying an error)
        is replaced, and its error moves onto the new turn. Context files
        belong to human turns, so any on ``message`` are not kept.
        """
        error: ChatError | None = None
        replace_last = False
        if self._messages and self._messages[-1].speaker == ASSISTANT:
            last_message = self._messages[-1]
            if last_message.text:
                logger.debug("Rejected assistant turn following an assistant turn")
                raise InvalidStateError("cannot add bot after bot")
            error = last_message.error
            replace_last = True

        new_message = ChatMessage(
            speaker=ASSISTANT,
            text=message.text,
            display_text=display_text,
            error=error,
        )
        if replace_last:
            self._messages[-1] = new_message
            logger.debug("Replaced placeholder assistant turn")
        else:
            self._messages.append(new_message)
            logger.debug(f"Added assistant turn at index {len(self._messages) - 1}")

    def add_error_as_bot_message(self, error: BaseException | ChatError | str) -> None:
        """Record a generation failure on the assistant turn.

        Reuses the current assistant turn, keeping any partial text, or adds
        an empty one after a human turn. Never raises.
        """
        chat_error = error_to_chat_error(error)
        if not self._messages:
            # An assistant turn cannot open a transcript
            logger.warning(f"Dropped {chat_error.name} recorded on an empty transcript: {chat_error.message}")
            return
        if self._messages[-1].speaker == ASSISTANT:
            self._messages[-1] = replace(self._messages[-1], speaker=ASSISTANT, error=chat_error)
        else:
            self._messages.append(ChatMessage(speaker=ASSISTANT, error=chat_error))
        logger.debug(f"Recorded {chat_error.name} on assistant turn {len(self._messages) - 1}")

    def get_last_human_message(self) -> ChatMessage | None:
        for message in reversed(self._messages):
            if message.speaker == HUMAN:
                return message.copy()
        return None

    def get_last_speaker_message_index(self, speaker: Speaker) -> int | None:
        for index in range(len(self._messages) - 1, -1, -1):
            if self._messages[index].speaker == speaker:
                return index
        return None

    def remove_messages_from_index(self, index: int, expected_speaker: Speaker) -> None:
        """Remove the turn at ``index`` and every turn after it.

        ``expected_speaker`` must match the speaker at ``index``, which guards
        against truncating at a stale index.
        """
        if self.is_empty():
            raise InvalidStateError("ChatTranscript.remove_messages_from_index: no message to remove")

        try:
            speaker_at_index = self._messages[index].speaker
        except IndexError:
            speaker_at_index = None
        if speaker_at_index != expected_speaker:
            raise InvalidStateError(
                f"ChatTranscript.remove_messages_from_index: speaker mismatch, "
                f"expected {expected_speaker}, got {speaker_at_index}"
            )

        removed = len(self._messages[index:])
        del self._messages[index:]
        logger.debug(f"Removed {removed} turn(s) from index {index}")

    def get_messages(self) -> tuple[ChatMessage, ...]:
        """Return copies of the turns; changing them does not affect the transcript."""
        return tuple(message.copy() for message in self._messages)

    def get_chat_title(self) -> str:
        if self._custom_chat_title:
            return self._custom_chat_title
        last_human_message = self.get_last_human_message()
        text = resolve_display_text(last_human_message) if last_human_message else None
        if text:
            return get_chat_panel_title(text)
        return NEW_CHAT_TITLE

    def get_custom_chat_title(self) -> str | None:
        return self._custom_chat_title

    def set_custom_chat_title(self, title: str | None) -> None:
        self._custom_chat_title = title

    def get_selected_repos(self) -> list[Repo] | None:
        return _copy_repos(self._selected_repos)

    def set_selected_repos(self, repos: list[Repo] | None) -> None:
        self._selected_repos = _copy_repos(repos)

    def to_serialized_transcript(self) -> SerializedChatTranscript:
        """Serialize to the persisted transcript format."""
        return to_serialized_transcript(self)

    @classmethod
    def from_serialized(
        cls,
        record: SerializedChatTranscript,
        ignore_policy: IgnorePolicy | None = None,
    ) -> "ChatTranscript":
        """Restore a live transcript from a persisted record.

        Raises:
            InvalidStateError: If an interaction does not pair a human turn
                with an assistant turn (or ``None``).
        """
        messages: list[ChatMessage] = []
        for index, interaction in enumerate(record.interactions):
            human = interaction.human_message
            assistant = interaction.assistant_message
            if human.speaker != HUMAN:
                raise InvalidStateError(
                    f"interaction {index}: expected human message, got {human.speaker}"
                )
            if assistant is not None and assistant.speaker != ASSISTANT:
                raise InvalidStateError(
                    f"interaction {index}: expected assistant message, got {assistant.speaker}"
                )
            if assistant is None and index != len(record.interactions) - 1:
                raise InvalidStateError(
                    f"interaction {index}: only the last interaction may lack an assistant message"
                )
            messages.append(_rehydrate(human))
            if assistant is not None:
                messages.append(_rehydrate(assistant))

        logger.debug(f"Restored transcript {record.id} with {len(messages)} turn(s)")
        return cls(
            model_id=record.chat_model,
            messages=messages,
            session_id=record.id,
            custom_chat_title=record.chat_title,
            selected_repos=record.selected_repos,
            ignore_policy=ignore_policy,
        )


def _rehydrate(message: ChatMessage) -> ChatMessage:
    if message.context_files is None:
        return replace(message)
    return replace(
        message,
        context_files=[
            replace(item, range=range_from_data(item.range)) for item in message.context_files
        ],
    )
