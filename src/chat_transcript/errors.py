"""Exceptions raised by the transcript model and helpers for generation errors."""

from dataclasses import replace

from .models import ChatError


class InvalidStateError(Exception):
    """An operation was called on a transcript in a state it does not accept."""


class TranscriptFormatError(ValueError):
    """A persisted transcript could not be parsed."""


class RateLimitError(Exception):
    """The generation backend refused a request because a usage limit was hit."""

    def __init__(
        self,
        feature: str,
        user_message: str,
        retry_after: str | None = None,
        limit: int | None = None,
        upgrade_is_available: bool = False,
    ):
        self.feature = feature
        self.user_message = user_message
        self.retry_after = retry_after
        self.limit = limit
        self.upgrade_is_available = upgrade_is_available
        self.retry_message = f"Usage resets {retry_after}." if retry_after else None
        super().__init__(f"You've used all of your {feature} for today.")


def error_to_chat_error(error: BaseException | ChatError | str) -> ChatError:
    """Normalize a generation failure into a ``ChatError``.

    Never raises: anything that is not an exception or an existing
    ``ChatError`` is recorded by its string form.
    """
    if isinstance(error, ChatError):
        return replace(error)
    if isinstance(error, RateLimitError):
        return ChatError(
            kind="RateLimitError",
            name=type(error).__name__,
            message=str(error),
            retry_after=error.retry_after,
            limit=error.limit,
            user_message=error.user_message,
            retry_message=error.retry_message,
            feature=error.feature,
            upgrade_is_available=error.upgrade_is_available,
        )
    if isinstance(error, BaseException):
        return ChatError(name=type(error).__name__, message=str(error))
    return ChatError(name="Error", message=str(error))
