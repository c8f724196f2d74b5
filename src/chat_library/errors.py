"""Exceptions raised by the thread library.

Callers (the HTTP layer, the CLI) catch these and turn them into responses or
exit codes. File I/O failures are not wrapped; they propagate as ``OSError``.
"""


class ChatLibraryError(Exception):
    """Base class for all chat-library errors."""


class ValidationError(ChatLibraryError):
    """A caller supplied an empty name, an unknown kind or a duplicate id."""


class NotFoundError(ChatLibraryError):
    """A thread or group id does not exist where one is required."""

    def __init__(self, kind: str, id: str):
        self.kind = kind
        self.id = id
        super().__init__(f"{kind.capitalize()} not found: {id}")


class FormatError(ChatLibraryError):
    """An import document failed structural validation."""


class TransferInProgressError(ChatLibraryError):
    """An export or import was requested while another one is pending."""


__all__ = [
    "ChatLibraryError",
    "ValidationError",
    "NotFoundError",
    "FormatError",
    "TransferInProgressError",
]
