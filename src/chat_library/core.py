"""Core data models for chat-library."""

import base64
import mimetypes
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

DEFAULT_THREAD_TITLE = "New Thread"

HISTORY_TYPES = ("search", "visit")


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Message:
    """A single message within a thread."""

    role: str  # "user" | "assistant" | "system" | ...
    content: str = ""


@dataclass
class Thread:
    """A single conversation and its message history."""

    id: str
    title: str
    messages: list[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    group_id: Optional[str] = None  # weak reference, may name a deleted group


@dataclass
class Group:
    """A user-named folder that threads can be filed under."""

    id: str
    name: str


@dataclass
class HistoryItem:
    """A past browsing or search action."""

    id: str
    title: str
    url: str
    timestamp: datetime
    type: str  # "search" | "visit"


@dataclass
class Attachment:
    """A file picked for sending, encoded for transport.

    ``data`` holds the raw bytes as base64 text and ``preview`` is a
    ``data:`` URL that can be shown until the message is sent.
    """

    name: str
    mime_type: str
    data: str
    preview: str = ""

    @classmethod
    def from_bytes(cls, name: str, raw: bytes, mime_type: str | None = None) -> "Attachment":
        if not mime_type:
            mime_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        data = base64.b64encode(raw).decode("ascii")
        return cls(
            name=name,
            mime_type=mime_type,
            data=data,
            preview=f"data:{mime_type};base64,{data}",
        )

    @classmethod
    def from_path(cls, path: Path, mime_type: str | None = None) -> "Attachment":
        path = Path(path)
        return cls.from_bytes(path.name, path.read_bytes(), mime_type)

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    @property
    def kind(self) -> str:
        """Coarse media kind: image, video, audio or file."""
        major = self.mime_type.split("/", 1)[0]
        if major in ("image", "video", "audio"):
            return major
        return "file"

    def to_dict(self) -> dict:
        return {"name": self.name, "mimeType": self.mime_type, "data": self.data}
