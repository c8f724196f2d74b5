"""Export threads to the portable JSON document and Markdown, and read it back.

The document is a JSON array with one object per thread::

    [
      {
        "id": "...",
        "title": "...",
        "messages": [{"role": "user", "content": "..."}],
        "createdAt": "2025-01-15T10:00:00+00:00",
        "groupId": "...",        # optional
        "groupName": "..."       # optional, only when the group resolves
      }
    ]

Import is all-or-nothing: the whole document is checked before any thread is
built, and any structural problem raises ``FormatError``.
"""

import json
from datetime import datetime, timezone
from typing import Iterable

from .core import Group, Message, Thread, utcnow
from .errors import FormatError


def _thread_to_dict(thread: Thread, groups: dict[str, Group]) -> dict:
    data = {
        "id": thread.id,
        "title": thread.title,
        "messages": [{"role": m.role, "content": m.content} for m in thread.messages],
        "createdAt": thread.created_at.isoformat(),
    }
    if thread.group_id:
        data["groupId"] = thread.group_id
        group = groups.get(thread.group_id)
        if group:
            data["groupName"] = group.name
    return data


def export_all(threads: Iterable[Thread], groups: Iterable[Group] | None = None) -> str:
    """Serialize every thread as a pretty-printed JSON array."""
    by_id = {g.id: g for g in groups or ()}
    data = [_thread_to_dict(t, by_id) for t in threads]
    return json.dumps(data, indent=2, ensure_ascii=False)


def thread_to_markdown(thread: Thread, group: Group | None = None) -> str:
    """Export a thread and its messages as clean Markdown."""
    lines = [f"# {thread.title}", ""]

    lines.append(f"**Created:** {thread.created_at.isoformat()}")
    if group:
        lines.append(f"**Group:** {group.name}")
    lines.append(f"**Messages:** {len(thread.messages)}")
    lines.extend(["", "---", ""])

    for msg in thread.messages:
        lines.append(f"## {msg.role.capitalize()}")
        lines.append("")
        lines.append(msg.content)
        lines.extend(["", "---", ""])

    return "\n".join(lines)


# ── Import ───────────────────────────────────────────────────────


def _parse_created(value) -> datetime:
    """Accept ISO-8601 strings or epoch milliseconds; fall back to now."""
    if isinstance(value, bool):
        return utcnow()
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return utcnow()
    if isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return utcnow()
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    return utcnow()


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _parse_message(entry) -> Message:
    if isinstance(entry, dict):
        role = _text(entry["role"]) if "role" in entry else "user"
        return Message(role=role, content=_text(entry.get("content")))
    return Message(role="user", content=_text(entry))


def _parse_thread(entry: dict) -> Thread:
    messages = entry["messages"]
    if not isinstance(messages, list):
        messages = [messages]
    group_id = entry.get("groupId")
    return Thread(
        id=str(entry["id"]),
        title=_text(entry.get("title")),
        messages=[_parse_message(m) for m in messages],
        created_at=_parse_created(entry.get("createdAt")),
        group_id=str(group_id) if group_id else None,
    )


def _present(value) -> bool:
    """Truthiness as the original exporter saw it: empty lists and objects count."""
    if isinstance(value, (list, dict)):
        return True
    return bool(value)


def _validate(document: str | bytes) -> list[dict]:
    try:
        data = json.loads(document)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FormatError(f"Failed to parse conversation file: {e}") from e

    if not isinstance(data, list):
        raise FormatError(
            f"Invalid conversation file format: expected a list of threads, got {type(data).__name__}"
        )

    seen = set()
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise FormatError(f"Invalid conversation file format: entry {index} is not an object")
        if not entry.get("id"):
            raise FormatError(f"Invalid conversation file format: entry {index} has no id")
        if not _present(entry.get("messages")):
            raise FormatError(f"Invalid conversation file format: entry {index} has no messages")
        thread_id = str(entry["id"])
        if thread_id in seen:
            raise FormatError(f"Invalid conversation file format: duplicate thread id {thread_id}")
        seen.add(thread_id)

    return data


def load_document(document: str | bytes) -> tuple[list[Thread], list[Group]]:
    """Validate a document and return its threads and the groups it names."""
    data = _validate(document)
    threads = [_parse_thread(entry) for entry in data]

    groups: dict[str, Group] = {}
    for entry in data:
        group_id, name = entry.get("groupId"), entry.get("groupName")
        if not group_id or not isinstance(name, str) or not name.strip():
            continue
        groups.setdefault(str(group_id), Group(id=str(group_id), name=name.strip()))

    return threads, list(groups.values())


def import_all(document: str | bytes) -> list[Thread]:
    """Validate a document and return its threads, in document order."""
    threads, _ = load_document(document)
    return threads


def groups_from_document(document: str | bytes) -> list[Group]:
    """Return the group definitions carried inline by a document."""
    _, groups = load_document(document)
    return groups
