"""Append-only log of browsing and search events."""

from collections.abc import Mapping
from datetime import datetime, timezone

from .core import HISTORY_TYPES, HistoryItem, new_id, utcnow
from .errors import ValidationError
from .query import search_history


def _coerce_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return utcnow()
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return utcnow()


class HistoryLog:
    """History entries, newest first.

    Entries are only ever added or cleared all at once; confirming a clear
    with the user is up to the caller.
    """

    def __init__(self):
        self._entries: list[HistoryItem] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[HistoryItem]:
        return list(self._entries)

    def append_entry(self, entry: HistoryItem | Mapping) -> HistoryItem:
        if isinstance(entry, Mapping):
            entry = HistoryItem(
                id=str(entry.get("id") or new_id()),
                title=str(entry.get("title") or ""),
                url=str(entry.get("url") or ""),
                timestamp=_coerce_timestamp(entry.get("timestamp")),
                type=entry.get("type", ""),
            )
        if entry.type not in HISTORY_TYPES:
            raise ValidationError(
                f"Unknown history type {entry.type!r}, expected one of {', '.join(HISTORY_TYPES)}"
            )
        self._entries.insert(0, entry)
        return entry

    def record(self, title: str, url: str, type: str = "visit") -> HistoryItem:
        return self.append_entry(
            HistoryItem(id=new_id(), title=title, url=url, timestamp=utcnow(), type=type)
        )

    def search(self, term: str | None) -> list[HistoryItem]:
        return search_history(self._entries, term)

    def clear(self) -> None:
        self._entries.clear()
