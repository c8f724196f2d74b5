"""Search and group partitioning over thread and history collections.

Nothing is cached: every call walks the collection it is given and keeps the
caller's order.
"""

from dataclasses import dataclass, field
from typing import Iterable

from .core import Group, HistoryItem, Thread


@dataclass
class ThreadPartition:
    """Matching threads split by their effective group."""

    grouped: dict[str, list[Thread]] = field(default_factory=dict)  # group id -> threads
    uncategorized: list[Thread] = field(default_factory=list)


def _normalize(term: str | None) -> str:
    # Whitespace-only terms match everything; other terms are used as typed.
    if not (term or "").strip():
        return ""
    return term.lower()


def thread_matches(thread: Thread, term: str | None) -> bool:
    """Case-insensitive match on the title or any message content."""
    needle = _normalize(term)
    if not needle:
        return True
    if needle in thread.title.lower():
        return True
    return any(needle in (m.content or "").lower() for m in thread.messages)


def filter_threads(threads: Iterable[Thread], term: str | None) -> list[Thread]:
    return [t for t in threads if thread_matches(t, term)]


def partition_threads(
    threads: Iterable[Thread],
    groups: Iterable[Group],
    term: str | None = "",
) -> ThreadPartition:
    """Group matching threads by folder.

    A group that holds at least one thread always gets an entry, even when
    none of its threads match, so its folder stays visible. Groups without
    any threads are left out. Threads pointing at unknown groups end up in
    ``uncategorized``.
    """
    threads = list(threads)
    order = [g.id for g in groups]
    known = set(order)

    populated = {t.group_id for t in threads if t.group_id in known}
    partition = ThreadPartition(grouped={gid: [] for gid in order if gid in populated})

    for thread in threads:
        if not thread_matches(thread, term):
            continue
        if thread.group_id in known:
            partition.grouped[thread.group_id].append(thread)
        else:
            partition.uncategorized.append(thread)

    return partition


def search_history(items: Iterable[HistoryItem], term: str | None) -> list[HistoryItem]:
    """Case-insensitive match on title or url. Contents are never searched."""
    needle = _normalize(term)
    if not needle:
        return list(items)
    return [i for i in items if needle in i.title.lower() or needle in i.url.lower()]
