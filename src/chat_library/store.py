"""In-memory owner of the thread and group collections.

Threads reference groups by id only. Nothing here keeps those references in
sync: a thread whose ``group_id`` names a deleted group simply resolves to no
group, and every reader treats it as uncategorized.
"""

from typing import Iterable, Optional

from .core import DEFAULT_THREAD_TITLE, Group, Message, Thread, new_id, utcnow
from .errors import NotFoundError, ValidationError

TITLE_FROM_MESSAGE_LENGTH = 60


def _clean_name(name: str | None, what: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(f"{what} must not be empty")
    return cleaned


class EntityStore:
    """Threads (newest first) and groups (display order) for one library.

    Every mutator validates its arguments before changing anything, so a
    failed call leaves the store exactly as it was.
    """

    def __init__(self, threads: Iterable[Thread] = (), groups: Iterable[Group] = ()):
        self._threads: dict[str, Thread] = {}
        self._groups: dict[str, Group] = {}
        self.replace_threads(threads)
        self.merge_groups(groups)

    # ── Reads ────────────────────────────────────────────────────────

    @property
    def threads(self) -> list[Thread]:
        return list(self._threads.values())

    @property
    def groups(self) -> list[Group]:
        return list(self._groups.values())

    def get_thread(self, thread_id: str) -> Optional[Thread]:
        return self._threads.get(thread_id)

    def get_group(self, group_id: str) -> Optional[Group]:
        return self._groups.get(group_id)

    def resolve_group(self, thread: Thread) -> Optional[Group]:
        """Return the thread's group, or None if it has none or it is gone."""
        if thread.group_id is None:
            return None
        return self._groups.get(thread.group_id)

    def restore_thread(self, thread_id: str) -> Thread:
        """Return a thread with its full message history."""
        return self._require_thread(thread_id)

    # ── Groups ───────────────────────────────────────────────────────

    def create_group(self, name: str) -> Group:
        group = Group(id=new_id(), name=_clean_name(name, "Group name"))
        self._groups[group.id] = group
        return group

    def rename_group(self, group_id: str, name: str) -> None:
        group = self._require_group(group_id)
        group.name = _clean_name(name, "Group name")

    def delete_group(self, group_id: str) -> None:
        # Member threads keep their group_id and fall back to uncategorized.
        self._require_group(group_id)
        del self._groups[group_id]

    def merge_groups(self, groups: Iterable[Group]) -> list[Group]:
        """Add groups whose ids are not known yet; return the ones added."""
        added = []
        for group in groups:
            if group.id in self._groups:
                continue
            _clean_name(group.name, "Group name")
            added.append(group)
        for group in added:
            self._groups[group.id] = group
        return added

    def clear_groups(self) -> None:
        self._groups.clear()

    # ── Threads ──────────────────────────────────────────────────────

    def add_thread(self, thread: Thread) -> Thread:
        if thread.id in self._threads:
            raise ValidationError(f"Duplicate thread id: {thread.id}")
        self._threads = {thread.id: thread, **self._threads}
        return thread

    def create_thread(
        self,
        title: str = "",
        messages: Iterable[Message] | None = None,
        group_id: str | None = None,
    ) -> Thread:
        thread = Thread(
            id=new_id(),
            title=title.strip() or DEFAULT_THREAD_TITLE,
            messages=list(messages or []),
            created_at=utcnow(),
            group_id=group_id,
        )
        return self.add_thread(thread)

    def rename_thread(self, thread_id: str, title: str) -> None:
        thread = self._require_thread(thread_id)
        thread.title = _clean_name(title, "Thread title")

    def append_message(self, thread_id: str, role: str, content: str) -> Message:
        thread = self._require_thread(thread_id)
        message = Message(role=role, content=content)
        first_user_message = role == "user" and not any(m.role == "user" for m in thread.messages)
        thread.messages.append(message)
        if first_user_message and thread.title == DEFAULT_THREAD_TITLE and content.strip():
            thread.title = content.strip()[:TITLE_FROM_MESSAGE_LENGTH]
        return message

    def move_thread_to_group(self, thread_id: str, group_id: str | None = None) -> None:
        # group_id is not checked against the group set.
        thread = self._require_thread(thread_id)
        thread.group_id = group_id or None

    def delete_thread(self, thread_id: str) -> None:
        self._threads.pop(thread_id, None)

    def clear_threads(self) -> None:
        self._threads.clear()

    def replace_threads(self, threads: Iterable[Thread]) -> None:
        """Swap in a whole new thread collection, keeping its order."""
        replacement: dict[str, Thread] = {}
        for thread in threads:
            if thread.id in replacement:
                raise ValidationError(f"Duplicate thread id: {thread.id}")
            replacement[thread.id] = thread
        self._threads = replacement

    # ── Private helpers ──────────────────────────────────────────────

    def _require_thread(self, thread_id: str) -> Thread:
        thread = self._threads.get(thread_id)
        if thread is None:
            raise NotFoundError("thread", thread_id)
        return thread

    def _require_group(self, group_id: str) -> Group:
        group = self._groups.get(group_id)
        if group is None:
            raise NotFoundError("group", group_id)
        return group
