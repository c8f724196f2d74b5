"""Move the whole thread collection in and out of the store.

Exports snapshot the store before any file I/O starts; imports validate the
full document before the store's threads are replaced. Only one transfer may
be pending at a time.
"""

import asyncio
import logging
from contextlib import contextmanager
from pathlib import Path

from .config import get_export_dir, get_export_filename
from .core import Thread
from .errors import FormatError, TransferInProgressError
from .export import export_all, load_document
from .store import EntityStore

logger = logging.getLogger(__name__)


class SerializationGateway:
    """Export/import front end for one ``EntityStore``."""

    def __init__(self, store: EntityStore):
        self.store = store
        self._pending: str | None = None

    @property
    def busy(self) -> bool:
        return self._pending is not None

    @contextmanager
    def _transfer(self, action: str):
        if self._pending is not None:
            raise TransferInProgressError(
                f"Cannot start {action} while an {self._pending} is in progress"
            )
        self._pending = action
        try:
            yield
        finally:
            self._pending = None

    # ── Export ───────────────────────────────────────────────────────

    def export_document(self) -> str:
        with self._transfer("export"):
            return export_all(self.store.threads, self.store.groups)

    async def export_to(self, path: Path | str | None = None) -> Path:
        """Write the document to ``path`` (a file or a directory)."""
        if path:
            target = Path(path)
            if target.is_dir():
                target = target / get_export_filename()
        else:
            target = get_export_dir() / get_export_filename()

        with self._transfer("export"):
            document = export_all(self.store.threads, self.store.groups)
            if not path:
                await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(target.write_text, document, encoding="utf-8")

        logger.info("Exported %d threads to %s", len(self.store.threads), target)
        return target

    # ── Import ───────────────────────────────────────────────────────

    def import_document(self, document: str | bytes, *, restore_groups: bool = True) -> list[Thread]:
        """Replace the store's threads with the document's threads."""
        with self._transfer("import"):
            return self._apply(document, restore_groups)

    async def import_from(self, path: Path | str, *, restore_groups: bool = True) -> list[Thread]:
        path = Path(path)
        with self._transfer("import"):
            raw = await asyncio.to_thread(path.read_bytes)
            try:
                threads = self._apply(raw, restore_groups)
            except FormatError as e:
                logger.warning("Rejected conversation file %s: %s", path, e)
                raise

        logger.info("Imported %d threads from %s", len(threads), path)
        return threads

    def _apply(self, document: str | bytes, restore_groups: bool) -> list[Thread]:
        threads, groups = load_document(document)
        self.store.replace_threads(threads)
        if restore_groups:
            added = self.store.merge_groups(groups)
            if added:
                logger.info("Restored %d groups from import", len(added))
        return threads
