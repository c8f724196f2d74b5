"""FastAPI web server for chat-library."""

import logging

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel

from .config import get_export_filename
from .core import Group, HistoryItem, Message, Thread
from .errors import FormatError, NotFoundError, TransferInProgressError, ValidationError
from .export import thread_to_markdown
from .library import Library
from .query import filter_threads, partition_threads

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"


class ThreadCreate(BaseModel):
    title: str = ""
    group_id: str | None = None


class ThreadUpdate(BaseModel):
    title: str | None = None
    group_id: str | None = None  # an explicit null moves the thread out of its group


class MessageCreate(BaseModel):
    role: str = "user"
    content: str = ""


class GroupBody(BaseModel):
    name: str


class HistoryCreate(BaseModel):
    title: str = ""
    url: str = ""
    type: str = "visit"


def _thread_to_dict(thread: Thread, library: Library) -> dict:
    """Convert a Thread dataclass to a JSON-serializable dict."""
    group = library.store.resolve_group(thread)
    return {
        "id": thread.id,
        "title": thread.title,
        "created": thread.created_at.isoformat(),
        "group_id": group.id if group else None,
        "message_count": len(thread.messages),
    }


def _message_to_dict(msg: Message) -> dict:
    return {"role": msg.role, "content": msg.content}


def _group_to_dict(group: Group) -> dict:
    return {"id": group.id, "name": group.name}


def _history_to_dict(item: HistoryItem) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "url": item.url,
        "timestamp": item.timestamp.isoformat(),
        "type": item.type,
    }


def _library(request: Request) -> Library:
    return request.app.state.library


def _http_error(e: Exception) -> HTTPException:
    """Map a library error onto an HTTP status."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, FormatError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, TransferInProgressError):
        return HTTPException(status_code=409, detail=str(e))
    logger.error("Unexpected library error: %s", e)
    return HTTPException(status_code=500, detail="Internal error")


def create_app(library: Library | None = None) -> FastAPI:
    """Build the app around ``library`` (a fresh one when omitted)."""
    app = FastAPI(title="chat-library", version="0.1.0")
    app.state.library = library or Library()
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    # ── Threads ──────────────────────────────────────────────────────

    @app.get("/api/threads")
    async def list_threads(
        request: Request,
        search: str | None = Query(None, description="Search titles and message content"),
        group: str | None = Query(None, description=f"Group id, or '{UNCATEGORIZED}'"),
    ):
        library = _library(request)
        threads = filter_threads(library.store.threads, search)

        if group == UNCATEGORIZED:
            threads = [t for t in threads if library.store.resolve_group(t) is None]
        elif group:
            threads = [t for t in threads if t.group_id == group and library.store.get_group(group)]

        return {
            "total": len(threads),
            "threads": [_thread_to_dict(t, library) for t in threads],
        }

    @app.post("/api/threads", status_code=201)
    async def create_thread(request: Request, body: ThreadCreate):
        library = _library(request)
        thread = library.store.create_thread(title=body.title, group_id=body.group_id)
        return _thread_to_dict(thread, library)

    @app.delete("/api/threads")
    async def clear_threads(request: Request):
        _library(request).store.clear_threads()
        return {"cleared": True}

    @app.get("/api/threads/{thread_id}")
    async def restore_thread(request: Request, thread_id: str):
        """Return a thread with its full message history."""
        library = _library(request)
        try:
            thread = library.store.restore_thread(thread_id)
        except NotFoundError as e:
            raise _http_error(e)
        return {
            **_thread_to_dict(thread, library),
            "messages": [_message_to_dict(m) for m in thread.messages],
        }

    @app.patch("/api/threads/{thread_id}")
    async def update_thread(request: Request, thread_id: str, body: ThreadUpdate):
        library = _library(request)
        store = library.store
        try:
            thread = store.restore_thread(thread_id)
            if body.title is not None:
                store.rename_thread(thread_id, body.title)
            if "group_id" in body.model_fields_set:
                store.move_thread_to_group(thread_id, body.group_id)
        except (NotFoundError, ValidationError) as e:
            raise _http_error(e)
        return _thread_to_dict(thread, library)

    @app.delete("/api/threads/{thread_id}")
    async def delete_thread(request: Request, thread_id: str):
        _library(request).store.delete_thread(thread_id)
        return {"deleted": thread_id}

    @app.post("/api/threads/{thread_id}/messages", status_code=201)
    async def append_message(request: Request, thread_id: str, body: MessageCreate):
        try:
            msg = _library(request).store.append_message(thread_id, body.role, body.content)
        except NotFoundError as e:
            raise _http_error(e)
        return _message_to_dict(msg)

    @app.get("/api/threads/{thread_id}/markdown")
    async def thread_markdown(request: Request, thread_id: str):
        store = _library(request).store
        try:
            thread = store.restore_thread(thread_id)
        except NotFoundError as e:
            raise _http_error(e)

        safe_title = "".join(c if c.isalnum() or c in "-_ " else "" for c in thread.title)[:50]
        return Response(
            content=thread_to_markdown(thread, store.resolve_group(thread)),
            media_type="text/markdown",
            headers={"Content-Disposition": f'attachment; filename="{safe_title or thread.id}.md"'},
        )

    # ── Library view ─────────────────────────────────────────────────

    @app.get("/api/library")
    async def library_view(
        request: Request,
        search: str | None = Query(None, description="Search titles and message content"),
    ):
        """Return matching threads split into folders and uncategorized."""
        library = _library(request)
        store = library.store
        partition = partition_threads(store.threads, store.groups, search)
        return {
            "groups": [
                {
                    **_group_to_dict(store.get_group(group_id)),
                    "threads": [_thread_to_dict(t, library) for t in threads],
                }
                for group_id, threads in partition.grouped.items()
            ],
            "uncategorized": [_thread_to_dict(t, library) for t in partition.uncategorized],
        }

    # ── Groups ───────────────────────────────────────────────────────

    @app.get("/api/groups")
    async def list_groups(request: Request):
        return [_group_to_dict(g) for g in _library(request).store.groups]

    @app.post("/api/groups", status_code=201)
    async def create_group(request: Request, body: GroupBody):
        try:
            group = _library(request).store.create_group(body.name)
        except ValidationError as e:
            raise _http_error(e)
        return _group_to_dict(group)

    @app.patch("/api/groups/{group_id}")
    async def rename_group(request: Request, group_id: str, body: GroupBody):
        store = _library(request).store
        try:
            store.rename_group(group_id, body.name)
        except (NotFoundError, ValidationError) as e:
            raise _http_error(e)
        return _group_to_dict(store.get_group(group_id))

    @app.delete("/api/groups/{group_id}")
    async def delete_group(request: Request, group_id: str):
        try:
            _library(request).store.delete_group(group_id)
        except NotFoundError as e:
            raise _http_error(e)
        return {"deleted": group_id}

    # ── History ──────────────────────────────────────────────────────

    @app.get("/api/history")
    async def get_history(
        request: Request,
        search: str | None = Query(None, description="Search titles and URLs"),
    ):
        items = _library(request).history.search(search)
        return {"total": len(items), "entries": [_history_to_dict(i) for i in items]}

    @app.post("/api/history", status_code=201)
    async def append_history(request: Request, body: HistoryCreate):
        try:
            item = _library(request).history.record(body.title, body.url, body.type)
        except ValidationError as e:
            raise _http_error(e)
        return _history_to_dict(item)

    @app.delete("/api/history")
    async def clear_history(request: Request):
        _library(request).history.clear()
        return {"cleared": True}

    # ── Export / import ──────────────────────────────────────────────

    @app.get("/api/export")
    async def export_threads(request: Request):
        """Download every thread as the portable JSON document."""
        try:
            content = _library(request).gateway.export_document()
        except TransferInProgressError as e:
            raise _http_error(e)
        return Response(
            content=content,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{get_export_filename()}"'},
        )

    @app.post("/api/import")
    async def import_threads(
        request: Request,
        restore_groups: bool = Query(True, description="Recreate groups named in the document"),
    ):
        """Replace all threads with the ones in the uploaded document."""
        library = _library(request)
        body = await request.body()
        try:
            threads = library.gateway.import_document(body, restore_groups=restore_groups)
        except (FormatError, TransferInProgressError) as e:
            logger.warning("Import rejected: %s", e)
            raise _http_error(e)
        logger.info("Imported %d threads", len(threads))
        return {"imported": len(threads)}
