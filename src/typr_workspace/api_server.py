"""Workspace REST API server (FastAPI)."""

import asyncio
import json
import logging
import queue
import threading
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from .exceptions import ErrorKind, WorkspaceError
from .facade import WorkspaceFacade

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.INVALID_PATH: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ALREADY_EXISTS: 409,
    ErrorKind.NOT_A_DIRECTORY: 400,
    ErrorKind.IO_FAILURE: 500,
    ErrorKind.LOCK_FAILURE: 503,
    ErrorKind.USER_CANCELLED: 400,
}

# Seconds between two polls of a subscriber queue by the SSE stream
_EVENT_POLL_SECONDS = 0.25


def _missing(field: str) -> JSONResponse:
    return JSONResponse({"error": f"Missing {field}", "kind": ErrorKind.INVALID_PATH.value}, status_code=400)


def create_app(facade: WorkspaceFacade) -> FastAPI:
    app = FastAPI(title="Typr Workspace API", docs_url=None, redoc_url=None)
    app.state.facade = facade

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(WorkspaceError)
    async def workspace_error_handler(request: Request, exc: WorkspaceError):
        status = _STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(exc.to_dict(), status_code=status)

    @app.get("/api/health")
    def health():
        return {"status": "ok", "watches": len(facade.registry)}

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @app.post("/api/files/open")
    def files_open():
        return facade.open_file().to_dict()

    @app.get("/api/files/read")
    def files_read(path: str = ""):
        if not path:
            return _missing("path")
        return facade.read_file(path).to_dict()

    @app.post("/api/files/save")
    async def files_save(request: Request):
        payload = await request.json()
        path = str(payload.get("path") or "")
        content = payload.get("content")
        if not path:
            return _missing("path")
        if content is None:
            return _missing("content")
        facade.save_file(path, str(content))
        return {"success": True}

    @app.post("/api/files/save-as")
    async def files_save_as(request: Request):
        payload = await request.json()
        return facade.save_file_as(str(payload.get("content") or "")).to_dict()

    @app.post("/api/files/create")
    async def files_create(request: Request):
        payload = await request.json()
        path = str(payload.get("path") or "")
        if not path:
            return _missing("path")
        return facade.create_file(path, payload.get("content")).to_dict()

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    @app.post("/api/folders/open")
    def folders_open():
        return facade.open_folder().to_dict()

    @app.get("/api/folders/read")
    def folders_read(path: str = ""):
        if not path:
            return _missing("path")
        return [entry.to_dict() for entry in facade.read_directory(path)]

    @app.post("/api/folders/create")
    async def folders_create(request: Request):
        payload = await request.json()
        path = str(payload.get("path") or "")
        if not path:
            return _missing("path")
        return facade.create_folder(path).to_dict()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    @app.post("/api/items/rename")
    async def items_rename(request: Request):
        payload = await request.json()
        old_path = str(payload.get("old_path") or "")
        if not old_path:
            return _missing("old_path")
        new_path = facade.rename(old_path, str(payload.get("new_name") or ""))
        return {"path": new_path}

    @app.delete("/api/items")
    def items_delete(path: str = ""):
        if not path:
            return _missing("path")
        facade.delete(path)
        return {"success": True}

    @app.post("/api/items/move")
    async def items_move(request: Request):
        payload = await request.json()
        source_path = str(payload.get("source_path") or "")
        target_dir = str(payload.get("target_dir") or "")
        if not source_path:
            return _missing("source_path")
        if not target_dir:
            return _missing("target_dir")
        return {"path": facade.move(source_path, target_dir)}

    # ------------------------------------------------------------------
    # Watches
    # ------------------------------------------------------------------

    @app.get("/api/watch")
    def watch_list():
        return {"paths": facade.watched_paths()}

    @app.post("/api/watch/start")
    async def watch_start(request: Request):
        payload = await request.json()
        facade.start_watch(str(payload.get("path") or ""))
        return {"success": True}

    @app.post("/api/watch/stop")
    async def watch_stop(request: Request):
        payload = await request.json()
        facade.stop_watch(str(payload.get("path") or ""))
        return {"success": True}

    @app.post("/api/watch/stop-all")
    def watch_stop_all():
        facade.stop_all_watches()
        return {"success": True}

    @app.get("/api/events")
    async def events(request: Request, limit: int = 0):
        hub = facade.hub
        subscription = hub.subscribe()

        async def stream():
            sent = 0
            try:
                while not await request.is_disconnected():
                    try:
                        event = subscription.get_nowait()
                    except queue.Empty:
                        await asyncio.sleep(_EVENT_POLL_SECONDS)
                        continue
                    data = json.dumps({"path": event.path, "kind": event.kind.value})
                    yield f"data: {data}\n\n"
                    sent += 1
                    if limit and sent >= limit:
                        break
            finally:
                hub.unsubscribe(subscription)

        return StreamingResponse(stream(), media_type="text/event-stream", headers={
            "Cache-Control": "no-cache",
        })

    return app


# ---------------------------------------------------------------------------
# Service wrapper
# ---------------------------------------------------------------------------

class WorkspaceAPIService:
    """Wrapper to run the FastAPI server via uvicorn in a background thread."""

    def __init__(self, host: str, port: int, facade: WorkspaceFacade):
        self.host = host
        self.port = port
        self.facade = facade
        self._thread: Optional[threading.Thread] = None
        self._server: Any = None

    def start(self) -> None:
        import uvicorn

        app = create_app(self.facade)

        config = uvicorn.Config(
            app,
            host=self.host,
            port=self.port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)

        self._thread = threading.Thread(target=self._server.run, name="WorkspaceAPI", daemon=True)
        self._thread.start()
        logger.info(f"Workspace API listening on http://{self.host}:{self.port}")

    def stop(self) -> None:
        self.facade.close()
        if self._server:
            self._server.should_exit = True
            self._server = None
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
