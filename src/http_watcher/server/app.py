"""FastAPI application serving the watched tree, the reload script and the push channel."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request, WebSocket
from fastapi.responses import FileResponse, HTMLResponse, Response

from http_watcher.config.settings import WatcherConfig
from http_watcher.monitoring.reload_coordinator import ReloadCoordinator
from http_watcher.server.templates import render_index, render_reload_js

logger = logging.getLogger(__name__)

NO_CACHE = {"Cache-Control": "no-cache"}
INDEX_FILE = "index.html"


def _request_host(request: Request) -> str:
    return request.headers.get("host") or request.url.netloc


def create_app(config: WatcherConfig, coordinator: ReloadCoordinator | None = None) -> FastAPI:
    """
    Build the application for one watched root.

    The coordinator is started and stopped with the application lifespan.

    Args:
        config: Watcher configuration
        coordinator: Optional coordinator (created from ``config`` if not provided)

    Returns:
        The FastAPI application
    """
    if coordinator is None:
        coordinator = ReloadCoordinator(config)
    root: Path = config.root_dir

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await coordinator.start()
        try:
            yield
        finally:
            await coordinator.stop()

    app = FastAPI(title="http-watcher", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.coordinator = coordinator

    @app.get("/js")
    async def reload_script(request: Request) -> Response:
        body = render_reload_js(_request_host(request), secure=request.url.scheme == "https")
        return Response(body, media_type="text/javascript", headers=NO_CACHE)

    @app.websocket("/ws")
    async def reload_channel(websocket: WebSocket) -> None:
        await websocket.accept()
        client_id = await coordinator.registry.register(websocket)
        try:
            # Clients send nothing; reading only detects the disconnect
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            await coordinator.registry.unregister(client_id)

    @app.get("/{file_path:path}")
    async def serve_file(file_path: str, request: Request) -> Response:
        target = (root / file_path).resolve()
        if not target.is_relative_to(root):
            raise HTTPException(status_code=404, detail="Not Found")

        if target.is_dir():
            index = target / INDEX_FILE
            if index.is_file():
                return FileResponse(index, headers=NO_CACHE)
            return HTMLResponse(render_index(_request_host(request), request.url.scheme), headers=NO_CACHE)

        if target.is_file():
            return FileResponse(target, headers=NO_CACHE)

        logger.debug("Not found: %s", file_path)
        raise HTTPException(status_code=404, detail="Not Found")

    return app
