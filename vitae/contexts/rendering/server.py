"""
Local static server for the résumé page.

Serves the site directory on localhost so the browser loads the page (and its
scripts, styles and images) over HTTP. "/" resolves to index.html. The app is a
FastAPI StaticFiles mount run by uvicorn on a background thread.
"""

import os
import socket
import threading
import time
from pathlib import Path
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles

from vitae.contexts.rendering.exceptions import ServerStartError
from vitae.contexts.rendering.logger import _log_debug, _log_info

load_dotenv()

DEFAULT_PORT = int(os.getenv("VITAE_PORT", "3000"))
DEFAULT_HOST = "127.0.0.1"
STARTUP_TIMEOUT_S = 10.0


def create_site_app(root: Path) -> FastAPI:
    """FastAPI app serving one directory, with index.html at "/"."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        _log_debug(f"HTTP {request.method} {request.url.path} -> {response.status_code}")
        return response

    app.mount("/", StaticFiles(directory=str(root), html=True), name="site")
    return app


class _ThreadedServer(uvicorn.Server):
    # Signals belong to the main thread; stop() sets should_exit instead
    def install_signal_handlers(self) -> None:
        pass


class StaticSiteServer:
    """
    Background HTTP server for one directory.

    Example:
        >>> with StaticSiteServer(Path("site"), port=3000) as server:
        ...     print(server.url)
        http://127.0.0.1:3000/
    """

    def __init__(self, root: Path, port: int = DEFAULT_PORT, host: str = DEFAULT_HOST):
        self.root = Path(root).resolve()
        self.port = port
        self.host = host
        self._server: Optional[_ThreadedServer] = None
        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
        except OSError as e:
            sock.close()
            raise ServerStartError(
                f"Cannot listen on {self.host}:{self.port}", original_error=e
            ) from e
        # Port 0 asks the OS for a free port
        self.port = sock.getsockname()[1]
        return sock

    def start(self) -> "StaticSiteServer":
        if self.running:
            return self
        if not (self.root / "index.html").exists():
            raise ServerStartError(f"No index.html in site directory: {self.root}")

        self._socket = self._bind()
        config = uvicorn.Config(
            create_site_app(self.root), log_level="warning", access_log=False, lifespan="off"
        )
        self._server = _ThreadedServer(config)
        self._thread = threading.Thread(
            target=self._server.run, kwargs={"sockets": [self._socket]}, name="vitae-site", daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + STARTUP_TIMEOUT_S
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self.stop()
                raise ServerStartError(f"Server did not start on {self.host}:{self.port}")
            time.sleep(0.01)

        _log_info(f"Server started on {self.url}")
        return self

    def stop(self) -> None:
        if not self.running:
            return
        self._server.should_exit = True
        self._thread.join(timeout=5)
        self._socket.close()
        self._server = None
        self._socket = None
        self._thread = None
        _log_debug("Server stopped")

    def __enter__(self) -> "StaticSiteServer":
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
