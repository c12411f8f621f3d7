"""HTTP publication of the current alerts feed."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Tuple
from urllib.parse import urlsplit

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from .gtfs import format_feed_text, serialize_feed
from .renderers import build_alerts_html
from .store import FeedStore

logger = logging.getLogger(__name__)

PROTOBUF_MEDIA_TYPE = "application/x-protobuf"


def parse_feed_url(url: str) -> Tuple[str, int, str]:
    """Split a feed URL into the host, port and path to serve it on."""
    parts = urlsplit(url)
    if parts.scheme not in ("http", ""):
        raise ValueError(f"Unsupported alerts URL scheme: {parts.scheme}")
    if not parts.hostname:
        raise ValueError(f"Alerts URL is missing a host: {url}")
    return parts.hostname, parts.port or 80, parts.path or "/"


def create_app(store: FeedStore, path: str = "/alerts") -> FastAPI:
    """Build the application serving ``store``'s current feed at ``path``."""
    app = FastAPI(title="GTFS-realtime alerts", docs_url=None, redoc_url=None)

    @app.get(path)
    def get_alerts(request: Request) -> Response:
        snapshot = store.current()
        if "debug" in request.query_params:
            return PlainTextResponse(format_feed_text(snapshot))
        return Response(content=serialize_feed(snapshot), media_type=PROTOBUF_MEDIA_TYPE)

    if path != "/":

        @app.get("/", response_class=HTMLResponse)
        def get_status() -> str:
            return build_alerts_html(store.current(), feed_path=path)

    return app


class AlertsHttpServer:
    """Serves the alerts feed at ``url`` from a background uvicorn server."""

    def __init__(self, store: FeedStore, url: str) -> None:
        self.url = url
        self.host, self.port, self.path = parse_feed_url(url)
        self.app = create_app(store, self.path)
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    def _serve(self, server: uvicorn.Server) -> None:
        # uvicorn exits the process when it cannot bind; keep that inside this thread.
        try:
            server.run()
        except SystemExit as exc:
            logger.error("Alerts HTTP server on %s:%s exited (%s)", self.host, self.port, exc.code)

    def start(self, startup_timeout: float = 10.0) -> None:
        """Start serving and wait until the socket is bound."""
        if self._thread is not None:
            raise RuntimeError("Alerts HTTP server is already running.")
        logger.info("Serving alerts feed at %s", self.url)
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_config=None,
            access_log=False,
        )
        server = uvicorn.Server(config)
        thread = threading.Thread(
            target=self._serve, args=(server,), name="alert-http-server", daemon=True
        )
        thread.start()

        deadline = time.monotonic() + startup_timeout
        while not server.started and thread.is_alive() and time.monotonic() < deadline:
            time.sleep(0.05)

        if not server.started:
            server.should_exit = True
            thread.join(1.0)
            raise RuntimeError(
                f"Alerts HTTP server failed to start on {self.host}:{self.port}"
            )

        self._server = server
        self._thread = thread

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        if self._thread is None or self._server is None:
            return
        logger.info("Stopping alerts HTTP server")
        self._server.should_exit = True
        self._thread.join(timeout)
        self._thread = None
        self._server = None
