"""Development server for tinygen.

Serves the source tree directly, rebuilding a page on every request for it:
- Static files under the source directory are served as-is.
- Page routes are reloaded from source and rendered fresh, with a live
  reload script injected.
- A watchdog observer notifies connected browsers over a websocket when
  sources change.

Key classes:
- DevServer: Main class for running the development server.
- LiveReload: Websocket transport for reload notifications.
- DevResponse: Response produced for a single request.
- _DevRequestHandler: HTTP request handler delegating to DevServer.handle.
- _ChangeHandler: File system event handler for reload notifications.
"""

from __future__ import annotations

import asyncio
import json
import mimetypes
import os
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import Generator
from .html_utils import error_page, inject_before_body_end
from .paths import route_extension

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


@dataclass
class DevResponse:
    """Response to one dev server request.

    Attributes:
        status: HTTP status code.
        body: Response body.
        content_type: Value of the Content-Type header.
        headers: Extra headers; cache-defeating headers by default.
    """

    status: int
    body: bytes
    content_type: str = HTML_CONTENT_TYPE
    headers: dict[str, str] = field(default_factory=lambda: dict(NO_CACHE_HEADERS))


class LiveReload:
    """Live reload transport: a websocket server plus its browser client.

    The client script is served by the HTTP server at CLIENT_PATH; rendered
    pages include it through ``snippet``.

    Attributes:
        ws_port: Port of the websocket server.
        debounce_seconds: Quiet period before a burst of changes is broadcast.
    """

    CLIENT_PATH = "/_livereload.js"

    client_template = """
    (() => {{
      const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
      ws.onmessage = (event) => {{
        const data = JSON.parse(event.data || '{{}}');
        if (data.type === 'reload') location.reload();
      }};
    }})();
    """

    def __init__(
        self,
        ws_port: int,
        loop: asyncio.AbstractEventLoop,
        debounce_seconds: float = 0.1,
    ):
        self.ws_port = ws_port
        self.debounce_seconds = debounce_seconds
        self._loop = loop
        self._ws_clients: set = set()
        self._pending: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def snippet(self) -> str:
        return f'<script src="{self.CLIENT_PATH}"></script>'

    def respond(self, path: str) -> DevResponse | None:
        """Claim requests for the client script; return None for others."""
        if path != self.CLIENT_PATH:
            return None
        script = self.client_template.format(ws_port=self.ws_port)
        return DevResponse(200, script.encode("utf-8"), "text/javascript; charset=utf-8")

    async def serve(self, host: str = "0.0.0.0") -> None:  # pragma: no cover - integration path
        try:
            async with websockets.serve(self._ws_handler, host, self.ws_port):
                await asyncio.Future()  # Run forever
        except OSError as exc:
            print(f"WebSocket server failed to start (port {self.ws_port}): {exc}")

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def notify(self) -> None:
        """Schedule a reload broadcast; safe to call from any thread."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._schedule_broadcast)

    def _schedule_broadcast(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._loop.call_later(self.debounce_seconds, self._broadcast_reload)

    def _broadcast_reload(self) -> None:
        self._pending = None
        print("Change detected; reloading")
        task = self._loop.create_task(self._async_broadcast(json.dumps({"type": "reload"})))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)


class DevServer:
    """Development server with on-demand rebuilds and live reload.

    All generator work runs on one asyncio event loop (``_loop``) in a
    background thread, shared with the websocket server; HTTP request threads
    submit their requests to it.

    Attributes:
        generator: Generator whose pages are served.
        http_port: Port for the HTTP server.
        ws_port: Port for websocket connections.
        live_reload: Live reload transport.
    """

    def __init__(
        self,
        generator: Generator,
        http_port: int | None = None,
        ws_port: int | None = None,
    ):
        """Initialize the development server.

        Args:
            generator: Generator to serve.
            http_port: Optional override for the HTTP port.
            ws_port: Optional override for the websocket port.
        """
        self.generator = generator
        config = generator.config
        base_http = int(http_port or config.port)
        resolved_ws = (
            ws_port
            if ws_port is not None
            else (
                base_http + 1
                if http_port is not None
                else (config.ws_port or base_http + 1)
            )
        )
        self.http_port = base_http
        self.ws_port = resolved_ws
        self._loop = asyncio.new_event_loop()
        self.live_reload = LiveReload(self.ws_port, self._loop)
        self._observer: Observer | None = None
        self._httpd: ThreadingHTTPServer | None = None

    def start(self) -> None:  # pragma: no cover - integration path
        self.generator.config = self.generator.config.for_dev()
        threading.Thread(target=self._run_loop, daemon=True).start()
        asyncio.run_coroutine_threadsafe(
            self.generator.load_all(strict=False), self._loop
        ).result()
        self._start_watcher()
        handler = type(
            "_DevRequestHandlerWithServer",
            (_DevRequestHandler,),
            {"dev_server": self},
        )
        self._httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.generator.src_dir} at http://localhost:{self.http_port}")
        try:
            self._httpd.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        if self._httpd:
            self._httpd.server_close()
        if not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._loop.stop)

    def _run_loop(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        self._loop.create_task(self.live_reload.serve())
        self._loop.run_forever()

    def _start_watcher(self) -> None:
        observer = Observer()
        observer.schedule(_ChangeHandler(self), str(self.generator.src_dir), recursive=True)
        observer.start()
        self._observer = observer

    def discover(self, path: Path) -> None:
        """Register a newly created source file on the server loop."""
        if self.generator.is_ignored(path):
            return
        asyncio.run_coroutine_threadsafe(self.generator.discover(path), self._loop)

    async def handle(self, raw_path: str) -> DevResponse:
        """Produce the response for a request path.

        Decision order: live reload transport, static file under the source
        directory, page rebuild, 404. Rebuild failures and unreadable static
        files become a 500 error page so the server keeps running.

        Args:
            raw_path: Request target (path and optional query string).

        Returns:
            The response to send.
        """
        path = unquote(urlsplit(raw_path).path) or "/"
        claimed = self.live_reload.respond(path)
        if claimed is not None:
            return claimed

        static = self._static_file(path)
        if static is not None:
            try:
                data = static.read_bytes()
            except OSError as exc:
                print(f"Failed to read {static}: {exc}")
                return self._error_response(exc)
            content_type = mimetypes.guess_type(static.name)[0] or "application/octet-stream"
            return DevResponse(200, data, content_type)

        route = path.rstrip("/") or "/"
        try:
            out = await self.generator.rebuild(route)
        except Exception as exc:
            print(f"Failed to rebuild {route}: {exc}")
            return self._error_response(exc)
        if out is None:
            return DevResponse(404, b"Not found")

        extension = route_extension(route)
        if extension and extension not in (".html", ".htm"):
            content_type = mimetypes.guess_type(route)[0] or "application/octet-stream"
            return DevResponse(200, out.encode("utf-8"), content_type)
        body = inject_before_body_end(out, self.live_reload.snippet)
        return DevResponse(200, body.encode("utf-8"))

    def _error_response(self, exc: Exception) -> DevResponse:
        body = inject_before_body_end(error_page(exc), self.live_reload.snippet)
        return DevResponse(500, body.encode("utf-8"))

    def _static_file(self, path: str) -> Path | None:
        """Return the source file a request path names, if it may be served."""
        if path == "/":
            return None
        src_dir = self.generator.src_dir
        candidate = (src_dir / path.lstrip("/")).resolve()
        if not candidate.is_relative_to(src_dir) or not candidate.is_file():
            return None
        if self.generator.is_ignored(candidate):
            return None
        return candidate


class _DevRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler that hands every request to a DevServer."""

    dev_server: DevServer | None = None

    def do_GET(self):
        self._respond(send_body=True)

    def do_HEAD(self):
        self._respond(send_body=False)

    def _respond(self, send_body: bool) -> None:
        server = self.dev_server
        future = asyncio.run_coroutine_threadsafe(server.handle(self.path), server._loop)
        response = future.result()
        self.send_response(response.status)
        self.send_header("Content-Type", response.content_type)
        self.send_header("Content-Length", str(len(response.body)))
        for key, value in response.headers.items():
            self.send_header(key, value)
        self.end_headers()
        if send_body:
            self.wfile.write(response.body)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        generator = self.server.generator
        target = getattr(event, "dest_path", "") or event.src_path
        path = Path(os.fsdecode(target))
        # Skip output and anything outside the source tree
        if path.is_relative_to(generator.dest_dir):
            return
        try:
            rel = path.relative_to(generator.src_dir)
        except ValueError:
            return
        if any(part.startswith(".") or part == "__pycache__" for part in rel.parts):
            return
        if event.event_type in ("created", "moved"):
            self.server.discover(path)
        self.server.live_reload.notify()
