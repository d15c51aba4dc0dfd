"""
VaultMCP HTTP Transport
-----------------------
FastAPI application exposing the Dispatcher over loopback HTTP, and the
TransportServer that runs it with uvicorn on a background thread.

Every response carries permissive CORS headers. Authentication happens in
middleware before routing, so unknown paths are rejected with 401 just like
known ones when the bearer token is wrong.
"""

import time
import socket
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from vaultmcp.core.config import DEFAULT_HOST, DEFAULT_PORT, LOOPBACK_HOSTS
from vaultmcp.core.security import verify_bearer
from vaultmcp.core.types import dump_content
from vaultmcp.errors import AuthError, TransportStartError, UnknownPromptError, VaultMCPError
from vaultmcp.mcp.dispatcher import Dispatcher, PromptRegistry
from vaultmcp.mcp.protocol import (
    HEALTH_PATH,
    PROMPTS_GET_PATH,
    PROMPTS_PATH,
    TOOLS_CALL_PATH,
    TOOLS_PATH,
)
from vaultmcp.version import __version__

logger = logging.getLogger("VaultMCP.http")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

STARTUP_TIMEOUT_SECONDS = 10.0
SHUTDOWN_TIMEOUT_SECONDS = 5.0


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def create_app(
    dispatcher: Dispatcher,
    prompts: Optional[PromptRegistry] = None,
    api_key_getter: Callable[[], str] = lambda: "",
) -> FastAPI:
    """Build the FastAPI app; `api_key_getter` is consulted on every request."""
    prompts = prompts if prompts is not None else dispatcher.prompts

    app = FastAPI(
        title="VaultMCP Tool Server",
        description="Loopback tool-dispatch server for vault MCP tools",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.middleware("http")
    async def auth_and_cors(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        try:
            verify_bearer(request.headers.get("authorization"), api_key_getter())
        except AuthError as exc:
            logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
            return _error(401, str(exc))
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error in %s %s", request.method, request.url.path)
            return _error(500, str(exc) or exc.__class__.__name__)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Unmatched methods are reported the same way as unmatched paths.
        if exc.status_code in (404, 405):
            return _error(404, "Not found")
        return _error(exc.status_code, str(exc.detail))

    @app.get(TOOLS_PATH)
    async def list_tools() -> List[Dict[str, Any]]:
        return [tool.to_wire() for tool in dispatcher.list_tools()]

    @app.post(TOOLS_CALL_PATH)
    async def call_tool(request: Request):
        body = await _json_body(request)
        name = body.get("name")
        if not isinstance(name, str) or not name:
            raise HTTPException(status_code=400, detail="Missing tool name")
        arguments = body.get("arguments") or {}
        try:
            content = await dispatcher.call_tool(name, arguments)
        except VaultMCPError as exc:
            raise HTTPException(status_code=500, detail=str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure in tool %s", name)
            raise HTTPException(status_code=500, detail=str(exc) or exc.__class__.__name__)
        return {"content": dump_content(content)}

    @app.get(HEALTH_PATH)
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "version": __version__,
        }

    @app.get(PROMPTS_PATH)
    async def list_prompts():
        return {"prompts": [prompt.model_dump(exclude_none=True) for prompt in prompts.list_prompts()]}

    @app.post(PROMPTS_GET_PATH)
    async def get_prompt(request: Request):
        body = await _json_body(request)
        name = body.get("name")
        if not isinstance(name, str) or not name:
            raise HTTPException(status_code=400, detail="Missing prompt name")
        try:
            result = prompts.get_prompt(name, body.get("arguments") or {})
        except UnknownPromptError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except VaultMCPError as exc:
            logger.error("Error rendering prompt %s: %s", name, exc)
            raise HTTPException(status_code=500, detail=str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure rendering prompt %s", name)
            raise HTTPException(status_code=500, detail=str(exc) or exc.__class__.__name__)
        return result.model_dump(exclude_none=True)

    return app


class TransportServer:
    """
    Runs the FastAPI app with uvicorn on a daemon thread bound to loopback.

    start() and stop() are idempotent. The listening socket is bound before
    the thread starts so that bind failures surface synchronously.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        api_key: str = "",
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ):
        if host not in LOOPBACK_HOSTS:
            raise ValueError(f"HTTP server must bind a loopback address, got {host!r}")
        self.host = host
        self._port = port
        self._api_key = api_key
        self.app = create_app(dispatcher, dispatcher.prompts, lambda: self._api_key)
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._socket: Optional[socket.socket] = None
        self._lock = threading.RLock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def port(self) -> int:
        """The bound port while running, otherwise the configured one."""
        if self._socket is not None:
            return self._socket.getsockname()[1]
        return self._port

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if self.host == "::1" else socket.AF_INET
        bind_host = "127.0.0.1" if self.host == "localhost" else self.host
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((bind_host, self._port))
            sock.listen(128)
        except OSError:
            sock.close()
            raise
        return sock

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                logger.debug("HTTP server already running on port %d", self.port)
                return
            try:
                sock = self._bind()
            except OSError as exc:
                logger.error("Failed to start HTTP server on %s:%d: %s", self.host, self._port, exc)
                raise TransportStartError(
                    f"Failed to start server on {self.host}:{self._port}: {exc}"
                ) from exc

            config = uvicorn.Config(self.app, log_level="warning", lifespan="off", access_log=False)
            server = uvicorn.Server(config)
            thread = threading.Thread(
                target=server.run,
                kwargs={"sockets": [sock]},
                name="vaultmcp-http",
                daemon=True,
            )
            self._server, self._thread, self._socket = server, thread, sock
            thread.start()

            deadline = time.monotonic() + STARTUP_TIMEOUT_SECONDS
            while not server.started:
                if not thread.is_alive() or time.monotonic() > deadline:
                    self._teardown()
                    raise TransportStartError(f"HTTP server on {self.host}:{self._port} did not start")
                time.sleep(0.02)
            logger.info("MCP HTTP server started on %s:%d", self.host, self.port)

    def stop(self) -> None:
        with self._lock:
            if self._server is None:
                return
            self._server.should_exit = True
            if self._thread is not None:
                self._thread.join(timeout=SHUTDOWN_TIMEOUT_SECONDS)
                if self._thread.is_alive():
                    logger.warning("HTTP server thread did not exit within %.0fs", SHUTDOWN_TIMEOUT_SECONDS)
            self._teardown()
            logger.info("MCP HTTP server stopped")

    def _teardown(self) -> None:
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError as exc:
                logger.debug("Error closing listening socket: %s", exc)
        self._server, self._thread, self._socket = None, None, None

    def update_api_key(self, api_key: str) -> None:
        self._api_key = api_key

    def update_port(self, port: int) -> None:
        with self._lock:
            was_running = self.is_running
            if was_running:
                self.stop()
            self._port = port
            if was_running:
                self.start()
