"""
VaultMCP stdio bridge
---------------------
Translates newline-delimited JSON-RPC 2.0 on stdin/stdout into calls on the
tool-dispatch server's HTTP API.

Requests are handled strictly one at a time, in arrival order. stdout only
ever carries response frames; diagnostics go through logging (stderr).
"""

import json
import logging
from typing import Any, BinaryIO, Dict, List, Optional, TextIO

from vaultmcp.errors import BridgeError, VaultMCPError
from vaultmcp.mcp.client import BackendClient
from vaultmcp.mcp.protocol import (
    BRIDGE_ERROR_CODE,
    BRIDGE_SERVER_NAME,
    JSONRPC_VERSION,
    negotiate_protocol_version,
)
from vaultmcp.version import __version__

logger = logging.getLogger("VaultMCP.bridge")

READ_CHUNK_SIZE = 65536


class LineBuffer:
    """Accumulates stdin chunks and yields complete lines."""

    def __init__(self) -> None:
        self._pending = b""

    def feed(self, chunk: bytes) -> List[bytes]:
        data = self._pending + chunk
        *lines, self._pending = data.split(b"\n")
        return [line for line in lines if line.strip()]

    @property
    def pending(self) -> bytes:
        return self._pending


def parse_message(line: bytes) -> Optional[Dict[str, Any]]:
    """Decode one frame; anything that is not a JSON object is logged and dropped."""
    try:
        message = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("Ignoring invalid JSON frame: %s", exc)
        return None
    if not isinstance(message, dict):
        logger.error("Ignoring non-object JSON-RPC frame: %r", message)
        return None
    return message


class Bridge:
    """
    One bridge session: cached catalogs plus the client used to forward calls.

    Tool and prompt catalogs are fetched once by load_catalogs() and never
    refreshed.
    """

    def __init__(self, client: BackendClient, stdout: TextIO):
        self.client = client
        self.stdout = stdout
        self.tools: List[Dict[str, Any]] = []
        self.prompts: List[Dict[str, Any]] = []
        self.closed = False

    def load_catalogs(self) -> None:
        """Fetch tools (failure propagates) and prompts (failure leaves an empty list)."""
        self.tools = self.client.list_tools()
        logger.info("Loaded %d tools from the server", len(self.tools))
        try:
            self.prompts = self.client.list_prompts()
            logger.info("Loaded %d prompts from the server", len(self.prompts))
        except BridgeError as exc:
            logger.warning("Could not load prompts: %s", exc)
            self.prompts = []

    def send(self, message: Dict[str, Any]) -> None:
        if self.closed:
            return
        try:
            self.stdout.write(json.dumps(message) + "\n")
            self.stdout.flush()
        except (BrokenPipeError, OSError) as exc:
            self.closed = True
            logger.warning("stdout closed while sending JSON-RPC message: %s", exc)

    def send_error(self, msg_id: Any, message: str) -> None:
        self.send({
            "jsonrpc": JSONRPC_VERSION,
            "id": msg_id,
            "error": {"code": BRIDGE_ERROR_CODE, "message": message},
        })

    def dispatch(self, method: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Return the result for `method`, or None when no reply is due."""
        if method == "initialize":
            logger.info("Initializing session")
            return {
                "protocolVersion": negotiate_protocol_version(params.get("protocolVersion")),
                "capabilities": {"tools": {}, "prompts": {}},
                "serverInfo": {"name": BRIDGE_SERVER_NAME, "version": __version__},
            }

        if method == "notifications/initialized":
            logger.info("Client initialized connection")
            return None

        if method == "tools/list":
            return {"tools": self.tools}

        if method == "tools/call":
            name = params.get("name")
            if not name:
                raise BridgeError("Missing tool name")
            logger.info("Calling tool: %s", name)
            response = self.client.call_tool(name, params.get("arguments"))
            return {"content": response.get("content", []) if isinstance(response, dict) else []}

        if method == "prompts/list":
            return {"prompts": self.prompts}

        if method == "prompts/get":
            name = params.get("name")
            if not name:
                raise BridgeError("Missing prompt name")
            logger.info("Getting prompt: %s", name)
            return self.client.get_prompt(name, params.get("arguments"))

        raise BridgeError(f"Unknown method: {method}")

    def handle_message(self, message: Dict[str, Any]) -> None:
        is_request = "id" in message
        msg_id = message.get("id")
        method = message.get("method")
        params = message.get("params")
        if not isinstance(params, dict):
            params = {}

        try:
            if not isinstance(method, str) or not method:
                raise BridgeError("Missing method in request")
            result = self.dispatch(method, params)
        except VaultMCPError as exc:
            logger.error("Error processing %s: %s", method, exc)
            if is_request:
                self.send_error(msg_id, str(exc))
            return
        except Exception as exc:
            logger.exception("Unexpected error processing %s", method)
            if is_request:
                self.send_error(msg_id, str(exc) or exc.__class__.__name__)
            return

        if is_request and result is not None:
            self.send({"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result})
        elif is_request:
            logger.debug("No response needed for %s", method)

    def run(self, stdin: BinaryIO) -> None:
        """Serve until EOF on `stdin`; a trailing partial line is discarded."""
        read = getattr(stdin, "read1", stdin.read)
        buffer = LineBuffer()
        while not self.closed:
            chunk = read(READ_CHUNK_SIZE)
            if not chunk:
                break
            for line in buffer.feed(chunk):
                message = parse_message(line)
                if message is not None:
                    self.handle_message(message)
        logger.info("Input stream ended")
