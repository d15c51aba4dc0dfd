#!/usr/bin/env python3
"""
VaultMCP stdio bridge
=====================

Launched by desktop MCP clients. Speaks newline-delimited JSON-RPC 2.0 on
stdin/stdout and forwards tool and prompt calls to the VaultMCP tool server
over HTTP.

Environment:
    VAULTMCP_API_KEY        (required) bearer token of the tool server
    VAULTMCP_VAULT_PATH     (required) vault the server is serving
    VAULTMCP_SERVER_HOST    tool server host (default: localhost)
    VAULTMCP_SERVER_PORT    tool server port (default: 28734)
    VAULTMCP_LOG_LEVEL      logging level (default: info)
    VAULTMCP_BRIDGE_LOG_FILE  optional log file in addition to stderr

stdout is reserved for protocol frames; all diagnostics go to stderr.
"""

import os
import sys
import signal
import logging

from vaultmcp.core.config import BridgeConfig
from vaultmcp.core.security import mask_key
from vaultmcp.errors import BridgeError
from vaultmcp.mcp.bridge import Bridge
from vaultmcp.mcp.client import BackendClient
from vaultmcp.version import __version__

logger = logging.getLogger("VaultMCP.bridge")


def _configure_logging() -> None:
    handlers = [logging.StreamHandler(sys.stderr)]
    log_file = os.environ.get("VAULTMCP_BRIDGE_LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))
    level_name = os.environ.get("VAULTMCP_LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def _handle_shutdown(signum, frame):
    logger.info("Bridge shutting down...")
    sys.exit(0)


def main() -> int:
    _configure_logging()

    try:
        config = BridgeConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info("Starting VaultMCP bridge %s", __version__)
    logger.info("API key: %s", mask_key(config.api_key))
    logger.info("Vault path: %s", config.vault_path)
    logger.info("Server: %s:%d", config.server_host, config.server_port)

    signal.signal(signal.SIGINT, _handle_shutdown)
    signal.signal(signal.SIGTERM, _handle_shutdown)

    with BackendClient(config.base_url, config.api_key) as client:
        bridge = Bridge(client, sys.stdout)
        try:
            bridge.load_catalogs()
        except BridgeError as e:
            print(f"Failed to connect to the VaultMCP server: {e}", file=sys.stderr)
            print("Make sure:", file=sys.stderr)
            print("1. The tool server is running (python server.py)", file=sys.stderr)
            print("2. The HTTP server is enabled in its settings", file=sys.stderr)
            print(f"3. It listens on {config.server_host}:{config.server_port}", file=sys.stderr)
            print("4. VAULTMCP_API_KEY matches the server's key", file=sys.stderr)
            return 1

        logger.info("VaultMCP bridge started successfully")
        bridge.run(sys.stdin.buffer)
    return 0


if __name__ == "__main__":
    sys.exit(main())
