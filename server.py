#!/usr/bin/env python3
"""
VaultMCP Tool Server: loopback HTTP backend for vault MCP tools
===============================================================

Architecture:
- Store: filesystem vault of Markdown notes (vaultmcp.store)
- Tools: list/read/append/delete, simple and JSON Logic search,
  periodic notes, recent changes, templates (vaultmcp.tools)
- Dispatcher: name-keyed tool and prompt registries (vaultmcp.mcp.dispatcher)
- Transport: FastAPI + uvicorn on a loopback port, bearer-token auth
  (vaultmcp.mcp.http_server)

The stdio bridge (mcp_wrapper.py) connects desktop MCP clients to this
server.

Usage:
    python server.py                          # Settings from VAULTMCP_* env vars
    python server.py --vault ~/notes          # Serve a specific vault
    python server.py --config vaultmcp.yaml   # YAML settings over env vars
    python server.py --port 28800             # Custom port
"""

import os
import sys
import signal
import argparse
import logging
import threading
from pathlib import Path
from typing import Optional

import portalocker

from vaultmcp.core.config import SettingsChannel, VaultSettings
from vaultmcp.core.security import mask_key
from vaultmcp.service import VaultMCPService
from vaultmcp.version import __version__

logger = logging.getLogger("VaultMCP")

DEFAULT_LOG_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "vaultmcp_server.log"))
SERVER_LOCK_NAME = ".vaultmcp_server.lock"


_SERVER_INSTANCE_LOCK_HANDLE: Optional[portalocker.Lock] = None
_SERVER_INSTANCE_LOCK_PATH: Optional[Path] = None


def _acquire_server_instance_lock(settings: VaultSettings) -> None:
    """
    Acquire an exclusive lease on the vault so that two servers never write
    to the same notes concurrently.
    """
    global _SERVER_INSTANCE_LOCK_HANDLE, _SERVER_INSTANCE_LOCK_PATH

    vault_dir = Path(settings.vault_path).expanduser()
    lock_path = vault_dir / SERVER_LOCK_NAME

    lock_handle = portalocker.Lock(
        str(lock_path),
        mode="a",
        timeout=0,
        flags=portalocker.LOCK_EX | portalocker.LOCK_NB,
        fail_when_locked=True,
    )

    try:
        lock_handle.acquire()
    except portalocker.exceptions.LockException as exc:
        raise RuntimeError(
            f"VaultMCP server instance lock is already held for vault '{vault_dir}'. "
            "Reuse the existing server or stop it before starting another instance."
        ) from exc

    _SERVER_INSTANCE_LOCK_HANDLE = lock_handle
    _SERVER_INSTANCE_LOCK_PATH = lock_path
    logger.info("Acquired server instance lock: %s", lock_path)


def _release_server_instance_lock() -> None:
    """Release the vault lease if held."""
    global _SERVER_INSTANCE_LOCK_HANDLE, _SERVER_INSTANCE_LOCK_PATH
    lock_handle = _SERVER_INSTANCE_LOCK_HANDLE
    lock_path = _SERVER_INSTANCE_LOCK_PATH
    _SERVER_INSTANCE_LOCK_HANDLE = None
    _SERVER_INSTANCE_LOCK_PATH = None
    if lock_handle is None:
        return

    try:
        lock_handle.release()
    except (portalocker.exceptions.LockException, OSError) as exc:
        logger.debug("Error releasing server instance lock: %s", exc)
    if lock_path is not None:
        logger.info("Released server instance lock: %s", lock_path)


def _configure_logging(level_name: str) -> str:
    server_log_path = os.environ.get("VAULTMCP_LOG_FILE", DEFAULT_LOG_PATH)
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(server_log_path, mode="a"),
            logging.StreamHandler(),
        ],
    )
    return server_log_path


def _load_settings(args: argparse.Namespace) -> VaultSettings:
    settings = VaultSettings.from_yaml(args.config) if args.config else VaultSettings.from_env()
    overrides = {}
    if args.vault:
        overrides["vault_path"] = args.vault
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if overrides:
        settings = VaultSettings.model_validate({**settings.model_dump(), **overrides})
    return settings


def main():
    parser = argparse.ArgumentParser(description="VaultMCP Tool Server")
    parser.add_argument("--config", default=None, help="YAML settings file")
    parser.add_argument("--vault", default=None, help="Vault root directory")
    parser.add_argument("--host", default=None, help="Loopback host to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    args = parser.parse_args()

    try:
        settings = _load_settings(args)
    except ValueError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        sys.exit(2)

    server_log_path = _configure_logging(settings.log_level)
    logger.info("Starting VaultMCP Tool Server %s on %s:%d", __version__, settings.host, settings.port)
    logger.info("Vault: %s", settings.vault_path)
    logger.debug("Settings: %s", settings.redacted())
    if settings.api_key:
        logger.info("API key: %s", mask_key(settings.api_key))
    else:
        logger.error("VAULTMCP_API_KEY is not set; generate one with: python -m vaultmcp.cli generate-key")
        sys.exit(1)
    if not settings.http_server_enabled:
        logger.error("HTTP server is disabled (VAULTMCP_HTTP_ENABLED); nothing to serve")
        sys.exit(1)

    try:
        _acquire_server_instance_lock(settings)
    except (RuntimeError, OSError) as e:
        logger.error("%s", e)
        sys.exit(1)

    channel = SettingsChannel(settings)
    service = VaultMCPService(channel)
    service.on_start()
    if not service.is_running:
        _release_server_instance_lock()
        print(f"\n[ERROR] Failed to start server on port {settings.port}. Port is likely in use.", file=sys.stderr)
        print(f"Please check the server log at: {server_log_path}", file=sys.stderr)
        print(f"To find the process using this port on Linux/macOS, use:\n  lsof -i :{settings.port}", file=sys.stderr)
        print(f"On Windows:\n  netstat -ano | findstr :{settings.port}", file=sys.stderr)
        sys.exit(1)

    stopped = threading.Event()

    def _handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down", signum)
        stopped.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        while not stopped.wait(timeout=1.0):
            if not service.is_running:
                logger.error("HTTP server thread exited unexpectedly")
                break
    finally:
        service.on_stop()
        _release_server_instance_lock()
        logger.info("VaultMCP Tool Server stopped.")


if __name__ == "__main__":
    main()
