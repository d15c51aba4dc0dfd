"""
VaultMCP Service
----------------
Host adapter that owns the store, the dispatcher and the HTTP transport for
one vault, and keeps them in sync with a SettingsChannel.

Core modules never import this one; the host (server.py, the CLI or an
embedding application) drives it through on_start() and on_stop().
"""

import sys
import logging
from typing import Any, Callable, Dict, Optional, Set

from vaultmcp.core.config import SettingsChannel, VaultSettings
from vaultmcp.errors import TransportStartError
from vaultmcp.mcp.dispatcher import Dispatcher, build_default_prompts
from vaultmcp.mcp.http_server import TransportServer
from vaultmcp.store.vault import VaultStore
from vaultmcp.tools import build_default_handlers

logger = logging.getLogger("VaultMCP.service")

BRIDGE_MODULE = "mcp_wrapper"
CLIENT_SERVER_NAME = "vault"


def bridge_command() -> Dict[str, Any]:
    """Command line that launches the stdio bridge with this interpreter."""
    return {"command": sys.executable, "args": ["-m", BRIDGE_MODULE]}


def generate_client_config(settings: VaultSettings) -> Dict[str, Any]:
    """MCP client configuration block pointing at the bridge for this vault."""
    return {
        "mcpServers": {
            CLIENT_SERVER_NAME: {
                **bridge_command(),
                "env": {
                    "VAULTMCP_API_KEY": settings.api_key or "your-api-key-here",
                    "VAULTMCP_VAULT_PATH": settings.vault_path,
                    "VAULTMCP_SERVER_PORT": str(settings.port),
                    "VAULTMCP_SERVER_HOST": "localhost",
                },
            }
        }
    }


class VaultMCPService:
    def __init__(self, channel: SettingsChannel):
        self.channel = channel
        settings = channel.current
        self.store = VaultStore(settings.vault_path)
        self.dispatcher = Dispatcher(prompts=build_default_prompts(self._system_prompt))
        self.dispatcher.register_all(
            build_default_handlers(self.store, settings.templates_dir, self._system_prompt)
        )
        self.transport = TransportServer(
            self.dispatcher,
            api_key=settings.api_key,
            host=settings.host,
            port=settings.port,
        )
        self._unsubscribe: Optional[Callable[[], None]] = None

    def _system_prompt(self) -> str:
        return self.channel.current.system_prompt

    @property
    def is_running(self) -> bool:
        return self.transport.is_running

    def _start_transport(self) -> None:
        settings = self.channel.current
        if not settings.api_key:
            logger.warning("HTTP server not started: no API key configured")
            return
        try:
            self.transport.start()
        except TransportStartError as exc:
            logger.error("Failed to start MCP HTTP server: %s", exc)

    def on_start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.channel.subscribe(self._on_settings_changed)
        if self.channel.current.http_server_enabled:
            self._start_transport()
        logger.info("Vault MCP service loaded for %s (%s)",
                    self.store.root, "HTTP server running" if self.is_running else "HTTP server stopped")

    def on_stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.transport.stop()
        logger.info("Vault MCP service unloaded")

    def _on_settings_changed(self, settings: VaultSettings, changed: Set[str]) -> None:
        if "api_key" in changed:
            self.transport.update_api_key(settings.api_key)
        if "templates_dir" in changed:
            self.dispatcher.update_templates_dir(settings.templates_dir)
        if "port" in changed:
            try:
                self.transport.update_port(settings.port)
            except TransportStartError as exc:
                logger.error("Failed to restart MCP HTTP server on port %d: %s", settings.port, exc)
        if "http_server_enabled" in changed or ("api_key" in changed and not self.is_running):
            if settings.http_server_enabled:
                self._start_transport()
            else:
                self.transport.stop()
        if changed & {"vault_path", "host"}:
            logger.warning("Changes to %s take effect after a restart", ", ".join(sorted(changed & {"vault_path", "host"})))

    def settings_view(self) -> Dict[str, Any]:
        """State shown to the user; the API key itself is never included."""
        settings = self.channel.current
        return {
            "running": self.is_running,
            "host": settings.host,
            "port": self.transport.port,
            "api_key_configured": bool(settings.api_key),
            "vault_path": str(self.store.root),
            "templates_dir": settings.templates_dir,
            "bridge": bridge_command(),
            "tools": [tool.name for tool in self.dispatcher.list_tools()],
        }
