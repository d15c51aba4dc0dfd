"""
VaultMCP: expose a local Markdown vault to MCP clients.

The tool-dispatch server (server.py) serves vault tools over loopback HTTP;
the stdio bridge (mcp_wrapper.py) speaks JSON-RPC to desktop AI clients and
forwards their calls to it.
"""

from vaultmcp.core.config import BridgeConfig, SettingsChannel, VaultSettings
from vaultmcp.errors import VaultMCPError
from vaultmcp.mcp.dispatcher import Dispatcher
from vaultmcp.mcp.http_server import TransportServer, create_app
from vaultmcp.service import VaultMCPService
from vaultmcp.store.vault import VaultStore
from vaultmcp.version import __version__

__all__ = [
    "__version__",
    "BridgeConfig",
    "SettingsChannel",
    "VaultSettings",
    "VaultMCPError",
    "Dispatcher",
    "TransportServer",
    "create_app",
    "VaultMCPService",
    "VaultStore",
]
