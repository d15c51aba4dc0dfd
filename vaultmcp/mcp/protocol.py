"""
VaultMCP Protocol Constants
"""

from typing import Optional

DEFAULT_PROTOCOL_VERSION = "2024-11-05"
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", DEFAULT_PROTOCOL_VERSION)

JSONRPC_VERSION = "2.0"

# Every bridge failure is reported with this code.
BRIDGE_ERROR_CODE = -32000

BRIDGE_SERVER_NAME = "vaultmcp-bridge"

# HTTP API paths served by the tool-dispatch server
TOOLS_PATH = "/api/mcp/tools"
TOOLS_CALL_PATH = "/api/mcp/tools/call"
HEALTH_PATH = "/api/mcp/health"
PROMPTS_PATH = "/api/mcp/prompts"
PROMPTS_GET_PATH = "/api/mcp/prompts/get"


def negotiate_protocol_version(version: Optional[str]) -> str:
    """Echo a supported client version, otherwise answer with the default."""
    if version in SUPPORTED_PROTOCOL_VERSIONS:
        return version
    return DEFAULT_PROTOCOL_VERSION
