from vaultmcp.mcp.bridge import Bridge, LineBuffer, parse_message
from vaultmcp.mcp.client import BackendClient
from vaultmcp.mcp.dispatcher import (
    REQUIRED_PROMPT_NAME,
    Dispatcher,
    PromptRegistry,
    build_default_prompts,
)
from vaultmcp.mcp.http_server import TransportServer, create_app

__all__ = [
    "Bridge",
    "LineBuffer",
    "parse_message",
    "BackendClient",
    "Dispatcher",
    "PromptRegistry",
    "REQUIRED_PROMPT_NAME",
    "build_default_prompts",
    "TransportServer",
    "create_app",
]
