"""
VaultMCP exceptions.
"""

from __future__ import annotations

from typing import Any, Optional


class VaultMCPError(RuntimeError):
    """Base class for all VaultMCP errors."""


class AuthError(VaultMCPError):
    """Raised when a request carries a missing or wrong bearer token."""


class ToolError(VaultMCPError):
    """Raised by a tool invocation; the message is shown to the client verbatim."""


class UnknownToolError(ToolError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ToolValidationError(ToolError):
    """Raised when tool arguments do not match the tool's input schema."""


class CollaboratorError(ToolError):
    """Raised when the document store cannot complete an operation."""

    def __init__(self, detail: str, *, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(detail)


class UnknownPromptError(VaultMCPError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown prompt: {name}")


class TransportStartError(VaultMCPError):
    """Raised when the HTTP transport cannot bind its listening socket."""


class BridgeError(VaultMCPError):
    """Base class for bridge-to-server failures."""


class BackendConnectionError(BridgeError):
    """Raised when the bridge cannot reach the tool-dispatch server."""


class BackendAPIError(BridgeError):
    """Raised when the tool-dispatch server answers with a non-2xx status."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
        payload: Optional[Any] = None,
    ) -> None:
        self.status_code = status_code
        self.path = path
        self.payload = payload
        status_hint = f"HTTP {status_code}: " if status_code is not None else ""
        super().__init__(f"{status_hint}{detail}")
