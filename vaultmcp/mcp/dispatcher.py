"""
VaultMCP Dispatcher
-------------------
Name-keyed registries for tools and prompts.

The Dispatcher owns the tool handlers for the lifetime of the process and
routes each call by exact name. Two values that several handlers depend on,
the templates directory and the system prompt getter, can be swapped at
runtime without re-registering anything.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from vaultmcp.core.types import (
    Content,
    GetPromptResult,
    Prompt,
    PromptMessage,
    TextContent,
    ToolDescriptor,
)
from vaultmcp.errors import ToolError, UnknownPromptError, UnknownToolError
from vaultmcp.tools.base import ToolHandler
from vaultmcp.tools.init_tool import SystemPromptGetter

logger = logging.getLogger("VaultMCP.dispatcher")

REQUIRED_PROMPT_NAME = "vault-required-prompt"

PromptRenderer = Callable[[Dict[str, Any]], GetPromptResult]


class PromptRegistry:
    """Prompts offered to clients, each with a renderer producing its messages."""

    def __init__(self, system_prompt_getter: Optional[SystemPromptGetter] = None):
        self._prompts: Dict[str, Prompt] = {}
        self._renderers: Dict[str, PromptRenderer] = {}
        self.system_prompt_getter = system_prompt_getter

    def register(self, prompt: Prompt, renderer: PromptRenderer) -> None:
        if prompt.name in self._prompts:
            logger.warning("Prompt %s registered twice; keeping the latest", prompt.name)
        self._prompts[prompt.name] = prompt
        self._renderers[prompt.name] = renderer

    def list_prompts(self) -> List[Prompt]:
        return list(self._prompts.values())

    def get_prompt(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> GetPromptResult:
        renderer = self._renderers.get(name)
        if renderer is None:
            raise UnknownPromptError(name)
        return renderer(arguments or {})

    def render_system_prompt(self, arguments: Dict[str, Any]) -> GetPromptResult:
        if self.system_prompt_getter is None:
            raise ToolError("System prompt getter not configured")
        return GetPromptResult(
            description="Vault system context",
            messages=[PromptMessage(role="user", content=TextContent(text=self.system_prompt_getter()))],
        )


def build_default_prompts(system_prompt_getter: Optional[SystemPromptGetter] = None) -> PromptRegistry:
    registry = PromptRegistry(system_prompt_getter)
    registry.register(
        Prompt(
            name=REQUIRED_PROMPT_NAME,
            description="Required system context for working with this vault",
            arguments=[],
        ),
        registry.render_system_prompt,
    )
    return registry


class Dispatcher:
    """Tool registry and router."""

    def __init__(self, prompts: Optional[PromptRegistry] = None):
        self._handlers: Dict[str, ToolHandler] = {}
        self.prompts = prompts or PromptRegistry()

    def register(self, handler: ToolHandler) -> None:
        # Re-assigning an existing dict key keeps its position.
        if handler.name in self._handlers:
            logger.warning("Tool %s registered twice; keeping the latest handler", handler.name)
        self._handlers[handler.name] = handler

    def register_all(self, handlers: List[ToolHandler]) -> None:
        for handler in handlers:
            self.register(handler)

    def get(self, name: str) -> Optional[ToolHandler]:
        return self._handlers.get(name)

    def list_tools(self) -> List[ToolDescriptor]:
        return [handler.describe() for handler in self._handlers.values()]

    async def call_tool(self, name: str, args: Optional[Dict[str, Any]]) -> List[Content]:
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)
        try:
            return await handler.run(args)
        except Exception as exc:
            logger.error("Error running tool %s: %s", name, exc)
            raise

    def update_templates_dir(self, templates_dir: str) -> None:
        for handler in self._handlers.values():
            updater = getattr(handler, "update_templates_dir", None)
            if updater is not None:
                updater(templates_dir)

    def update_system_prompt_getter(self, getter: SystemPromptGetter) -> None:
        for handler in self._handlers.values():
            updater = getattr(handler, "update_system_prompt_getter", None)
            if updater is not None:
                updater(getter)
        self.prompts.system_prompt_getter = getter
