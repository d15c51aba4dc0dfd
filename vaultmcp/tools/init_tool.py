"""
Vault initialization tool.

Returns the configured system context. Clients are told to call it first;
nothing enforces that ordering.
"""

import logging
from typing import Callable, List, Optional

from vaultmcp.core.types import Content, TextContent
from vaultmcp.errors import ToolError
from vaultmcp.tools.base import NoArgs, ToolHandler

logger = logging.getLogger("VaultMCP.tools.init")

SystemPromptGetter = Callable[[], str]

INIT_TEMPLATE = """Vault initialized successfully.

SYSTEM CONTEXT LOADED:
{system_prompt}

Vault access ready: you now have the context and guidelines for working with this vault. You can proceed to use the other vault tools (search, list files, and so on).

Next steps: use the available vault tools to help the user with their knowledge management tasks."""


class InitToolHandler(ToolHandler):
    name = "vault_init_required"
    description = (
        "REQUIRED FIRST - Initialize vault access. This tool MUST be called before using any "
        "other vault tools. It loads essential context and behavior guidelines."
    )
    input_schema = {"type": "object", "properties": {}, "required": []}
    args_model = NoArgs

    def __init__(self, system_prompt_getter: Optional[SystemPromptGetter] = None):
        self._get_system_prompt = system_prompt_getter

    def update_system_prompt_getter(self, getter: SystemPromptGetter) -> None:
        self._get_system_prompt = getter

    async def invoke(self, args: NoArgs) -> List[Content]:
        if self._get_system_prompt is None:
            raise ToolError("System prompt getter not configured")
        logger.info("Vault context requested by client")
        return [TextContent(text=INIT_TEMPLATE.format(system_prompt=self._get_system_prompt()))]
