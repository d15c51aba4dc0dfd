"""
Template listing from the configured templates directory.

A missing or misconfigured directory is reported inside the JSON result
rather than raised, so clients can tell the user how to fix the setting.
"""

import asyncio
import logging
from typing import Any, Dict, List

from vaultmcp.core.config import DEFAULT_TEMPLATES_DIR
from vaultmcp.core.types import Content
from vaultmcp.errors import CollaboratorError
from vaultmcp.store.vault import DirectoryNode, FileNode, NotFound, VaultStore
from vaultmcp.tools.base import ToolArgs, ToolHandler, text_result

logger = logging.getLogger("VaultMCP.tools.templates")


class TemplatesArgs(ToolArgs):
    include_content: bool = True


class TemplatesToolHandler(ToolHandler):
    name = "vault_get_templates"
    description = (
        "Get all available templates from the configured templates directory in the vault. "
        "Templates will likely include things like notes, tasks, and other structured objects. "
        "Use this when the user is asking you to create something specific to check for an "
        "appropriate template."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "include_content": {
                "type": "boolean",
                "description": "Whether to include template content in the response (default: true)",
                "default": True,
            },
        },
        "required": [],
    }
    args_model = TemplatesArgs

    def __init__(self, store: VaultStore, templates_dir: str = DEFAULT_TEMPLATES_DIR):
        self.store = store
        self.templates_dir = templates_dir

    def update_templates_dir(self, templates_dir: str) -> None:
        logger.info("Templates directory changed: %s -> %s", self.templates_dir, templates_dir)
        self.templates_dir = templates_dir

    def _failure(self, message: str) -> Dict[str, Any]:
        return {
            "error": message,
            "templates": [],
            "summary": {
                "total_templates": 0,
                "templates_directory": self.templates_dir,
                "directory_exists": False,
            },
        }

    def _collect(self, folder: str, include_content: bool, templates: List[Dict[str, Any]]) -> None:
        for child in self.store.list_children(folder):
            if isinstance(child, DirectoryNode):
                self._collect(child.path, include_content, templates)
                continue
            try:
                content = self.store.cached_read(child.path) if include_content else ""
            except CollaboratorError as exc:
                logger.warning("Error reading template file %s: %s", child.path, exc)
                content = f"Error reading file: {exc}"
            templates.append({
                "name": child.name,
                "path": child.path,
                "content": content,
                "basename": child.basename,
                "extension": child.extension,
            })

    def _list(self, include_content: bool) -> Dict[str, Any]:
        templates_dir = self.templates_dir
        try:
            node = self.store.stat_node(templates_dir)
            if isinstance(node, NotFound):
                return self._failure(f"Templates directory '{templates_dir}' not found in vault")
            if isinstance(node, FileNode):
                return self._failure(f"'{templates_dir}' exists but is not a directory")
            templates: List[Dict[str, Any]] = []
            self._collect(node.path, include_content, templates)
        except (CollaboratorError, OSError) as exc:
            logger.error("Error getting templates: %s", exc)
            return self._failure(f"Error reading templates: {exc}")

        logger.info("Found %d templates in %s", len(templates), templates_dir)
        return {
            "summary": {
                "total_templates": len(templates),
                "templates_directory": templates_dir,
                "directory_exists": True,
                "include_content": include_content,
            },
            "templates": templates,
        }

    async def invoke(self, args: TemplatesArgs) -> List[Content]:
        return text_result(await asyncio.to_thread(self._list, args.include_content))
