"""
File tools: list, read, append and delete notes in the vault.
"""

import json
import asyncio
import logging
from typing import Any, Dict, List

from pydantic import Field

from vaultmcp.core.types import Content, TextContent
from vaultmcp.errors import CollaboratorError
from vaultmcp.store.vault import DirectoryNode, FileNode, VaultStore
from vaultmcp.tools.base import NoArgs, ToolArgs, ToolHandler, text_result

logger = logging.getLogger("VaultMCP.tools.files")

_FILEPATH_SCHEMA = {
    "type": "string",
    "description": "Path to the relevant file (relative to your vault root).",
    "format": "path",
}


class FilePathArgs(ToolArgs):
    filepath: str = Field(min_length=1)


class AppendArgs(FilePathArgs):
    content: str = Field(min_length=1)


class ListFilesToolHandler(ToolHandler):
    name = "vault_list_files_in_vault"
    description = "Lists all files and directories in your vault."
    input_schema = {"type": "object", "properties": {}, "required": []}
    args_model = NoArgs

    def __init__(self, store: VaultStore):
        self.store = store

    @staticmethod
    def _describe(node) -> Dict[str, Any]:
        if isinstance(node, FileNode):
            return {
                "path": node.path,
                "type": "file",
                "extension": node.extension,
                "basename": node.basename,
            }
        return {"path": node.path, "type": "folder"}

    async def invoke(self, args: NoArgs) -> List[Content]:
        nodes = await asyncio.to_thread(self.store.list_all)
        return text_result([self._describe(node) for node in nodes])


class GetFileContentsToolHandler(ToolHandler):
    name = "vault_get_file_contents"
    description = "Return the content of a single file in your vault."
    input_schema = {
        "type": "object",
        "properties": {"filepath": _FILEPATH_SCHEMA},
        "required": ["filepath"],
    }
    args_model = FilePathArgs

    def __init__(self, store: VaultStore):
        self.store = store

    def _read(self, path: str) -> str:
        if not isinstance(self.store.stat_node(path), FileNode):
            raise CollaboratorError(f"File not found: {path}", path=path)
        return self.store.read(path)

    async def invoke(self, args: FilePathArgs) -> List[Content]:
        content = await asyncio.to_thread(self._read, args.filepath)
        return [TextContent(text=json.dumps(content, ensure_ascii=False))]


class AppendContentToolHandler(ToolHandler):
    name = "vault_append_content"
    description = "Append content to a new or existing file in the vault."
    input_schema = {
        "type": "object",
        "properties": {
            "filepath": {
                "type": "string",
                "description": "Path to the file (relative to your vault root).",
                "format": "path",
            },
            "content": {"type": "string", "description": "Content to append to the file."},
        },
        "required": ["filepath", "content"],
    }
    args_model = AppendArgs

    def __init__(self, store: VaultStore):
        self.store = store

    def _append(self, path: str, content: str) -> None:
        node = self.store.stat_node(path)
        if isinstance(node, FileNode):
            existing = self.store.read(path)
            self.store.modify(path, existing + "\n" + content)
        elif isinstance(node, DirectoryNode):
            raise CollaboratorError(f"Cannot append to a directory: {path}", path=path)
        else:
            self.store.create(path, content)

    async def invoke(self, args: AppendArgs) -> List[Content]:
        await asyncio.to_thread(self._append, args.filepath, args.content)
        logger.info("Appended %d characters to %s", len(args.content), args.filepath)
        return text_result({"success": True}, indent=None)


class DeleteFileToolHandler(ToolHandler):
    name = "vault_delete_file"
    description = "Delete a file or directory from the vault."
    input_schema = {
        "type": "object",
        "properties": {
            "filepath": {
                "type": "string",
                "description": "Path to the file or directory to delete (relative to your vault root).",
                "format": "path",
            },
        },
        "required": ["filepath"],
    }
    args_model = FilePathArgs

    def __init__(self, store: VaultStore):
        self.store = store

    async def invoke(self, args: FilePathArgs) -> List[Content]:
        await asyncio.to_thread(self.store.delete, args.filepath)
        return text_result({"success": True}, indent=None)
