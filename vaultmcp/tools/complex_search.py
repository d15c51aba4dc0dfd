"""
JSON Logic search over note contents, tags, frontmatter and file stats.
"""

import asyncio
import logging
from typing import Any, Dict, List

from vaultmcp.core.types import Content
from vaultmcp.errors import ToolError, ToolValidationError
from vaultmcp.search.jsonlogic import JsonLogicError, evaluate, truthy
from vaultmcp.store.metadata import extract_metadata
from vaultmcp.store.vault import FileNode, VaultStore
from vaultmcp.tools.base import ToolArgs, ToolHandler, text_result

logger = logging.getLogger("VaultMCP.tools.complex_search")


class ComplexSearchArgs(ToolArgs):
    query: Dict[str, Any]


class ComplexSearchToolHandler(ToolHandler):
    name = "vault_complex_search"
    description = (
        "Complex search using JSON Logic queries across all files in the vault. "
        "Each note is evaluated against {path, content, tags, frontmatter, stat}; "
        "besides the standard operators, 'glob' and 'regexp' match strings against patterns."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "query": {
                "type": "object",
                "description": "JSON Logic query object defining the search criteria.",
            },
        },
        "required": ["query"],
    }
    args_model = ComplexSearchArgs

    def __init__(self, store: VaultStore):
        self.store = store

    def _note_context(self, node: FileNode) -> Dict[str, Any]:
        content = self.store.cached_read(node.path)
        metadata = extract_metadata(content)
        return {
            "path": node.path,
            "content": content,
            "tags": metadata.tags,
            "frontmatter": metadata.frontmatter,
            "stat": {
                "ctime": node.stat.ctime,
                "mtime": node.stat.mtime,
                "size": node.stat.size,
            },
        }

    def _search(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        results = []
        for node in self.store.list_markdown_files():
            context = self._note_context(node)
            try:
                result = evaluate(query, context)
            except JsonLogicError as exc:
                raise ToolError(f"{exc} (while processing {node.path})") from exc
            if truthy(result):
                results.append({"filename": node.path, "result": result})
        return results

    async def invoke(self, args: ComplexSearchArgs) -> List[Content]:
        if not args.query:
            raise ToolValidationError("query argument missing in arguments")
        results = await asyncio.to_thread(self._search, args.query)
        logger.info("Complex search matched %d notes", len(results))
        return text_result(results)
