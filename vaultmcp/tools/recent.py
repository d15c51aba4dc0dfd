"""
Recently modified notes.
"""

import time
import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from pydantic import Field

from vaultmcp.core.types import Content
from vaultmcp.store.vault import VaultStore
from vaultmcp.tools.base import ToolArgs, ToolHandler, text_result

DEFAULT_LIMIT = 10
DEFAULT_DAYS = 90


class RecentChangesArgs(ToolArgs):
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    days: int = Field(default=DEFAULT_DAYS, ge=1)


def _iso(timestamp: float) -> str:
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RecentChangesToolHandler(ToolHandler):
    name = "vault_recent_changes"
    description = "Get recent changes in the vault."
    input_schema = {
        "type": "object",
        "properties": {
            "limit": {
                "type": "integer",
                "description": f"Maximum number of changes to return (default: {DEFAULT_LIMIT})",
                "default": DEFAULT_LIMIT,
            },
            "days": {
                "type": "integer",
                "description": f"Number of days to look back (default: {DEFAULT_DAYS})",
                "default": DEFAULT_DAYS,
            },
        },
        "required": [],
    }
    args_model = RecentChangesArgs

    def __init__(self, store: VaultStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock

    def _recent(self, limit: int, days: int) -> List[Dict[str, Any]]:
        cutoff = self.clock() - days * 86400
        recent = [
            node for node in self.store.list_markdown_files()
            if node.stat.mtime >= cutoff
        ]
        recent.sort(key=lambda node: node.stat.mtime, reverse=True)
        return [
            {
                "path": node.path,
                "modifiedTime": _iso(node.stat.mtime),
                "modifiedTimestamp": int(node.stat.mtime * 1000),
                "size": node.stat.size,
            }
            for node in recent[:limit]
        ]

    async def invoke(self, args: RecentChangesArgs) -> List[Content]:
        changes = await asyncio.to_thread(self._recent, args.limit, args.days)
        return text_result(changes)
