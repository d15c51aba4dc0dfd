"""
Periodic notes: the daily, weekly, monthly, quarterly or yearly note for today.
"""

import math
import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Literal

from vaultmcp.core.types import Content, TextContent
from vaultmcp.errors import CollaboratorError
from vaultmcp.store.vault import FileNode, VaultStore
from vaultmcp.tools.base import ToolArgs, ToolHandler

logger = logging.getLogger("VaultMCP.tools.periodic")

PERIODS = ("daily", "weekly", "monthly", "quarterly", "yearly")


def week_number(date: datetime) -> int:
    """Week of the year, counting weeks that start on Sunday from January 1st."""
    first_day = datetime(date.year, 1, 1)
    past_days = (date - first_day).total_seconds() / 86400
    first_weekday = (first_day.weekday() + 1) % 7  # Sunday = 0
    return math.ceil((past_days + first_weekday + 1) / 7)


def periodic_note_path(period: str, date: datetime) -> str:
    if period == "daily":
        return f"Daily Notes/{date:%Y-%m-%d}.md"
    if period == "weekly":
        return f"Weekly Notes/{date.year}-W{week_number(date)}.md"
    if period == "monthly":
        return f"Monthly Notes/{date:%Y-%m}.md"
    if period == "quarterly":
        return f"Quarterly Notes/{date.year}-Q{(date.month - 1) // 3 + 1}.md"
    if period == "yearly":
        return f"Yearly Notes/{date.year}.md"
    raise ValueError(f"Unhandled period: {period}")


class PeriodicNotesArgs(ToolArgs):
    period: Literal["daily", "weekly", "monthly", "quarterly", "yearly"]


class PeriodicNotesToolHandler(ToolHandler):
    name = "vault_periodic_notes"
    description = "Get current periodic note for the specified period."
    input_schema = {
        "type": "object",
        "properties": {
            "period": {
                "type": "string",
                "description": "The period type (daily, weekly, monthly, quarterly, yearly)",
                "enum": list(PERIODS),
            },
        },
        "required": ["period"],
    }
    args_model = PeriodicNotesArgs

    def __init__(self, store: VaultStore, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.clock = clock

    def _read(self, path: str) -> str:
        if not isinstance(self.store.stat_node(path), FileNode):
            raise CollaboratorError(f"Periodic note not found: {path}", path=path)
        return self.store.read(path)

    async def invoke(self, args: PeriodicNotesArgs) -> List[Content]:
        path = periodic_note_path(args.period, self.clock())
        logger.debug("Resolved %s note to %s", args.period, path)
        content = await asyncio.to_thread(self._read, path)
        return [TextContent(text=content)]
