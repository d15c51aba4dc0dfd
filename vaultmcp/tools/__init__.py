from typing import List, Optional

from vaultmcp.core.config import DEFAULT_TEMPLATES_DIR
from vaultmcp.store.vault import VaultStore
from vaultmcp.tools.base import NoArgs, ToolArgs, ToolHandler, text_result
from vaultmcp.tools.complex_search import ComplexSearchToolHandler
from vaultmcp.tools.files import (
    AppendContentToolHandler,
    DeleteFileToolHandler,
    GetFileContentsToolHandler,
    ListFilesToolHandler,
)
from vaultmcp.tools.init_tool import InitToolHandler, SystemPromptGetter
from vaultmcp.tools.periodic import PeriodicNotesToolHandler
from vaultmcp.tools.recent import RecentChangesToolHandler
from vaultmcp.tools.search import SearchToolHandler
from vaultmcp.tools.templates import TemplatesToolHandler


def build_default_handlers(
    store: VaultStore,
    templates_dir: str = DEFAULT_TEMPLATES_DIR,
    system_prompt_getter: Optional[SystemPromptGetter] = None,
) -> List[ToolHandler]:
    """All vault tools in registration order; the init tool comes first."""
    return [
        InitToolHandler(system_prompt_getter),
        ListFilesToolHandler(store),
        GetFileContentsToolHandler(store),
        SearchToolHandler(store),
        AppendContentToolHandler(store),
        DeleteFileToolHandler(store),
        ComplexSearchToolHandler(store),
        PeriodicNotesToolHandler(store),
        RecentChangesToolHandler(store),
        TemplatesToolHandler(store, templates_dir),
    ]


__all__ = [
    "ToolArgs",
    "NoArgs",
    "ToolHandler",
    "text_result",
    "build_default_handlers",
    "InitToolHandler",
    "ListFilesToolHandler",
    "GetFileContentsToolHandler",
    "SearchToolHandler",
    "AppendContentToolHandler",
    "DeleteFileToolHandler",
    "ComplexSearchToolHandler",
    "PeriodicNotesToolHandler",
    "RecentChangesToolHandler",
    "TemplatesToolHandler",
]
