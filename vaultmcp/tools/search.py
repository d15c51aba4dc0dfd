"""
Simple vault search.

Scans Markdown notes in fixed-size batches, stops as soon as it holds one
result more than requested (which proves the result list is truncated), and
yields to the event loop between batches so other requests keep flowing
during a long scan.
"""

import time
import asyncio
import logging
from typing import List

from pydantic import Field

from vaultmcp.core.types import (
    Content,
    MatchPosition,
    SearchMatch,
    SearchResultItem,
    SearchSummary,
)
from vaultmcp.search.matcher import SimpleMatcher, expand_context
from vaultmcp.store.vault import VaultStore
from vaultmcp.tools.base import ToolArgs, ToolHandler, text_result

logger = logging.getLogger("VaultMCP.tools.search")

SEARCH_BATCH_SIZE = 25
DEFAULT_CONTEXT_LENGTH = 100
DEFAULT_MAX_RESULTS = 20
DEFAULT_MAX_FILES = 500
PROGRESS_LOG_EVERY = 100


class SearchArgs(ToolArgs):
    query: str = Field(min_length=1)
    context_length: int = Field(default=DEFAULT_CONTEXT_LENGTH, ge=0)
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=1)
    max_files: int = Field(default=DEFAULT_MAX_FILES, ge=1)


class SearchToolHandler(ToolHandler):
    name = "vault_simple_search"
    description = (
        "Simple search for documents matching a specified text query across files in the vault. "
        "Note: Call vault_init_required first if you haven't already."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Text to search for in the vault."},
            "context_length": {
                "type": "integer",
                "description": f"How much context to return around the matching string (default: {DEFAULT_CONTEXT_LENGTH})",
                "default": DEFAULT_CONTEXT_LENGTH,
            },
            "max_results": {
                "type": "integer",
                "description": f"Maximum number of results to return (default: {DEFAULT_MAX_RESULTS})",
                "default": DEFAULT_MAX_RESULTS,
            },
            "max_files": {
                "type": "integer",
                "description": f"Maximum number of files to search (default: {DEFAULT_MAX_FILES})",
                "default": DEFAULT_MAX_FILES,
            },
        },
        "required": ["query"],
    }
    args_model = SearchArgs

    def __init__(self, store: VaultStore, batch_size: int = SEARCH_BATCH_SIZE):
        self.store = store
        self.batch_size = max(1, batch_size)

    def _score_document(self, matcher: SimpleMatcher, path: str, context_length: int):
        content = self.store.cached_read(path)
        result = matcher.match(content)
        if result is None:
            return None
        matches = []
        for start, end in result.matches:
            context, rel_start, rel_end = expand_context(content, start, end, context_length)
            matches.append(SearchMatch(
                context=context,
                match_position=MatchPosition(start=rel_start, end=rel_end),
            ))
        return SearchResultItem(filename=path, score=result.score, matches=matches)

    async def invoke(self, args: SearchArgs) -> List[Content]:
        logger.info("Starting search for %r (max_results=%d, max_files=%d, context=%d)",
                    args.query, args.max_results, args.max_files, args.context_length)

        matcher = SimpleMatcher(args.query)
        all_files = await asyncio.to_thread(self.store.list_markdown_files)
        candidates = all_files[:args.max_files]

        started = time.monotonic()
        results: List[SearchResultItem] = []
        files_processed = 0
        enough = False

        for offset in range(0, len(candidates), self.batch_size):
            batch = candidates[offset:offset + self.batch_size]
            for node in batch:
                if len(results) > args.max_results:
                    enough = True
                    break
                files_processed += 1
                try:
                    item = await asyncio.to_thread(
                        self._score_document, matcher, node.path, args.context_length
                    )
                except Exception as exc:
                    logger.warning("Error processing file %s during search: %s", node.path, exc)
                    continue
                if item is not None:
                    results.append(item)
                    logger.debug("Found match in %s (score %.3f)", node.path, item.score)
                if files_processed % PROGRESS_LOG_EVERY == 0:
                    logger.info("Processed %d/%d files (%d results)",
                                files_processed, len(candidates), len(results))

            if enough or len(results) > args.max_results:
                logger.info("Early termination after %d files: %d results", files_processed, len(results))
                break
            await asyncio.sleep(0)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        results.sort(key=lambda item: item.score, reverse=True)
        final = results[:args.max_results]

        summary = SearchSummary(
            query=args.query,
            total_results=len(final),
            files_processed=files_processed,
            total_files_in_vault=len(all_files),
            search_time_ms=elapsed_ms,
            truncated=len(results) > args.max_results,
        )
        logger.info("Search completed: %d results in %dms (%d files processed)",
                    len(final), elapsed_ms, files_processed)
        return text_result({
            "summary": summary.model_dump(),
            "results": [item.model_dump() for item in final],
        })
