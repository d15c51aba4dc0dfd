"""
JSON Logic evaluation for complex vault queries.

Rules are evaluated by the json-logic library (https://jsonlogic.com). Two
vault-specific string operators are registered on its operator table:
`glob` (shell-style path patterns) and `regexp` (Python regular expressions).
"""

import re
import fnmatch
import logging
from typing import Any

import json_logic
from json_logic import jsonLogic

from vaultmcp.errors import ToolValidationError

logger = logging.getLogger("VaultMCP.search.jsonlogic")


class JsonLogicError(ValueError):
    """Raised when a query uses an unknown operator or malformed arguments."""


def truthy(value: Any) -> bool:
    # JSON Logic treats empty arrays as false.
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return bool(value)


def _glob(value: Any, pattern: Any) -> bool:
    if not isinstance(value, str) or not isinstance(pattern, str):
        return False
    return fnmatch.fnmatchcase(value, pattern)


def _regexp(value: Any, pattern: Any) -> bool:
    if not isinstance(value, str) or not isinstance(pattern, str):
        return False
    try:
        return re.search(pattern, value) is not None
    except re.error as exc:
        raise JsonLogicError(f"invalid regexp {pattern!r}: {exc}") from exc


VAULT_OPERATIONS = {
    "glob": _glob,
    "regexp": _regexp,
}


def register_operations() -> None:
    """Add the vault operators to the json-logic operator table (idempotent)."""
    for name, fn in VAULT_OPERATIONS.items():
        if json_logic.operations.get(name) is not fn:
            json_logic.add_operation(name, fn)
            logger.debug("Registered JSON Logic operator %s", name)


register_operations()


def evaluate(rule: Any, data: Any) -> Any:
    """
    Apply `rule` to `data` and return the raw result.

    Unknown operators and operator failures surface as JsonLogicError; a rule
    that is not an object is a validation error.
    """
    if not isinstance(rule, dict):
        raise ToolValidationError("query must be a JSON Logic object")
    try:
        return jsonLogic(rule, data)
    except JsonLogicError:
        raise
    except (ValueError, TypeError, KeyError) as exc:
        raise JsonLogicError(str(exc) or exc.__class__.__name__) from exc
