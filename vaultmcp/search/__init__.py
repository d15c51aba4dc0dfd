from vaultmcp.search.matcher import MatchResult, SimpleMatcher, expand_context, normalize
from vaultmcp.search.jsonlogic import JsonLogicError, evaluate, register_operations, truthy

__all__ = [
    "SimpleMatcher",
    "MatchResult",
    "expand_context",
    "normalize",
    "JsonLogicError",
    "evaluate",
    "register_operations",
    "truthy",
]
