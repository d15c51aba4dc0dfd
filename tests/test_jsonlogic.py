import json_logic
import pytest

from vaultmcp.errors import ToolValidationError
from vaultmcp.search.jsonlogic import JsonLogicError, evaluate, register_operations, truthy

NOTE = {
    "path": "projects/beta.md",
    "content": "Beta mentions Python",
    "tags": ["work", "python"],
    "frontmatter": {"status": "active", "priority": 2},
    "stat": {"ctime": 1.0, "mtime": 2.0, "size": 42},
}


def test_var_with_dotted_path_and_default():
    assert evaluate({"var": "frontmatter.status"}, NOTE) == "active"
    assert evaluate({"var": ["frontmatter.missing", "fallback"]}, NOTE) == "fallback"
    assert evaluate({"var": "tags.1"}, NOTE) == "python"


def test_equality_operators():
    assert evaluate({"==": [{"var": "frontmatter.priority"}, "2"]}, NOTE) is True
    assert evaluate({"===": [{"var": "frontmatter.priority"}, "2"]}, NOTE) is False
    assert evaluate({"!==": [{"var": "frontmatter.priority"}, "2"]}, NOTE) is True
    assert evaluate({"!=": [1, 2]}, NOTE) is True


def test_comparisons_including_between():
    assert evaluate({">": [{"var": "stat.size"}, 10]}, NOTE) is True
    assert evaluate({"<=": [{"var": "stat.mtime"}, 2]}, NOTE) is True
    assert evaluate({"<": [1, {"var": "stat.size"}, 100]}, NOTE) is True
    assert evaluate({"<": [1, {"var": "stat.size"}, 10]}, NOTE) is False


def test_logic_operators():
    assert evaluate({"and": [True, 0, "x"]}, NOTE) == 0
    assert evaluate({"or": [False, "yes"]}, NOTE) == "yes"
    assert evaluate({"!": [[]]}, NOTE) is True
    assert evaluate({"!!": ["x"]}, NOTE) is True


def test_if_chain():
    rule = {"if": [{"==": [{"var": "frontmatter.status"}, "done"]}, "closed",
                   {"==": [{"var": "frontmatter.status"}, "active"]}, "open",
                   "unknown"]}
    assert evaluate(rule, NOTE) == "open"


def test_in_string_and_array():
    assert evaluate({"in": ["Python", {"var": "content"}]}, NOTE) is True
    assert evaluate({"in": ["rust", {"var": "tags"}]}, NOTE) is False


def test_array_operators():
    assert evaluate({"some": [{"var": "tags"}, {"==": [{"var": ""}, "work"]}]}, NOTE) is True
    assert evaluate({"all": [{"var": "tags"}, {"in": ["o", {"var": ""}]}]}, NOTE) is True
    assert evaluate({"none": [{"var": "tags"}, {"==": [{"var": ""}, "rust"]}]}, NOTE) is True


def test_missing():
    assert evaluate({"missing": ["path", "frontmatter.owner"]}, NOTE) == ["frontmatter.owner"]


def test_glob_and_regexp():
    assert evaluate({"glob": [{"var": "path"}, "projects/*.md"]}, NOTE) is True
    assert evaluate({"glob": [{"var": "path"}, "archive/*"]}, NOTE) is False
    assert evaluate({"regexp": [{"var": "content"}, r"Py\w+"]}, NOTE) is True
    with pytest.raises(JsonLogicError, match="invalid regexp"):
        evaluate({"regexp": [{"var": "content"}, "("]}, NOTE)


def test_vault_operators_registered_once():
    register_operations()
    register_operations()
    assert "glob" in json_logic.operations
    assert "regexp" in json_logic.operations


def test_unknown_operator():
    with pytest.raises(JsonLogicError, match="frobnicate"):
        evaluate({"frobnicate": [1]}, NOTE)


def test_evaluate_requires_object():
    assert evaluate({"in": ["work", {"var": "tags"}]}, NOTE) is True
    with pytest.raises(ToolValidationError):
        evaluate(["not", "a", "rule"], NOTE)


def test_truthy_follows_json_logic():
    assert truthy([]) is False
    assert truthy([0]) is True
    assert truthy("0") is True
    assert truthy(0) is False
