"""Tests for vaultmcp.core.types: wire shapes of the Pydantic models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from vaultmcp.core.types import (
    Content,
    GetPromptResult,
    ImageContent,
    Prompt,
    PromptArgument,
    PromptMessage,
    SearchResultItem,
    TextContent,
    ToolDescriptor,
    dump_content,
)


class TestToolDescriptor:
    def test_wire_uses_camel_case_schema(self):
        descriptor = ToolDescriptor(name="t", description="d", input_schema={"type": "object"})
        assert descriptor.to_wire() == {"name": "t", "description": "d", "inputSchema": {"type": "object"}}

    def test_accepts_alias(self):
        descriptor = ToolDescriptor.model_validate({"name": "t", "description": "d", "inputSchema": {}})
        assert descriptor.input_schema == {}

    def test_frozen(self):
        descriptor = ToolDescriptor(name="t", description="d", input_schema={})
        with pytest.raises(ValidationError):
            descriptor.name = "other"


class TestContent:
    def test_discriminated_by_type(self):
        adapter = TypeAdapter(Content)
        assert isinstance(adapter.validate_python({"type": "text", "text": "x"}), TextContent)
        assert isinstance(adapter.validate_python({"type": "image", "url": "u"}), ImageContent)
        with pytest.raises(ValidationError):
            adapter.validate_python({"type": "video", "url": "u"})

    def test_dump_content(self):
        items = [TextContent(text="a"), ImageContent(url="file.png")]
        assert dump_content(items) == [
            {"type": "text", "text": "a"},
            {"type": "image", "url": "file.png"},
        ]


class TestPrompts:
    def test_prompt_defaults(self):
        prompt = Prompt(name="p", arguments=[PromptArgument(name="topic")])
        assert prompt.model_dump(exclude_none=True) == {
            "name": "p",
            "arguments": [{"name": "topic", "required": False}],
        }

    def test_message_role_defaults_to_user(self):
        result = GetPromptResult(messages=[PromptMessage(content=TextContent(text="hi"))])
        assert result.model_dump(exclude_none=True) == {
            "messages": [{"role": "user", "content": {"type": "text", "text": "hi"}}],
        }


def test_search_result_item_defaults():
    item = SearchResultItem(filename="a.md", score=0.5)
    assert item.matches == []
