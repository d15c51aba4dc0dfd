"""
Tool handler base class.

A handler owns a stable name, a JSON input schema shown to clients and a
pydantic model that validates incoming arguments once, at the boundary.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from vaultmcp.core.types import Content, TextContent, ToolDescriptor
from vaultmcp.errors import ToolValidationError


class ToolArgs(BaseModel):
    """Base for per-tool argument models; unknown keys are ignored."""
    model_config = ConfigDict(extra="ignore")


class NoArgs(ToolArgs):
    pass


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "arguments"
    if first.get("type") in ("missing", "string_too_short"):
        return f"{field} argument missing in arguments"
    return f"Invalid {field} argument: {first.get('msg', 'invalid value')}"


def text_result(payload: Any, *, indent: Optional[int] = 2) -> List[Content]:
    """Wrap a JSON-serialisable payload as a single text content item."""
    return [TextContent(text=json.dumps(payload, indent=indent, ensure_ascii=False, default=str))]


class ToolHandler(ABC):
    name: ClassVar[str]
    description: ClassVar[str]
    input_schema: ClassVar[Dict[str, Any]]
    args_model: ClassVar[Type[ToolArgs]] = NoArgs

    def describe(self) -> ToolDescriptor:
        return ToolDescriptor(name=self.name, description=self.description, inputSchema=self.input_schema)

    def parse_args(self, args: Optional[Dict[str, Any]]) -> ToolArgs:
        if args is None:
            args = {}
        if not isinstance(args, dict):
            raise ToolValidationError("arguments must be an object")
        try:
            return self.args_model.model_validate(args)
        except ValidationError as exc:
            raise ToolValidationError(_describe_validation_error(exc)) from exc

    async def run(self, args: Optional[Dict[str, Any]]) -> List[Content]:
        return await self.invoke(self.parse_args(args))

    @abstractmethod
    async def invoke(self, args: Any) -> List[Content]:
        """Execute with validated arguments."""
