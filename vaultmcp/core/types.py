"""
VaultMCP Core Types
-------------------
Pydantic models for tool descriptors, tool content, prompts and search results.
"""

from typing import Any, Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ToolDescriptor(BaseModel):
    """Name, description and JSON schema a client sees for one tool."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str
    input_schema: Dict[str, Any] = Field(alias="inputSchema")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    type: Literal["image"] = "image"
    url: str


class EmbeddedResource(BaseModel):
    type: Literal["embedded"] = "embedded"
    url: str


Content = Annotated[
    Union[TextContent, ImageContent, EmbeddedResource],
    Field(discriminator="type"),
]


class PromptArgument(BaseModel):
    name: str
    description: Optional[str] = None
    required: bool = False


class Prompt(BaseModel):
    name: str
    description: Optional[str] = None
    arguments: Optional[List[PromptArgument]] = None


class PromptMessage(BaseModel):
    role: Literal["user", "assistant"] = "user"
    content: TextContent


class GetPromptResult(BaseModel):
    description: Optional[str] = None
    messages: List[PromptMessage] = Field(default_factory=list)


class MatchPosition(BaseModel):
    start: int
    end: int


class SearchMatch(BaseModel):
    context: str
    match_position: MatchPosition


class SearchResultItem(BaseModel):
    filename: str
    score: float
    matches: List[SearchMatch] = Field(default_factory=list)


class SearchSummary(BaseModel):
    query: str
    total_results: int
    files_processed: int
    total_files_in_vault: int
    search_time_ms: int
    truncated: bool


def dump_content(items: List[Any]) -> List[Dict[str, Any]]:
    """Serialize a tool result list for the wire."""
    return [item.model_dump() for item in items]
