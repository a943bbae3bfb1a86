"""Pydantic models shared by the agent loop, the tools and the generators."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

STOP_END = "end"
STOP_TOOL_USE = "tool_use"


class BaseModelWithConfig(BaseModel):
    """Base model enabling alias generation and forbidding silent data loss."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


# ---------- Tool catalog & conversation blocks ----------


class ToolSpec(BaseModelWithConfig):
    """Schema-described capability offered to the model."""

    name: str
    description: str
    input_schema: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []},
        validation_alias=AliasChoices("input_schema", "inputSchema"),
    )

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    @property
    def required(self) -> List[str]:
        return list(self.input_schema.get("required") or [])

    @property
    def properties(self) -> Dict[str, Any]:
        return dict(self.input_schema.get("properties") or {})


class TextBlock(BaseModelWithConfig):
    type: Literal["text"] = "text"
    text: str


class ToolCallRequest(BaseModelWithConfig):
    """A tool invocation requested by the model (an Anthropic ``tool_use`` block)."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModelWithConfig):
    type: Literal["tool_result"] = "tool_result"
    request_id: str = Field(
        validation_alias=AliasChoices("request_id", "tool_use_id"),
        serialization_alias="tool_use_id",
    )
    content: str
    is_error: bool = False


ContentBlock = Annotated[Union[TextBlock, ToolCallRequest, ToolResult], Field(discriminator="type")]


class Turn(BaseModelWithConfig):
    role: Literal["user", "assistant"]
    content: Union[str, List[ContentBlock]]

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)


class Conversation:
    """Append-only sequence of turns owned by a single agent run."""

    def __init__(self) -> None:
        self._turns: List[Turn] = []

    @classmethod
    def start(cls, request: str) -> "Conversation":
        conversation = cls()
        conversation.append(Turn(role="user", content=request))
        return conversation

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def append_assistant(self, blocks: Sequence[Any]) -> None:
        self.append(Turn(role="assistant", content=list(blocks)))

    def append_tool_results(self, results: Sequence[ToolResult]) -> None:
        self.append(Turn(role="user", content=list(results)))

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def to_messages(self) -> List[Dict[str, Any]]:
        """Serialize to the Anthropic Messages API shape."""
        return [turn.model_dump(mode="json", by_alias=True) for turn in self._turns]


class ModelResponse(BaseModelWithConfig):
    stop_reason: str = STOP_END
    content: List[ContentBlock] = Field(default_factory=list)

    @property
    def tool_calls(self) -> List[ToolCallRequest]:
        return [block for block in self.content if isinstance(block, ToolCallRequest)]

    @property
    def texts(self) -> List[str]:
        return [block.text for block in self.content if isinstance(block, TextBlock)]

    @property
    def wants_tools(self) -> bool:
        return self.stop_reason == STOP_TOOL_USE and bool(self.tool_calls)


# ---------- Documents, articles, research ----------


class SourceDocument(BaseModelWithConfig):
    id: str
    title: str
    content: str = ""
    created_at: Optional[datetime] = None


class Interview(SourceDocument):
    vendor_name: Optional[str] = None
    vendor_type: Optional[str] = None

    @classmethod
    def from_document(cls, doc: SourceDocument) -> "Interview":
        # "Interview - Jane Doe - Florist" -> vendor "Jane Doe", type "Florist"
        parts = [p.strip() for p in re.split(r"[-–—]", doc.title or "")]
        vendor_name = parts[1] or None if len(parts) >= 2 else None
        vendor_type = parts[2] or None if len(parts) >= 3 else None
        return cls(
            id=doc.id,
            title=doc.title,
            content=doc.content,
            created_at=doc.created_at,
            vendor_name=vendor_name,
            vendor_type=vendor_type,
        )

    @property
    def display_name(self) -> str:
        return self.vendor_name or self.title


class ArticleDraft(BaseModelWithConfig):
    """Article payload handed to the publishing store. String fields are never None."""

    title: str = ""
    slug: str = ""
    html: str = ""
    excerpt: str = ""
    meta_title: str = ""
    meta_description: str = ""
    tags: List[str] = Field(default_factory=list)
    status: Literal["draft", "published"] = "draft"
    feature_image: Optional[str] = None

    @field_validator("title", "slug", "html", "excerpt", "meta_title", "meta_description", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def unique_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return list(dict.fromkeys(t for t in value if t))


class ExistingArticle(BaseModelWithConfig):
    id: str = ""
    title: str
    slug: str = ""
    published_at: Optional[datetime] = None


class DraftReceipt(BaseModelWithConfig):
    id: str
    url: str = ""


class SearchResult(BaseModelWithConfig):
    title: str = ""
    url: str
    snippet: str = ""
    source: str = ""


class DuplicateCheck(BaseModelWithConfig):
    exact_match: bool = False
    similar: List[str] = Field(default_factory=list)


class GenerationOutcome(BaseModelWithConfig):
    success: bool
    message: str
    article_url: Optional[str] = None
    preview: Optional[str] = None
    draft: Optional[ArticleDraft] = None
