"""
Input models (Pydantic v2) for the two MCP tools.

The JSON schema of each model is what the server publishes as the
tool's inputSchema; tool_schemas/*.json documents the same shapes.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import (
    MAX_TOPICS_DEFAULT,
    MAX_TOPICS_MAX,
    MAX_TOPICS_MIN,
    TOKENS_DEFAULT,
    TOKENS_MAX,
    TOKENS_MIN,
)

AntVLibrary = Literal["g2", "g6", "l7", "x6", "f2", "s2"]


def _not_blank(value: str, what: str) -> str:
    if not value:
        raise ValueError(f"{what} cannot be empty")
    return value


class ExtractTopicInput(BaseModel):
    """Input model for extract_antv_topic."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    query: str = Field(
        ...,
        description="User specific question or requirement description"
    )
    library: Optional[AntVLibrary] = Field(
        default=None,
        description="AntV library name (optional). If not specified, the tool detects project dependencies and recommends one"
    )
    maxTopics: int = Field(
        default=MAX_TOPICS_DEFAULT,
        description="Maximum number of extracted topic keywords, can be increased for complex tasks",
        ge=MAX_TOPICS_MIN,
        le=MAX_TOPICS_MAX
    )

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        return _not_blank(value, "Query content")


class SubTaskInput(BaseModel):
    """One decomposed subtask of a complex query."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    query: str = Field(..., description="Subtask query")
    topic: str = Field(..., description="Subtask topic")
    intent: Optional[str] = Field(default=None, description="Subtask intent (optional)")

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        return _not_blank(value, "Subtask query")

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, value: str) -> str:
        return _not_blank(value, "Subtask topic")


class QueryDocumentInput(BaseModel):
    """Input model for query_antv_document."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    library: AntVLibrary = Field(
        ...,
        description="AntV library, identified from the user query"
    )
    query: str = Field(
        ...,
        description="User specific question or requirement description"
    )
    topic: str = Field(
        ...,
        description="Technical topic keywords (comma-separated), provided by extract_antv_topic"
    )
    intent: str = Field(
        ...,
        description="User intent (learn, implement or solve), provided by extract_antv_topic"
    )
    tokens: int = Field(
        default=TOKENS_DEFAULT,
        description="Token budget for returned documentation",
        ge=TOKENS_MIN,
        le=TOKENS_MAX
    )
    subTasks: Optional[List[SubTaskInput]] = Field(
        default=None,
        description="Decomposed subtask list for complex tasks, fetched concurrently"
    )

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        return _not_blank(value, "Query")

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, value: str) -> str:
        return _not_blank(value, "Topic")

    @field_validator("intent")
    @classmethod
    def _intent_not_blank(cls, value: str) -> str:
        return _not_blank(value, "Intent")


def format_validation_error(error: ValidationError) -> str:
    """
    Flatten a pydantic ValidationError into one line.

    Example:
        "Schema validation failed: query: Value error, Query content cannot be empty"
    """
    messages = []
    for err in error.errors():
        path = ".".join(str(part) for part in err["loc"])
        messages.append(f"{path}: {err['msg']}" if path else err["msg"])
    return f"Schema validation failed: {', '.join(messages)}"
