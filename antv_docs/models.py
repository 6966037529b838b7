"""
Configuration, data types and exceptions shared by the antv_docs module.

Tool arguments are validated by the pydantic models in schemas.py; the
dataclasses here carry already-validated values and fetch results.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional


# ============================================================================
# Configurable Constants
# ============================================================================

CONTEXT7_BASE_URL = os.getenv("CONTEXT7_BASE_URL", "https://context7.com/api")
CONTEXT7_TIMEOUT = float(os.getenv("CONTEXT7_TIMEOUT", "30"))  # seconds
CONTEXT7_SOURCE_HEADER = {"X-Context7-Source": "mcp-server"}

# Organization namespace of the AntV libraries on Context7
CONTEXT7_ORG = "antvis"

# Bodies Context7 returns when it has nothing for the topic
NO_CONTENT_SENTINELS = ("No content available", "No context data available")

# Token budget accepted by query_antv_document
TOKENS_MIN = 1000
TOKENS_MAX = 20000
TOKENS_DEFAULT = 5000

# Ceiling for a single sub-task's share of the budget
SUBTASK_TOKEN_CAP = int(os.getenv("ANTV_SUBTASK_TOKEN_CAP", "1000"))

# Topic extraction limits
MAX_TOPICS_MIN = 3
MAX_TOPICS_MAX = 8
MAX_TOPICS_DEFAULT = 5

# Complex-task thresholds rendered into the extraction prompt
COMPLEX_TOPIC_THRESHOLD = int(os.getenv("ANTV_COMPLEX_TOPIC_THRESHOLD", "5"))
COMPLEX_FEATURE_THRESHOLD = int(os.getenv("ANTV_COMPLEX_FEATURE_THRESHOLD", "2"))
COMPLEX_VERB_THRESHOLD = int(os.getenv("ANTV_COMPLEX_VERB_THRESHOLD", "2"))

# Floor for the fuzzy description match in library recommendation
FUZZY_FLOOR = int(os.getenv("ANTV_FUZZY_FLOOR", "60"))

CHARACTER_LIMIT = 25000

# Tool names
EXTRACT_TOOL_NAME = "extract_antv_topic"
QUERY_TOOL_NAME = "query_antv_document"


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class LibraryDescriptor:
    """
    Static description of one AntV library.

    Attributes:
        id: Library slug ("g2", "g6", ...)
        display_name: Human readable name ("G2")
        description: One-line summary used for library detection
        keywords: Curated terminology glossary (may be empty)
        code_style: Code style notes used in implementation guidance
    """
    id: str
    display_name: str
    description: str
    keywords: str = ""
    code_style: str = ""


@dataclass
class SubTask:
    """One independently answerable part of a complex query."""
    query: str
    topic: str
    intent: Optional[str] = None


@dataclass
class MatchResult:
    """
    Result of a library recommendation attempt.

    Attributes:
        library: Matched library slug (None if no match)
        score: Confidence score (0-100)
        tier: Which tier matched ("exact", "feature", "fuzzy", "none")
    """
    library: Optional[str]
    score: float
    tier: str


# ============================================================================
# Fetch Outcomes
# ============================================================================

class FetchOutcome:
    """
    Result of one documentation retrieval attempt.

    Exactly one of three variants: DocumentationFound, NoContent or
    FetchFailed. Every variant exposes ``documentation`` and ``error``
    so callers can also treat it as a ``{documentation, error?}`` pair.
    """
    documentation: Optional[str] = None
    error: Optional[str] = None

    @property
    def has_documentation(self) -> bool:
        return bool(self.documentation and self.documentation.strip())


@dataclass(frozen=True)
class DocumentationFound(FetchOutcome):
    """The upstream returned documentation text."""
    documentation: str


@dataclass(frozen=True)
class NoContent(FetchOutcome):
    """The fetch succeeded but the upstream had nothing for the topic."""


@dataclass(frozen=True)
class FetchFailed(FetchOutcome):
    """The fetch itself failed (timeout, HTTP error, transport exception)."""
    error: str


@dataclass
class SubTaskResult:
    """A sub-task paired with the outcome of its fetch."""
    task: SubTask
    outcome: FetchOutcome


# ============================================================================
# Tool Results
# ============================================================================

@dataclass
class ToolResult:
    """
    What a tool hands back to the MCP layer.

    Attributes:
        text: Markdown text shown to the calling model
        metadata: Structured metadata, published as ``_meta``
        is_error: True when the call failed or was rejected
    """
    text: str
    metadata: Dict[str, object] = field(default_factory=dict)
    is_error: bool = False

    @property
    def content(self) -> List[Dict[str, str]]:
        return [{"type": "text", "text": self.text}]

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {"content": self.content, "_meta": self.metadata}
        if self.is_error:
            data["isError"] = True
        return data


# ============================================================================
# Custom Exceptions
# ============================================================================

class LibraryNotFoundError(KeyError):
    """
    Raised when a library slug is not in the registry.

    Attributes:
        library: The unknown slug
        available: Known slugs
    """
    def __init__(self, library: str, available: List[str]):
        self.library = library
        self.available = available
        super().__init__(f"Unknown AntV library '{library}'. Must be one of: {', '.join(available)}")

    def __str__(self) -> str:
        return self.args[0]


class Context7APIError(Exception):
    """
    Raised when Context7 answers with a non-2xx status.

    Attributes:
        status_code: HTTP status code
        message: Reason phrase or error body
    """
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")
