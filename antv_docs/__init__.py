"""
AntV Docs - topic extraction and Context7 documentation retrieval.

Public API for the two MCP tools:

- extract_topic: builds the prompt the calling model uses to detect the
  library, extract topics and intent, and decompose complex tasks
- query_document: fetches documentation for the extracted topics,
  concurrently for decomposed subtasks
"""

from .client import Context7Client, get_library_id
from .detector import clear_cache, detect_installed, recommend_library
from .extract_topic import extract_topic
from .libraries import (
    DEFAULT_LIBRARY,
    LIBRARY_IDS,
    get_library_config,
    get_library_keywords,
    is_valid_library,
)
from .models import (
    DocumentationFound,
    FetchFailed,
    FetchOutcome,
    LibraryNotFoundError,
    NoContent,
    ToolResult,
)
from .query_document import query_document

__all__ = [
    'extract_topic',
    'query_document',
    'Context7Client',
    'get_library_id',
    'detect_installed',
    'recommend_library',
    'clear_cache',
    'DEFAULT_LIBRARY',
    'LIBRARY_IDS',
    'is_valid_library',
    'get_library_config',
    'get_library_keywords',
    'FetchOutcome',
    'DocumentationFound',
    'NoContent',
    'FetchFailed',
    'LibraryNotFoundError',
    'ToolResult',
]
