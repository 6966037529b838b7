"""
query_antv_document: fetches AntV documentation for extracted topics.

Simple queries make one Context7 request with the full token budget.
Decomposed queries fetch every subtask concurrently with a share of the
budget; one failing subtask never aborts its siblings.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from .client import Context7Client, get_library_id
from .formatters import format_complex_response, format_processing_error, format_simple_response
from .libraries import LIBRARY_IDS, get_library_config
from .models import (
    EXTRACT_TOOL_NAME,
    QUERY_TOOL_NAME,
    SUBTASK_TOKEN_CAP,
    FetchFailed,
    FetchOutcome,
    SubTask,
    SubTaskResult,
    ToolResult,
)
from .schemas import QueryDocumentInput, format_validation_error

logger = logging.getLogger("antv-mcp")

# (library slug, question) -> outcome; asked when Context7 has nothing
FallbackSource = Callable[[str, str], Awaitable[FetchOutcome]]

NAME = QUERY_TOOL_NAME

DESCRIPTION = f"""AntV Context Retrieval Assistant - fetches relevant documentation, code examples and best practices from official AntV resources. Supports {', '.join(LIBRARY_IDS)} libraries and handles decomposed subtasks concurrently.

**MANDATORY: Must be called for ANY AntV-related query ({', '.join(LIBRARY_IDS)}), regardless of task complexity. No exceptions for simple tasks.**

When to use this tool:
- **Implementation & Optimization**: Implementing features, modifying styles, refactoring code or optimizing performance.
- **Debugging & Problem Solving**: Troubleshooting errors, unexpected behaviour or technical challenges.
- **Learning & Best Practices**: Exploring official documentation, code examples and advanced features.
- **Complex Task Handling**: Multi-step tasks decomposed into subtasks by {EXTRACT_TOOL_NAME} (e.g. "Build a dashboard with interactive charts").
- **Simple modifications**: Even basic changes like "Change the chart's color" or "Update legend position"."""


def subtask_token_budget(total_tokens: int, subtask_count: int, cap: int = SUBTASK_TOKEN_CAP) -> int:
    """Each subtask gets an equal share of the budget, capped at ``cap``."""
    if subtask_count <= 0:
        return min(total_tokens, cap)
    return min(total_tokens // subtask_count, cap)


def split_topics(topic: Optional[str]) -> List[str]:
    if not topic:
        return []
    return [t.strip() for t in topic.split(",") if t.strip()]


async def query_document(
    arguments: Optional[Dict[str, Any]],
    client: Optional[Context7Client] = None,
    fallback: Optional[FallbackSource] = None
) -> ToolResult:
    """
    Run query_antv_document.

    Args:
        arguments: Raw tool arguments ({library, query, topic, intent, tokens?, subTasks?})
        client: Documentation client (a default Context7Client if None)
        fallback: Optional secondary source asked when a fetch finds nothing

    Returns:
        ToolResult with the Markdown answer. Never raises.
    """
    start = time.perf_counter()
    arguments = arguments or {}

    try:
        params = QueryDocumentInput.model_validate(arguments)
    except ValidationError as e:
        message = format_validation_error(e)
        logger.warning(f"{NAME} rejected arguments: {message}")
        return _error_result(arguments, message, start)

    try:
        client = client or Context7Client()
        lib = get_library_config(params.library)
        library_id = get_library_id(params.library)

        if params.subTasks:
            subtasks = [SubTask(query=t.query, topic=t.topic, intent=t.intent) for t in params.subTasks]
            tokens = subtask_token_budget(params.tokens, len(subtasks))
            results = await fetch_subtasks(client, library_id, params.library, subtasks, tokens, fallback)
            has_documentation = any(r.outcome.has_documentation for r in results)
            text = format_complex_response(lib, params.query, params.intent, results)
        else:
            outcome = await _fetch_one(client, library_id, params.library, params.topic, params.query, params.tokens, fallback)
            has_documentation = outcome.has_documentation
            text = format_simple_response(lib, params.query, params.topic, params.intent, outcome)
    except Exception as e:
        logger.error(f"Failed to execute {NAME}: {e}", exc_info=True)
        return _error_result(arguments, str(e), start)

    return ToolResult(
        text=text,
        metadata={
            "topics": split_topics(params.topic),
            "intent": params.intent,
            "library": params.library,
            "hasDocumentation": has_documentation,
            "isComplexTask": bool(params.subTasks),
            "subTaskCount": len(params.subTasks or []),
            "processingTimeMs": int((time.perf_counter() - start) * 1000),
        },
    )


async def fetch_subtasks(
    client: Context7Client,
    library_id: str,
    library: str,
    subtasks: List[SubTask],
    tokens: int,
    fallback: Optional[FallbackSource] = None
) -> List[SubTaskResult]:
    """
    Fetch every subtask concurrently and wait for all of them.

    Results are returned in the order of ``subtasks`` regardless of which
    request finishes first. A subtask whose fetch raises is reported as
    FetchFailed; the others are unaffected.
    """
    async def run(index: int, task: SubTask) -> SubTaskResult:
        logger.info(f"Processing subtask {index + 1}/{len(subtasks)}: {task.topic}")
        try:
            outcome = await _fetch_one(client, library_id, library, task.topic, task.query, tokens, fallback)
        except Exception as e:
            logger.error(f"Failed to process subtask {index + 1}: {e}")
            outcome = FetchFailed(error=str(e) or type(e).__name__)
        return SubTaskResult(task=task, outcome=outcome)

    return list(await asyncio.gather(*(run(i, task) for i, task in enumerate(subtasks))))


async def _fetch_one(
    client: Context7Client,
    library_id: str,
    library: str,
    topic: str,
    question: str,
    tokens: int,
    fallback: Optional[FallbackSource]
) -> FetchOutcome:
    outcome = await client.fetch_documentation(library_id, topic, tokens)
    if outcome.has_documentation or fallback is None:
        return outcome

    logger.info(f"No Context7 documentation for '{topic}', asking fallback source")
    try:
        alternative = await fallback(library, question)
    except Exception as e:
        logger.warning(f"Fallback source failed for '{topic}': {e}")
        return outcome
    return alternative if alternative.has_documentation else outcome


def _error_result(arguments: Dict[str, Any], message: str, start: float) -> ToolResult:
    topic = arguments.get("topic")
    intent = arguments.get("intent")
    library = arguments.get("library")
    return ToolResult(
        text=format_processing_error(message),
        is_error=True,
        metadata={
            "topics": split_topics(topic) if isinstance(topic, str) else [],
            "intent": intent if isinstance(intent, str) else "",
            "library": library if isinstance(library, str) else "",
            "hasDocumentation": False,
            "processingTimeMs": int((time.perf_counter() - start) * 1000),
            "error": message,
        },
    )
