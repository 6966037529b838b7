"""
extract_antv_topic: first step of every AntV query.

Generates the instruction prompt the calling model uses to pick a
library, extract topics, classify the intent and decompose complex
tasks. Makes no network calls.
"""

import logging
import time
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .detector import detect_installed, recommend_library
from .libraries import DEFAULT_LIBRARY, LIBRARY_IDS
from .models import (
    EXTRACT_TOOL_NAME,
    MAX_TOPICS_DEFAULT,
    QUERY_TOOL_NAME,
    ToolResult,
)
from .prompts import generate_extraction_prompt
from .schemas import ExtractTopicInput, format_validation_error

logger = logging.getLogger("antv-mcp")

NAME = EXTRACT_TOOL_NAME

DESCRIPTION = f"""AntV Intelligent Assistant Preprocessing Tool - handles any user query related to AntV visualization libraries.
This tool is the first step for AntV questions: it identifies, parses and structures the user's visualization requirement.

**MANDATORY: Must be called for ANY new AntV-related query, including simple questions. Always precedes {QUERY_TOOL_NAME}.**

When to use this tool:
- **AntV-related queries**: Questions about {'/'.join(LIBRARY_IDS)} libraries.
- **Visualization tasks**: Creating charts, graphs, maps, or other visualizations.
- **Problem solving**: Debugging errors, performance issues, or compatibility problems.
- **Learning & implementation**: Understanding concepts or requesting code examples.

Key features:
- **Smart Library Detection**: Scans installed AntV libraries and recommends the best fit for the query.
- **Topic & Intent Extraction**: Extracts technical topics and the user intent (learn/implement/solve).
- **Task Complexity Handling**: Detects complex tasks and decomposes them into ordered subtasks.
- **Seamless Integration**: Prepares structured input for {QUERY_TOOL_NAME}."""


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


async def extract_topic(arguments: Optional[Dict[str, Any]], project_dir: Optional[str] = None) -> ToolResult:
    """
    Run extract_antv_topic.

    Args:
        arguments: Raw tool arguments ({query, library?, maxTopics?})
        project_dir: Project root scanned for installed libraries when no
            library is given (current directory if None)

    Returns:
        ToolResult whose text is the extraction prompt. Validation and
        internal errors come back as is_error results, never as exceptions.
    """
    start = time.perf_counter()
    arguments = arguments or {}

    try:
        params = ExtractTopicInput.model_validate(arguments)
    except ValidationError as e:
        message = format_validation_error(e)
        logger.warning(f"{NAME} rejected arguments: {message}")
        return _error_result(arguments, message, start)

    try:
        installed = set()
        recommended = None
        if params.library:
            library = params.library
        else:
            installed = detect_installed(project_dir)
            recommended = recommend_library(params.query, installed)
            library = recommended or DEFAULT_LIBRARY

        prompt = generate_extraction_prompt(
            query=params.query,
            library=params.library,
            max_topics=params.maxTopics,
            installed=installed,
            recommended=recommended,
        )
    except Exception as e:
        logger.error(f"Failed to generate extraction prompt: {e}", exc_info=True)
        return _error_result(arguments, str(e), start)

    return ToolResult(
        text=prompt,
        metadata={
            "query": params.query,
            "topic": "",
            "intent": "",
            "library": library,
            "libraryDetected": params.library is None,
            "maxTopics": params.maxTopics,
            "promptGenerated": True,
            "next_tools": [QUERY_TOOL_NAME],
            "isComplexTask": False,
            "subTasks": [],
            "processingTimeMs": _elapsed_ms(start),
        },
    )


def _error_result(arguments: Dict[str, Any], message: str, start: float) -> ToolResult:
    query = arguments.get("query")
    return ToolResult(
        text=f"❌ Failed to generate extraction task: {message}",
        is_error=True,
        metadata={
            "query": query if isinstance(query, str) else "",
            "topic": "",
            "intent": "",
            "library": DEFAULT_LIBRARY,
            "maxTopics": MAX_TOPICS_DEFAULT,
            "promptGenerated": False,
            "next_tools": [QUERY_TOOL_NAME],
            "isComplexTask": False,
            "subTasks": [],
            "processingTimeMs": _elapsed_ms(start),
            "error": message,
        },
    )
