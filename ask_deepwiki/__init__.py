"""
Ask DeepWiki - repository Q&A as an auxiliary documentation source.

Public API for asking DeepWiki about an AntV repository over a
long-lived MCP connection. Used as a fallback when Context7 has no
documentation for a topic.
"""

import logging

from antv_docs.models import DocumentationFound, FetchFailed, FetchOutcome

from .client import DeepWikiConnection, open_sse_session
from .formatters import extract_answer
from .types import ASK_TOOL_NAME, AskParams, DeepWikiAnswerError

__all__ = [
    'ask_question',
    'ask_repository',
    'get_repo_name',
    'DeepWikiConnection',
    'DeepWikiAnswerError',
    'open_sse_session',
]

logger = logging.getLogger("antv-mcp.deepwiki")


def get_repo_name(library: str) -> str:
    """
    Map a library slug to its GitHub repository ("g2" -> "antvis/G2").

    Names that already contain a "/" are returned unchanged.
    """
    if "/" in library:
        return library
    return f"antvis/{library.upper()}"


async def ask_question(connection: DeepWikiConnection, repo_name: str, question: str) -> str:
    """
    Ask DeepWiki a question about a repository.

    Args:
        connection: Connection manager (connects on first use)
        repo_name: Library slug or "owner/repo"
        question: Natural language question

    Returns:
        The answer text without DeepWiki's navigation trailer

    Raises:
        DeepWikiAnswerError: If the answer is empty or an error message
        Exception: Connection and transport errors
    """
    params = AskParams(repo_name=get_repo_name(repo_name), question=question)
    result = await connection.call_tool(ASK_TOOL_NAME, params.to_arguments())
    return extract_answer(result)


async def ask_repository(connection: DeepWikiConnection, library: str, question: str) -> FetchOutcome:
    """
    Same as ask_question, but reports failures as a FetchFailed outcome.
    """
    try:
        answer = await ask_question(connection, library, question)
    except Exception as e:
        logger.error(f"DeepWiki query failed for {library}: {e}")
        return FetchFailed(error=str(e) or type(e).__name__)
    return DocumentationFound(documentation=answer)
