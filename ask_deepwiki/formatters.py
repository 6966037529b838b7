"""
Answer extraction for DeepWiki responses.
"""

import re

from mcp import types

from .types import DeepWikiAnswerError

# DeepWiki appends navigation links after the answer proper
_TRAILER = re.compile(r"Wiki pages you might want to explore:|View this search on DeepWiki:", re.IGNORECASE)


def extract_answer(result: types.CallToolResult) -> str:
    """
    Pull the answer text out of an ask_question result.

    Text parts are joined with newlines and the trailing navigation
    section is cut off.

    Raises:
        DeepWikiAnswerError: If the result is an error, empty, or starts with "Error"
    """
    answer = "\n".join(
        item.text for item in result.content if isinstance(item, types.TextContent)
    )

    match = _TRAILER.search(answer)
    if match:
        answer = answer[:match.start()].rstrip()

    if result.isError or not answer.strip() or answer.startswith("Error"):
        raise DeepWikiAnswerError(answer)
    return answer
