"""
Internal types for the ask_deepwiki module.
"""

import os
from dataclasses import dataclass


DEEPWIKI_SSE_URL = os.getenv("DEEPWIKI_SSE_URL", "https://mcp.deepwiki.com/sse")
DEEPWIKI_TIMEOUT = float(os.getenv("DEEPWIKI_TIMEOUT", "30"))  # seconds

# Remote tool that answers questions about a repository
ASK_TOOL_NAME = "ask_question"


@dataclass
class AskParams:
    """
    Arguments for the remote ask_question tool.

    Attributes:
        repo_name: GitHub repository in "owner/repo" form
        question: Natural language question
    """
    repo_name: str
    question: str

    def to_arguments(self) -> dict:
        return {"repoName": self.repo_name, "question": self.question}


class DeepWikiAnswerError(Exception):
    """
    Raised when DeepWiki answers with nothing usable.

    Attributes:
        answer: The raw (possibly empty) answer text
    """
    def __init__(self, answer: str):
        self.answer = answer
        super().__init__(f"DeepWiki returned an empty or error answer: {answer[:200]!r}")
