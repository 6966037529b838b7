"""
Unit tests for the ask_deepwiki module.

The SSE transport is replaced by an in-process session factory, so the
connection manager's single-flight and reconnect behavior can be
observed without a network.

Run with: pytest test_ask_deepwiki.py
"""

import asyncio
from contextlib import asynccontextmanager

import pytest
from mcp import types

from antv_docs import DocumentationFound, FetchFailed
from ask_deepwiki import (
    DeepWikiAnswerError,
    DeepWikiConnection,
    ask_question,
    ask_repository,
    get_repo_name,
)
from ask_deepwiki.formatters import extract_answer


def text_result(text, is_error=False):
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )


class FakeSession:
    """Replies to call_tool with queued results; queued exceptions are raised."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []
        self.closed = False

    async def call_tool(self, name, arguments):
        self.calls.append((name, arguments))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeServer:
    """Session factory handing out queued sessions (or connection errors)."""

    def __init__(self, *sessions):
        self.sessions = list(sessions)
        self.opened = 0

    @asynccontextmanager
    async def connect(self):
        self.opened += 1
        await asyncio.sleep(0.01)
        session = self.sessions.pop(0)
        if isinstance(session, Exception):
            raise session
        try:
            yield session
        finally:
            session.closed = True


# ============================================================================
# Connection Manager
# ============================================================================

class TestDeepWikiConnection:
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_connection(self):
        session = FakeSession()
        server = FakeServer(session)
        connection = DeepWikiConnection(session_factory=server.connect)

        sessions = await asyncio.gather(*(connection.get_session() for _ in range(5)))

        assert server.opened == 1
        assert all(s is session for s in sessions)
        assert connection.connected

        await connection.aclose()
        assert session.closed
        assert not connection.connected

    @pytest.mark.asyncio
    async def test_session_is_reused(self):
        session = FakeSession(text_result("one"), text_result("two"))
        server = FakeServer(session)
        connection = DeepWikiConnection(session_factory=server.connect)

        await connection.call_tool("ask_question", {})
        await connection.call_tool("ask_question", {})

        assert server.opened == 1
        assert len(session.calls) == 2
        await connection.aclose()

    @pytest.mark.asyncio
    async def test_failed_call_resets_and_reconnects(self):
        broken = FakeSession(RuntimeError("stream closed"))
        healthy = FakeSession(text_result("answer"))
        server = FakeServer(broken, healthy)
        connection = DeepWikiConnection(session_factory=server.connect)

        with pytest.raises(RuntimeError):
            await connection.call_tool("ask_question", {})
        assert not connection.connected

        result = await connection.call_tool("ask_question", {})

        assert result.content[0].text == "answer"
        assert server.opened == 2
        await connection.aclose()

    @pytest.mark.asyncio
    async def test_connection_failure_is_shared_then_retried(self):
        session = FakeSession()
        server = FakeServer(ConnectionError("refused"), session)
        connection = DeepWikiConnection(session_factory=server.connect)

        results = await asyncio.gather(
            connection.get_session(),
            connection.get_session(),
            return_exceptions=True,
        )

        assert server.opened == 1
        assert all(isinstance(r, ConnectionError) for r in results)
        assert not connection.connected

        assert await connection.get_session() is session
        assert server.opened == 2
        await connection.aclose()

    @pytest.mark.asyncio
    async def test_aclose_without_connection(self):
        connection = DeepWikiConnection(session_factory=FakeServer().connect)
        await connection.aclose()
        assert not connection.connected


# ============================================================================
# Answers
# ============================================================================

class TestExtractAnswer:
    def test_strips_navigation_trailer(self):
        result = text_result(
            "Use chart.interval() for bar charts.\n\n"
            "Wiki pages you might want to explore:\n- [Marks](/antvis/G2#marks)"
        )
        assert extract_answer(result) == "Use chart.interval() for bar charts."

    def test_joins_text_parts(self):
        result = types.CallToolResult(content=[
            types.TextContent(type="text", text="first"),
            types.TextContent(type="text", text="second"),
        ])
        assert extract_answer(result) == "first\nsecond"

    @pytest.mark.parametrize(
        "result",
        [
            text_result(""),
            text_result("   "),
            text_result("Error fetching wiki for antvis/G9"),
            text_result("some answer", is_error=True),
        ],
    )
    def test_unusable_answers(self, result):
        with pytest.raises(DeepWikiAnswerError):
            extract_answer(result)


class TestAskQuestion:
    def test_repo_name(self):
        assert get_repo_name("g2") == "antvis/G2"
        assert get_repo_name("antvis/S2") == "antvis/S2"

    @pytest.mark.asyncio
    async def test_ask_question(self):
        session = FakeSession(text_result("G6 layouts are configured via layout."))
        connection = DeepWikiConnection(session_factory=FakeServer(session).connect)

        answer = await ask_question(connection, "g6", "How do I configure layouts?")

        assert answer == "G6 layouts are configured via layout."
        assert session.calls == [
            ("ask_question", {"repoName": "antvis/G6", "question": "How do I configure layouts?"})
        ]
        await connection.aclose()

    @pytest.mark.asyncio
    async def test_ask_repository_found(self):
        session = FakeSession(text_result("answer"))
        connection = DeepWikiConnection(session_factory=FakeServer(session).connect)

        outcome = await ask_repository(connection, "g2", "question")

        assert outcome == DocumentationFound(documentation="answer")
        await connection.aclose()

    @pytest.mark.asyncio
    async def test_ask_repository_failure(self):
        connection = DeepWikiConnection(session_factory=FakeServer(ConnectionError("refused")).connect)

        outcome = await ask_repository(connection, "g2", "question")

        assert isinstance(outcome, FetchFailed)
        assert "refused" in outcome.error
        assert not outcome.has_documentation
