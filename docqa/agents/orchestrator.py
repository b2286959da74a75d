# =============================================================================
# Chat Agent — Task Dispatch and Caller-Facing Stream
# =============================================================================
#
# Entry point for the surrounding application:
#
#   ChatRequest ──to_intent()──▶ SingleDocumentIntent ─┐
#                                LibraryIntent ────────┼─▶ workflow ─▶ ChatAnswer
#                                SynthesisIntent ──────┘        │
#                                                               └──▶ AgentChunk stream
#
# Each intent type maps to exactly one workflow family. Streaming output
# is translated from the generic StreamChunk vocabulary
# (token/data/error/done) into the caller's (token/suggestions/error/done);
# `data` chunks surface only their `suggestions` field.
# =============================================================================

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

from docqa.agents.prompts import TITLE_SYSTEM, build_title_message
from docqa.agents.state import (
    ChatContext,
    DocumentChatContext,
    LibraryChatContext,
    SynthesisChatContext,
)
from docqa.agents.workflows import (
    AnswerLibraryStreamWorkflow,
    AnswerLibraryWorkflow,
    AnswerQuestionStreamWorkflow,
    AnswerQuestionWorkflow,
    AnswerSynthesisStreamWorkflow,
    AnswerSynthesisWorkflow,
    ChatTools,
)
from docqa.config import settings
from docqa.core.streaming import StreamingWorkflow
from docqa.core.types import StreamChunk
from docqa.core.workflow import Workflow
from docqa.models.requests import (
    ChatRequest,
    LibraryIntent,
    SingleDocumentIntent,
    SynthesisIntent,
)
from docqa.models.responses import AgentChunk, ChatAnswer
from docqa.services.catalog import DocumentCatalog, InMemoryDocumentCatalog
from docqa.services.llm import LLMProvider, get_llm_provider
from docqa.services.thinking import ThinkingFilter
from docqa.services.tools import LlmInput, LlmTool, RetrieverTool
from docqa.services.vectorstore import Retriever, get_retriever

logger = logging.getLogger(__name__)

Intent = SingleDocumentIntent | LibraryIntent | SynthesisIntent


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def initial_context(intent: Intent) -> ChatContext:
    """Seed a fresh context record from the intent."""
    history = [turn.model_dump() for turn in intent.history]
    if isinstance(intent, SynthesisIntent):
        return SynthesisChatContext(
            scope="synthesis", query=intent.query, history=history,
            user_id=intent.user_id, document_ids=list(intent.document_ids),
        )
    if isinstance(intent, LibraryIntent):
        return LibraryChatContext(
            scope="library", query=intent.query, history=history,
            user_id=intent.user_id,
        )
    return DocumentChatContext(
        scope="document", query=intent.query, history=history,
        document_id=intent.document_id,
    )


def select_workflow(intent: Intent, tools: ChatTools) -> Workflow:
    if isinstance(intent, SynthesisIntent):
        return AnswerSynthesisWorkflow(tools)
    if isinstance(intent, LibraryIntent):
        return AnswerLibraryWorkflow(tools)
    if isinstance(intent, SingleDocumentIntent):
        return AnswerQuestionWorkflow(tools)
    raise TypeError(f"Unknown chat intent: {type(intent).__name__}")


def select_stream_workflow(intent: Intent, tools: ChatTools) -> StreamingWorkflow:
    if isinstance(intent, SynthesisIntent):
        return AnswerSynthesisStreamWorkflow(tools)
    if isinstance(intent, LibraryIntent):
        return AnswerLibraryStreamWorkflow(tools)
    if isinstance(intent, SingleDocumentIntent):
        return AnswerQuestionStreamWorkflow(tools)
    raise TypeError(f"Unknown chat intent: {type(intent).__name__}")


def to_agent_chunk(chunk: StreamChunk) -> AgentChunk | None:
    """
    Translate one workflow chunk for the caller.

    Returns None for `data` chunks that carry nothing the caller sees.
    """
    if chunk.type == "token":
        return AgentChunk(type="token", content=chunk.content or "")
    if chunk.type == "data":
        suggestions = (chunk.data or {}).get("suggestions")
        if isinstance(suggestions, list) and suggestions:
            return AgentChunk(type="suggestions", suggestions=list(suggestions))
        return None
    if chunk.type == "error":
        return AgentChunk(type="error", error=chunk.error or "Unknown error")
    return AgentChunk(type="done")


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------


class ChatAgent:
    """
    Question answering over one document, a library, or a selected subset.

    Collaborators default to the configured singletons; pass them in to
    run against other providers or fakes.
    """

    name = "ChatAgent"

    def __init__(
        self,
        llm: LLMProvider | None = None,
        retriever: Retriever | None = None,
        catalog: DocumentCatalog | None = None,
        thinking_filter: ThinkingFilter | None = None,
    ) -> None:
        if thinking_filter is None and settings.thinking_filter_enabled:
            thinking_filter = ThinkingFilter(
                settings.thinking_open_tag, settings.thinking_close_tag,
            )
        if catalog is None:
            logger.warning("ChatAgent created without a document catalog")
            catalog = InMemoryDocumentCatalog()

        self.tools = ChatTools(
            llm=LlmTool(llm or get_llm_provider()),
            retriever=RetrieverTool(retriever or get_retriever()),
            catalog=catalog,
            thinking_filter=thinking_filter,
        )

    async def ask(self, request: ChatRequest | Intent) -> ChatAnswer:
        """
        Answer a question and wait for the complete result.

        Raises:
            WorkflowError: a step failed; the error names the step.
            ValueError: the request shape cannot be resolved to an intent.
        """
        intent = _resolve(request)
        workflow = select_workflow(intent, self.tools)
        logger.info(
            "Answering %s question with %s (query='%s')",
            intent.kind, workflow.name, intent.query[:80],
        )

        result = await workflow.execute(initial_context(intent))

        logger.info(
            "Answered: %d chars, %d suggestions",
            len(result.get("answer", "")), len(result.get("suggestions", [])),
        )
        return ChatAnswer(
            answer=result.get("answer", ""),
            suggestions=result.get("suggestions", []),
        )

    async def stream(self, request: ChatRequest | Intent) -> AsyncIterator[AgentChunk]:
        """
        Stream the answer. The last chunk is always `done` or `error`.

        Closing this iterator early cancels the underlying workflow.
        """
        try:
            intent = _resolve(request)
        except ValueError as e:
            yield AgentChunk(type="error", error=str(e))
            return

        workflow = select_stream_workflow(intent, self.tools)
        logger.info(
            "Streaming %s question with %s (query='%s')",
            intent.kind, workflow.name, intent.query[:80],
        )

        async with contextlib.aclosing(
            workflow.execute(initial_context(intent))
        ) as chunks:
            async for chunk in chunks:
                agent_chunk = to_agent_chunk(chunk)
                if agent_chunk is None:
                    continue
                yield agent_chunk
                if agent_chunk.is_terminal:
                    return

    async def generate_title(self, message: str, document_name: str | None = None) -> str:
        """Short conversation title; falls back to the message itself."""
        try:
            response = await self.tools.llm.execute(LlmInput(
                messages=[{"role": "user", "content": build_title_message(message, document_name)}],
                system=TITLE_SYSTEM,
            ))
            title = response.content.strip()[:100]
        except Exception as e:
            logger.warning("Title generation failed: %s", e)
            title = ""
        if title:
            return title
        return message[:50] + ("..." if len(message) > 50 else "")


def _resolve(request: ChatRequest | Intent) -> Intent:
    if isinstance(request, ChatRequest):
        return request.to_intent()
    return request
