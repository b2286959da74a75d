# =============================================================================
# Chat Steps — Query Generation, Retrieval, Answering, Suggestions
# =============================================================================
#
# PIPELINE POSITIONS:
#   GenerateSearchQueriesStep   query, history      → search_queries
#   RetrieveContextStep         document_id          → passages, context_string
#   GlobalRetrieveContextStep   user_id              → passages, context_string
#   SynthesisRetrieveContextStep user_id, document_ids → passages, context_string
#   GenerateAnswerStep          passages, context_string → answer
#   GenerateAnswerStreamStep    passages, context_string → token chunks, answer
#   GenerateSuggestionsStep     context_string, answer   → suggestions
#
# EMPTY EVIDENCE:
# When retrieval finds nothing the answer steps return the fixed
# `settings.no_context_answer` without calling the LLM. That is a normal
# success, and post-processing still runs.
#
# BEST-EFFORT STEPS:
# Query generation and suggestions degrade to a fallback ([query] and [])
# when the LLM fails or replies with something unparsable.
# =============================================================================

from __future__ import annotations

import contextlib
import json
import logging
import re
from collections.abc import AsyncIterator
from typing import Any

from docqa.agents.prompts import (
    SEARCH_QUERIES_SYSTEM,
    SUGGESTIONS_SYSTEM,
    SYSTEM_PROMPTS,
    build_document_message,
    build_library_message,
    build_search_queries_message,
    build_suggestions_message,
    build_synthesis_message,
)
from docqa.config import settings
from docqa.core.step import Step, StreamingStep
from docqa.core.types import StepResult, StreamChunk
from docqa.services.catalog import DocumentCatalog
from docqa.services.retrieval import (
    build_context,
    fan_out_retrieve,
    multi_query_retrieve,
)
from docqa.services.thinking import ThinkingFilter, strip_thinking
from docqa.services.tools import LlmInput, LlmTool, RetrieverTool

logger = logging.getLogger(__name__)

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


# ---------------------------------------------------------------------------
# Query Generation
# ---------------------------------------------------------------------------


class GenerateSearchQueriesStep(Step):
    name = "GenerateSearchQueriesStep"
    description = "Generates search queries from user input using the LLM."
    reads = ("query", "history")
    writes = ("search_queries",)

    def __init__(self, llm: LlmTool) -> None:
        self._llm = llm

    async def run(self, context: dict[str, Any]) -> StepResult:
        query = context["query"]
        history = context.get("history", [])[-settings.query_history_window:]
        history_text = "\n".join(f"{h['role']}: {h['content']}" for h in history)
        count = "2-3 diverse" if settings.multi_query_enabled else "1 focused"

        try:
            response = await self._llm.execute(LlmInput(
                messages=[{
                    "role": "user",
                    "content": build_search_queries_message(query, history_text),
                }],
                system=SEARCH_QUERIES_SYSTEM.format(count=count),
                temperature=0.0,
            ))
            queries = parse_string_array(response.content)
        except Exception as e:
            logger.warning("Search query generation failed, using the question: %s", e)
            queries = []

        return StepResult.ok({"search_queries": queries or [query]})


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


class RetrieveContextStep(Step):
    """Multi-query retrieval within the single document in scope."""

    name = "RetrieveContextStep"
    description = "Retrieves relevant passages from one document."
    reads = ("query", "document_id")
    writes = ("passages", "context_string")

    def __init__(self, retriever: RetrieverTool) -> None:
        self._retriever = retriever

    async def run(self, context: dict[str, Any]) -> StepResult:
        document_id = context.get("document_id")
        if not document_id:
            return self.failure("document_id is required for document retrieval")

        queries = context.get("search_queries") or [context["query"]]
        passages = await multi_query_retrieve(self._retriever, queries, document_id)

        return StepResult.ok(
            {
                "passages": passages,
                "context_string": build_context(passages, multi_source=False),
            },
            retrieved=len(passages),
        )


class _FanOutRetrieveStep(Step):
    """Shared logic for library-wide and subset retrieval."""

    def __init__(self, retriever: RetrieverTool, catalog: DocumentCatalog) -> None:
        self._retriever = retriever
        self._catalog = catalog

    def _document_ids(self, context: dict[str, Any]) -> list[str] | None:
        return None

    async def run(self, context: dict[str, Any]) -> StepResult:
        user_id = context.get("user_id")
        if not user_id:
            return self.failure(f"user_id is required for {self.name}")

        document_ids = self._document_ids(context)
        if document_ids is not None and not document_ids:
            return self.failure("document_ids is required for synthesis retrieval")

        sources = await self._catalog.list_documents(user_id, document_ids)
        if not sources:
            logger.warning("No searchable documents for user %s", user_id)
            return StepResult.ok({"passages": [], "context_string": ""}, documents=0)

        query = (context.get("search_queries") or [context["query"]])[0]
        passages = await fan_out_retrieve(self._retriever, sources, query)

        return StepResult.ok(
            {
                "passages": passages,
                "context_string": build_context(passages, multi_source=True),
            },
            documents=len(sources),
            retrieved=len(passages),
        )


class GlobalRetrieveContextStep(_FanOutRetrieveStep):
    """Retrieves from every document in the user's library."""

    name = "GlobalRetrieveContextStep"
    description = "Retrieves passages from all documents in the user's library."
    reads = ("query", "user_id")
    writes = ("passages", "context_string")


class SynthesisRetrieveContextStep(_FanOutRetrieveStep):
    """Retrieves from the explicitly selected documents only."""

    name = "SynthesisRetrieveContextStep"
    description = "Retrieves passages from the selected documents."
    reads = ("query", "user_id", "document_ids")
    writes = ("passages", "context_string")

    def _document_ids(self, context: dict[str, Any]) -> list[str] | None:
        return list(context.get("document_ids") or [])


# ---------------------------------------------------------------------------
# Answer Generation
# ---------------------------------------------------------------------------


def has_evidence(context: dict[str, Any]) -> bool:
    return bool(context.get("context_string")) and bool(context.get("passages"))


def build_answer_input(context: dict[str, Any]) -> LlmInput:
    """System prompt, recent history and the grounded question for the scope."""
    scope = context.get("scope", "document")
    query = context["query"]
    grounding = context.get("context_string", "")

    if scope == "synthesis":
        user_content = build_synthesis_message(
            query, grounding, len(context.get("document_ids") or []),
        )
    elif scope == "library":
        user_content = build_library_message(query, grounding)
    else:
        user_content = build_document_message(query, grounding)

    history = context.get("history", [])[-settings.history_window:]
    messages = [{"role": h["role"], "content": h["content"]} for h in history]
    messages.append({"role": "user", "content": user_content})

    return LlmInput(
        messages=messages,
        system=SYSTEM_PROMPTS.get(scope, SYSTEM_PROMPTS["document"]),
    )


class GenerateAnswerStep(Step):
    name = "GenerateAnswerStep"
    description = "Generates an answer from the retrieved context."
    reads = ("query", "scope", "history", "passages", "context_string")
    writes = ("answer",)

    def __init__(self, llm: LlmTool, thinking_filter: ThinkingFilter | None = None) -> None:
        self._llm = llm
        self._thinking_filter = thinking_filter

    async def run(self, context: dict[str, Any]) -> StepResult:
        if not has_evidence(context):
            logger.info("No evidence retrieved, returning fallback answer")
            return StepResult.ok({"answer": settings.no_context_answer}, fallback=True)

        response = await self._llm.execute(build_answer_input(context))
        answer = response.content
        if self._thinking_filter is not None:
            answer = self._thinking_filter.apply(answer)

        return StepResult.ok(
            {"answer": answer},
            model=response.model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
        )


class GenerateAnswerStreamStep(StreamingStep):
    """
    Streams the answer token by token.

    Yields one `token` chunk per visible fragment, then a `data` chunk with
    the full answer so post-processing steps can read it.
    """

    name = "GenerateAnswerStreamStep"
    description = "Streams answer generation token by token."
    reads = ("query", "scope", "history", "passages", "context_string")
    writes = ("answer",)

    def __init__(self, llm: LlmTool, thinking_filter: ThinkingFilter | None = None) -> None:
        self._llm = llm
        self._thinking_filter = thinking_filter

    async def stream(self, context: dict[str, Any]) -> AsyncIterator[StreamChunk]:
        if not has_evidence(context):
            logger.info("No evidence retrieved, streaming fallback answer")
            yield StreamChunk.token(settings.no_context_answer)
            yield StreamChunk.with_data({"answer": settings.no_context_answer})
            return

        fragments = self._llm.stream(build_answer_input(context))
        if self._thinking_filter is not None:
            fragments = strip_thinking(fragments, self._thinking_filter)

        # Closing this step must close the provider stream underneath it.
        parts: list[str] = []
        async with contextlib.aclosing(fragments) as visible:
            async for fragment in visible:
                parts.append(fragment)
                yield StreamChunk.token(fragment)

        answer = "".join(parts)
        logger.debug("Answer stream completed (%d chars)", len(answer))
        yield StreamChunk.with_data({"answer": answer})


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


class GenerateSuggestionsStep(Step):
    name = "GenerateSuggestionsStep"
    description = "Generates follow-up question suggestions."
    reads = ("query", "context_string", "answer")
    writes = ("suggestions",)

    def __init__(self, llm: LlmTool) -> None:
        self._llm = llm

    async def run(self, context: dict[str, Any]) -> StepResult:
        answer = context.get("answer")
        grounding = context.get("context_string")
        if not answer or not grounding:
            return StepResult.ok({"suggestions": []})

        count = settings.suggestion_count
        try:
            response = await self._llm.execute(LlmInput(
                messages=[{
                    "role": "user",
                    "content": build_suggestions_message(
                        context["query"], answer, grounding, count,
                    ),
                }],
                system=SUGGESTIONS_SYSTEM.format(count=count),
            ))
            suggestions = parse_string_array(response.content)[:count]
        except Exception as e:
            logger.warning("Suggestion generation failed: %s", e)
            suggestions = []

        return StepResult.ok({"suggestions": suggestions})


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def parse_string_array(content: str) -> list[str]:
    """
    Pull the first JSON array out of an LLM reply and keep its strings.

    Returns [] when there is no array; raises ValueError when the array
    is malformed JSON.
    """
    match = _JSON_ARRAY.search(content.strip())
    if not match:
        return []
    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Malformed JSON array in LLM reply: {e}") from e
    if not isinstance(items, list):
        return []
    return [item.strip() for item in items if isinstance(item, str) and item.strip()]
