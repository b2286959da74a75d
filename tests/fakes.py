# =============================================================================
# Test Doubles — LLM Provider and Retriever
# =============================================================================
#
# In-memory stand-ins for the two capabilities, so the pipeline runs
# without API keys, network access or a vector store.
# =============================================================================

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence

from docqa.agents.prompts import (
    MINDMAP_SYSTEM,
    SEARCH_QUERIES_SYSTEM,
    SUGGESTIONS_SYSTEM,
    TITLE_SYSTEM,
)
from docqa.services.llm import LLMResponse
from docqa.services.vectorstore import RetrievedPassage


def passage(
    text: str,
    source_id: str = "doc-1",
    page: int | None = None,
    source_name: str | None = None,
) -> RetrievedPassage:
    return RetrievedPassage(
        text=text, source_id=source_id, page_number=page, source_name=source_name,
    )


def _kind(system: str | None) -> str:
    """Which pipeline call a request belongs to, judged by its system prompt."""
    if not system:
        return "answer"
    if system.startswith(SEARCH_QUERIES_SYSTEM[:30]):
        return "queries"
    if system.startswith(SUGGESTIONS_SYSTEM[:30]):
        return "suggestions"
    if system == TITLE_SYSTEM:
        return "title"
    if system == MINDMAP_SYSTEM:
        return "mindmap"
    return "answer"


class FakeLLM:
    """
    LLMProvider double that replies per call kind.

    `replies` maps a kind (queries / suggestions / answer / title /
    mindmap) to the reply text; kinds listed in `fail` raise instead.
    `fragments` is what stream() yields.
    """

    def __init__(
        self,
        replies: dict[str, str] | None = None,
        fragments: Sequence[str] = (),
        fail: Sequence[str] = (),
        stream_error: Exception | None = None,
    ) -> None:
        self.replies = {
            "queries": '["search query"]',
            "suggestions": '["Follow-up one?", "Follow-up two?"]',
            "answer": "An answer.",
            "title": "A Title",
            "mindmap": '{"nodes": [], "edges": []}',
            **(replies or {}),
        }
        self.fragments = list(fragments)
        self.fail = set(fail)
        self.stream_error = stream_error
        self.calls: list[dict] = []

    async def complete(self, messages, system=None, temperature=None, max_tokens=None):
        kind = _kind(system)
        self.calls.append({
            "kind": kind, "messages": messages, "system": system,
            "temperature": temperature,
        })
        if kind in self.fail:
            raise RuntimeError(f"{kind} call failed")
        return LLMResponse(content=self.replies[kind], model="fake-model")

    async def stream(
        self, messages, system=None, temperature=None, max_tokens=None,
    ) -> AsyncIterator[str]:
        self.calls.append({"kind": "stream", "messages": messages, "system": system})
        for fragment in self.fragments:
            await asyncio.sleep(0)
            yield fragment
        if self.stream_error is not None:
            raise self.stream_error

    def kinds(self) -> list[str]:
        return [call["kind"] for call in self.calls]


class FakeRetriever:
    """
    Retriever double.

    `results` is keyed by namespace, or by (namespace, query) for
    query-specific results. Namespaces in `failing` raise; `delays`
    slows a namespace down to shuffle completion order.
    """

    def __init__(
        self,
        results: dict | None = None,
        failing: Sequence[str] = (),
        delays: dict[str, float] | None = None,
    ) -> None:
        self.results = results or {}
        self.failing = set(failing)
        self.delays = delays or {}
        self.calls: list[tuple[str, str, int]] = []

    async def search(self, query: str, namespace: str, top_k: int = 6) -> list[RetrievedPassage]:
        self.calls.append((query, namespace, top_k))
        if namespace in self.delays:
            await asyncio.sleep(self.delays[namespace])
        if namespace in self.failing:
            raise ConnectionError(f"namespace {namespace} unavailable")
        found = self.results.get((namespace, query), self.results.get(namespace, []))
        return list(found)[:top_k]
