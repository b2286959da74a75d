# =============================================================================
# Capability Tools — Wrapped LLM and Retriever Calls
# =============================================================================
#
# Steps never call a provider or the vector store directly; they go
# through these Tools so every external failure is logged the same way
# (tool name + original message) before it propagates.
# =============================================================================

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from docqa.core.tool import StreamingTool, Tool
from docqa.services.llm import LLMProvider, LLMResponse
from docqa.services.vectorstore import RetrievedPassage, Retriever


@dataclass
class LlmInput:
    """Messages for one generation call."""

    messages: list[dict[str, str]]
    system: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass
class RetrieverInput:
    query: str
    namespace: str
    top_k: int = 6


@dataclass
class RetrieverOutput:
    passages: list[RetrievedPassage] = field(default_factory=list)


class LlmTool(StreamingTool[LlmInput, LLMResponse]):
    """Invokes the configured LLM, blocking or streaming."""

    name = "LlmTool"
    description = "Invokes an LLM with the given messages."

    def __init__(self, provider: LLMProvider) -> None:
        self._provider = provider

    async def run(self, tool_input: LlmInput) -> LLMResponse:
        return await self._provider.complete(
            messages=tool_input.messages,
            system=tool_input.system,
            temperature=tool_input.temperature,
            max_tokens=tool_input.max_tokens,
        )

    def run_stream(self, tool_input: LlmInput) -> AsyncIterator[str]:
        return self._provider.stream(
            messages=tool_input.messages,
            system=tool_input.system,
            temperature=tool_input.temperature,
            max_tokens=tool_input.max_tokens,
        )


class RetrieverTool(Tool[RetrieverInput, RetrieverOutput]):
    """Retrieves similar passages from one namespace of the vector store."""

    name = "RetrieverTool"
    description = "Retrieves similar passages from the vector store."

    def __init__(self, retriever: Retriever) -> None:
        self._retriever = retriever

    async def run(self, tool_input: RetrieverInput) -> RetrieverOutput:
        passages = await self._retriever.search(
            query=tool_input.query,
            namespace=tool_input.namespace,
            top_k=tool_input.top_k,
        )
        return RetrieverOutput(passages=passages)
