# =============================================================================
# Chat Workflows — Three Scopes × Blocking / Streaming
# =============================================================================
#
#   scope      blocking                  streaming
#   ─────────  ────────────────────────  ─────────────────────────────
#   document   AnswerQuestionWorkflow    AnswerQuestionStreamWorkflow
#   library    AnswerLibraryWorkflow     AnswerLibraryStreamWorkflow
#   synthesis  AnswerSynthesisWorkflow   AnswerSynthesisStreamWorkflow
#
# Document:  queries → retrieve → answer → suggestions
# Library:   global retrieve → answer → suggestions
# Synthesis: subset retrieve → answer → suggestions
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass

from docqa.agents.state import DOCUMENT_INPUTS, LIBRARY_INPUTS, SYNTHESIS_INPUTS
from docqa.agents.steps import (
    GenerateAnswerStep,
    GenerateAnswerStreamStep,
    GenerateSearchQueriesStep,
    GenerateSuggestionsStep,
    GlobalRetrieveContextStep,
    RetrieveContextStep,
    SynthesisRetrieveContextStep,
)
from docqa.core.streaming import StreamingWorkflow
from docqa.core.workflow import Workflow
from docqa.services.catalog import DocumentCatalog
from docqa.services.thinking import ThinkingFilter
from docqa.services.tools import LlmTool, RetrieverTool


@dataclass(frozen=True)
class ChatTools:
    """Shared, read-only collaborators handed to every chat step."""

    llm: LlmTool
    retriever: RetrieverTool
    catalog: DocumentCatalog
    thinking_filter: ThinkingFilter | None = None


# ---------------------------------------------------------------------------
# Single Document
# ---------------------------------------------------------------------------


class AnswerQuestionWorkflow(Workflow):
    name = "AnswerQuestionWorkflow"
    inputs = DOCUMENT_INPUTS

    def __init__(self, tools: ChatTools) -> None:
        super().__init__([
            GenerateSearchQueriesStep(tools.llm),
            RetrieveContextStep(tools.retriever),
            GenerateAnswerStep(tools.llm, tools.thinking_filter),
            GenerateSuggestionsStep(tools.llm),
        ])


class AnswerQuestionStreamWorkflow(StreamingWorkflow):
    name = "AnswerQuestionStreamWorkflow"
    inputs = DOCUMENT_INPUTS

    def __init__(self, tools: ChatTools) -> None:
        super().__init__(
            preparation_steps=[
                GenerateSearchQueriesStep(tools.llm),
                RetrieveContextStep(tools.retriever),
            ],
            streaming_step=GenerateAnswerStreamStep(tools.llm, tools.thinking_filter),
            post_steps=[GenerateSuggestionsStep(tools.llm)],
        )


# ---------------------------------------------------------------------------
# Whole Library
# ---------------------------------------------------------------------------


class AnswerLibraryWorkflow(Workflow):
    name = "AnswerLibraryWorkflow"
    inputs = LIBRARY_INPUTS

    def __init__(self, tools: ChatTools) -> None:
        super().__init__([
            GlobalRetrieveContextStep(tools.retriever, tools.catalog),
            GenerateAnswerStep(tools.llm, tools.thinking_filter),
            GenerateSuggestionsStep(tools.llm),
        ])


class AnswerLibraryStreamWorkflow(StreamingWorkflow):
    name = "AnswerLibraryStreamWorkflow"
    inputs = LIBRARY_INPUTS

    def __init__(self, tools: ChatTools) -> None:
        super().__init__(
            preparation_steps=[GlobalRetrieveContextStep(tools.retriever, tools.catalog)],
            streaming_step=GenerateAnswerStreamStep(tools.llm, tools.thinking_filter),
            post_steps=[GenerateSuggestionsStep(tools.llm)],
        )


# ---------------------------------------------------------------------------
# Explicit Subset (Synthesis)
# ---------------------------------------------------------------------------


class AnswerSynthesisWorkflow(Workflow):
    name = "AnswerSynthesisWorkflow"
    inputs = SYNTHESIS_INPUTS

    def __init__(self, tools: ChatTools) -> None:
        super().__init__([
            SynthesisRetrieveContextStep(tools.retriever, tools.catalog),
            GenerateAnswerStep(tools.llm, tools.thinking_filter),
            GenerateSuggestionsStep(tools.llm),
        ])


class AnswerSynthesisStreamWorkflow(StreamingWorkflow):
    name = "AnswerSynthesisStreamWorkflow"
    inputs = SYNTHESIS_INPUTS

    def __init__(self, tools: ChatTools) -> None:
        super().__init__(
            preparation_steps=[SynthesisRetrieveContextStep(tools.retriever, tools.catalog)],
            streaming_step=GenerateAnswerStreamStep(tools.llm, tools.thinking_filter),
            post_steps=[GenerateSuggestionsStep(tools.llm)],
        )
