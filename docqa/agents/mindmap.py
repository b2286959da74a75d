# =============================================================================
# Mind Map Agent — Document Overview as Nodes and Edges
# =============================================================================
#
#   RetrieveChunksStep ──▶ GenerateMindmapStep ──▶ {nodes, edges}
#
# Retrieval uses two fixed broad queries instead of a user question, so
# the map covers the document as a whole. Generation never fails the
# workflow: an unparsable LLM reply falls back to a small generic map,
# and a document with no retrievable text yields a root-only map.
# =============================================================================

from __future__ import annotations

import json
import logging
import re
from typing import Any

from docqa.agents.prompts import MINDMAP_SYSTEM, build_mindmap_message
from docqa.agents.state import MINDMAP_INPUTS, MindmapContext
from docqa.config import settings
from docqa.core.step import Step
from docqa.core.types import StepResult
from docqa.core.workflow import Workflow
from docqa.models.requests import MindmapRequest
from docqa.models.responses import Mindmap
from docqa.services.llm import LLMProvider, get_llm_provider
from docqa.services.retrieval import CONTEXT_SEPARATOR, multi_query_retrieve
from docqa.services.tools import LlmInput, LlmTool, RetrieverTool
from docqa.services.vectorstore import Retriever, get_retriever

logger = logging.getLogger(__name__)

OVERVIEW_QUERIES = (
    "main topics key concepts summary",
    "introduction conclusion methodology",
)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_NODE_TYPES = ("root", "topic", "subtopic")


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


class RetrieveChunksStep(Step):
    name = "RetrieveChunksStep"
    description = "Retrieves document chunks for mind map generation."
    reads = ("document_id",)
    writes = ("document_chunks",)

    def __init__(self, retriever: RetrieverTool) -> None:
        self._retriever = retriever

    async def run(self, context: dict[str, Any]) -> StepResult:
        passages = await multi_query_retrieve(
            self._retriever,
            OVERVIEW_QUERIES,
            context["document_id"],
            per_query_k=settings.retrieval_per_query_k,
            top_k=settings.mindmap_chunk_limit,
            fingerprint_length=settings.mindmap_fingerprint_length,
        )
        return StepResult.ok(
            {"document_chunks": [p.text for p in passages]},
            retrieved=len(passages),
        )


class GenerateMindmapStep(Step):
    name = "GenerateMindmapStep"
    description = "Generates the mind map structure using the LLM."
    reads = ("document_name", "document_chunks")
    writes = ("nodes", "edges")

    def __init__(self, llm: LlmTool) -> None:
        self._llm = llm

    async def run(self, context: dict[str, Any]) -> StepResult:
        document_name = context["document_name"]
        document_context = CONTEXT_SEPARATOR.join(context.get("document_chunks") or [])

        if not document_context.strip():
            logger.info("No content for %s, returning root-only mind map", document_name)
            root_only = Mindmap(nodes=[{"id": "1", "label": document_name, "type": "root"}])
            return StepResult.ok(root_only.model_dump(), fallback=True)

        try:
            response = await self._llm.execute(LlmInput(
                messages=[{
                    "role": "user",
                    "content": build_mindmap_message(
                        document_name, document_context, settings.mindmap_context_chars,
                    ),
                }],
                system=MINDMAP_SYSTEM,
            ))
            mindmap = parse_mindmap(response.content)
        except Exception as e:
            logger.warning("Mind map generation failed, using fallback: %s", e)
            return StepResult.ok(fallback_mindmap(document_name).model_dump(), fallback=True)

        return StepResult.ok(mindmap.model_dump(), nodes=len(mindmap.nodes))


# ---------------------------------------------------------------------------
# Workflow and Agent
# ---------------------------------------------------------------------------


class GenerateMindmapWorkflow(Workflow):
    name = "GenerateMindmapWorkflow"
    inputs = MINDMAP_INPUTS

    def __init__(self, llm: LlmTool, retriever: RetrieverTool) -> None:
        super().__init__([
            RetrieveChunksStep(retriever),
            GenerateMindmapStep(llm),
        ])


class MindmapAgent:
    """Builds a mind map of one document."""

    name = "MindmapAgent"

    def __init__(
        self,
        llm: LLMProvider | None = None,
        retriever: Retriever | None = None,
    ) -> None:
        self.workflow = GenerateMindmapWorkflow(
            LlmTool(llm or get_llm_provider()),
            RetrieverTool(retriever or get_retriever()),
        )

    async def generate(self, document_id: str, document_name: str) -> Mindmap:
        """
        Raises:
            WorkflowError: retrieval failed.
        """
        logger.info("Generating mind map for document %s", document_id)
        initial: MindmapContext = {
            "document_id": document_id,
            "document_name": document_name,
        }
        result = await self.workflow.execute(initial)
        return Mindmap(nodes=result.get("nodes", []), edges=result.get("edges", []))

    async def generate_from_request(self, request: MindmapRequest) -> Mindmap:
        """Entry point for callers holding a validated MindmapRequest."""
        return await self.generate(request.document_id, request.document_name)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_mindmap(content: str) -> Mindmap:
    """
    Extract and normalise the mind map JSON object from an LLM reply.

    Missing node ids become their 1-based position, missing labels become
    "Unknown", and a missing or unknown type becomes "root" for the first
    node and "topic" otherwise. A missing edge list is treated as empty.

    Raises:
        ValueError: no JSON object, malformed JSON, or no node list.
        ValidationError: nodes or edges of the wrong shape.
    """
    match = _JSON_OBJECT.search(content.strip())
    if not match:
        raise ValueError("No JSON object in mind map reply")
    try:
        raw = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Malformed mind map JSON: {e}") from e

    nodes = raw.get("nodes") if isinstance(raw, dict) else None
    if not isinstance(nodes, list):
        raise ValueError("Mind map reply has no node list")
    edges = raw.get("edges")
    if not isinstance(edges, list):
        edges = []

    normalised = []
    for index, node in enumerate(nodes):
        node = node if isinstance(node, dict) else {}
        node_type = node.get("type")
        if node_type not in _NODE_TYPES:
            node_type = "root" if index == 0 else "topic"
        normalised.append({
            "id": str(node.get("id") or index + 1),
            "label": node.get("label") or "Unknown",
            "type": node_type,
            "description": node.get("description"),
        })

    links = [
        {
            "source": str(edge.get("source", "")),
            "target": str(edge.get("target", "")),
            "label": edge.get("label"),
        }
        for edge in edges
        if isinstance(edge, dict)
    ]

    return Mindmap.model_validate({"nodes": normalised, "edges": links})


def fallback_mindmap(document_name: str) -> Mindmap:
    return Mindmap(
        nodes=[
            {"id": "1", "label": document_name, "type": "root"},
            {"id": "2", "label": "Content Analysis", "type": "topic"},
            {"id": "3", "label": "Key Topics", "type": "topic"},
        ],
        edges=[
            {"source": "1", "target": "2"},
            {"source": "1", "target": "3"},
        ],
    )
