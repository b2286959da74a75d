# =============================================================================
# Unit Tests — Mind Map Agent
# =============================================================================

from __future__ import annotations

import asyncio
import json

import pytest
from pydantic import ValidationError

from docqa.agents.mindmap import (
    OVERVIEW_QUERIES,
    GenerateMindmapStep,
    MindmapAgent,
    RetrieveChunksStep,
    fallback_mindmap,
    parse_mindmap,
)
from docqa.core import WorkflowError
from docqa.models import MindmapRequest
from docqa.services.tools import LlmTool, RetrieverTool
from tests.fakes import FakeLLM, FakeRetriever, passage


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


MINDMAP_REPLY = json.dumps({
    "nodes": [
        {"id": "1", "label": "Annual Report", "type": "root"},
        {"id": "2", "label": "Revenue", "type": "topic"},
        {"id": "3", "label": "Q3 Growth", "type": "subtopic"},
    ],
    "edges": [
        {"source": "1", "target": "2"},
        {"source": "2", "target": "3", "label": "includes"},
    ],
})


# ---------------------------------------------------------------------------
# Test: Parsing
# ---------------------------------------------------------------------------


class TestParseMindmap:
    def test_json_inside_prose(self):
        mindmap = parse_mindmap(f"Here is the map:\n{MINDMAP_REPLY}\nDone.")
        assert [n.label for n in mindmap.nodes] == ["Annual Report", "Revenue", "Q3 Growth"]
        assert mindmap.edges[1].label == "includes"

    def test_missing_fields_get_defaults(self):
        mindmap = parse_mindmap('{"nodes": [{"label": "Root"}, {"id": 7}, {"type": "weird"}]}')

        assert [n.id for n in mindmap.nodes] == ["1", "7", "3"]
        assert [n.label for n in mindmap.nodes] == ["Root", "Unknown", "Unknown"]
        assert [n.type for n in mindmap.nodes] == ["root", "topic", "topic"]
        assert mindmap.edges == []

    def test_numeric_edge_ids_become_strings(self):
        mindmap = parse_mindmap('{"nodes": [{"id": 1, "label": "A"}], "edges": [{"source": 1, "target": 2}]}')
        assert mindmap.edges[0].source == "1"
        assert mindmap.edges[0].target == "2"

    def test_no_json_raises(self):
        with pytest.raises(ValueError):
            parse_mindmap("I cannot build a map for this.")

    def test_missing_nodes_raises(self):
        with pytest.raises(ValueError):
            parse_mindmap('{"edges": []}')


# ---------------------------------------------------------------------------
# Test: Steps
# ---------------------------------------------------------------------------


class TestRetrieveChunksStep:
    def test_fixed_queries_dedup_and_limit(self):
        first = [passage(f"First query passage number {i}") for i in range(6)]
        second = [passage("FIRST QUERY PASSAGE NUMBER 0")] + [
            passage(f"Second query passage number {i}") for i in range(5)
        ]
        retriever = FakeRetriever({
            ("doc-1", OVERVIEW_QUERIES[0]): first,
            ("doc-1", OVERVIEW_QUERIES[1]): second,
        })

        result = _run(RetrieveChunksStep(RetrieverTool(retriever)).execute({"document_id": "doc-1"}))

        chunks = result.data["document_chunks"]
        assert [q for q, _, _ in retriever.calls] == list(OVERVIEW_QUERIES)
        assert len(chunks) == 8
        assert chunks[:6] == [p.text for p in first]
        assert chunks[6] == "Second query passage number 0"

    def test_retrieval_error_fails_workflow(self):
        agent = MindmapAgent(llm=FakeLLM(), retriever=FakeRetriever(failing=["doc-1"]))
        with pytest.raises(WorkflowError):
            _run(agent.generate("doc-1", "Report.pdf"))


class TestGenerateMindmapStep:
    def test_no_chunks_gives_root_only(self):
        llm = FakeLLM()
        result = _run(GenerateMindmapStep(LlmTool(llm)).execute(
            {"document_name": "Report.pdf", "document_chunks": []},
        ))

        assert result.data["nodes"] == [
            {"id": "1", "label": "Report.pdf", "type": "root", "description": None},
        ]
        assert result.data["edges"] == []
        assert llm.calls == []

    def test_garbage_reply_gives_fallback(self):
        llm = FakeLLM({"mindmap": "Sorry, no."})
        result = _run(GenerateMindmapStep(LlmTool(llm)).execute(
            {"document_name": "Report.pdf", "document_chunks": ["some text"]},
        ))
        assert result.success
        assert result.data == fallback_mindmap("Report.pdf").model_dump()

    def test_llm_error_gives_fallback(self):
        llm = FakeLLM(fail=["mindmap"])
        result = _run(GenerateMindmapStep(LlmTool(llm)).execute(
            {"document_name": "Report.pdf", "document_chunks": ["some text"]},
        ))
        assert len(result.data["nodes"]) == 3
        assert result.data["nodes"][0]["label"] == "Report.pdf"

    def test_context_is_truncated(self):
        llm = FakeLLM({"mindmap": MINDMAP_REPLY})
        _run(GenerateMindmapStep(LlmTool(llm)).execute(
            {"document_name": "Report.pdf", "document_chunks": ["a" * 3000, "b" * 3000]},
        ))
        prompt = llm.calls[0]["messages"][0]["content"]
        assert "a" * 3000 in prompt
        assert "b" * 900 in prompt
        assert "b" * 1000 not in prompt


# ---------------------------------------------------------------------------
# Test: Agent
# ---------------------------------------------------------------------------


class TestMindmapAgent:
    def test_generate(self):
        agent = MindmapAgent(
            llm=FakeLLM({"mindmap": MINDMAP_REPLY}),
            retriever=FakeRetriever({"doc-1": [passage("Revenue grew in Q3.")]}),
        )

        mindmap = _run(agent.generate("doc-1", "Annual Report.pdf"))

        assert len(mindmap.nodes) == 3
        assert mindmap.nodes[0].type == "root"
        assert [(e.source, e.target) for e in mindmap.edges] == [("1", "2"), ("2", "3")]

    def test_generate_from_request(self):
        request = MindmapRequest(document_id="doc-1", document_name="Annual Report.pdf")
        agent = MindmapAgent(llm=FakeLLM(), retriever=FakeRetriever({}))

        mindmap = _run(agent.generate_from_request(request))

        assert [n.label for n in mindmap.nodes] == ["Annual Report.pdf"]

    def test_request_requires_document_name(self):
        with pytest.raises(ValidationError):
            MindmapRequest(document_id="doc-1", document_name="")
