# =============================================================================
# Unit Tests — Vector Store (ChromaDB backend)
# =============================================================================
#
# Tests namespaced passage storage and search against ChromaDB's
# in-process mode (no external services needed). Queries are embedded by
# a fixed lookup table instead of the embeddings API.
# =============================================================================

import asyncio

import chromadb

from docqa.services.vectorstore import (
    ChromaRetriever,
    RetrievedPassage,
    _sanitise_chroma_metadata,
)


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


QUERY_VECTORS = {
    "revenue": [1.0, 0.0, 0.0],
    "expenses": [0.0, 1.0, 0.0],
}


class TestChromaRetriever:
    """Tests for ChromaRetriever (in-process mode)."""

    _test_counter = 0

    def _make_retriever(self) -> ChromaRetriever:
        """Create a retriever over a unique collection per test."""
        TestChromaRetriever._test_counter += 1
        return ChromaRetriever(
            client=chromadb.Client(),
            collection_name=f"test_passages_{TestChromaRetriever._test_counter}",
            embed=QUERY_VECTORS.__getitem__,
        )

    def _seed(self, retriever: ChromaRetriever) -> None:
        retriever.add_passages(
            namespace="doc-1",
            contents=["Revenue increased by 15%", "Expenses decreased by 5%"],
            embeddings=[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
            metadatas=[
                {"chunk_index": 0, "page_number": 3},
                {"chunk_index": 1, "page_number": 4},
            ],
        )
        retriever.add_passages(
            namespace="doc-2",
            contents=["Revenue fell sharply"],
            embeddings=[[0.9, 0.1, 0.0]],
            metadatas=[{"chunk_index": 0, "page_number": 1}],
        )

    def test_add_passages_returns_namespaced_ids(self):
        retriever = self._make_retriever()
        ids = retriever.add_passages(
            namespace="doc-1",
            contents=["Hello world", "Goodbye world"],
            embeddings=[[0.1] * 3, [0.2] * 3],
            metadatas=[{"chunk_index": 0}, {"chunk_index": 1}],
        )
        assert ids == ["doc-1_chunk0", "doc-1_chunk1"]

    def test_search_returns_most_similar_first(self):
        retriever = self._make_retriever()
        self._seed(retriever)

        results = _run(retriever.search("revenue", namespace="doc-1", top_k=2))

        assert len(results) == 2
        assert isinstance(results[0], RetrievedPassage)
        assert results[0].text == "Revenue increased by 15%"
        assert results[0].page_number == 3
        assert results[0].source_id == "doc-1"
        assert results[0].score > results[1].score

    def test_search_is_restricted_to_namespace(self):
        retriever = self._make_retriever()
        self._seed(retriever)

        results = _run(retriever.search("revenue", namespace="doc-2", top_k=5))

        assert [r.text for r in results] == ["Revenue fell sharply"]
        assert results[0].source_id == "doc-2"

    def test_unknown_namespace_returns_nothing(self):
        retriever = self._make_retriever()
        self._seed(retriever)
        assert _run(retriever.search("expenses", namespace="doc-9", top_k=3)) == []

    def test_search_by_vector(self):
        retriever = self._make_retriever()
        self._seed(retriever)

        results = _run(retriever.search_by_vector([0.0, 1.0, 0.0], namespace="doc-1", top_k=1))

        assert results[0].text == "Expenses decreased by 5%"


class TestSanitiseMetadata:
    def test_values_coerced_to_chroma_types(self):
        assert _sanitise_chroma_metadata({
            "page_number": 3,
            "heading": None,
            "tags": ["a", "b"],
            "ratio": 0.5,
            "flag": True,
            "other": {"x": 1},
        }) == {
            "page_number": 3,
            "heading": "",
            "tags": "a,b",
            "ratio": 0.5,
            "flag": True,
            "other": "{'x': 1}",
        }
