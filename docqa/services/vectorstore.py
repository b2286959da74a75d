# =============================================================================
# Vector Store — Namespaced Passage Retrieval
# =============================================================================
#
# The retrieval capability the pipeline consumes:
#
#     search(query, namespace, top_k) -> list[RetrievedPassage]
#
# A namespace is one source document. Passages of every document share
# a single Chroma collection; the namespace is a metadata key, and each
# search is filtered to exactly one namespace.
#
# ARCHITECTURE:
#   Retriever (Protocol)
#   └── ChromaRetriever
#       ├── add_passages() — sync, used by ingestion jobs
#       └── search()       — async via asyncio.to_thread() wrapper
#   get_retriever()        — lazy singleton factory
#
# Failures (embedding API errors, Chroma errors) propagate as exceptions.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import chromadb

from docqa.config import settings
from docqa.services.embedder import embed_query

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class RetrievedPassage:
    """
    One passage returned by the retrieval capability.

    `source_id` is the namespace the passage came from. `source_name` is
    filled in by library/synthesis retrieval, where citations name the
    document.
    """

    text: str
    source_id: str
    source_name: str | None = None
    page_number: int | None = None
    score: float | None = None  # cosine similarity, higher = more relevant
    metadata: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class Retriever(Protocol):
    """Retrieval capability: top-K passages for a query within a namespace."""

    async def search(
        self,
        query: str,
        namespace: str,
        top_k: int = 6,
    ) -> list[RetrievedPassage]:
        """
        Find the passages most similar to `query` in one namespace.

        Returns:
            Passages ordered by relevance (highest first).
        """
        ...


# ---------------------------------------------------------------------------
# Implementation: ChromaDB
# ---------------------------------------------------------------------------


class ChromaRetriever:
    """
    ChromaDB-backed retriever.

    Supports both in-process mode (default) and client/server mode when
    CHROMA_URL is set. `embed` turns a query into a vector; it defaults to
    the OpenAI embedder and is injectable for tests.
    """

    def __init__(
        self,
        client: Any | None = None,
        collection_name: str | None = None,
        embed: Callable[[str], list[float]] = embed_query,
    ) -> None:
        if client is not None:
            self._client = client
        elif settings.chroma_url:
            self._client = chromadb.HttpClient(host=settings.chroma_url)
        else:
            self._client = chromadb.Client()

        self._collection = self._client.get_or_create_collection(
            name=collection_name or settings.chroma_collection,
            metadata={"hnsw:space": "cosine"},
        )
        self._embed = embed

    def add_passages(
        self,
        namespace: str,
        contents: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict],
    ) -> list[str]:
        """Store passages under `namespace`. Returns the Chroma IDs."""
        ids = [
            f"{namespace}_chunk{meta.get('chunk_index', i)}"
            for i, meta in enumerate(metadatas)
        ]
        sanitised = [
            _sanitise_chroma_metadata({**meta, "namespace": namespace})
            for meta in metadatas
        ]

        self._collection.add(
            ids=ids,
            documents=contents,
            embeddings=embeddings,
            metadatas=sanitised,
        )

        logger.info("Stored %d passages in namespace=%s", len(ids), namespace)
        return ids

    async def search(
        self,
        query: str,
        namespace: str,
        top_k: int = 6,
    ) -> list[RetrievedPassage]:
        """Similarity search restricted to one namespace."""
        embedding = await asyncio.to_thread(self._embed, query)
        return await self.search_by_vector(embedding, namespace, top_k)

    async def search_by_vector(
        self,
        query_embedding: list[float],
        namespace: str,
        top_k: int = 6,
    ) -> list[RetrievedPassage]:
        """Similarity search with a precomputed query vector."""

        def _sync_search() -> list[RetrievedPassage]:
            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=top_k,
                where={"namespace": namespace},
                include=["documents", "metadatas", "distances"],
            )

            passages: list[RetrievedPassage] = []
            if not (results and results["ids"] and results["ids"][0]):
                return passages

            for i in range(len(results["ids"][0])):
                distance = results["distances"][0][i] if results["distances"] else 0.0
                metadata = dict(results["metadatas"][0][i]) if results["metadatas"] else {}
                content = results["documents"][0][i] if results["documents"] else ""
                page = metadata.get("page_number")
                passages.append(RetrievedPassage(
                    text=content,
                    source_id=namespace,
                    page_number=page if isinstance(page, int) and page > 0 else None,
                    # Chroma cosine distance is in [0, 2]; convert to similarity
                    score=round(1.0 - distance, 4),
                    metadata=metadata,
                ))
            return passages

        passages = await asyncio.to_thread(_sync_search)
        logger.debug(
            "Vector search returned %d passages (top_k=%d, namespace=%s)",
            len(passages), top_k, namespace,
        )
        return passages


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

_retriever: ChromaRetriever | None = None


def get_retriever() -> ChromaRetriever:
    """Return the shared retriever, creating it on first use."""
    global _retriever
    if _retriever is None:
        logger.info("Using ChromaDB retriever (collection=%s)", settings.chroma_collection)
        _retriever = ChromaRetriever()
    return _retriever


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _sanitise_chroma_metadata(metadata: dict) -> dict:
    """
    Chroma metadata values must be str, int, float, or bool.

    - list → comma-separated string
    - None → empty string
    - anything else → str()
    """
    sanitised = {}
    for key, value in metadata.items():
        if value is None:
            sanitised[key] = ""
        elif isinstance(value, list):
            sanitised[key] = ",".join(str(v) for v in value)
        elif isinstance(value, (str, int, float, bool)):
            sanitised[key] = value
        else:
            sanitised[key] = str(value)
    return sanitised
