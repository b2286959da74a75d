# =============================================================================
# Retrieval & Deduplication — Multi-Query and Multi-Namespace Search
# =============================================================================
#
# Two ways of gathering evidence, one deduplication rule:
#
#   multi_query_retrieve() — several queries, ONE namespace, sequential
#       query 1 ──▶ query 2 ──▶ query 3      (earlier queries win ties)
#
#   fan_out_retrieve()     — one query, MANY namespaces, concurrent
#       ┌─ doc A ─┐
#       ├─ doc B ─┼──▶ merge in namespace list order
#       └─ doc C ─┘    (a failing namespace contributes nothing)
#
# Deduplication key is the fingerprint: the lower-cased first N characters
# of the passage text. The first passage to present a fingerprint keeps
# its position; later ones are dropped. The merged list is then cut to
# top-K.
#
# build_context() renders the retained passages with citation tags. It is
# the only grounding text handed to generation and is rebuilt per request.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from docqa.config import settings
from docqa.services.catalog import DocumentRef
from docqa.services.tools import RetrieverInput, RetrieverTool
from docqa.services.vectorstore import RetrievedPassage

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------


def fingerprint(text: str, length: int | None = None) -> str:
    """Lower-cased prefix of `text` used as the deduplication key."""
    return text[: length or settings.fingerprint_length].lower()


def dedupe_passages(
    groups: Iterable[Iterable[RetrievedPassage]],
    top_k: int,
    fingerprint_length: int | None = None,
) -> list[RetrievedPassage]:
    """
    Merge passage groups in order, dropping repeated fingerprints.

    The first passage with a given fingerprint is kept at its position;
    the result is truncated to `top_k`.
    """
    seen: set[str] = set()
    merged: list[RetrievedPassage] = []
    for group in groups:
        for passage in group:
            key = fingerprint(passage.text, fingerprint_length)
            if key in seen:
                continue
            seen.add(key)
            merged.append(passage)
    return merged[:top_k]


# ---------------------------------------------------------------------------
# Single Namespace — Multi-Query
# ---------------------------------------------------------------------------


async def multi_query_retrieve(
    retriever: RetrieverTool,
    queries: Sequence[str],
    namespace: str,
    per_query_k: int | None = None,
    top_k: int | None = None,
    fingerprint_length: int | None = None,
) -> list[RetrievedPassage]:
    """
    Run each query against `namespace` in list order and merge the results.

    Queries run one after another, never concurrently. A retrieval error
    propagates to the caller.
    """
    per_query_k = per_query_k or settings.retrieval_per_query_k
    top_k = top_k or settings.retrieval_top_k

    groups: list[list[RetrievedPassage]] = []
    for query in queries:
        result = await retriever.execute(RetrieverInput(
            query=query, namespace=namespace, top_k=per_query_k,
        ))
        groups.append(result.passages)

    passages = dedupe_passages(groups, top_k, fingerprint_length)
    logger.info(
        "Multi-query retrieval: %d queries, %d raw, %d kept (namespace=%s)",
        len(queries), sum(len(g) for g in groups), len(passages), namespace,
    )
    return passages


# ---------------------------------------------------------------------------
# Many Namespaces — Concurrent Fan-Out
# ---------------------------------------------------------------------------


async def fan_out_retrieve(
    retriever: RetrieverTool,
    sources: Sequence[DocumentRef],
    query: str,
    per_source_k: int | None = None,
    top_k: int | None = None,
    fingerprint_length: int | None = None,
) -> list[RetrievedPassage]:
    """
    Search every source namespace concurrently and merge the results.

    A namespace whose search raises is logged and treated as empty; no
    exception escapes. Results are merged in `sources` order, whatever
    order the searches complete in. Every returned passage carries the
    id and name of the document it came from.
    """
    if not sources:
        logger.warning("Fan-out retrieval called with no sources")
        return []

    per_source_k = per_source_k or settings.library_per_document_k
    top_k = top_k or settings.retrieval_top_k * settings.library_top_k_multiplier

    async def _search(source: DocumentRef) -> list[RetrievedPassage]:
        try:
            result = await retriever.execute(RetrieverInput(
                query=query, namespace=source.id, top_k=per_source_k,
            ))
        except Exception as e:
            logger.warning("Search failed for document %s: %s", source.id, e)
            return []
        return [
            replace(p, source_id=source.id, source_name=source.name)
            for p in result.passages
        ]

    groups = await asyncio.gather(*(_search(source) for source in sources))
    passages = dedupe_passages(groups, top_k, fingerprint_length)

    logger.info(
        "Fan-out retrieval returned %d unique passages from %d/%d documents",
        len(passages), sum(1 for g in groups if g), len(sources),
    )
    return passages


# ---------------------------------------------------------------------------
# Citation Context
# ---------------------------------------------------------------------------


def citation_tag(passage: RetrievedPassage, multi_source: bool) -> str:
    """
    Citation label for one passage.

    Single document: "[Page 3]", or "" without a page number.
    Multiple documents: "[Report.pdf - Page 3]", or "[Report.pdf]".
    """
    if multi_source:
        name = passage.source_name or passage.source_id
        if passage.page_number:
            return f"[{name} - Page {passage.page_number}]"
        return f"[{name}]"
    if passage.page_number:
        return f"[Page {passage.page_number}]"
    return ""


def build_context(passages: Sequence[RetrievedPassage], multi_source: bool = False) -> str:
    """
    Render passages as citation-tagged grounding text.

    Example (single document):
        [Page 12]
        Revenue for Q3 was $4.2 billion...

        ---

        [Page 15]
        Operating expenses decreased...
    """
    return CONTEXT_SEPARATOR.join(
        f"{citation_tag(p, multi_source)}\n{p.text}" for p in passages
    )
