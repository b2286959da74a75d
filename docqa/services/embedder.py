# =============================================================================
# Embedding Service — Query Vectors via an OpenAI-Compatible API
# =============================================================================
#
# Turns a search query into the vector the retriever compares against the
# stored passages. Any provider exposing the OpenAI embeddings endpoint
# works; set EMBEDDING_BASE_URL to point elsewhere.
#
# Synchronous. The retriever calls it through
# asyncio.to_thread(), the same way it calls the Chroma client.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence

from openai import OpenAI

from docqa.config import settings

logger = logging.getLogger(__name__)

_client: OpenAI | None = None


def _get_client() -> OpenAI:
    """Lazily initialise and cache the embedding client."""
    global _client
    if _client is None:
        resolved_key = settings.openai_api_key or settings.llm_api_key
        if not resolved_key:
            raise ValueError(
                "No API key configured for embeddings. "
                "Set OPENAI_API_KEY or LLM_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": resolved_key}
        if settings.embedding_base_url:
            client_kwargs["base_url"] = settings.embedding_base_url
        _client = OpenAI(**client_kwargs)

        logger.info(
            "Initialized embedding client (model=%s, base_url=%s)",
            settings.embedding_model,
            settings.embedding_base_url or "https://api.openai.com/v1",
        )
    return _client


def embed_texts(texts: Sequence[str]) -> list[list[float]]:
    """
    Embed several texts in one API call.

    Returns vectors in the same order as `texts`.
    """
    if not texts:
        return []

    create_kwargs: dict = {"model": settings.embedding_model, "input": list(texts)}
    if settings.embedding_dimensions:
        create_kwargs["dimensions"] = settings.embedding_dimensions

    response = _get_client().embeddings.create(**create_kwargs)
    ordered = sorted(response.data, key=lambda item: item.index)
    return [item.embedding for item in ordered]


def embed_query(text: str) -> list[float]:
    """Embed a single search query."""
    return embed_texts([text])[0]
