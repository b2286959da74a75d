# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# All tunables for the pipeline core live here: LLM provider selection,
# embedding and vector store settings, retrieval fan-out sizes, the
# thinking-tag markers and the streaming queue bound.
#
# Pydantic Settings loads values in this priority order (highest first):
#   1. Environment variables (e.g., `LLM_MODEL=...`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   from docqa.config import settings
#   print(settings.retrieval_top_k)
# =============================================================================

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every default works for local development with an in-process Chroma
    store; only the API keys have to be supplied.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Document Q&A Pipeline"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # API Keys — External Services
    # -------------------------------------------------------------------------
    # ANTHROPIC_API_KEY: Claude (answer generation)
    # OPENAI_API_KEY: embeddings, or generation with openai_compatible
    # -------------------------------------------------------------------------
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # -------------------------------------------------------------------------
    # LLM Configuration — Multi-Provider
    # -------------------------------------------------------------------------
    # Providers:
    #   - "anthropic": Claude via native Anthropic SDK
    #   - "openai_compatible": any OpenAI-compatible API (OpenAI, Groq,
    #     DeepSeek, Qwen, ...)
    #
    # Example configs:
    #   Groq:     provider=openai_compatible, base_url=https://api.groq.com/openai/v1, model=llama-3.1-8b-instant
    #   DeepSeek: provider=openai_compatible, base_url=https://api.deepseek.com/v1, model=deepseek-chat
    #   Claude:   provider=anthropic, model=claude-sonnet-4-6
    # -------------------------------------------------------------------------
    llm_provider: str = "anthropic"  # "anthropic" or "openai_compatible"
    llm_base_url: str | None = None  # Only needed for openai_compatible
    llm_api_key: str | None = None   # Overrides provider-specific key if set
    llm_model: str = "claude-sonnet-4-6"
    llm_temperature: float = 0.1
    llm_max_tokens: int = 4096

    # -------------------------------------------------------------------------
    # Embedding Configuration
    # -------------------------------------------------------------------------
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_base_url: str | None = None

    # -------------------------------------------------------------------------
    # Vector Store — ChromaDB
    # -------------------------------------------------------------------------
    # One collection holds every document; a document is a namespace,
    # stored as the `namespace` metadata key on each passage.
    # -------------------------------------------------------------------------
    chroma_url: str | None = None  # Client/server mode when set
    chroma_collection: str = "docqa_passages"

    # -------------------------------------------------------------------------
    # Retrieval Configuration
    # -------------------------------------------------------------------------
    # retrieval_top_k: passages kept after single-document multi-query merge.
    # retrieval_per_query_k: passages requested per query.
    # library_per_document_k: passages requested per namespace in fan-out.
    # library_top_k_multiplier: fan-out keeps top_k * multiplier passages.
    # fingerprint_length: characters of lower-cased prefix used as dedup key.
    # multi_query_enabled: generate 2-3 search queries instead of one.
    # -------------------------------------------------------------------------
    retrieval_top_k: int = 5
    retrieval_per_query_k: int = 6
    library_per_document_k: int = 3
    library_top_k_multiplier: int = 2
    fingerprint_length: int = 100
    multi_query_enabled: bool = False

    # -------------------------------------------------------------------------
    # Conversation
    # -------------------------------------------------------------------------
    history_window: int = 6        # Turns included in answer generation
    query_history_window: int = 4  # Turns included in query generation
    suggestion_count: int = 3
    no_context_answer: str = (
        "I could not find relevant information in the documents. "
        "Please try asking in a different way."
    )

    # -------------------------------------------------------------------------
    # Thinking Filter
    # -------------------------------------------------------------------------
    # Reasoning models may wrap private reasoning in a marker pair. Text
    # between the markers is removed from streamed answers.
    # -------------------------------------------------------------------------
    thinking_filter_enabled: bool = True
    thinking_open_tag: str = "<thinking>"
    thinking_close_tag: str = "</thinking>"

    # -------------------------------------------------------------------------
    # Streaming
    # -------------------------------------------------------------------------
    # Bound of the queue between the workflow producer task and the
    # consumer. A full queue suspends the producer.
    # -------------------------------------------------------------------------
    stream_queue_size: int = 32

    # -------------------------------------------------------------------------
    # Mind Map
    # -------------------------------------------------------------------------
    mindmap_chunk_limit: int = 8
    mindmap_fingerprint_length: int = 50
    mindmap_context_chars: int = 4000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    In tests, build a fresh one instead:
        Settings(retrieval_top_k=2)
    """
    return Settings()


# ---------------------------------------------------------------------------
# Module-level convenience instance
# ---------------------------------------------------------------------------
settings = get_settings()
