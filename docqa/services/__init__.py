# =============================================================================
# Services Package — Capabilities and Retrieval Logic
# =============================================================================
#   - llm.py: Multi-provider LLM abstraction (Anthropic, OpenAI-compatible),
#     blocking and streaming
#   - embedder.py: Query embeddings via an OpenAI-compatible API
#   - vectorstore.py: Namespaced passage retrieval backed by ChromaDB
#   - tools.py: LlmTool / RetrieverTool capability wrappers
#   - retrieval.py: Multi-query and fan-out retrieval, dedup, citations
#   - thinking.py: Reasoning-span filter for token streams
#   - catalog.py: Which documents a user may search
# =============================================================================
