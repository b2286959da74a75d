# =============================================================================
# Document Q&A Pipeline
# =============================================================================
# Retrieval-augmented question answering over uploaded documents: a single
# document, a user's whole library, or an explicit subset of it, with
# page-level citations, follow-up suggestions and token streaming.
#
# Package structure:
#   docqa/
#   ├── core/         → Tool / Step / Workflow / StreamingWorkflow engine
#   ├── agents/       → Chat and mind map steps, workflows and agents
#   ├── models/       → Pydantic V2 request/response schemas
#   ├── services/     → LLM providers, vector store, retrieval, thinking
#   │                    filter, document catalog
#   ├── config.py     → pydantic-settings configuration
#   └── log.py        → logging setup
# =============================================================================
