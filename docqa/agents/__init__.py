# =============================================================================
# Agents Package — Chat and Mind Map Pipelines
# =============================================================================
#   - orchestrator.py: ChatAgent — resolves the intent, runs the matching
#     workflow, adapts streamed chunks for the caller, generates titles
#   - workflows.py: the six chat workflows (3 scopes × blocking/streaming)
#   - steps.py: query generation, retrieval, answering, suggestions
#   - mindmap.py: MindmapAgent and its two-step workflow
#   - prompts.py: system prompts and user message builders
#   - state.py: TypedDict context records per workflow family
# =============================================================================
