# =============================================================================
# Workflow Context Records
# =============================================================================
#
# One TypedDict per task family. total=False so steps only return the
# keys they update; the workflow merges those partial updates into the
# running context.
#
#   ChatContext            — fields shared by every chat workflow
#   ├── DocumentChatContext  (+ document_id)
#   ├── LibraryChatContext   (+ user_id)
#   └── SynthesisChatContext (+ user_id, document_ids)
#   MindmapContext         — mind map workflow
#
# The *_INPUTS tuples name the fields a caller must supply; workflows use
# them to check the reads/writes wiring of their steps.
# =============================================================================

from __future__ import annotations

from typing import Any, Literal

from typing_extensions import TypedDict

from docqa.services.vectorstore import RetrievedPassage

Scope = Literal["document", "library", "synthesis"]


class HistoryMessage(TypedDict):
    role: str
    content: str


class ChatContext(TypedDict, total=False):
    # --- Input (set by caller) ---
    scope: Scope
    query: str
    history: list[HistoryMessage]

    # --- Intermediate (set by steps) ---
    search_queries: list[str]
    passages: list[RetrievedPassage]
    context_string: str

    # --- Output ---
    answer: str
    suggestions: list[str]


class DocumentChatContext(ChatContext, total=False):
    document_id: str


class LibraryChatContext(ChatContext, total=False):
    user_id: str


class SynthesisChatContext(ChatContext, total=False):
    user_id: str
    document_ids: list[str]


class MindmapContext(TypedDict, total=False):
    # --- Input ---
    document_id: str
    document_name: str

    # --- Intermediate ---
    document_chunks: list[str]

    # --- Output ---
    nodes: list[dict[str, Any]]
    edges: list[dict[str, Any]]


CHAT_INPUTS = ("scope", "query", "history")
DOCUMENT_INPUTS = (*CHAT_INPUTS, "document_id")
LIBRARY_INPUTS = (*CHAT_INPUTS, "user_id")
SYNTHESIS_INPUTS = (*CHAT_INPUTS, "user_id", "document_ids")
MINDMAP_INPUTS = ("document_id", "document_name")
