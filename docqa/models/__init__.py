# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Request models resolve caller input into explicit chat intents;
# response models are what the agents hand back.
# =============================================================================

from docqa.models.requests import (
    ChatIntent,
    ChatRequest,
    HistoryTurn,
    LibraryIntent,
    MindmapRequest,
    SingleDocumentIntent,
    SynthesisIntent,
)
from docqa.models.responses import (
    AgentChunk,
    ChatAnswer,
    Mindmap,
    MindmapEdge,
    MindmapNode,
)

__all__ = [
    "AgentChunk",
    "ChatAnswer",
    "ChatIntent",
    "ChatRequest",
    "HistoryTurn",
    "LibraryIntent",
    "Mindmap",
    "MindmapEdge",
    "MindmapNode",
    "MindmapRequest",
    "SingleDocumentIntent",
    "SynthesisIntent",
]
