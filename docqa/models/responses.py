# =============================================================================
# Response Models — What Callers Receive
# =============================================================================
#
#   ChatAnswer — blocking result (answer + follow-up suggestions)
#   AgentChunk — one item of a streamed answer, caller vocabulary:
#                token | suggestions | error | done
#   Mindmap    — nodes and edges of a document mind map
# =============================================================================

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ChatAnswer(BaseModel):
    """Result of a blocking chat question."""

    answer: str
    suggestions: list[str] = Field(default_factory=list)


class AgentChunk(BaseModel):
    """One streamed item. `error` and `done` are terminal."""

    type: Literal["token", "suggestions", "error", "done"]
    content: str | None = None
    suggestions: list[str] | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.type in ("error", "done")


class MindmapNode(BaseModel):
    id: str
    label: str
    type: Literal["root", "topic", "subtopic"] = "topic"
    description: str | None = None


class MindmapEdge(BaseModel):
    source: str
    target: str
    label: str | None = None


class Mindmap(BaseModel):
    nodes: list[MindmapNode] = Field(default_factory=list)
    edges: list[MindmapEdge] = Field(default_factory=list)
