# =============================================================================
# Request Models — Caller Input and Explicit Chat Intents
# =============================================================================
#
# Callers describe a question with optional scope fields (ChatRequest).
# The shape is resolved ONCE, at the boundary, into exactly one intent:
#
#   document_ids non-empty     → SynthesisIntent   (explicit subset)
#   else document_id missing   → LibraryIntent     (whole library)
#   else                       → SingleDocumentIntent
#
# Intents form a pydantic discriminated union on `kind`, so the agent can
# dispatch on the type instead of re-inspecting optional fields.
# =============================================================================

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class HistoryTurn(BaseModel):
    """One previous message of the conversation."""

    role: Literal["user", "assistant"]
    content: str


class _IntentBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1, max_length=4000)
    history: list[HistoryTurn] = Field(default_factory=list)


class SingleDocumentIntent(_IntentBase):
    """Answer from one document."""

    kind: Literal["document"] = "document"
    document_id: str = Field(..., min_length=1)


class LibraryIntent(_IntentBase):
    """Answer from every document the user owns."""

    kind: Literal["library"] = "library"
    user_id: str = Field(..., min_length=1)


class SynthesisIntent(_IntentBase):
    """Synthesise an answer across an explicit subset of the user's documents."""

    kind: Literal["synthesis"] = "synthesis"
    user_id: str = Field(..., min_length=1)
    document_ids: list[str] = Field(..., min_length=1)


ChatIntent = Annotated[
    SingleDocumentIntent | LibraryIntent | SynthesisIntent,
    Field(discriminator="kind"),
]


class ChatRequest(BaseModel):
    """
    Caller-facing request shape.

    Example:
        {
            "query": "What does chapter 2 say about pricing?",
            "document_id": "doc-42",
            "history": [{"role": "user", "content": "Hi"}]
        }
    """

    query: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="The question to answer",
        examples=["What are the main risks described in the report?"],
    )
    user_id: str | None = Field(
        default=None,
        description="Owner of the library; required for library and synthesis questions.",
    )
    document_id: str | None = Field(
        default=None,
        description="Restrict the question to one document. Omit to search the whole library.",
    )
    document_ids: list[str] | None = Field(
        default=None,
        description="Explicit subset of documents to synthesise across.",
    )
    history: list[HistoryTurn] = Field(default_factory=list)

    def to_intent(self) -> SingleDocumentIntent | LibraryIntent | SynthesisIntent:
        """
        Resolve the request into exactly one intent.

        Raises:
            ValueError: library or synthesis scope without a user_id.
        """
        if self.document_ids:
            if not self.user_id:
                raise ValueError("user_id is required for synthesis questions")
            return SynthesisIntent(
                query=self.query,
                history=self.history,
                user_id=self.user_id,
                document_ids=self.document_ids,
            )
        if self.document_id is None:
            if not self.user_id:
                raise ValueError("user_id is required for library questions")
            return LibraryIntent(
                query=self.query, history=self.history, user_id=self.user_id,
            )
        return SingleDocumentIntent(
            query=self.query, history=self.history, document_id=self.document_id,
        )


class MindmapRequest(BaseModel):
    """Generate a mind map for one document."""

    document_id: str = Field(..., min_length=1)
    document_name: str = Field(..., min_length=1)
