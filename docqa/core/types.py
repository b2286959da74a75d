# =============================================================================
# Core Types — Step Results, Stream Chunks, Errors
# =============================================================================
#
# The vocabulary shared by every step and workflow:
#
#   StepResult   — outcome of one Step.execute() call
#   StreamChunk  — one item of a streaming workflow's output
#   StepError    — a step's own failure, wrapping the original exception
#   WorkflowError — raised by a blocking workflow that stopped at a step
#
# Contexts themselves are plain dicts (typed per workflow family with
# TypedDict in docqa.agents.state), so this module stays free of any
# domain fields.
# =============================================================================

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

WorkflowContext = Mapping[str, Any]

ChunkType = Literal["token", "data", "error", "done"]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class StepError(Exception):
    """A step failed; `cause` is the exception raised inside run()."""

    def __init__(self, step_name: str, cause: BaseException | str) -> None:
        self.step_name = step_name
        self.cause = cause if isinstance(cause, BaseException) else None
        message = str(cause) or type(cause).__name__
        super().__init__(message)


class WorkflowError(Exception):
    """A blocking workflow stopped at a failing step."""

    def __init__(self, workflow_name: str, step_name: str, message: str) -> None:
        self.workflow_name = workflow_name
        self.step_name = step_name
        super().__init__(
            f"Workflow '{workflow_name}' stopped at step '{step_name}': {message}"
        )


# ---------------------------------------------------------------------------
# Step Result
# ---------------------------------------------------------------------------


@dataclass
class StepResult:
    """
    Outcome of a single step.

    `data` holds the context fields the step produced; the workflow
    shallow-merges it into the running context (later keys win).
    """

    success: bool
    data: dict[str, Any] | None = None
    error: StepError | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None, **metadata: Any) -> StepResult:
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: StepError, **metadata: Any) -> StepResult:
        return cls(success=False, error=error, metadata=metadata)

    @property
    def error_message(self) -> str:
        return str(self.error) if self.error else "unknown error"


# ---------------------------------------------------------------------------
# Stream Chunk
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StreamChunk:
    """
    One item of a streaming workflow's output.

    Tagged by `type`:
      token — `content` holds visible answer text
      data  — `data` holds context fields (answer, suggestions, ...)
      error — `error` holds a message; terminal
      done  — terminal
    """

    type: ChunkType
    content: str | None = None
    data: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def token(cls, content: str) -> StreamChunk:
        return cls(type="token", content=content)

    @classmethod
    def with_data(cls, data: dict[str, Any]) -> StreamChunk:
        return cls(type="data", data=data)

    @classmethod
    def failure(cls, message: str) -> StreamChunk:
        return cls(type="error", error=message)

    @classmethod
    def finished(cls) -> StreamChunk:
        return cls(type="done")

    @property
    def is_terminal(self) -> bool:
        return self.type in ("error", "done")


def merge_context(context: dict[str, Any], data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Shallow merge `data` over `context` into a new dict; later keys win."""
    if not data:
        return context
    return {**context, **data}
