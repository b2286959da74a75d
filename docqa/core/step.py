# =============================================================================
# Step — One Named Unit of Pipeline Work
# =============================================================================
#
# A Step reads fields from the workflow context and returns the fields it
# produced as a StepResult. Exceptions raised inside run() never escape
# execute(): they become a failed StepResult carrying a StepError, and the
# enclosing workflow decides what a failure means (abort, error chunk, or
# skip for post-processing steps).
#
# Steps hold no per-call state. Collaborators injected at construction
# (tools, settings) are read-only.
#
# `reads` / `writes` declare the context fields a step consumes and
# produces. Workflows check the declared wiring when they are built.
# =============================================================================

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any, ClassVar

from docqa.core.types import StepError, StepResult, StreamChunk

logger = logging.getLogger(__name__)


class Step(ABC):
    """Base class for blocking steps."""

    name: ClassVar[str] = "Step"
    description: ClassVar[str] = ""
    reads: ClassVar[tuple[str, ...]] = ()
    writes: ClassVar[tuple[str, ...]] = ()

    async def execute(self, context: dict[str, Any]) -> StepResult:
        logger.info("[Step] Starting: %s", self.name)
        try:
            result = await self.run(context)
        except Exception as e:
            logger.error("[Step] Failed: %s: %s", self.name, e)
            return StepResult.fail(StepError(self.name, e))

        if result.success:
            logger.info("[Step] Completed: %s", self.name)
        else:
            logger.warning(
                "[Step] Reported failure: %s: %s", self.name, result.error_message,
            )
        return result

    @abstractmethod
    async def run(self, context: dict[str, Any]) -> StepResult:
        ...

    def failure(self, message: str) -> StepResult:
        """Build a failed result for a precondition this step checks itself."""
        return StepResult.fail(StepError(self.name, message))


class StreamingStep(ABC):
    """
    The single step of a streaming workflow that produces output
    incrementally. Yields token chunks and, at the end, a data chunk with
    the fields it produced (e.g. the full answer).
    """

    name: ClassVar[str] = "StreamingStep"
    description: ClassVar[str] = ""
    reads: ClassVar[tuple[str, ...]] = ()
    writes: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    def stream(self, context: dict[str, Any]) -> AsyncIterator[StreamChunk]:
        ...
