# =============================================================================
# Tool — Capability Wrapper
# =============================================================================
#
# Every external call (LLM completion, LLM token stream, vector search)
# goes through a Tool. The wrapper adds exactly one behaviour: a failure
# is logged with the tool's name and the original message, then the SAME
# exception is re-raised. Nothing is swallowed and nothing is retried
# here; retry policy belongs to the caller.
# =============================================================================

from __future__ import annotations

import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")


class Tool(ABC, Generic[TInput, TOutput]):
    """Base class for wrapped capability calls."""

    name: str = "Tool"
    description: str = ""

    async def execute(self, tool_input: TInput) -> TOutput:
        try:
            return await self.run(tool_input)
        except Exception as e:
            logger.error("[Tool] Error in %s: %s", self.name, e)
            raise

    @abstractmethod
    async def run(self, tool_input: TInput) -> TOutput:
        ...


class StreamingTool(Tool[TInput, TOutput]):
    """
    A Tool that can also produce its output incrementally.

    `stream()` applies the same log-and-reraise policy to errors raised
    while the underlying iterator is being consumed.
    """

    async def stream(self, tool_input: TInput) -> AsyncIterator[str]:
        try:
            async with contextlib.aclosing(self.run_stream(tool_input)) as fragments:
                async for fragment in fragments:
                    yield fragment
        except Exception as e:
            logger.error("[Tool] Stream error in %s: %s", self.name, e)
            raise

    @abstractmethod
    def run_stream(self, tool_input: TInput) -> AsyncIterator[str]:
        ...
