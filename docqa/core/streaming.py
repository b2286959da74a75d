# =============================================================================
# StreamingWorkflow — Prepare, Stream, Post-Process
# =============================================================================
#
# Three phases feed one chunk stream:
#
#   1. preparation steps   — run like a Workflow (fail-fast); a failure
#                            becomes a single `error` chunk
#   2. streaming step      — its chunks are forwarded in order; `data`
#                            chunks are merged into the context at once
#   3. post-processing     — best-effort; each successful step's data is
#                            emitted as a `data` chunk, failures are logged
#                            and skipped
#
# followed by exactly one terminal chunk: `done`, or `error` if anything
# above raised. Nothing is emitted after the terminal chunk.
#
# PRODUCER / CONSUMER:
#   ┌──────────────┐   bounded asyncio.Queue   ┌───────────────┐
#   │ producer task│ ────────────────────────▶ │ execute() gen │ ──▶ caller
#   └──────────────┘                           └───────────────┘
# The phases run in a producer task. When the caller stops iterating
# (aclose(), break inside `async with aclosing(...)`, or task
# cancellation) the producer task is cancelled, which cancels whatever
# capability call it is awaiting at that moment.
# =============================================================================

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any, ClassVar

from docqa.config import settings
from docqa.core.step import Step, StreamingStep
from docqa.core.types import StreamChunk, merge_context
from docqa.core.workflow import check_wiring

logger = logging.getLogger(__name__)


class StreamingWorkflow:
    """
    Compose preparation steps, one streaming step and post steps into a
    single stream of StreamChunk.
    """

    name: ClassVar[str] = "StreamingWorkflow"
    inputs: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        preparation_steps: Sequence[Step],
        streaming_step: StreamingStep,
        post_steps: Sequence[Step] = (),
        queue_size: int | None = None,
    ) -> None:
        self.preparation_steps = list(preparation_steps)
        self.streaming_step = streaming_step
        self.post_steps = list(post_steps)
        self.queue_size = queue_size or settings.stream_queue_size
        check_wiring(
            self.name,
            self.inputs,
            [*self.preparation_steps, self.streaming_step, *self.post_steps],
        )

    async def execute(
        self, initial_context: Mapping[str, Any],
    ) -> AsyncIterator[StreamChunk]:
        """Yield chunks until, and including, the terminal chunk."""
        logger.info("[StreamingWorkflow] Starting: %s", self.name)
        queue: asyncio.Queue[StreamChunk] = asyncio.Queue(maxsize=self.queue_size)
        producer = asyncio.create_task(
            self._produce(copy.deepcopy(dict(initial_context)), queue),
            name=f"{self.name}-producer",
        )

        terminal_seen = False
        try:
            while not terminal_seen:
                chunk = await queue.get()
                terminal_seen = chunk.is_terminal
                yield chunk
        finally:
            if terminal_seen:
                # Nothing left to cancel; let the producer log its completion.
                await producer
            elif not producer.done():
                logger.info(
                    "[StreamingWorkflow] Consumer stopped early, cancelling: %s",
                    self.name,
                )
                producer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await producer

    async def _produce(
        self,
        context: dict[str, Any],
        queue: asyncio.Queue[StreamChunk],
    ) -> None:
        """Run the three phases, putting every chunk on `queue`."""
        try:
            # --- Phase 1: preparation (fail-fast) ---
            for step in self.preparation_steps:
                logger.debug(
                    "[StreamingWorkflow] Executing preparation step: %s", step.name,
                )
                result = await step.execute(context)
                if not result.success:
                    logger.error(
                        "[StreamingWorkflow] Preparation step failed: %s: %s",
                        step.name, result.error_message,
                    )
                    await queue.put(StreamChunk.failure(
                        f"Step '{step.name}' failed: {result.error_message}"
                    ))
                    return
                context = merge_context(context, result.data)

            # --- Phase 2: streaming ---
            logger.debug(
                "[StreamingWorkflow] Starting streaming step: %s",
                self.streaming_step.name,
            )
            async with contextlib.aclosing(
                self.streaming_step.stream(context)
            ) as chunks:
                async for chunk in chunks:
                    if chunk.type == "done":
                        continue
                    await queue.put(chunk)
                    if chunk.type == "error":
                        logger.error(
                            "[StreamingWorkflow] Streaming step reported error: %s",
                            chunk.error,
                        )
                        return
                    if chunk.type == "data":
                        context = merge_context(context, chunk.data)

            # --- Phase 3: post-processing (best-effort) ---
            for step in self.post_steps:
                logger.debug("[StreamingWorkflow] Executing post step: %s", step.name)
                result = await step.execute(context)
                if not result.success:
                    logger.warning(
                        "[StreamingWorkflow] Post step %s failed, skipping: %s",
                        step.name, result.error_message,
                    )
                    continue
                if result.data:
                    await queue.put(StreamChunk.with_data(result.data))
                    context = merge_context(context, result.data)

            await queue.put(StreamChunk.finished())
            logger.info("[StreamingWorkflow] Completed: %s", self.name)

        except Exception as e:
            logger.exception("[StreamingWorkflow] Failed: %s", self.name)
            await queue.put(StreamChunk.failure(str(e) or type(e).__name__))
