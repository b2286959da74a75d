# =============================================================================
# Workflow — Fail-Fast Sequential Composition of Steps
# =============================================================================
#
#   initial context ──copy──▶ step 1 ──merge──▶ step 2 ──merge──▶ ... ──▶ final
#                                 │
#                                 └─ failure ──▶ WorkflowError (names the step)
#
# The caller's context is deep-copied on entry, so concurrent requests
# never share mutable state. Each successful step's data is shallow-merged
# into the running context. The first failing step aborts the run and no
# partial context is returned.
# =============================================================================

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, ClassVar

from docqa.core.step import Step, StreamingStep
from docqa.core.types import WorkflowError, merge_context

logger = logging.getLogger(__name__)


def check_wiring(
    workflow_name: str,
    inputs: Iterable[str],
    steps: Sequence[Step | StreamingStep],
) -> None:
    """
    Verify every step's declared reads are available when it runs.

    A field is available if the caller supplies it (`inputs`) or an
    earlier step declares it in `writes`.

    Raises:
        ValueError: naming the first step whose reads are not covered.
    """
    available = set(inputs)
    for step in steps:
        missing = [f for f in step.reads if f not in available]
        if missing:
            raise ValueError(
                f"Workflow '{workflow_name}': step '{step.name}' reads "
                f"{missing} which no input or earlier step provides"
            )
        available.update(step.writes)


class Workflow:
    """
    Run steps in order over a private copy of the context.

    Subclasses set `name`, `inputs` (fields the caller supplies) and pass
    their step list to the constructor.
    """

    name: ClassVar[str] = "Workflow"
    inputs: ClassVar[tuple[str, ...]] = ()

    def __init__(self, steps: Sequence[Step]) -> None:
        self.steps = list(steps)
        check_wiring(self.name, self.inputs, self.steps)

    async def execute(self, initial_context: Mapping[str, Any]) -> dict[str, Any]:
        """
        Execute every step and return the final context.

        Raises:
            WorkflowError: the first step that fails, with its message.
        """
        logger.info("[Workflow] Starting: %s", self.name)
        context: dict[str, Any] = copy.deepcopy(dict(initial_context))

        for step in self.steps:
            result = await step.execute(context)

            if not result.success:
                logger.error(
                    "[Workflow] %s stopped at step '%s': %s",
                    self.name, step.name, result.error_message,
                )
                raise WorkflowError(self.name, step.name, result.error_message)

            context = merge_context(context, result.data)

        logger.info("[Workflow] Completed: %s", self.name)
        return context
