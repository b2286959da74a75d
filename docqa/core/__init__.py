# =============================================================================
# Core Package — Step / Tool / Workflow Engine
# =============================================================================
#   - tool.py: Tool, StreamingTool — log-and-reraise capability wrappers
#   - step.py: Step, StreamingStep — named units of work
#   - workflow.py: Workflow — fail-fast sequential composition
#   - streaming.py: StreamingWorkflow — prepare → stream → post-process
#   - types.py: StepResult, StreamChunk, StepError, WorkflowError
# =============================================================================

from docqa.core.step import Step, StreamingStep
from docqa.core.streaming import StreamingWorkflow
from docqa.core.tool import StreamingTool, Tool
from docqa.core.types import (
    StepError,
    StepResult,
    StreamChunk,
    WorkflowError,
    merge_context,
)
from docqa.core.workflow import Workflow, check_wiring

__all__ = [
    "Step",
    "StepError",
    "StepResult",
    "StreamChunk",
    "StreamingStep",
    "StreamingTool",
    "StreamingWorkflow",
    "Tool",
    "Workflow",
    "WorkflowError",
    "check_wiring",
    "merge_context",
]
