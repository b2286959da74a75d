# =============================================================================
# Unit Tests — Tool, Step and Workflow Engine
# =============================================================================
#
# Covers the blocking half of the engine: tool error propagation, step
# failure capture, fail-fast workflows and the reads/writes wiring check.
# =============================================================================

from __future__ import annotations

import asyncio
import logging

import pytest

from docqa.core import (
    Step,
    StepError,
    StepResult,
    StreamingTool,
    Tool,
    Workflow,
    WorkflowError,
    check_wiring,
)


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class EchoTool(Tool[str, str]):
    name = "EchoTool"

    async def run(self, tool_input: str) -> str:
        return tool_input.upper()


class BrokenTool(Tool[str, str]):
    name = "BrokenTool"

    def __init__(self, error: Exception) -> None:
        self.error = error

    async def run(self, tool_input: str) -> str:
        raise self.error


class WordStreamTool(StreamingTool[str, str]):
    name = "WordStreamTool"

    async def run(self, tool_input: str) -> str:
        return tool_input

    async def run_stream(self, tool_input: str):
        for word in tool_input.split():
            yield word
        if "boom" in tool_input:
            raise RuntimeError("stream broke")


class SetStep(Step):
    """Writes fixed fields and records that it ran."""

    def __init__(self, name: str, data: dict, reads=(), writes=None, log=None) -> None:
        self.name = name
        self.reads = tuple(reads)
        self.writes = tuple(writes if writes is not None else data)
        self._data = data
        self._log = log if log is not None else []

    async def run(self, context):
        self._log.append((self.name, dict(context)))
        return StepResult.ok(self._data)


class RaisingStep(Step):
    name = "RaisingStep"

    def __init__(self, log=None) -> None:
        self._log = log if log is not None else []

    async def run(self, context):
        self._log.append((self.name, dict(context)))
        raise KeyError("missing thing")


class RefusingStep(Step):
    name = "RefusingStep"

    async def run(self, context):
        return self.failure("precondition not met")


def _workflow(steps, inputs=("query",)):
    class _TestWorkflow(Workflow):
        name = "TestWorkflow"

    _TestWorkflow.inputs = tuple(inputs)
    return _TestWorkflow(steps)


# ---------------------------------------------------------------------------
# Test: Tool
# ---------------------------------------------------------------------------


class TestTool:
    def test_execute_returns_run_output(self):
        assert _run(EchoTool().execute("hi")) == "HI"

    def test_error_is_reraised_unchanged(self):
        error = ValueError("bad input")
        with pytest.raises(ValueError) as exc_info:
            _run(BrokenTool(error).execute("x"))
        assert exc_info.value is error

    def test_error_is_logged_with_tool_name(self, caplog):
        with caplog.at_level(logging.ERROR, logger="docqa.core.tool"):
            with pytest.raises(ValueError):
                _run(BrokenTool(ValueError("bad input")).execute("x"))
        assert "BrokenTool" in caplog.text
        assert "bad input" in caplog.text

    def test_stream_yields_fragments(self):
        async def collect():
            return [w async for w in WordStreamTool().stream("one two three")]

        assert _run(collect()) == ["one", "two", "three"]

    def test_stream_error_reraised_after_fragments(self, caplog):
        seen: list[str] = []

        async def collect():
            async for word in WordStreamTool().stream("a b boom"):
                seen.append(word)

        with caplog.at_level(logging.ERROR, logger="docqa.core.tool"):
            with pytest.raises(RuntimeError, match="stream broke"):
                _run(collect())
        assert seen == ["a", "b", "boom"]
        assert "WordStreamTool" in caplog.text


# ---------------------------------------------------------------------------
# Test: Step
# ---------------------------------------------------------------------------


class TestStep:
    def test_exception_becomes_failed_result(self):
        result = _run(RaisingStep().execute({}))
        assert result.success is False
        assert isinstance(result.error, StepError)
        assert result.error.step_name == "RaisingStep"
        assert isinstance(result.error.cause, KeyError)

    def test_reported_failure_has_no_cause(self):
        result = _run(RefusingStep().execute({}))
        assert result.success is False
        assert result.error_message == "precondition not met"
        assert result.error.cause is None

    def test_success_carries_data_and_metadata(self):
        result = StepResult.ok({"answer": "x"}, retrieved=3)
        assert result.success
        assert result.data == {"answer": "x"}
        assert result.metadata == {"retrieved": 3}


# ---------------------------------------------------------------------------
# Test: Workflow
# ---------------------------------------------------------------------------


class TestWorkflow:
    def test_steps_run_in_order_and_merge(self):
        log: list = []
        workflow = _workflow([
            SetStep("first", {"a": 1}, log=log),
            SetStep("second", {"b": 2}, reads=("a",), log=log),
        ])

        result = _run(workflow.execute({"query": "q"}))

        assert result == {"query": "q", "a": 1, "b": 2}
        assert [name for name, _ in log] == ["first", "second"]
        assert log[1][1]["a"] == 1

    def test_later_keys_win(self):
        workflow = _workflow([
            SetStep("first", {"value": "old"}),
            SetStep("second", {"value": "new"}),
        ])
        assert _run(workflow.execute({"query": "q"}))["value"] == "new"

    def test_failure_stops_before_later_steps(self):
        log: list = []
        workflow = _workflow([
            SetStep("first", {"a": 1}, log=log),
            RaisingStep(log=log),
            SetStep("third", {"c": 3}, log=log),
        ])

        with pytest.raises(WorkflowError) as exc_info:
            _run(workflow.execute({"query": "q"}))

        assert exc_info.value.step_name == "RaisingStep"
        assert exc_info.value.workflow_name == "TestWorkflow"
        assert "RaisingStep" in str(exc_info.value)
        assert [name for name, _ in log] == ["first", "RaisingStep"]

    def test_reported_failure_message_propagates(self):
        workflow = _workflow([RefusingStep()])
        with pytest.raises(WorkflowError, match="precondition not met"):
            _run(workflow.execute({"query": "q"}))

    def test_caller_context_is_not_mutated(self):
        initial = {"query": "q", "history": [{"role": "user", "content": "hi"}]}
        workflow = _workflow([SetStep("first", {"a": 1})])

        _run(workflow.execute(initial))

        assert initial == {"query": "q", "history": [{"role": "user", "content": "hi"}]}

    def test_concurrent_runs_do_not_share_context(self):
        workflow = _workflow([SetStep("first", {"a": 1})])

        async def both():
            return await asyncio.gather(
                workflow.execute({"query": "one"}),
                workflow.execute({"query": "two"}),
            )

        first, second = _run(both())
        assert first["query"] == "one"
        assert second["query"] == "two"


# ---------------------------------------------------------------------------
# Test: Wiring Check
# ---------------------------------------------------------------------------


class TestCheckWiring:
    def test_inputs_and_earlier_writes_satisfy_reads(self):
        check_wiring("W", ["query"], [
            SetStep("first", {"a": 1}, reads=("query",)),
            SetStep("second", {"b": 2}, reads=("query", "a")),
        ])

    def test_missing_read_names_the_step(self):
        with pytest.raises(ValueError, match="second"):
            check_wiring("W", ["query"], [
                SetStep("first", {"a": 1}),
                SetStep("second", {"b": 2}, reads=("missing",)),
            ])

    def test_read_written_by_later_step_is_rejected(self):
        with pytest.raises(ValueError):
            check_wiring("W", [], [
                SetStep("first", {"a": 1}, reads=("b",)),
                SetStep("second", {"b": 2}),
            ])

    def test_workflow_construction_checks_wiring(self):
        with pytest.raises(ValueError):
            _workflow([SetStep("first", {"a": 1}, reads=("nope",))])
