# =============================================================================
# Thinking Filter — Remove Reasoning Spans From a Live Token Stream
# =============================================================================
#
# Reasoning models can wrap private reasoning in a marker pair, e.g.
#     "Answer: <thinking>scratch work</thinking>42"
# Only "Answer: 42" may reach the caller. Chunk boundaries from the
# provider fall anywhere, including in the middle of a marker, so the
# filter keeps a small buffer of text it cannot classify yet.
#
# BUFFER BOUND:
#   outside a span → at most len(open_tag) - 1 trailing characters
#   inside a span  → at most len(close_tag) - 1 trailing characters
#
# The concatenated output of feed() calls plus finalize() is the same for
# every way of chunking the raw text.
# =============================================================================

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator
from dataclasses import dataclass


@dataclass
class ThinkingFilterState:
    """Per-stream state. One instance per generation call."""

    in_span: bool = False
    pending: str = ""


class ThinkingFilter:
    """Stateless filter logic; all mutable state lives in ThinkingFilterState."""

    def __init__(self, open_tag: str = "<thinking>", close_tag: str = "</thinking>") -> None:
        if not open_tag or not close_tag:
            raise ValueError("Thinking markers must be non-empty strings")
        self.open_tag = open_tag
        self.close_tag = close_tag

    def feed(self, raw: str, state: ThinkingFilterState) -> str:
        """Consume one raw chunk and return the text that is safe to show."""
        state.pending += raw
        visible: list[str] = []

        while True:
            if state.in_span:
                end = state.pending.find(self.close_tag)
                if end == -1:
                    state.pending = _tail(state.pending, len(self.close_tag) - 1)
                    return "".join(visible)
                state.pending = state.pending[end + len(self.close_tag):]
                state.in_span = False
            else:
                start = state.pending.find(self.open_tag)
                if start == -1:
                    keep = len(self.open_tag) - 1
                    cut = max(len(state.pending) - keep, 0)
                    visible.append(state.pending[:cut])
                    state.pending = state.pending[cut:]
                    return "".join(visible)
                visible.append(state.pending[:start])
                state.pending = state.pending[start + len(self.open_tag):]
                state.in_span = True

    def finalize(self, state: ThinkingFilterState) -> str:
        """
        Flush the buffer at end of stream.

        An unterminated span swallows the rest of the stream. Outside a
        span, a trailing partial open marker (e.g. "<thi") is dropped.
        """
        pending, state.pending = state.pending, ""
        if state.in_span:
            return ""
        for size in range(min(len(self.open_tag) - 1, len(pending)), 0, -1):
            if pending.endswith(self.open_tag[:size]):
                return pending[:-size]
        return pending

    def apply(self, text: str) -> str:
        """Filter a complete string in one go."""
        state = ThinkingFilterState()
        return self.feed(text, state) + self.finalize(state)


async def strip_thinking(
    fragments: AsyncIterator[str],
    thinking_filter: ThinkingFilter,
) -> AsyncIterator[str]:
    """
    Yield the visible, non-empty parts of a raw fragment stream.

    The source iterator is closed when this generator is closed.
    """
    state = ThinkingFilterState()
    async with contextlib.aclosing(fragments) as source:
        async for raw in source:
            visible = thinking_filter.feed(raw, state)
            if visible:
                yield visible
    tail = thinking_filter.finalize(state)
    if tail:
        yield tail


def _tail(text: str, size: int) -> str:
    return text[-size:] if size > 0 else ""
