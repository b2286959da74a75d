# =============================================================================
# Unit Tests — Thinking Filter
# =============================================================================
#
# Reasoning spans must never reach the caller, however the provider
# splits the stream. The partition tests feed the same raw text in every
# 2-way and 3-way split and expect identical visible output.
# =============================================================================

from __future__ import annotations

import asyncio
import itertools

import pytest

from docqa.services.thinking import ThinkingFilter, ThinkingFilterState, strip_thinking


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def _feed_all(thinking_filter: ThinkingFilter, parts: list[str]) -> str:
    state = ThinkingFilterState()
    out = [thinking_filter.feed(part, state) for part in parts]
    out.append(thinking_filter.finalize(state))
    return "".join(out)


def _splits(text: str, pieces: int):
    """Every way of cutting `text` into `pieces` consecutive parts."""
    for cuts in itertools.combinations(range(len(text) + 1), pieces - 1):
        bounds = (0, *cuts, len(text))
        yield [text[bounds[i]:bounds[i + 1]] for i in range(pieces)]


# ---------------------------------------------------------------------------
# Test: Basic Filtering
# ---------------------------------------------------------------------------


class TestThinkingFilter:
    def test_marker_split_across_chunks(self):
        result = _feed_all(ThinkingFilter(), ["Hello <thi", "nking>secret</thinking> world"])
        assert result == "Hello  world"

    def test_text_without_markers_passes_through(self):
        assert ThinkingFilter().apply("Revenue rose 4% [Page 2]") == "Revenue rose 4% [Page 2]"

    def test_multiple_spans(self):
        text = "<thinking>a</thinking>One <thinking>b</thinking>two"
        assert ThinkingFilter().apply(text) == "One two"

    def test_unterminated_span_discards_rest(self):
        assert _feed_all(ThinkingFilter(), ["Answer: ", "<thinking>still thin", "king"]) == "Answer: "

    def test_trailing_partial_open_marker_is_dropped(self):
        assert _feed_all(ThinkingFilter(), ["The answer", " <thi"]) == "The answer "

    def test_lone_angle_bracket_is_kept(self):
        assert ThinkingFilter().apply("a < b and c > d") == "a < b and c > d"

    def test_buffer_stays_bounded(self):
        thinking_filter = ThinkingFilter()
        state = ThinkingFilterState()
        thinking_filter.feed("x" * 500, state)
        assert len(state.pending) <= len(thinking_filter.open_tag) - 1

        thinking_filter.feed("<thinking>" + "y" * 500, state)
        assert state.in_span
        assert len(state.pending) <= len(thinking_filter.close_tag) - 1

    def test_custom_markers(self):
        thinking_filter = ThinkingFilter("<think>", "</think>")
        assert thinking_filter.apply("A<think>hidden</think>B") == "AB"

    def test_empty_marker_rejected(self):
        with pytest.raises(ValueError):
            ThinkingFilter("", "</thinking>")


# ---------------------------------------------------------------------------
# Test: Chunking Independence
# ---------------------------------------------------------------------------


class TestChunkingIndependence:
    TEXTS = [
        "Hello <thinking>secret</thinking> world",
        "<thinking>x</thinking>A<thinking>y</thinking>B <thi",
        "Total: 12 <thinking>check the </thinking table</thinking>[Page 3]",
    ]

    @pytest.mark.parametrize("text", TEXTS)
    def test_every_two_way_split(self, text):
        thinking_filter = ThinkingFilter()
        expected = thinking_filter.apply(text)
        for parts in _splits(text, 2):
            assert _feed_all(thinking_filter, parts) == expected, parts

    @pytest.mark.parametrize("text", TEXTS)
    def test_every_three_way_split(self, text):
        thinking_filter = ThinkingFilter()
        expected = thinking_filter.apply(text)
        for parts in _splits(text, 3):
            assert _feed_all(thinking_filter, parts) == expected, parts

    def test_one_character_chunks(self):
        text = "Hello <thinking>secret</thinking> world"
        assert _feed_all(ThinkingFilter(), list(text)) == "Hello  world"

    def test_never_leaks_span_content(self):
        text = "Visible <thinking>SECRET</thinking>end"
        for parts in _splits(text, 3):
            state = ThinkingFilterState()
            thinking_filter = ThinkingFilter()
            for part in parts:
                assert "SECRET" not in thinking_filter.feed(part, state)


# ---------------------------------------------------------------------------
# Test: Async Stream Wrapper
# ---------------------------------------------------------------------------


class TestStripThinking:
    def test_yields_only_visible_text(self):
        async def fragments():
            for part in ["The answer ", "<think", "ing>hidden</thinking>", "is 42"]:
                yield part

        async def collect():
            return [f async for f in strip_thinking(fragments(), ThinkingFilter())]

        visible = _run(collect())
        assert "".join(visible) == "The answer is 42"
        assert all(visible)
