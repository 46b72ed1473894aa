"""Tests for prompt template builders."""
from __future__ import annotations

import pytest

from youtube_knowledge.prompts.question_answering import (
    SYSTEM_PROMPT,
    build_context,
    build_history,
    build_messages,
    build_user_prompt,
)


class TestQuestionAnsweringPrompts:
    def test_system_prompt_restricts_to_excerpts(self):
        assert "ONLY" in SYSTEM_PROMPT
        assert "transcript" in SYSTEM_PROMPT

    def test_build_context_joins_with_blank_lines(self):
        assert build_context(["  one ", "two"]) == "one\n\ntwo"

    def test_user_prompt_contains_question_and_context(self):
        prompt = build_user_prompt("What time?", "at dawn")
        assert "Question: What time?" in prompt
        assert "at dawn" in prompt
        assert "Video:" not in prompt

    def test_user_prompt_includes_title(self):
        prompt = build_user_prompt("Q", "ctx", video_title="Bread 101")
        assert prompt.startswith('Video: "Bread 101"')

    def test_build_messages_roles(self):
        messages = build_messages("Why?", ["a", "b"], "Title")
        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"] == SYSTEM_PROMPT
        assert "a\n\nb" in messages[1]["content"]

    def test_build_history_pairs(self):
        assert build_history([("Q1?", "A1."), ("Q2?", "A2.")]) == "Q: Q1?\nA: A1.\n\nQ: Q2?\nA: A2."

    def test_user_prompt_without_history(self):
        prompt = build_user_prompt("Q", "ctx", history=[])
        assert "PREVIOUS CONVERSATION" not in prompt
        assert prompt.endswith("Answer:")

    def test_user_prompt_history_after_excerpts(self):
        prompt = build_user_prompt("Next?", "ctx", history=[("Before?", "Yes.")])
        assert "Q: Before?\nA: Yes." in prompt
        assert prompt.index("--- END EXCERPTS ---") < prompt.index("PREVIOUS CONVERSATION")
        assert prompt.endswith("Answer:")

    def test_build_messages_passes_history(self):
        messages = build_messages("Why?", ["a"], "Title", history=[("How?", "Slowly.")])
        assert "Q: How?\nA: Slowly." in messages[1]["content"]
