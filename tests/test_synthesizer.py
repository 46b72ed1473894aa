"""Tests for answer synthesis and its confidence score."""
from __future__ import annotations

import pytest

from youtube_knowledge.database.models import TranscriptChunk
from youtube_knowledge.retrieval.similarity import RankedChunk
from youtube_knowledge.retrieval.synthesizer import (
    MAX_CONFIDENCE,
    NO_RELEVANT_CONTENT_ANSWER,
    AnswerSynthesizer,
    answer_confidence,
)


def _ranked(*scores):
    return [
        RankedChunk(
            TranscriptChunk(analysis_id=1, chunk_index=i, content=f"chunk {i}", embedding=[1.0]),
            score,
        )
        for i, score in enumerate(scores)
    ]


class FakeChat:
    def __init__(self):
        self.calls = []

    def complete(self, messages):
        self.calls.append(messages)
        return "Grounded answer."


class TestAnswerConfidence:
    def test_no_chunks(self):
        assert answer_confidence([]) == 0.0

    def test_mean_plus_chunk_bonus(self):
        # mean 0.8, bonus 3/5 * 0.1
        assert answer_confidence(_ranked(1.0, 0.8, 0.6)) == pytest.approx(86.0)

    def test_bonus_caps_at_five_chunks(self):
        assert answer_confidence(_ranked(*[0.5] * 5)) == pytest.approx(60.0)
        assert answer_confidence(_ranked(*[0.5] * 8)) == pytest.approx(60.0)

    def test_capped(self):
        assert answer_confidence(_ranked(1.0)) == MAX_CONFIDENCE

    def test_negative_similarity_floors_at_bonus(self):
        assert answer_confidence(_ranked(-0.5)) == pytest.approx(2.0)


class TestAnswerSynthesizer:
    def test_canned_answer_has_zero_confidence(self):
        chat = FakeChat()
        answer = AnswerSynthesizer(chat).answer("Anything?", [])
        assert answer.answer == NO_RELEVANT_CONTENT_ANSWER
        assert answer.confidence == 0.0
        assert chat.calls == []

    def test_model_answer_carries_confidence(self):
        chat = FakeChat()
        answer = AnswerSynthesizer(chat).answer("Why?", _ranked(1.0, 0.8, 0.6))
        assert answer.answer == "Grounded answer."
        assert answer.confidence == pytest.approx(86.0)
        assert [c["chunk_index"] for c in answer.citations()] == [0, 1, 2]

    def test_history_reaches_prompt(self):
        chat = FakeChat()
        AnswerSynthesizer(chat).answer(
            "And then?", _ranked(0.9), history=[("First?", "First answer.")]
        )
        assert "Q: First?\nA: First answer." in chat.calls[0][-1]["content"]
