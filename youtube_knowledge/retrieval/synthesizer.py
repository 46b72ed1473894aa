from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..clients import ChatClient
from ..errors import NoRelevantContent
from ..prompts.question_answering import build_messages
from .similarity import RankedChunk

logger = logging.getLogger(__name__)

NO_RELEVANT_CONTENT_ANSWER = NoRelevantContent.user_message

MAX_CONFIDENCE = 95.0


def answer_confidence(ranked: list[RankedChunk]) -> float:
    """Score 0-95 from the mean similarity of the context chunks.

    Up to five chunks add a bonus of at most 10 points. Negative mean
    similarity counts as zero.
    """
    if not ranked:
        return 0.0
    average = sum(r.score for r in ranked) / len(ranked)
    bonus = min(len(ranked) / 5, 1.0) * 0.1
    return round(min((max(average, 0.0) + bonus) * 100, MAX_CONFIDENCE), 1)


@dataclass
class Answer:
    question: str
    answer: str
    sources: list[RankedChunk] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def from_model(self) -> bool:
        return bool(self.sources)

    def citations(self) -> list[dict]:
        return [s.citation() for s in self.sources]


class AnswerSynthesizer:
    """Asks the chat model to answer a question from ranked transcript chunks."""

    def __init__(self, chat: ChatClient):
        self.chat = chat

    def answer(
        self,
        question: str,
        ranked: list[RankedChunk],
        video_title: str = "",
        history: Optional[list[tuple[str, str]]] = None,
    ) -> Answer:
        # Nothing to ground on: never let the model answer from its own knowledge
        if not ranked:
            logger.info("No context chunks; returning the canned answer")
            return Answer(question=question, answer=NO_RELEVANT_CONTENT_ANSWER)

        messages = build_messages(
            question, [r.chunk.content for r in ranked], video_title, history
        )
        text = self.chat.complete(messages)
        confidence = answer_confidence(ranked)
        logger.info(
            f"Answered from {len(ranked)} chunks "
            f"(best score {ranked[0].score:.3f}, confidence {confidence}, {len(text)} chars)"
        )
        return Answer(
            question=question, answer=text, sources=list(ranked), confidence=confidence
        )
