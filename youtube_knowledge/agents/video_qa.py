from __future__ import annotations

"""Question answering over one ingested video: embed the question, rank the
stored transcript chunks, and have the chat model answer from the best ones."""

import logging
from typing import Optional

from ..clients import Clients
from ..database.models import Question, VideoAnalysis
from ..database.repository import Repository
from ..errors import AnalysisNotFound, NoRelevantContent
from ..prompts.question_answering import HISTORY_TURNS
from ..retrieval.similarity import DEFAULT_TOP_K, RankedChunk, rank_chunks
from ..retrieval.synthesizer import AnswerSynthesizer

logger = logging.getLogger(__name__)


class VideoQAAgent:
    """Answers questions against a single stored video analysis."""

    def __init__(self, repo: Repository, clients: Clients, top_k: int = DEFAULT_TOP_K):
        self.repo = repo
        self.embeddings = clients.embeddings
        self.synthesizer = AnswerSynthesizer(clients.chat)
        self.top_k = top_k

    def ask(
        self,
        analysis_id: int,
        question: str,
        history: Optional[list[tuple[str, str]]] = None,
    ) -> Question:
        """Answer a question and append it to the analysis's history.

        ``history`` is a list of earlier (question, answer) pairs, oldest
        first. When omitted, the analysis's last HISTORY_TURNS stored turns
        are used so follow-up questions have their context.

        Embedding and chat failures propagate; they are never turned into a
        made-up answer. An analysis with no chunks gets the canned
        no-relevant-content answer without any model calls.
        """
        question = (question or "").strip()
        if not question:
            raise ValueError("Question must not be empty")

        analysis = self._require_analysis(analysis_id)
        chunks = self.repo.get_chunks(analysis_id)

        if chunks:
            query_embedding = self.embeddings.embed(question)
            ranked = rank_chunks(query_embedding, chunks, self.top_k)
        else:
            logger.info(f"Analysis {analysis_id} has no chunks to search")
            ranked = []

        if history is None:
            history = self.recent_history(analysis_id)

        answer = self.synthesizer.answer(question, ranked, analysis.video_title, history)
        return self.repo.create_question(
            analysis_id,
            answer.question,
            answer.answer,
            answer.citations(),
            confidence=answer.confidence,
        )

    def recent_history(self, analysis_id: int, turns: int = HISTORY_TURNS) -> list[tuple[str, str]]:
        """The last ``turns`` question/answer pairs, oldest first."""
        recent = self.repo.get_questions(analysis_id)[:turns]
        return [(q.question, q.answer) for q in reversed(recent)]

    def search(self, analysis_id: int, query: str, limit: int = 10) -> list[RankedChunk]:
        """Semantic search over one analysis's chunks, best match first.

        Raises ValueError for a blank query or a limit below 1, and
        NoRelevantContent if the analysis has no chunks.
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("Search query must not be empty")
        if limit < 1:
            raise ValueError(f"Search limit must be at least 1, got {limit}")

        self._require_analysis(analysis_id)
        chunks = self.repo.get_chunks(analysis_id)
        if not chunks:
            raise NoRelevantContent(f"Analysis {analysis_id} has no chunks")

        query_embedding = self.embeddings.embed(query)
        return rank_chunks(query_embedding, chunks, limit)

    def _require_analysis(self, analysis_id: int) -> VideoAnalysis:
        analysis = self.repo.get_analysis(analysis_id)
        if analysis is None:
            raise AnalysisNotFound(f"No analysis with id {analysis_id}")
        return analysis
