from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from ..database.models import TranscriptChunk
from ..errors import EmbeddingFailed, NoRelevantContent

DEFAULT_TOP_K = 3


@dataclass
class RankedChunk:
    chunk: TranscriptChunk
    score: float

    def citation(self, excerpt_chars: int = 150) -> dict:
        content = self.chunk.content
        excerpt = content if len(content) <= excerpt_chars else content[:excerpt_chars] + "..."
        return {
            "chunk_index": self.chunk.chunk_index,
            "score": round(self.score, 4),
            "excerpt": excerpt,
        }


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0.0 if either has zero length."""
    if len(a) != len(b):
        raise EmbeddingFailed(
            f"Embedding dimensions differ ({len(a)} vs {len(b)}); "
            "was the analysis indexed with a different model?"
        )
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank_chunks(
    query_embedding: Sequence[float],
    chunks: list[TranscriptChunk],
    top_k: int = DEFAULT_TOP_K,
) -> list[RankedChunk]:
    """Return the ``top_k`` chunks most similar to the query, best first.

    There is no minimum score: weak matches are still returned.
    Equal scores keep their original chunk order.

    Raises ValueError if ``top_k`` is below 1 and NoRelevantContent when
    there are no chunks at all.
    """
    if top_k < 1:
        raise ValueError(f"top_k must be at least 1, got {top_k}")
    if not chunks:
        raise NoRelevantContent("Analysis has no transcript chunks to rank")

    scored = [
        RankedChunk(chunk, cosine_similarity(query_embedding, chunk.embedding))
        for chunk in chunks
    ]
    # sorted() is stable, so ties stay in chunk order
    scored = sorted(scored, key=lambda r: r.score, reverse=True)
    return scored[:top_k]
