from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass
class VideoAnalysis:
    owner_id: int
    video_id: str
    video_title: str
    channel_name: str
    video_url: str
    transcript: str
    transcript_language: Optional[str] = None
    transcript_source: str = "captions"
    created_at: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> VideoAnalysis:
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            video_id=row["video_id"],
            video_title=row["video_title"],
            channel_name=row["channel_name"],
            video_url=row["video_url"],
            transcript=row["transcript"],
            transcript_language=row["transcript_language"],
            transcript_source=row["transcript_source"],
            created_at=row["created_at"],
        )

    def to_dict(self, include_transcript: bool = True) -> dict:
        data = asdict(self)
        if not include_transcript:
            data.pop("transcript")
        return data


@dataclass
class TranscriptChunk:
    analysis_id: int
    chunk_index: int
    content: str
    embedding: list[float] = field(default_factory=list)
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> TranscriptChunk:
        return cls(
            id=row["id"],
            analysis_id=row["analysis_id"],
            chunk_index=row["chunk_index"],
            content=row["content"],
            embedding=json.loads(row["embedding"]),
        )

    def to_dict(self, include_embedding: bool = False) -> dict:
        data = asdict(self)
        if not include_embedding:
            data.pop("embedding")
        return data


@dataclass
class Question:
    analysis_id: int
    question: str
    answer: str
    citations: list[dict] = field(default_factory=list)
    confidence: float = 0.0
    created_at: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> Question:
        return cls(
            id=row["id"],
            analysis_id=row["analysis_id"],
            question=row["question"],
            answer=row["answer"],
            citations=json.loads(row["citations"] or "[]"),
            confidence=row["confidence"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict:
        return asdict(self)
