from __future__ import annotations

import json
import sqlite3
import logging
import threading
from contextlib import contextmanager
from typing import Optional

from .connection import init_database
from .models import Question, TranscriptChunk, VideoAnalysis

logger = logging.getLogger(__name__)


class Repository:
    """Append-only store for video analyses, their chunks, and Q&A history.

    One connection is shared by every thread. Reads and writes both take
    ``_lock``, so a reader never observes rows of a transaction another
    thread has not committed yet.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._depth = 0

    @property
    def conn(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                self._conn = init_database(self.db_path)
            return self._conn

    def close(self):
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    @contextmanager
    def transaction(self):
        """Group writes so they commit together or not at all.

        Nested uses join the outermost transaction.
        """
        with self._lock:
            self._depth += 1
            try:
                yield self
            except Exception:
                self._depth -= 1
                if self._depth == 0:
                    self.conn.rollback()
                    logger.debug("Transaction rolled back")
                raise
            else:
                self._depth -= 1
                if self._depth == 0:
                    self.conn.commit()

    def _fetchone(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchone()

    def _fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchall()

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    def create_analysis(self, metadata: dict, transcript: str, owner_id: int) -> VideoAnalysis:
        """Insert a new analysis. ``metadata`` carries video_id, video_title,
        channel_name, video_url and optionally transcript_language/source."""
        with self.transaction():
            cur = self.conn.execute(
                """INSERT INTO video_analyses
                   (owner_id, video_id, video_title, channel_name, video_url,
                    transcript, transcript_language, transcript_source)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    owner_id,
                    metadata["video_id"],
                    metadata["video_title"],
                    metadata["channel_name"],
                    metadata["video_url"],
                    transcript,
                    metadata.get("transcript_language"),
                    metadata.get("transcript_source", "captions"),
                ),
            )
            analysis = self.get_analysis(cur.lastrowid)
        return analysis

    def get_analysis(self, analysis_id: int) -> Optional[VideoAnalysis]:
        row = self._fetchone("SELECT * FROM video_analyses WHERE id = ?", (analysis_id,))
        return VideoAnalysis.from_row(row) if row else None

    def list_analyses(self, owner_id: int) -> list[VideoAnalysis]:
        """Analyses for an owner, newest first."""
        rows = self._fetchall(
            """SELECT * FROM video_analyses WHERE owner_id = ?
               ORDER BY created_at DESC, id DESC""",
            (owner_id,),
        )
        return [VideoAnalysis.from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def create_chunks(self, analysis_id: int, chunks: list[dict]) -> list[TranscriptChunk]:
        """Bulk insert ``{"index", "text", "embedding"}`` dicts.

        Indices must cover 0..n-1 exactly; rows come back in index order.
        """
        ordered = sorted(chunks, key=lambda c: c["index"])
        indices = [c["index"] for c in ordered]
        if indices != list(range(len(ordered))):
            raise ValueError(f"Chunk indices must be contiguous from 0, got {indices}")

        with self.transaction():
            self.conn.executemany(
                """INSERT INTO transcript_chunks (analysis_id, chunk_index, content, embedding)
                   VALUES (?, ?, ?, ?)""",
                [
                    (analysis_id, c["index"], c["text"], json.dumps(c["embedding"]))
                    for c in ordered
                ],
            )
            stored = self.get_chunks(analysis_id)
        return stored

    def get_chunks(self, analysis_id: int) -> list[TranscriptChunk]:
        rows = self._fetchall(
            """SELECT * FROM transcript_chunks WHERE analysis_id = ?
               ORDER BY chunk_index""",
            (analysis_id,),
        )
        return [TranscriptChunk.from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    def create_question(
        self,
        analysis_id: int,
        question: str,
        answer: str,
        citations: Optional[list[dict]] = None,
        confidence: float = 0.0,
    ) -> Question:
        with self.transaction():
            cur = self.conn.execute(
                """INSERT INTO questions (analysis_id, question, answer, citations, confidence)
                   VALUES (?, ?, ?, ?, ?)""",
                (analysis_id, question, answer, json.dumps(citations or []), confidence),
            )
            row = self._fetchone("SELECT * FROM questions WHERE id = ?", (cur.lastrowid,))
        return Question.from_row(row)

    def get_questions(self, analysis_id: int) -> list[Question]:
        """Q&A history for an analysis, most recent first."""
        rows = self._fetchall(
            """SELECT * FROM questions WHERE analysis_id = ?
               ORDER BY created_at DESC, id DESC""",
            (analysis_id,),
        )
        return [Question.from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        with self._lock:
            stats = {}
            for key, table in (
                ("analyses", "video_analyses"),
                ("chunks", "transcript_chunks"),
                ("questions", "questions"),
            ):
                row = self.conn.execute(f"SELECT COUNT(*) AS cnt FROM {table}").fetchone()
                stats[key] = row["cnt"]

            rows = self.conn.execute(
                """SELECT transcript_source, COUNT(*) AS cnt FROM video_analyses
                   GROUP BY transcript_source"""
            ).fetchall()
        stats["analyses_by_source"] = {r["transcript_source"]: r["cnt"] for r in rows}
        return stats
