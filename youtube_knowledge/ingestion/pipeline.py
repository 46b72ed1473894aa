from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Optional

from ..clients import Clients, EmbeddingClient
from ..config import get_retrieval_config, get_transcript_config
from ..database.models import TranscriptChunk, VideoAnalysis
from ..database.repository import Repository
from ..errors import EmbeddingFailed, InvalidUrl, NoTranscriptAvailable
from .audio_transcriber import AudioTranscriber
from .chunker import chunk_text
from .metadata_fetcher import MetadataFetcher
from .transcript_fetcher import TranscriptFetcher
from .video_id import extract_video_id

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    analysis: VideoAnalysis
    chunks: list[TranscriptChunk]

    def to_dict(self) -> dict:
        data = self.analysis.to_dict()
        data["analysis_id"] = data.pop("id")
        data["chunks"] = [c.to_dict() for c in self.chunks]
        return data


class IngestionPipeline:
    """Turns a video URL into a stored, searchable analysis.

    url -> video id -> {metadata, transcript} in parallel -> chunks ->
    embeddings in parallel -> one database transaction. Nothing is written
    until every chunk has its embedding, so a failed run leaves no trace.
    """

    def __init__(
        self,
        metadata_fetcher: MetadataFetcher,
        transcript_fetcher: TranscriptFetcher,
        embeddings: EmbeddingClient,
        repo: Repository,
        chunk_size: int = 500,
        chunk_overlap: int = 50,
        embedding_workers: int = 4,
    ):
        self.metadata_fetcher = metadata_fetcher
        self.transcript_fetcher = transcript_fetcher
        self.embeddings = embeddings
        self.repo = repo
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.embedding_workers = max(1, embedding_workers)

    def analyze(
        self,
        url: str,
        owner_id: int,
        allow_speech_to_text: Optional[bool] = None,
    ) -> AnalysisResult:
        """Ingest one video. Raises a KnowledgeBaseError subclass on failure."""
        result = None
        for event in self.analyze_steps(url, owner_id, allow_speech_to_text):
            if event["event"] == "completed":
                result = event["result"]
        return result

    def analyze_steps(
        self,
        url: str,
        owner_id: int,
        allow_speech_to_text: Optional[bool] = None,
    ):
        """Same as analyze(), yielding progress event dicts for the CLI.

        Events:
            {"event": "start", "video_id": str}
            {"event": "transcript_fetched", "video": str, "word_count": int, "source": str}
            {"event": "chunked", "chunks": int}
            {"event": "embedded", "chunks": int}
            {"event": "completed", "result": AnalysisResult, "seconds": float}
        """
        started = time.monotonic()

        video_id = extract_video_id(url)
        if not video_id:
            raise InvalidUrl(f"Could not find a video id in {url!r}")
        yield {"event": "start", "video_id": video_id}

        # --- Step 1: metadata and transcript, concurrently ---
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="fetch") as pool:
            metadata_future = pool.submit(self.metadata_fetcher.fetch, video_id)
            transcript_future = pool.submit(
                self.transcript_fetcher.fetch_transcript, video_id, allow_speech_to_text
            )
            transcript = transcript_future.result()
            metadata = metadata_future.result()

        if not transcript.text.strip():
            raise NoTranscriptAvailable(f"Transcript for {video_id} is empty")

        yield {
            "event": "transcript_fetched",
            "video": metadata.title,
            "word_count": transcript.word_count,
            "source": transcript.source,
        }

        # --- Step 2: chunk ---
        texts = chunk_text(transcript.text, self.chunk_size, self.chunk_overlap)
        yield {"event": "chunked", "chunks": len(texts)}

        # --- Step 3: embed every chunk before touching the database ---
        vectors = self._embed_all(video_id, texts)
        yield {"event": "embedded", "chunks": len(vectors)}

        # --- Step 4: store analysis + chunks atomically ---
        with self.repo.transaction():
            analysis = self.repo.create_analysis(
                {
                    "video_id": video_id,
                    "video_title": metadata.title,
                    "channel_name": metadata.channel_name,
                    "video_url": url,
                    "transcript_language": transcript.language_code,
                    "transcript_source": transcript.source,
                },
                transcript.text,
                owner_id,
            )
            stored = self.repo.create_chunks(
                analysis.id,
                [
                    {"index": i, "text": text, "embedding": vector}
                    for i, (text, vector) in enumerate(zip(texts, vectors))
                ],
            )

        elapsed = time.monotonic() - started
        logger.info(
            f"Analysis {analysis.id} for {video_id} stored: {len(stored)} chunks "
            f"from {transcript.source} in {elapsed:.1f}s"
        )
        yield {
            "event": "completed",
            "result": AnalysisResult(analysis=analysis, chunks=stored),
            "seconds": elapsed,
        }

    def _embed_all(self, video_id: str, texts: list[str]) -> list[list[float]]:
        """Embed chunks on a bounded pool; any failure fails the whole batch."""
        vectors: list = [None] * len(texts)
        with ThreadPoolExecutor(
            max_workers=self.embedding_workers, thread_name_prefix="embed"
        ) as pool:
            futures = {
                pool.submit(self.embeddings.embed, text): i for i, text in enumerate(texts)
            }
            try:
                for future in as_completed(futures):
                    vectors[futures[future]] = future.result()
            except Exception as e:
                for f in futures:
                    f.cancel()
                logger.error(f"Embedding failed for {video_id}, discarding analysis: {e}")
                raise

        dimensions = {len(v) for v in vectors}
        if len(dimensions) > 1:
            raise EmbeddingFailed(
                f"Embedding model returned mixed dimensions {sorted(dimensions)} for {video_id}"
            )
        return vectors


def build_pipeline(config: dict, repo: Repository, clients: Clients) -> IngestionPipeline:
    """Construct the ingestion pipeline from config and the shared clients."""
    transcript_cfg = get_transcript_config(config)
    retrieval_cfg = get_retrieval_config(config)

    audio_transcriber = AudioTranscriber(
        speech_client=clients.speech,
        ytdlp_binary=transcript_cfg["ytdlp_binary"],
        download_timeout=transcript_cfg["download_timeout"],
    )
    transcript_fetcher = TranscriptFetcher(
        preferred_language=transcript_cfg["preferred_language"],
        audio_transcriber=audio_transcriber,
        allow_speech_to_text=transcript_cfg["allow_speech_to_text"],
        timeout=transcript_cfg["request_timeout"],
    )

    return IngestionPipeline(
        metadata_fetcher=MetadataFetcher(timeout=transcript_cfg["request_timeout"]),
        transcript_fetcher=transcript_fetcher,
        embeddings=clients.embeddings,
        repo=repo,
        chunk_size=retrieval_cfg["chunk_size"],
        chunk_overlap=retrieval_cfg["chunk_overlap"],
        embedding_workers=retrieval_cfg["embedding_workers"],
    )
