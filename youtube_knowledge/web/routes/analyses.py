from __future__ import annotations

"""Analysis API routes: ingest a video, list and inspect analyses, ask and search."""

import logging

from flask import Blueprint, request, jsonify, current_app

from ...errors import AnalysisNotFound
from ..app import get_pipeline, get_qa_agent, get_repo

logger = logging.getLogger(__name__)

analyses_bp = Blueprint("analyses", __name__)

DEFAULT_OWNER_ID = 1


def _owner_id(value) -> int:
    if value in (None, ""):
        return DEFAULT_OWNER_ID
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"owner_id must be an integer, got {value!r}")


@analyses_bp.route("/analyses", methods=["POST"])
def create_analysis():
    """Analyze a video and store its chunks.

    Body: {"url": str, "owner_id": int, "speech_to_text": bool}
    """
    data = request.get_json(silent=True) or {}
    url = (data.get("url") or "").strip()
    if not url:
        return jsonify({"error": "bad_request", "message": "url is required"}), 400

    speech_to_text = data.get("speech_to_text")
    result = get_pipeline(current_app).analyze(
        url,
        owner_id=_owner_id(data.get("owner_id")),
        allow_speech_to_text=bool(speech_to_text) if speech_to_text is not None else None,
    )
    return jsonify(result.to_dict()), 201


@analyses_bp.route("/analyses", methods=["GET"])
def list_analyses():
    """List an owner's analyses, newest first, without transcripts."""
    repo = get_repo(current_app)
    analyses = repo.list_analyses(_owner_id(request.args.get("owner_id")))
    return jsonify({"analyses": [a.to_dict(include_transcript=False) for a in analyses]})


@analyses_bp.route("/analyses/<int:analysis_id>", methods=["GET"])
def get_analysis(analysis_id):
    repo = get_repo(current_app)
    analysis = repo.get_analysis(analysis_id)
    if analysis is None:
        raise AnalysisNotFound(f"No analysis with id {analysis_id}")

    data = analysis.to_dict()
    data["chunk_count"] = len(repo.get_chunks(analysis_id))
    return jsonify(data)


@analyses_bp.route("/analyses/<int:analysis_id>/questions", methods=["GET"])
def list_questions(analysis_id):
    """Q&A history for an analysis, most recent first."""
    repo = get_repo(current_app)
    if repo.get_analysis(analysis_id) is None:
        raise AnalysisNotFound(f"No analysis with id {analysis_id}")
    questions = repo.get_questions(analysis_id)
    return jsonify({"questions": [q.to_dict() for q in questions]})


@analyses_bp.route("/analyses/<int:analysis_id>/ask", methods=["POST"])
def ask(analysis_id):
    """Answer a question from the video's transcript.

    Body: {"question": str}
    """
    data = request.get_json(silent=True) or {}
    question = get_qa_agent(current_app).ask(analysis_id, data.get("question", ""))
    return jsonify(question.to_dict()), 201


@analyses_bp.route("/analyses/<int:analysis_id>/search", methods=["POST"])
def search(analysis_id):
    """Semantic search over the video's chunks.

    Body: {"query": str, "limit": int}
    """
    data = request.get_json(silent=True) or {}
    limit = data.get("limit", 10)
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValueError(f"limit must be an integer, got {limit!r}")

    ranked = get_qa_agent(current_app).search(analysis_id, data.get("query", ""), limit)
    return jsonify({
        "results": [
            {
                "chunk_index": r.chunk.chunk_index,
                "score": round(r.score, 4),
                "content": r.chunk.content,
            }
            for r in ranked
        ]
    })
