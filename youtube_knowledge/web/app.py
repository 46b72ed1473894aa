from __future__ import annotations

"""Flask application factory for the video knowledge base API."""

import logging

from flask import Flask, jsonify

from ..agents.video_qa import VideoQAAgent
from ..clients import Clients, build_clients
from ..config import get_retrieval_config, load_config
from ..database.repository import Repository
from ..errors import (
    AnalysisNotFound,
    InvalidUrl,
    KnowledgeBaseError,
    NoRelevantContent,
    NoTranscriptAvailable,
    TranscriptFetchFailed,
    UpstreamTimeout,
    VideoAgeRestricted,
    VideoPrivateOrUnavailable,
)
from ..ingestion.pipeline import IngestionPipeline, build_pipeline

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidUrl: 400,
    AnalysisNotFound: 404,
    NoTranscriptAvailable: 422,
    NoRelevantContent: 422,
    VideoPrivateOrUnavailable: 422,
    VideoAgeRestricted: 422,
    TranscriptFetchFailed: 502,
    UpstreamTimeout: 504,
}


def status_for(error: KnowledgeBaseError) -> int:
    for error_cls, status in ERROR_STATUS.items():
        if isinstance(error, error_cls):
            return status
    return 502


def create_app(config: dict = None, clients: Clients = None) -> Flask:
    """Create and configure the Flask application.

    ``clients`` defaults to handles built from config; tests pass fakes.
    The repository, pipeline and QA agent are built here, once, before any
    request thread can reach them.
    """
    if config is None:
        config = load_config()

    app = Flask(__name__)
    clients = clients or build_clients(config)
    repo = Repository(config["db_path"])
    app.extensions["kb_clients"] = clients
    app.extensions["kb_repo"] = repo
    app.extensions["kb_pipeline"] = build_pipeline(config, repo, clients)
    app.extensions["kb_qa_agent"] = VideoQAAgent(
        repo=repo,
        clients=clients,
        top_k=get_retrieval_config(config)["top_k"],
    )

    from .routes.analyses import analyses_bp
    from .routes.status import status_bp

    app.register_blueprint(analyses_bp, url_prefix="/api")
    app.register_blueprint(status_bp, url_prefix="/api")

    @app.errorhandler(KnowledgeBaseError)
    def handle_kb_error(error: KnowledgeBaseError):
        status = status_for(error)
        if status >= 500:
            logger.error(f"{error.kind}: {error}")
        else:
            logger.info(f"{error.kind}: {error}")
        return jsonify({"error": error.kind, "message": error.user_message}), status

    @app.errorhandler(ValueError)
    def handle_bad_input(error: ValueError):
        return jsonify({"error": "bad_request", "message": str(error)}), 400

    return app


def get_repo(app: Flask) -> Repository:
    return app.extensions["kb_repo"]


def get_pipeline(app: Flask) -> IngestionPipeline:
    return app.extensions["kb_pipeline"]


def get_qa_agent(app: Flask) -> VideoQAAgent:
    return app.extensions["kb_qa_agent"]
