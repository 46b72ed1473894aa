from __future__ import annotations

"""Status API route."""

from flask import Blueprint, jsonify, current_app

from ..app import get_repo

status_bp = Blueprint("status", __name__)


@status_bp.route("/status", methods=["GET"])
def get_status():
    """Get store counts and the models in use as JSON."""
    repo = get_repo(current_app)
    clients = current_app.extensions["kb_clients"]

    return jsonify({
        "store": repo.get_stats(),
        "models": {
            "chat": getattr(clients.chat, "model", None),
            "embeddings": getattr(clients.embeddings, "model", None),
            "speech_to_text": getattr(clients.speech, "model", None),
        },
    })
