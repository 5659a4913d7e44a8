from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game.service import now_ms

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    service = current_app.extensions["whoami"]
    return jsonify({"status": "ok", "timestamp": now_ms(), "rooms": len(service.list_rooms())})
