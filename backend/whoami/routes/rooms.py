from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game.errors import RoomNotFound

bp = Blueprint("rooms", __name__)


@bp.get("/rooms/<code>")
def get_room(code: str):
    service = current_app.extensions["whoami"]
    try:
        # Anonymous read: no identity is shown unless already revealed.
        return jsonify(service.project(code, None))
    except RoomNotFound as exc:
        return jsonify({"error": exc.code}), 404
