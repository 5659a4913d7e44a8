from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

from flask import Flask, send_from_directory
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.models import GameSettings
from .game.service import GameService
from .realtime.handlers import register_socketio_handlers
from .realtime.timers import socketio_timer_factory
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp


logger = logging.getLogger(__name__)


def _pick_async_mode() -> str:
    env_async_mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if env_async_mode:
        return env_async_mode
    # Default choice:
    # - Windows: threading (eventlet has known compatibility issues on newer Python)
    # - Python >= 3.13: threading (safer default)
    # - Otherwise: eventlet
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(config_overrides: dict[str, Any] | None = None) -> tuple[Flask, SocketIO]:
    dist_dir = Path(__file__).resolve().parents[2] / "frontend" / "dist"

    static_folder = str(dist_dir) if dist_dir.exists() else None
    static_url_path = "/" if dist_dir.exists() else None

    app = Flask(
        __name__,
        static_folder=static_folder,
        static_url_path=static_url_path,
    )
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE") or _pick_async_mode(),
    )

    service = GameService(
        settings=GameSettings.from_config(app.config),
        timer_factory=socketio_timer_factory(socketio),
    )
    app.extensions["whoami"] = service

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")

    register_socketio_handlers(socketio, service)
    logger.info("whoami app created (async_mode=%s)", socketio.async_mode)

    if dist_dir.exists():
        @app.get("/")
        def index():
            return send_from_directory(dist_dir, "index.html")

        @app.get("/<path:path>")
        def static_proxy(path: str):
            file_path = dist_dir / path
            if file_path.exists() and file_path.is_file():
                return send_from_directory(dist_dir, path)
            return send_from_directory(dist_dir, "index.html")

    return app, socketio
