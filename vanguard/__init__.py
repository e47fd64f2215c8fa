# vanguard/__init__.py
"""
App factory.

    - Logging level from VANGUARD_LOG_LEVEL (DEBUG when VANGUARD_ENV=development)
    - CORS origins read from CORS_ORIGINS env var
    - Scan settings loaded once from the environment (vanguard.config)
"""

from __future__ import annotations

import logging
import traceback

from flask import Flask, jsonify
from flask_cors import CORS

from .config import cors_origins, load_scan_config, log_level
from .scans import scans_bp

error_logger = logging.getLogger("vanguard.errors")


def create_app() -> Flask:
    app = Flask(__name__)

    # ── Logging ──────────────────────────────────────────────────────
    level = log_level()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    app.logger.setLevel(level)

    # Quieten noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    # ─────────────────────────────────────────────────────────────────

    # ── CORS ────────────────────────────────────────────────────────
    CORS(app, resources={
        r"/*": {
            "origins": cors_origins(),
            "allow_headers": ["Content-Type"],
            "methods": ["GET", "POST", "OPTIONS"],
        }
    })

    app.config["SCAN_CONFIG"] = load_scan_config()

    app.register_blueprint(scans_bp)

    # ── Global Error Handlers ────────────────────────────────────────
    # Clean JSON for all errors; tracebacks stay in the server log.

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({
            "error": "Bad request",
            "message": str(e.description) if hasattr(e, "description") else "The request was malformed or invalid.",
        }), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({
            "error": "Not found",
            "message": "The requested resource was not found.",
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({
            "error": "Method not allowed",
            "message": "This HTTP method is not allowed for this endpoint.",
        }), 405

    @app.errorhandler(500)
    def internal_error(e):
        error_logger.error(
            "500 Internal Server Error:\n%s", traceback.format_exc()
        )
        return jsonify({
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later.",
        }), 500

    return app
