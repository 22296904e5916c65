from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import Blueprint, Flask, current_app, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from core.config import Settings, load_settings
from core.errors import RelayFailure, ServerError
from core.logs import ACCESS_LOGGER
from core.types import ContactRequest

from .relay import MailRelay


logger = logging.getLogger(__name__)
access_logger = logging.getLogger(ACCESS_LOGGER)

REQUIRED_FIELDS = ("name", "email", "message")
MISSING_FIELDS_MESSAGE = "All fields required"
SENT_MESSAGE = "Message sent successfully!"

NOT_FOUND_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>404 - Page Not Found</title>
    <style>
        body {
            font-family: 'Roboto', sans-serif;
            display: flex;
            justify-content: center;
            align-items: center;
            height: 100vh;
            margin: 0;
            background: linear-gradient(135deg, #4a90e2, #9b59b6);
            color: white;
            text-align: center;
        }
        h1 { font-size: 6em; margin: 0; }
        p { font-size: 1.5em; }
        a { color: white; text-decoration: underline; }
    </style>
</head>
<body>
    <div>
        <h1>404</h1>
        <p>Page not found</p>
        <a href="/">Return to homepage</a>
    </div>
</body>
</html>
"""

bp = Blueprint("portfolio", __name__)


def _relay() -> MailRelay:
    return current_app.extensions["mail_relay"]


def _read_payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@bp.route("/")
def index():
    return current_app.send_static_file("index.html")


@bp.route("/health")
def health():
    return jsonify({"status": "ok", "timestamp": _utc_timestamp()}), 200


@bp.route("/api/contact", methods=["POST"])
def contact():
    data = _read_payload()
    values = {}
    for name in REQUIRED_FIELDS:
        value = data.get(name)
        values[name] = value.strip() if isinstance(value, str) else ""

    if not all(values.values()):
        return jsonify({"error": MISSING_FIELDS_MESSAGE}), 400

    try:
        _relay().send(ContactRequest(**values))
    except RelayFailure as exc:
        logger.error("Relay error (status=%s): %s", exc.status_code, exc.detail)
        return jsonify({"error": exc.message}), 500

    return jsonify({"success": True, "message": SENT_MESSAGE}), 200


def _log_request(response):
    started = g.pop("request_started", None)
    elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
    settings: Settings = current_app.config["PORTFOLIO_SETTINGS"]
    length = response.calculate_content_length()
    if settings.is_dev:
        access_logger.info(
            "%s %s %s %.3f ms - %s",
            request.method,
            request.full_path.rstrip("?"),
            response.status_code,
            elapsed_ms,
            length if length is not None else "-",
        )
    else:
        access_logger.info(
            '%s - - [%s] "%s %s %s" %s %s "%s" "%s"',
            request.remote_addr or "-",
            datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S +0000"),
            request.method,
            request.full_path.rstrip("?"),
            request.environ.get("SERVER_PROTOCOL", "HTTP/1.1"),
            response.status_code,
            length if length is not None else "-",
            request.referrer or "-",
            request.user_agent.string or "-",
        )
    return response


def create_app(settings: Optional[Settings] = None, relay: Optional[MailRelay] = None) -> Flask:
    """Build the Flask application serving ``public/`` and the contact API."""

    settings = settings or load_settings()
    app = Flask(__name__, static_folder=str(settings.static_dir), static_url_path="")
    app.config["PORTFOLIO_SETTINGS"] = settings
    app.config["SEND_FILE_MAX_AGE_DEFAULT"] = settings.static_max_age
    app.extensions["mail_relay"] = relay or MailRelay(settings.relay_url, timeout=settings.relay_timeout)
    CORS(app, resources={r"/api/*": {"origins": settings.cors_origins}})

    app.register_blueprint(bp)

    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    app.after_request(_log_request)

    # routes only answer their own methods; anything else is "not found"
    @app.errorhandler(404)
    @app.errorhandler(405)
    def _not_found(_exc):
        return NOT_FOUND_PAGE, 404, {"Content-Type": "text/html; charset=utf-8"}

    @app.errorhandler(Exception)
    def _server_error(exc):
        if isinstance(exc, HTTPException):
            return exc
        logger.exception("Server error: %s", exc)
        message = str(exc) if settings.is_dev else ServerError.user_message
        return jsonify({"error": message}), 500

    return app
