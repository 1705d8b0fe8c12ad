from __future__ import annotations

import importlib
import logging
import traceback

import mysql.connector
from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import get_settings_module
from .core.exceptions import DomainError
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables

from .container import build_container
from .attendance.controller import register as register_attendance
from .duty.controller import register as register_duty
from .events.controller import register as register_events
from .notifications.controller import register as register_notifications
from .reports.controller import register as register_reports
from .requests.controller import register as register_requests
from .strikes.controller import register as register_strikes
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        body = {"success": False, "message": str(e)}
        suspended_until = getattr(e, "suspended_until", None)
        if suspended_until is not None:
            body["suspended_until"] = suspended_until.isoformat()
        return jsonify(body), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error")
        body = {"success": False, "message": "Internal server error"}
        if app.config.get("DEBUG"):
            body["error"] = str(e)
            body["traceback"] = traceback.format_exc()
        return jsonify(body), 500


def create_app(container=None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)
        container = build_container(db_config=db_config, settings=settings)

    _register_error_handlers(app)

    register_users(app, container)
    register_attendance(app, container)
    register_duty(app, container)
    register_events(app, container)
    register_strikes(app, container)
    register_requests(app, container)
    register_notifications(app, container)
    register_reports(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        try:
            conn = container.conn.connect()
            conn.close()
        except mysql.connector.Error as e:
            logger.warning("Health check: database unreachable (%s)", e)
            return jsonify({"success": False, "status": "degraded", "database": "unreachable"}), 503
        return jsonify({"success": True, "status": "ok", "database": "reachable"})

    return app
