import logging
import uuid

from flask import Flask, g, jsonify, request
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from app.crm.config import load_config
from app.crm.db import create_schema, init_db, teardown_db_session
from app.crm.errors import CrmError
from app.crm.models import Base  # noqa: F401  (registers every table before blueprints import models)
from app.crm.routes import bp as routes_bp, client_bp
from app.crm.modules.customer_profiles.api import bp as customer_profiles_bp

logger = logging.getLogger(__name__)

_CORS_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
_CORS_HEADERS = "Content-Type, X-Request-ID"


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.json.sort_keys = False

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)
    create_schema(app)

    def _dispose_engine_on_fork() -> None:
        import os
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(customer_profiles_bp, url_prefix="/api")
    if app.config.get("CLIENT_BUILD_DIR"):
        app.register_blueprint(client_bp)
        app.logger.info("Serving client build from %s", app.config["CLIENT_BUILD_DIR"])

    app.teardown_appcontext(teardown_db_session)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.after_request
    def _response_headers(resp):
        rid = getattr(g, "request_id", None)
        if rid:
            resp.headers["X-Request-ID"] = rid
        if request.path.startswith("/api/"):
            origins = app.config.get("CORS_ORIGINS") or []
            origin = request.headers.get("Origin")
            if "*" in origins:
                resp.headers["Access-Control-Allow-Origin"] = "*"
            elif origin and origin in origins:
                resp.headers["Access-Control-Allow-Origin"] = origin
                resp.headers["Vary"] = "Origin"
            resp.headers["Access-Control-Allow-Methods"] = _CORS_METHODS
            resp.headers["Access-Control-Allow-Headers"] = _CORS_HEADERS
        return resp

    @app.errorhandler(CrmError)
    def _err_crm(e: CrmError):  # type: ignore[no-redef]
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        messages = {404: "Not found", 405: "Method not allowed"}
        return jsonify({"error": messages.get(e.code or 500, e.name)}), e.code

    @app.errorhandler(SQLAlchemyError)
    def _err_db(e: SQLAlchemyError):  # type: ignore[no-redef]
        # Storage failures are fatal to the request; never reported as 4xx.
        app.logger.exception("Database error (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        # Ensure stack trace shows in logs.
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "Internal server error"}), 500

    logger.info("create_app() complete; app ready to serve")

    return app
