"""
locallibrary — Local Library catalog web app (Flask + SQLAlchemy)

Server-rendered pages to list, view, create, update and delete genres,
authors, books and book copies.

Run:
  flask --app locallibrary populate-db
  flask --app locallibrary run
"""

import logging
import os
import time

from flask import Flask, g, redirect, render_template, request, url_for
from flask_compress import Compress
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_talisman import Talisman
from flask_wtf import CSRFProtect
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from locallibrary.models import db

logger = logging.getLogger(__name__)

compress = Compress()
csrf = CSRFProtect()
talisman = Talisman()

# Requests allowed per client address
RATE_LIMIT = "20 per minute"
limiter = Limiter(key_func=get_remote_address, default_limits=[RATE_LIMIT])

# Bootstrap is served from the jsdelivr CDN
CONTENT_SECURITY_POLICY = {
    "default-src": ["'self'"],
    "script-src": ["'self'", "cdn.jsdelivr.net"],
    "style-src": ["'self'", "cdn.jsdelivr.net"],
    "img-src": ["'self'", "data:"],
}


def create_app(config=None):
    """
    Application factory: configure extensions, blueprints and error pages.
    """
    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)

    app.config["SECRET_KEY"] = os.environ.get("LOCALLIBRARY_SECRET") or "dev-secret-change-me"
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL") or (
        "sqlite:///" + os.path.join(app.instance_path, "locallibrary.db")
    )
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["CATALOG_CONCURRENT_READS"] = True
    app.config["FORCE_HTTPS"] = False
    app.config["RATELIMIT_ENABLED"] = True
    app.config["RATELIMIT_STORAGE_URI"] = os.environ.get("RATELIMIT_STORAGE_URI") or "memory://"
    if config:
        app.config.update(config)

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite"):
        # Paired reads hand pooled connections between threads
        engine_options = app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {})
        engine_options.setdefault("connect_args", {}).setdefault("check_same_thread", False)

    db.init_app(app)
    csrf.init_app(app)
    compress.init_app(app)
    limiter.init_app(app)
    talisman.init_app(
        app,
        content_security_policy=CONTENT_SECURITY_POLICY,
        force_https=app.config["FORCE_HTTPS"],
        session_cookie_secure=app.config["FORCE_HTTPS"],
    )

    from locallibrary.cli import register_commands
    from locallibrary.views import IdConverter, catalog

    app.url_map.converters["id"] = IdConverter
    app.register_blueprint(catalog)
    register_commands(app)
    register_request_logging(app)
    register_error_handlers(app)

    @app.template_filter("date_med")
    def date_med(value):
        return value.strftime("%b %d, %Y") if value else ""

    @app.route("/")
    def home():
        return redirect(url_for("catalog.index"))

    with app.app_context():
        db.create_all()

    return app


def register_request_logging(app):
    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        elapsed = (time.perf_counter() - g.get("request_started", time.perf_counter())) * 1000
        logger.info("%s %s %s %.1f ms", request.method, request.path, response.status_code, elapsed)
        return response


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def http_error(e):
        return render_template("error.html", message=e.name, status=e.code, error=e), e.code

    @app.errorhandler(SQLAlchemyError)
    def store_error(e):
        db.session.rollback()
        logger.exception("Store error on %s %s", request.method, request.path)
        return render_template(
            "error.html",
            message="The catalog could not complete this request.",
            status=500,
            error=e if app.debug else None,
        ), 500
