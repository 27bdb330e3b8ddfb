# backend/gymdesk/__init__.py
import logging
import os

from flask import Flask, request, send_from_directory
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, mail, migrate
from .responses import fail


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.members import members_bp
    from .routes.plans import plans_bp
    from .routes.memberships import memberships_bp
    from .routes.payments import payments_bp
    from .routes.attendance import attendance_bp
    from .routes.workouts import workouts_bp
    from .routes.progress import progress_bp
    from .routes.images import images_bp
    from .routes.settings import settings_bp
    from .routes.dashboard import dashboard_bp
    from .routes.notifications import notifications_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(plans_bp)
    app.register_blueprint(memberships_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(workouts_bp)
    app.register_blueprint(progress_bp)
    app.register_blueprint(images_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(notifications_bp)

    allowed_origins = {
        origin.strip().rstrip("/")
        for origin in str(app.config.get("FRONTEND_URL") or "").split(",")
        if origin.strip()
    }

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, X-Requested-With"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    @app.get("/uploads/<path:filename>")
    def uploaded_file(filename):
        return send_from_directory(os.path.abspath(app.config["UPLOAD_DIR"]), filename)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        messages = {
            404: "Route not found",
            405: "Method not allowed",
            413: "File too large",
        }
        return fail(messages.get(exc.code, exc.description or exc.name), exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("Internal server error", 500)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    from .scheduler import init_scheduler
    init_scheduler(app)

    return app
