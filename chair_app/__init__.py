"""Chairside scheduler package exposing the Flask application factory."""

from __future__ import annotations

import os
import sys
from datetime import timedelta
from pathlib import Path

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError

from .blueprints import register_blueprints
from .cli import register_cli
from .extensions import init_extensions
from .services.auto_migrate import auto_upgrade
from .services.bootstrap import ensure_base_tables, ensure_clinic_defaults
from .services.ui import register_ui

APP_HOST = "127.0.0.1"
APP_PORT = 8080

DEFAULT_DOCTORS = "Dr. Sarah,Dr. Mohammed,Dr. Ali"


def _data_root(base_dir: Path, override: Path | None = None) -> Path:
    root = override if override else base_dir / "data"
    root.mkdir(parents=True, exist_ok=True)
    for sub in ("logs", "backups"):
        (root / sub).mkdir(parents=True, exist_ok=True)
    return root


def _resource_root() -> Path:
    """Root folder for bundled resources (templates/static)."""
    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        return Path(getattr(sys, "_MEIPASS"))
    return Path(__file__).resolve().parent.parent


def create_app() -> Flask:
    resource_root = _resource_root()
    db_override = os.getenv("CHAIR_DB_PATH")
    override_root = Path(db_override).parent if db_override else None
    data_root = _data_root(resource_root, override_root)
    db_path = Path(db_override) if db_override else data_root / "app.db"

    app = Flask(
        __name__,
        template_folder=str(resource_root / "templates"),
        static_folder=str(resource_root / "static"),
    )

    secret_key = os.getenv("CHAIR_SECRET_KEY")
    if not secret_key:
        secret_key = os.urandom(32)

    doctor_list = [
        doc.strip()
        for doc in os.getenv("CHAIR_DOCTORS", DEFAULT_DOCTORS).split(",")
        if doc.strip()
    ]

    app.config.update(
        SECRET_KEY=secret_key,
        SESSION_COOKIE_NAME="chair_session",
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        PERMANENT_SESSION_LIFETIME=timedelta(hours=12),
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{db_path}",
        SQLALCHEMY_ENGINE_OPTIONS={"connect_args": {"check_same_thread": False}},
        RATELIMIT_STORAGE_URI=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
        DATA_ROOT=str(data_root),
        CHAIR_DB=str(db_path),
        APPOINTMENT_SLOT_MINUTES=30,
        DEFAULT_DOCTORS=doctor_list,
        DEFAULT_START_HOUR=os.getenv("CHAIR_START_HOUR", "09:00"),
        DEFAULT_END_HOUR=os.getenv("CHAIR_END_HOUR", "21:00"),
        DEFAULT_CURRENCY=os.getenv("CHAIR_CURRENCY", "OMR"),
    )

    register_ui(app)
    init_extensions(app)
    register_blueprints(app)
    auto_upgrade(app)
    ensure_base_tables(db_path)
    ensure_clinic_defaults(
        db_path,
        doctors=app.config["DEFAULT_DOCTORS"],
        start_hour=app.config["DEFAULT_START_HOUR"],
        end_hour=app.config["DEFAULT_END_HOUR"],
        currency=app.config["DEFAULT_CURRENCY"],
    )
    register_cli(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning("CSRF validation failed: %s", e)
        return jsonify({"success": False, "error": f"CSRF validation failed: {e.description}"}), 400

    @app.errorhandler(400)
    def handle_bad_request(e):
        app.logger.warning("Bad request: %s", e)
        return jsonify({"success": False, "error": getattr(e, "description", "Bad request")}), 400

    return app


__all__ = ["create_app", "APP_HOST", "APP_PORT"]
