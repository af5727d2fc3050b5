"""Blueprint registration."""

from __future__ import annotations

from flask import Flask, redirect, url_for

from .bookings.routes import bp as bookings_bp
from .clinic_settings.routes import bp as settings_bp
from .schedule.move_appointments import bp as move_bp
from .schedule.routes import bp as schedule_bp


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(schedule_bp)
    app.register_blueprint(move_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(settings_bp)

    @app.route("/", endpoint="index")
    def index():
        return redirect(url_for("schedule.index"))
