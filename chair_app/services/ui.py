"""UI helper utilities shared across blueprints."""

from __future__ import annotations

import time
from typing import Any

from flask import current_app, render_template, request, session, url_for
from flask_wtf.csrf import generate_csrf

from chair_app.services.clinic_settings import get_settings

VIEW_ENDPOINTS = (
    ("board", "schedule.board"),
    ("list", "schedule.day_list"),
    ("week", "schedule.week"),
)


def remember_last_get() -> None:
    """Persist the last schedule page so actions can return to it."""
    endpoint = request.endpoint or ""
    if request.method == "GET" and endpoint.startswith("schedule.") and not endpoint.startswith("schedule.api_"):
        session["last_get_url"] = request.full_path if request.query_string else request.path


def last_get_url(default_path: str = "/schedule") -> str:
    url = session.get("last_get_url") or default_path
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}_ts={int(time.time())}"


def back_to_schedule_url(day: str | None = None) -> str:
    return url_for("schedule.board", day=day) if day else last_get_url()


def render_page(template_name: str, **ctx: Any):
    show_back = ctx.pop("show_back", False)
    settings = ctx.pop("settings", None) or get_settings()
    return render_template(
        template_name,
        show_back=show_back,
        clinic=settings,
        view_endpoints=VIEW_ENDPOINTS,
        slot_minutes=current_app.config.get("APPOINTMENT_SLOT_MINUTES", 30),
        **ctx,
    )


def register_ui(app) -> None:
    """Attach UI helpers to the Flask app instance."""
    app.before_request(remember_last_get)
    app.jinja_env.globals.setdefault("last_get_url", last_get_url)
    app.jinja_env.globals.setdefault("back_to_schedule_url", back_to_schedule_url)
    app.jinja_env.globals.setdefault("csrf_token", generate_csrf)
