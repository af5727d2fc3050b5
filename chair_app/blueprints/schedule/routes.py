from __future__ import annotations

from datetime import date, timedelta

from flask import Blueprint, jsonify, redirect, request, url_for

from chair_app.services.bookings import BookingError, check_slot, parse_duration
from chair_app.services.clinic_settings import load_settings, settings_to_dict
from chair_app.services.database import session_scope
from chair_app.services.doctors import doctor_to_dict, load_doctors
from chair_app.services.errors import record_exception
from chair_app.services.leads import load_leads
from chair_app.services.occupancy import occupied_minutes
from chair_app.services.projections import day_board, day_list, day_strip, week_grid, week_start
from chair_app.services.slot_validator import slot_options
from chair_app.services.time_grid import generate_slots, time_to_minutes
from chair_app.services.ui import render_page

bp = Blueprint("schedule", __name__)

_PROJECTIONS = {
    "board": lambda leads, doctors, settings, day: day_board(leads, doctors, settings, day),
    "list": lambda leads, doctors, settings, day: day_list(leads, settings, day, doctors),
    "week": lambda leads, doctors, settings, day: week_grid(leads, settings, day, doctors),
}


def _selected_day() -> date:
    raw = request.args.get("day") or ""
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return date.today()


def _render_view(view: str, template: str):
    day = _selected_day()
    step = 7 if view == "week" else 1
    with session_scope() as session:
        leads = load_leads(session)
        doctors = load_doctors(session)
        settings = load_settings(session)
        projection = _PROJECTIONS[view](leads, doctors, settings, day)
        strip = day_strip(leads, day, currency=settings.currency)
        settings_ctx = settings_to_dict(settings)
        doctor_ctx = [doctor_to_dict(doc) for doc in doctors if doc.active]
    return render_page(
        template,
        day=day.isoformat(),
        previous_day=(day - timedelta(days=step)).isoformat(),
        next_day=(day + timedelta(days=step)).isoformat(),
        today=date.today().isoformat(),
        week_start=week_start(day).isoformat(),
        projection=projection,
        strip=strip,
        doctors=doctor_ctx,
        current_view=view,
        settings=settings_ctx,
    )


@bp.route("/schedule", methods=["GET"], endpoint="index")
def schedule_entrypoint():
    return redirect(url_for("schedule.board", day=_selected_day().isoformat()))


@bp.route("/schedule/board", methods=["GET"], endpoint="board")
def schedule_board():
    """Per-doctor swim-lanes for one day."""
    try:
        return _render_view("board", "schedule/board.html")
    except Exception as exc:
        record_exception("schedule.board", exc)
        raise


@bp.route("/schedule/list", methods=["GET"], endpoint="day_list")
def schedule_day_list():
    try:
        return _render_view("list", "schedule/list.html")
    except Exception as exc:
        record_exception("schedule.day_list", exc)
        raise


@bp.route("/schedule/week", methods=["GET"], endpoint="week")
def schedule_week():
    try:
        return _render_view("week", "schedule/week.html")
    except Exception as exc:
        record_exception("schedule.week", exc)
        raise


# API endpoints used by the board scripts


@bp.route("/api/schedule/<view>", methods=["GET"], endpoint="api_projection")
def api_projection(view: str):
    if view not in _PROJECTIONS:
        return jsonify({"error": f"unknown view: {view}"}), 404
    day = _selected_day()
    try:
        with session_scope() as session:
            leads = load_leads(session)
            settings = load_settings(session)
            payload = _PROJECTIONS[view](leads, load_doctors(session), settings, day)
            payload["strip"] = day_strip(leads, day, currency=settings.currency)
        return jsonify(payload)
    except Exception as exc:
        record_exception(f"api.schedule.{view}", exc)
        return jsonify({"error": "Internal server error"}), 500


@bp.route("/api/schedule/slot-options", methods=["GET"], endpoint="api_slot_options")
def api_slot_options():
    """Start-time options for the booking and reschedule pickers."""
    doctor = (request.args.get("doctor") or "").strip()
    if not doctor:
        return jsonify({"error": "doctor is required"}), 400
    day = _selected_day()
    try:
        duration = parse_duration(request.args.get("duration"))
    except BookingError as exc:
        return jsonify({"error": str(exc)}), 400
    exclude_id = request.args.get("exclude_id") or None
    try:
        with session_scope() as session:
            settings = load_settings(session)
            occupied = occupied_minutes(doctor, day, load_leads(session), exclude_id)
            options = slot_options(
                generate_slots(settings.start_hour, settings.end_hour),
                duration,
                occupied,
                day_end=time_to_minutes(settings.end_hour),
            )
        return jsonify({"doctor": doctor, "day": day.isoformat(), "duration": duration, "options": options})
    except Exception as exc:
        record_exception("api.slot_options", exc)
        return jsonify({"error": "Internal server error"}), 500


@bp.route("/api/schedule/validate-slot", methods=["GET"], endpoint="api_validate_slot")
def api_validate_slot():
    doctor = (request.args.get("doctor") or "").strip()
    day = request.args.get("day") or ""
    start_time = (request.args.get("time") or "").strip()
    if not all([doctor, day, start_time]):
        return jsonify({"error": "doctor, day and time are required"}), 400
    try:
        available = check_slot(
            doctor,
            day,
            start_time,
            request.args.get("duration"),
            request.args.get("exclude_id") or None,
        )
    except BookingError as exc:
        return jsonify({"available": False, "error": str(exc)}), 400
    return jsonify({"available": available})
