"""Move bookings API route for drag and drop on the calendar."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest

from chair_app.extensions import limiter
from chair_app.services.bookings import (
    BookingError,
    LeadNotFound,
    OutsideOperatingHours,
    SlotOccupied,
    drag_move,
)
from chair_app.services.errors import record_exception

bp = Blueprint("schedule_move", __name__, url_prefix="/schedule")


def _field(payload: dict, key: str) -> str:
    value = payload.get(key)
    if value is None or isinstance(value, (dict, list, bool)):
        return ""
    return str(value).strip()


@bp.route("/move", methods=["POST"])
@limiter.limit("60 per minute")
def move_booking():
    """Handle a card dropped on another day, time or doctor lane."""

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    lead_id = _field(payload, "lead_id")
    target_day = _field(payload, "target_day")
    target_time = _field(payload, "target_time")
    target_doctor = _field(payload, "target_doctor") or None

    if not lead_id or not target_day or not target_time:
        raise BadRequest("Missing required fields: lead_id, target_day, target_time")

    try:
        updated = drag_move(lead_id, day=target_day, time=target_time, doctor=target_doctor)
    except SlotOccupied as exc:
        return (
            jsonify({"success": False, "error": "Another visit already occupies this slot.", "code": str(exc)}),
            409,
        )
    except OutsideOperatingHours:
        return jsonify({"success": False, "error": "The visit would run outside clinic hours."}), 400
    except LeadNotFound:
        return jsonify({"success": False, "error": "Booking not found."}), 404
    except BookingError as exc:
        return jsonify({"success": False, "error": str(exc)}), 400
    except Exception as exc:  # pragma: no cover - logged for offline inspection
        record_exception("schedule.move", exc)
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return jsonify({"success": True, "lead": updated})
