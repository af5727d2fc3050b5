from __future__ import annotations

from datetime import date

from flask import Blueprint, flash, jsonify, redirect, request

from chair_app.extensions import limiter
from chair_app.models import PAYMENT_METHODS, VISIT_CANCELLED, VISIT_NO_SHOW
from chair_app.services.bookings import (
    BookingError,
    LeadNotFound,
    SlotOccupied,
    cancel_or_no_show,
    confirm_booking,
    create_booking,
    reschedule,
    set_visit_status,
)
from chair_app.services.database import session_scope
from chair_app.services.doctors import list_doctors
from chair_app.services.errors import record_exception
from chair_app.services.leads import find_lead, lead_to_dict
from chair_app.services.time_grid import DURATION_CHOICES
from chair_app.services.ui import back_to_schedule_url, render_page

bp = Blueprint("bookings", __name__, url_prefix="/bookings")

_TRUTHY = {"1", "true", "yes", "on"}


def _wants_json() -> bool:
    return request.is_json or "application/json" in (request.headers.get("Accept") or "")


def _form_page(template: str, defaults: dict, status: int = 200, **ctx):
    page = render_page(
        template,
        doctors=list_doctors(active_only=True),
        durations=DURATION_CHOICES,
        payment_methods=PAYMENT_METHODS,
        defaults=defaults,
        show_back=True,
        **ctx,
    )
    return (page, status) if status != 200 else page


def _lead_or_none(lead_id: str) -> dict | None:
    with session_scope() as session:
        lead = find_lead(session, lead_id)
        return lead_to_dict(lead) if lead else None


@bp.route("/new", methods=["GET", "POST"], endpoint="new")
@limiter.limit("60 per minute", methods=["POST"])
def new_booking():
    """Walk-in booking form, prefilled from the empty cell that was clicked."""
    try:
        if request.method == "POST":
            form = request.form.to_dict()
            try:
                created = create_booking(
                    name=form.get("name", "").strip(),
                    phone=form.get("phone", "").strip(),
                    doctor=form.get("doctor", "").strip(),
                    day=form.get("day", "").strip(),
                    time=form.get("time", "").strip(),
                    duration=form.get("duration"),
                    price=form.get("price"),
                    deposit=form.get("deposit"),
                    payment_method=form.get("payment_method") or "CASH",
                    treatment=form.get("treatment"),
                    national_id=form.get("national_id"),
                    birth_year=form.get("birth_year"),
                )
                flash(f"Booked {created['name']} at {created['appointment_time']}", "ok")
                return redirect(back_to_schedule_url(created["appointment_date"]))
            except SlotOccupied:
                flash("That slot overlaps another visit for this doctor.", "err")
                return _form_page("bookings/form.html", form, 409)
            except BookingError as exc:
                flash(str(exc), "err")
                return _form_page("bookings/form.html", form, 400)

        defaults = {
            "day": request.args.get("day") or date.today().isoformat(),
            "time": request.args.get("time") or "",
            "doctor": request.args.get("doctor") or "",
            "duration": request.args.get("duration") or "30",
            "payment_method": "CASH",
        }
        return _form_page("bookings/form.html", defaults)
    except Exception as exc:
        record_exception("bookings.new", exc)
        raise


@bp.route("/<lead_id>/reschedule", methods=["GET", "POST"], endpoint="reschedule")
def reschedule_booking(lead_id: str):
    try:
        lead = _lead_or_none(lead_id)
        if lead is None:
            flash("Booking not found", "err")
            return redirect(back_to_schedule_url())
        if request.method == "POST":
            form = request.form.to_dict()
            try:
                updated = reschedule(lead_id, day=form.get("day", ""), time=form.get("time", ""))
                flash(f"Moved {updated['name']} to {updated['appointment_date']} {updated['appointment_time']}", "ok")
                return redirect(back_to_schedule_url(updated["appointment_date"]))
            except SlotOccupied:
                flash("That slot overlaps another visit for this doctor.", "err")
                return _form_page("bookings/reschedule.html", form, 409, lead=lead)
            except BookingError as exc:
                flash(str(exc), "err")
                return _form_page("bookings/reschedule.html", form, 400, lead=lead)

        defaults = {"day": lead["appointment_date"] or "", "time": lead["appointment_time"] or ""}
        return _form_page("bookings/reschedule.html", defaults, lead=lead)
    except Exception as exc:
        record_exception("bookings.reschedule", exc)
        raise


@bp.route("/<lead_id>/status", methods=["POST"], endpoint="status")
def change_status(lead_id: str):
    payload = request.get_json(silent=True) if request.is_json else None
    source = payload if isinstance(payload, dict) else request.form
    new_status = (source.get("status") or "").strip().upper()
    vacate = str(source.get("vacate") or "").lower() in _TRUTHY
    try:
        try:
            if new_status in (VISIT_CANCELLED, VISIT_NO_SHOW):
                updated = cancel_or_no_show(lead_id, new_status, vacate=vacate)
            else:
                updated = set_visit_status(lead_id, new_status)
        except LeadNotFound:
            if _wants_json():
                return jsonify({"ok": False, "error": "lead_not_found"}), 404
            flash("Booking not found", "err")
            return redirect(request.form.get("next") or back_to_schedule_url())
        except BookingError as exc:
            if _wants_json():
                return jsonify({"ok": False, "error": str(exc)}), 400
            flash(str(exc), "err")
            return redirect(request.form.get("next") or back_to_schedule_url())

        if _wants_json():
            return jsonify({"ok": True, "status": updated["visit_status"], "lead": updated})
        flash(f"{updated['name']}: {updated['visit_status'].replace('_', ' ').title()}", "ok")
        return redirect(request.form.get("next") or back_to_schedule_url(updated["appointment_date"]))
    except Exception as exc:
        record_exception("bookings.status", exc)
        if _wants_json():
            return jsonify({"ok": False, "error": "server_error"}), 500
        raise


@bp.route("/<lead_id>/confirm", methods=["POST"], endpoint="confirm")
def confirm(lead_id: str):
    """Book an existing pipeline lead onto a slot."""
    payload = request.get_json(silent=True) if request.is_json else None
    source = payload if isinstance(payload, dict) else request.form
    try:
        updated = confirm_booking(
            lead_id,
            doctor=(source.get("doctor") or "").strip(),
            day=(source.get("day") or "").strip(),
            time=(source.get("time") or "").strip(),
            duration=source.get("duration"),
            deposit=source.get("deposit"),
        )
    except SlotOccupied as exc:
        return jsonify({"ok": False, "error": "slot_occupied", "code": str(exc)}), 409
    except LeadNotFound:
        return jsonify({"ok": False, "error": "lead_not_found"}), 404
    except BookingError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400
    except Exception as exc:
        record_exception("bookings.confirm", exc)
        return jsonify({"ok": False, "error": "server_error"}), 500
    return jsonify({"ok": True, "lead": updated})


