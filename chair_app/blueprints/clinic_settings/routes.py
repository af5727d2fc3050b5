"""Clinic settings page: operating window, currency and the doctor roster."""

from __future__ import annotations

from flask import Blueprint, flash, redirect, request, url_for

from chair_app.forms.doctors import DoctorForm
from chair_app.services.clinic_settings import SettingsError, get_settings, update_settings
from chair_app.services.doctors import DoctorError, add_doctor, list_doctors, toggle_doctor
from chair_app.services.errors import record_exception
from chair_app.services.ui import render_page

bp = Blueprint("clinic_settings", __name__, url_prefix="/settings")


@bp.route("", methods=["GET", "POST"], endpoint="index")
def settings_page():
    try:
        if request.method == "POST":
            try:
                update_settings(request.form.to_dict())
                flash("Settings saved.", "ok")
                return redirect(url_for("clinic_settings.index"))
            except SettingsError as exc:
                flash(str(exc), "err")
                return (
                    render_page(
                        "settings/index.html",
                        defaults=request.form.to_dict(),
                        doctors=list_doctors(),
                        doctor_form=DoctorForm(),
                        show_back=True,
                    ),
                    400,
                )
        return render_page(
            "settings/index.html",
            defaults=get_settings(),
            doctors=list_doctors(),
            doctor_form=DoctorForm(),
            show_back=True,
        )
    except Exception as exc:
        record_exception("settings.index", exc)
        raise


@bp.route("/doctors", methods=["POST"], endpoint="add_doctor")
def add_doctor_route():
    form = DoctorForm()
    if not form.validate_on_submit():
        flash("Please check the doctor details and try again.", "err")
        return redirect(url_for("clinic_settings.index"))
    try:
        created = add_doctor(form.name.data.strip(), form.color.data)
        flash(f"{created['name']} added.", "ok")
    except DoctorError as exc:
        flash(str(exc), "err")
    return redirect(url_for("clinic_settings.index"))


@bp.route("/doctors/<doctor_id>/toggle", methods=["POST"], endpoint="toggle_doctor")
def toggle_doctor_route(doctor_id: str):
    try:
        doctor = toggle_doctor(doctor_id)
        state = "enabled" if doctor["active"] else "disabled"
        flash(f"{doctor['name']} {state}.", "ok")
    except DoctorError as exc:
        flash(str(exc), "err")
    return redirect(url_for("clinic_settings.index"))
