"""Clinic-wide settings (operating window, currency, commission)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from chair_app.models import ClinicSettings
from chair_app.services.database import session_scope
from chair_app.services.time_grid import InvalidTimeFormat, is_on_grid, time_to_minutes

SETTINGS_ROW_ID = 1


class SettingsError(Exception):
    """Raised when submitted settings are inconsistent."""


def load_settings(session: Session) -> ClinicSettings:
    settings = session.get(ClinicSettings, SETTINGS_ROW_ID)
    if settings is None:
        settings = ClinicSettings(id=SETTINGS_ROW_ID)
        session.add(settings)
        session.flush()
    return settings


def settings_to_dict(settings: ClinicSettings) -> dict[str, object]:
    return {
        "clinic_name": settings.clinic_name,
        "currency": settings.currency,
        "start_hour": settings.start_hour,
        "end_hour": settings.end_hour,
        "commission_rate": settings.commission_rate,
    }


def get_settings() -> dict[str, object]:
    with session_scope() as session:
        return settings_to_dict(load_settings(session))


def _validate_window(start_hour: str, end_hour: str) -> None:
    try:
        start = time_to_minutes(start_hour)
        end = time_to_minutes(end_hour)
    except InvalidTimeFormat as exc:
        raise SettingsError("invalid_hours") from exc
    if not (is_on_grid(start) and is_on_grid(end)):
        raise SettingsError("hours_off_grid")
    if end <= start or end > 24 * 60:
        raise SettingsError("invalid_hours")


def update_settings(form_data: dict[str, str]) -> dict[str, object]:
    with session_scope() as session:
        settings = load_settings(session)
        start_hour = (form_data.get("start_hour") or settings.start_hour).strip()
        end_hour = (form_data.get("end_hour") or settings.end_hour).strip()
        _validate_window(start_hour, end_hour)

        raw_rate = (form_data.get("commission_rate") or "").strip()
        if raw_rate:
            try:
                rate = int(raw_rate)
            except ValueError as exc:
                raise SettingsError("invalid_commission_rate") from exc
            if not 0 <= rate <= 100:
                raise SettingsError("invalid_commission_rate")
            settings.commission_rate = rate

        settings.start_hour = start_hour
        settings.end_hour = end_hour
        settings.clinic_name = (form_data.get("clinic_name") or settings.clinic_name).strip()
        settings.currency = (form_data.get("currency") or settings.currency).strip().upper()
        settings.updated_at = datetime.now(timezone.utc).isoformat()
        return settings_to_dict(settings)
