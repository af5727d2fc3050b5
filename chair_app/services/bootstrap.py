"""Bootstrap helper to ensure the scheduling tables and defaults exist."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Sequence

from chair_app.services.doctors import COLOR_TAGS


def _execute_statements(conn: sqlite3.Connection, statements: Iterable[str]) -> None:
    for stmt in statements:
        conn.execute(stmt)


def ensure_base_tables(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA foreign_keys=ON")
    try:
        _execute_statements(
            conn,
            [
                """
                CREATE TABLE IF NOT EXISTS doctors (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL UNIQUE,
                    color TEXT NOT NULL DEFAULT 'blue',
                    active INTEGER NOT NULL DEFAULT 1,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT
                )
                """,
                """
                CREATE TABLE IF NOT EXISTS clinic_settings (
                    id INTEGER PRIMARY KEY,
                    clinic_name TEXT NOT NULL,
                    currency TEXT NOT NULL,
                    start_hour TEXT NOT NULL,
                    end_hour TEXT NOT NULL,
                    commission_rate INTEGER NOT NULL,
                    updated_at TEXT
                )
                """,
                """
                CREATE TABLE IF NOT EXISTS leads (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    phone TEXT NOT NULL,
                    treatment_interest TEXT NOT NULL,
                    status TEXT NOT NULL,
                    source TEXT NOT NULL,
                    is_vip INTEGER NOT NULL DEFAULT 0,
                    assigned_doctor TEXT,
                    appointment_date DATE,
                    appointment_time TEXT,
                    duration INTEGER,
                    visit_status TEXT,
                    price_quoted_cents INTEGER NOT NULL DEFAULT 0,
                    national_id TEXT,
                    birth_year TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
                """,
                """
                CREATE INDEX IF NOT EXISTS idx_leads_doctor_day
                ON leads(assigned_doctor, appointment_date)
                """,
                """
                CREATE TABLE IF NOT EXISTS payments (
                    id TEXT PRIMARY KEY,
                    lead_id TEXT NOT NULL,
                    amount_cents INTEGER NOT NULL,
                    method TEXT NOT NULL,
                    paid_at TEXT NOT NULL,
                    note TEXT,
                    FOREIGN KEY(lead_id) REFERENCES leads(id) ON DELETE CASCADE
                )
                """,
                """
                CREATE TABLE IF NOT EXISTS lead_notes (
                    id TEXT PRIMARY KEY,
                    lead_id TEXT NOT NULL,
                    text TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(lead_id) REFERENCES leads(id) ON DELETE CASCADE
                )
                """,
            ],
        )
        conn.commit()
    finally:
        conn.close()


def ensure_clinic_defaults(
    db_path: Path,
    *,
    doctors: Sequence[str],
    start_hour: str,
    end_hour: str,
    currency: str,
) -> None:
    """Seed the settings row and the doctor roster on first run only."""

    now = datetime.now(timezone.utc).isoformat()
    conn = sqlite3.connect(db_path)
    try:
        has_settings = conn.execute("SELECT 1 FROM clinic_settings WHERE id = 1").fetchone()
        if not has_settings:
            conn.execute(
                """
                INSERT INTO clinic_settings(id, clinic_name, currency, start_hour, end_hour, commission_rate, updated_at)
                VALUES (1, ?, ?, ?, ?, 40, ?)
                """,
                ("Dental Clinic", currency, start_hour, end_hour, now),
            )
        doctor_count = conn.execute("SELECT COUNT(*) FROM doctors").fetchone()[0]
        if doctor_count == 0:
            for position, name in enumerate(doctors):
                conn.execute(
                    "INSERT INTO doctors(id, name, color, active, sort_order, created_at) VALUES (?, ?, ?, 1, ?, ?)",
                    (str(uuid.uuid4()), name, COLOR_TAGS[position % len(COLOR_TAGS)], position, now),
                )
        conn.commit()
    finally:
        conn.close()
