"""Flask CLI commands for migrations, seeding and a printable day sheet."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import click
from alembic import command
from flask import current_app
from flask.cli import AppGroup, with_appcontext

from chair_app.services.auto_migrate import alembic_config
from chair_app.services.bootstrap import ensure_base_tables, ensure_clinic_defaults
from chair_app.services.clinic_settings import load_settings
from chair_app.services.database import session_scope
from chair_app.services.doctors import load_doctors
from chair_app.services.leads import load_leads
from chair_app.services.projections import day_list


def register_cli(app) -> None:
    db_group = AppGroup("db")

    @db_group.command("upgrade")
    @with_appcontext
    def upgrade() -> None:
        cfg = alembic_config(current_app)
        if cfg is None:
            raise click.ClickException("alembic.ini or migrations/ not found")
        command.upgrade(cfg, "head")
        click.echo("Database upgraded to head.")

    app.cli.add_command(db_group)

    @app.cli.command("seed-clinic")
    @with_appcontext
    def seed_clinic() -> None:
        """Create the tables and seed default settings and doctors if missing."""
        db_path = Path(current_app.config["CHAIR_DB"])
        ensure_base_tables(db_path)
        ensure_clinic_defaults(
            db_path,
            doctors=current_app.config["DEFAULT_DOCTORS"],
            start_hour=current_app.config["DEFAULT_START_HOUR"],
            end_hour=current_app.config["DEFAULT_END_HOUR"],
            currency=current_app.config["DEFAULT_CURRENCY"],
        )
        click.echo(f"Clinic defaults ensured in {db_path}")

    @app.cli.command("schedule-day")
    @click.option("--day", default=None, help="ISO date, defaults to today")
    @click.option("--doctor", default=None, help="Only show this doctor's bookings")
    @with_appcontext
    def schedule_day(day: str | None, doctor: str | None) -> None:
        try:
            target = date.fromisoformat(day) if day else date.today()
        except ValueError as exc:
            raise click.BadParameter("day must be YYYY-MM-DD") from exc
        with session_scope() as session:
            sheet = day_list(load_leads(session), load_settings(session), target, load_doctors(session))
        click.echo(f"Schedule for {sheet['day']}")
        printed = 0
        for row in sheet["rows"]:
            card = row["card"]
            if card is None or (doctor and card["doctor"] != doctor):
                continue
            label = row["time"] if row["show_time"] else ""
            status = (card["visit_status"] or "").replace("_", " ").lower()
            click.echo(f"{label:>5}  {card['doctor']:<16} {card['name']:<24} {card['duration']:>3} min  {status}")
            printed += 1
        if not printed:
            click.echo("No bookings.")
