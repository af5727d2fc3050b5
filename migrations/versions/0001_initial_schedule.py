"""Initial schema: doctors, clinic settings, leads, payments and notes."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schedule"
down_revision = None
branch_labels = None
depends_on = None


def _create_index_if_not_exists(name: str, table: str, columns: str) -> None:
    op.execute(f"CREATE INDEX IF NOT EXISTS {name} ON {table}({columns})")


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = set(inspector.get_table_names())

    if "doctors" not in tables:
        op.create_table(
            "doctors",
            sa.Column("id", sa.Text(), primary_key=True),
            sa.Column("name", sa.Text(), nullable=False, unique=True),
            sa.Column("color", sa.Text(), nullable=False, server_default="blue"),
            sa.Column("active", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.Text(), nullable=True),
        )
    else:
        doctor_cols = {col["name"] for col in inspector.get_columns("doctors")}
        if "sort_order" not in doctor_cols:
            op.add_column("doctors", sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"))

    if "clinic_settings" not in tables:
        op.create_table(
            "clinic_settings",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("clinic_name", sa.Text(), nullable=False),
            sa.Column("currency", sa.Text(), nullable=False),
            sa.Column("start_hour", sa.Text(), nullable=False),
            sa.Column("end_hour", sa.Text(), nullable=False),
            sa.Column("commission_rate", sa.Integer(), nullable=False),
            sa.Column("updated_at", sa.Text(), nullable=True),
        )

    if "leads" not in tables:
        op.create_table(
            "leads",
            sa.Column("id", sa.Text(), primary_key=True),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("phone", sa.Text(), nullable=False),
            sa.Column("treatment_interest", sa.Text(), nullable=False),
            sa.Column("status", sa.Text(), nullable=False),
            sa.Column("source", sa.Text(), nullable=False),
            sa.Column("is_vip", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("assigned_doctor", sa.Text(), nullable=True),
            sa.Column("appointment_date", sa.Date(), nullable=True),
            sa.Column("appointment_time", sa.Text(), nullable=True),
            sa.Column("duration", sa.Integer(), nullable=True),
            sa.Column("visit_status", sa.Text(), nullable=True),
            sa.Column("price_quoted_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("national_id", sa.Text(), nullable=True),
            sa.Column("birth_year", sa.Text(), nullable=True),
            sa.Column("created_at", sa.Text(), nullable=False),
            sa.Column("updated_at", sa.Text(), nullable=True),
        )

    _create_index_if_not_exists("idx_leads_doctor_day", "leads", "assigned_doctor, appointment_date")

    if "payments" not in tables:
        op.create_table(
            "payments",
            sa.Column("id", sa.Text(), primary_key=True),
            sa.Column("lead_id", sa.Text(), sa.ForeignKey("leads.id", ondelete="CASCADE"), nullable=False),
            sa.Column("amount_cents", sa.Integer(), nullable=False),
            sa.Column("method", sa.Text(), nullable=False),
            sa.Column("paid_at", sa.Text(), nullable=False),
            sa.Column("note", sa.Text(), nullable=True),
        )

    if "lead_notes" not in tables:
        op.create_table(
            "lead_notes",
            sa.Column("id", sa.Text(), primary_key=True),
            sa.Column("lead_id", sa.Text(), sa.ForeignKey("leads.id", ondelete="CASCADE"), nullable=False),
            sa.Column("text", sa.Text(), nullable=False),
            sa.Column("created_at", sa.Text(), nullable=False),
        )


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = set(inspector.get_table_names())
    for table in ("lead_notes", "payments", "leads", "clinic_settings", "doctors"):
        if table in tables:
            op.drop_table(table)
