"""create legacy alert, dashboard, data_source, alert_rule and alert_silence tables

Revision ID: 0001_create_alerting_migration_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_create_alerting_migration_tables"
down_revision = None
branch_labels = None
depends_on = None


def _json() -> sa.types.TypeEngine:
    return sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade() -> None:
    op.create_table(
        "data_source",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("uid", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False, server_default=""),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_data_source_org_id", "data_source", ["org_id"])

    op.create_table(
        "dashboard",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("uid", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("is_folder", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("folder_uid", sa.Text(), nullable=True),
    )
    op.create_index("ix_dashboard_org_id", "dashboard", ["org_id"])

    op.create_table(
        "alert",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("dashboard_id", sa.Integer(), nullable=False),
        sa.Column("panel_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.Column("state", sa.Text(), nullable=False, server_default=""),
        sa.Column("frequency", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("for_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("settings", sa.Text(), nullable=False, server_default="{}"),
    )
    op.create_index("ix_alert_org_id", "alert", ["org_id"])

    op.create_table(
        "alert_rule",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("uid", sa.String(40), nullable=False, unique=True),
        sa.Column("title", sa.String(190), nullable=False),
        sa.Column("condition", sa.Text(), nullable=False),
        sa.Column("data", _json(), nullable=False),
        sa.Column("interval_seconds", sa.Integer(), nullable=False),
        sa.Column("namespace_uid", sa.String(40), nullable=False),
        sa.Column("dashboard_uid", sa.Text(), nullable=True),
        sa.Column("panel_id", sa.Integer(), nullable=True),
        sa.Column("rule_group", sa.Text(), nullable=False),
        sa.Column("rule_group_idx", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("for_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("labels", _json(), nullable=False),
        sa.Column("annotations", _json(), nullable=False),
        sa.Column("is_paused", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("no_data_state", sa.Text(), nullable=False),
        sa.Column("exec_err_state", sa.Text(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("updated", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("org_id", "namespace_uid", "title", name="uq_alert_rule_org_namespace_title"),
    )

    op.create_table(
        "alert_silence",
        sa.Column("id", sa.String(40), primary_key=True),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("rule_uid", sa.Text(), nullable=False),
        sa.Column("matchers", _json(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.Text(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
    )
    op.create_index("ix_alert_silence_org_id", "alert_silence", ["org_id"])


def downgrade() -> None:
    op.drop_index("ix_alert_silence_org_id", table_name="alert_silence")
    op.drop_table("alert_silence")
    op.drop_table("alert_rule")
    op.drop_index("ix_alert_org_id", table_name="alert")
    op.drop_table("alert")
    op.drop_index("ix_dashboard_org_id", table_name="dashboard")
    op.drop_table("dashboard")
    op.drop_index("ix_data_source_org_id", table_name="data_source")
    op.drop_table("data_source")
