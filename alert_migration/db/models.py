"""SQLAlchemy models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on Postgres, plain JSON elsewhere (MySQL, SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Declarative base for migration tables."""


class DataSourceRow(Base):
    __tablename__ = "data_source"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    uid: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(Text, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class DashboardRow(Base):
    """Dashboards and folders; folders have is_folder set."""

    __tablename__ = "dashboard"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    uid: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    is_folder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    folder_uid: Mapped[str | None] = mapped_column(Text, nullable=True)


class LegacyAlertRow(Base):
    __tablename__ = "alert"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    dashboard_id: Mapped[int] = mapped_column(Integer, nullable=False)
    panel_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    state: Mapped[str] = mapped_column(Text, nullable=False, default="")
    frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    for_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    settings: Mapped[str] = mapped_column(Text, nullable=False, default="{}")


class AlertRuleRow(Base):
    __tablename__ = "alert_rule"
    __table_args__ = (UniqueConstraint("org_id", "namespace_uid", "title", name="uq_alert_rule_org_namespace_title"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False)
    uid: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(190), nullable=False)
    condition: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[list] = mapped_column(JSONType, nullable=False)
    interval_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    namespace_uid: Mapped[str] = mapped_column(String(40), nullable=False)
    dashboard_uid: Mapped[str | None] = mapped_column(Text, nullable=True)
    panel_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rule_group: Mapped[str] = mapped_column(Text, nullable=False)
    rule_group_idx: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    for_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    labels: Mapped[dict] = mapped_column(JSONType, nullable=False)
    annotations: Mapped[dict] = mapped_column(JSONType, nullable=False)
    is_paused: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    no_data_state: Mapped[str] = mapped_column(Text, nullable=False)
    exec_err_state: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SilenceRow(Base):
    __tablename__ = "alert_silence"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    rule_uid: Mapped[str] = mapped_column(Text, nullable=False)
    matchers: Mapped[list] = mapped_column(JSONType, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by: Mapped[str] = mapped_column(Text, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
