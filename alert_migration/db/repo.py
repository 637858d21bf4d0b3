"""Repository functions."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Set, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from alert_migration.contracts import (
    DashboardRef,
    Datasource,
    FolderRef,
    LegacyAlert,
    Silence,
    UnifiedRule,
)
from alert_migration.db.models import (
    AlertRuleRow,
    DashboardRow,
    DataSourceRow,
    LegacyAlertRow,
    SilenceRow,
)
from alert_migration.db.session import get_session, session_scope

# Rules of dashboards outside any folder land here.
GENERAL_ALERTING_FOLDER_UID = "general-alerting"
GENERAL_ALERTING_FOLDER_TITLE = "General Alerting"


def _insert_ignore(session: Session, model: Any, values: Mapping[str, Any]) -> bool:
    """INSERT skipping rows that hit any unique constraint. Returns True if a row was written."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert

        stmt = insert(model).values(**values).on_conflict_do_nothing()
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert

        stmt = insert(model).values(**values).on_conflict_do_nothing()
    else:
        from sqlalchemy import insert

        stmt = insert(model).values(**values).prefix_with("IGNORE")
    result = session.execute(stmt)
    return (result.rowcount or 0) > 0


def load_datasources(org_id: int) -> List[Datasource]:
    with get_session() as session:
        rows = session.execute(select(DataSourceRow).where(DataSourceRow.org_id == org_id)).scalars().all()
        return [
            Datasource(id=r.id, org_id=r.org_id, uid=r.uid, name=r.name, type=r.type, is_default=bool(r.is_default))
            for r in rows
        ]


def load_dashboards(org_id: int) -> Tuple[Dict[str, DashboardRef], Dict[str, FolderRef]]:
    """Returns (dashboards by uid, containing folder by dashboard uid)."""
    with get_session() as session:
        rows = session.execute(select(DashboardRow).where(DashboardRow.org_id == org_id)).scalars().all()

    folders = {r.uid: FolderRef(uid=r.uid, title=r.title) for r in rows if r.is_folder}
    general = FolderRef(uid=GENERAL_ALERTING_FOLDER_UID, title=GENERAL_ALERTING_FOLDER_TITLE)

    dashboards: Dict[str, DashboardRef] = {}
    folder_by_dashboard: Dict[str, FolderRef] = {}
    for r in rows:
        if r.is_folder:
            continue
        dashboards[r.uid] = DashboardRef(uid=r.uid, title=r.title)
        folder_by_dashboard[r.uid] = folders.get(r.folder_uid or "", general)
    return dashboards, folder_by_dashboard


def load_legacy_alerts(org_id: int) -> List[LegacyAlert]:
    """Legacy alerts of one org in id order, with the dashboard uid resolved."""
    with get_session() as session:
        stmt = (
            select(LegacyAlertRow, DashboardRow.uid)
            .join(DashboardRow, DashboardRow.id == LegacyAlertRow.dashboard_id, isouter=True)
            .where(LegacyAlertRow.org_id == org_id)
            .order_by(LegacyAlertRow.id)
        )
        out: List[LegacyAlert] = []
        for row, dashboard_uid in session.execute(stmt).all():
            out.append(
                LegacyAlert(
                    id=row.id,
                    org_id=row.org_id,
                    dashboard_id=row.dashboard_id,
                    dashboard_uid=dashboard_uid or "",
                    panel_id=row.panel_id,
                    name=row.name,
                    message=row.message or "",
                    frequency=row.frequency,
                    for_seconds=row.for_seconds,
                    state=row.state or "",
                    settings=row.settings or "{}",
                )
            )
        return out


def load_existing_rule_uids() -> Set[str]:
    with get_session() as session:
        return {uid for (uid,) in session.execute(select(AlertRuleRow.uid)).all()}


def load_existing_rule_titles(org_id: int) -> Dict[str, Set[str]]:
    """Titles already stored for an org, by folder (namespace) uid."""
    with get_session() as session:
        rows = session.execute(
            select(AlertRuleRow.namespace_uid, AlertRuleRow.title).where(AlertRuleRow.org_id == org_id)
        ).all()
    out: Dict[str, Set[str]] = {}
    for namespace_uid, title in rows:
        out.setdefault(namespace_uid, set()).add(title)
    return out


def alert_rule_values(rule: UnifiedRule) -> Dict[str, Any]:
    return {
        "org_id": rule.org_id,
        "uid": rule.uid,
        "title": rule.title,
        "condition": rule.condition,
        "data": [q.model_dump() for q in rule.data],
        "interval_seconds": rule.interval_seconds,
        "namespace_uid": rule.namespace_uid,
        "dashboard_uid": rule.dashboard_uid,
        "panel_id": rule.panel_id,
        "rule_group": rule.rule_group,
        "rule_group_idx": rule.rule_group_index,
        "for_seconds": rule.for_seconds,
        "labels": dict(rule.labels),
        "annotations": dict(rule.annotations),
        "is_paused": rule.is_paused,
        "no_data_state": str(rule.no_data_state),
        "exec_err_state": str(rule.exec_err_state),
        "version": rule.version,
        "updated": rule.updated,
    }


def silence_values(silence: Silence) -> Dict[str, Any]:
    return {
        "id": silence.id,
        "org_id": silence.org_id,
        "rule_uid": silence.rule_uid,
        "matchers": [m.model_dump() for m in silence.matchers],
        "starts_at": silence.starts_at,
        "ends_at": silence.ends_at,
        "created_by": silence.created_by,
        "comment": silence.comment,
    }


def insert_alert_rule(rule: UnifiedRule) -> bool:
    """Insert into alert_rule; False when the uid or the (org, folder, title) is already taken."""
    with session_scope() as session:
        return _insert_ignore(session, AlertRuleRow, alert_rule_values(rule))


def insert_silence(silence: Silence) -> bool:
    with session_scope() as session:
        return _insert_ignore(session, SilenceRow, silence_values(silence))
