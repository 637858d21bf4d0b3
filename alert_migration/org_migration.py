"""Run the per-alert pipeline over whole organizations."""

from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from alert_migration.condition_translation import ConditionTranslator
from alert_migration.config import MigrationConfig
from alert_migration.contracts import (
    ChannelReference,
    DashboardRef,
    FolderRef,
    LegacyAlert,
    Silence,
    UnifiedRule,
)
from alert_migration.dedup import UIDAllocator
from alert_migration.errors import MigrationError
from alert_migration.logging_setup import log_context
from alert_migration.rule_assembler import RuleAssembler

logger = logging.getLogger(__name__)


@dataclass
class OrgInput:
    org_id: int
    alerts: Sequence[LegacyAlert]
    # both keyed by dashboard uid
    dashboards: Mapping[str, DashboardRef]
    folder_by_dashboard: Mapping[str, FolderRef]
    # titles already in the store, by folder uid
    existing_titles: Mapping[str, Iterable[str]] = field(default_factory=dict)


@dataclass
class OrgMigrationResult:
    org_id: int
    rules: List[UnifiedRule] = field(default_factory=list)
    silences: List[Silence] = field(default_factory=list)
    channel_refs: Dict[str, List[ChannelReference]] = field(default_factory=dict)
    skipped: Dict[int, str] = field(default_factory=dict)
    stopped_early: bool = False

    @property
    def migrated(self) -> int:
        return len(self.rules)


class OrgMigration:
    """Migrates the alerts of one organization, one alert at a time."""

    def __init__(
        self,
        org_id: int,
        config: MigrationConfig,
        translator: ConditionTranslator,
        uid_allocator: UIDAllocator,
        existing_titles: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        self.org_id = org_id
        self.assembler = RuleAssembler(config, translator, uid_allocator, existing_titles=existing_titles)

    def run(
        self,
        alerts: Iterable[LegacyAlert],
        dashboards: Mapping[str, DashboardRef],
        folder_by_dashboard: Mapping[str, FolderRef],
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> OrgMigrationResult:
        result = OrgMigrationResult(org_id=self.org_id)
        for alert in alerts:
            if should_stop is not None and should_stop():
                result.stopped_early = True
                logger.warning("migration stopped before all alerts were processed")
                break

            dashboard = dashboards.get(alert.dashboard_uid)
            folder = folder_by_dashboard.get(alert.dashboard_uid)
            if dashboard is None or folder is None:
                reason = f"DashboardNotFound: dashboard {alert.dashboard_uid!r} or its folder not found"
                result.skipped[alert.id] = reason
                logger.error(
                    "skipping alert: %s",
                    reason,
                    extra={"extra_data": {"alert_id": alert.id, "panel_id": alert.panel_id}},
                )
                continue

            try:
                rule, refs = self.assembler.migrate_alert(alert, dashboard, folder)
            except MigrationError as e:
                result.skipped[alert.id] = f"{type(e).__name__}: {e}"
                logger.error(
                    "failed to migrate alert",
                    exc_info=True,
                    extra={
                        "extra_data": {
                            "alert_id": alert.id,
                            "alert_name": alert.name,
                            "dashboard_uid": alert.dashboard_uid,
                            "panel_id": alert.panel_id,
                        }
                    },
                )
                continue

            result.rules.append(rule)
            result.channel_refs[rule.uid] = refs

        result.silences = list(self.assembler.silences.silences)
        logger.info(
            "organization migrated",
            extra={"extra_data": {"rules": result.migrated, "skipped": len(result.skipped), "silences": len(result.silences)}},
        )
        return result


def migrate_org(
    org: OrgInput,
    config: MigrationConfig,
    translator: ConditionTranslator,
    uid_allocator: UIDAllocator,
    run_id: str = "",
    should_stop: Optional[Callable[[], bool]] = None,
) -> OrgMigrationResult:
    with log_context(org_id=org.org_id, run_id=run_id):
        migration = OrgMigration(org.org_id, config, translator, uid_allocator, existing_titles=org.existing_titles)
        return migration.run(org.alerts, org.dashboards, org.folder_by_dashboard, should_stop=should_stop)


def migrate_orgs(
    orgs: Sequence[OrgInput],
    config: MigrationConfig,
    translator: ConditionTranslator,
    uid_allocator: Optional[UIDAllocator] = None,
    max_workers: int = 1,
    should_stop: Optional[Callable[[], bool]] = None,
) -> List[OrgMigrationResult]:
    """
    Migrate several organizations, sharing one UID allocator.

    Results come back in input order regardless of max_workers.
    """
    allocator = uid_allocator
    if allocator is None:
        allocator = UIDAllocator(max_len=config.max_uid_length, attempts=config.uid_attempts)
    run_id = uuid.uuid4().hex[:12]

    def _one(org: OrgInput) -> OrgMigrationResult:
        return migrate_org(org, config, translator, allocator, run_id=run_id, should_stop=should_stop)

    if max_workers <= 1 or len(orgs) <= 1:
        return [_one(org) for org in orgs]

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(_one, orgs))
