"""Assemble a unified alert rule from one legacy dashboard alert."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from alert_migration.condition_translation import ConditionTranslator
from alert_migration.config import MigrationConfig
from alert_migration.contracts import (
    ALERT_ID_ANNOTATION,
    CONTACTS_LABEL,
    DASHBOARD_UID_ANNOTATION,
    MESSAGE_ANNOTATION,
    PANEL_ID_ANNOTATION,
    RULE_UID_LABEL,
    ChannelReference,
    DashboardRef,
    FolderRef,
    LegacyAlert,
    ParsedLegacySettings,
    RuleGroupMode,
    UnifiedRule,
)
from alert_migration.dedup import Deduplicator, UIDAllocator
from alert_migration.errors import ConditionTranslationError, SettingsParseError, SilenceCreationError
from alert_migration.query_repair import repair_queries
from alert_migration.silences import SilenceSynthesizer
from alert_migration.state_translation import translate_exec_err, translate_no_data

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_settings(raw: str) -> ParsedLegacySettings:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SettingsParseError(f"failed to parse settings: {e}") from e
    if not isinstance(data, dict):
        raise SettingsParseError(f"failed to parse settings: expected object, got {type(data).__name__}")
    try:
        return ParsedLegacySettings.model_validate(data)
    except ValidationError as e:
        raise SettingsParseError(f"failed to parse settings: {e}") from e


def _label_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, separators=(",", ":"))


def build_labels_and_annotations(
    alert: LegacyAlert, settings: ParsedLegacySettings, dashboard_uid: str
) -> Tuple[Dict[str, str], Dict[str, str]]:
    labels = {str(k): _label_value(v) for k, v in settings.alert_rule_tags.items()}
    annotations = {
        DASHBOARD_UID_ANNOTATION: dashboard_uid,
        PANEL_ID_ANNOTATION: str(alert.panel_id),
        ALERT_ID_ANNOTATION: str(alert.id),
        MESSAGE_ANNOTATION: alert.message,
    }
    return labels, annotations


def rule_adjust_interval(frequency: int, base: int = 10) -> int:
    if frequency <= base:
        return base
    return frequency - (frequency % base)


def extract_channel_refs(settings: ParsedLegacySettings) -> List[ChannelReference]:
    refs: List[ChannelReference] = []
    for target in settings.notifications:
        if target.uid:
            refs.append(ChannelReference(uid=target.uid))
        elif target.id is not None and target.id > 0:
            # some legacy alerts only carry the numeric id
            refs.append(ChannelReference(id=target.id))
    return refs


def contacts_label_value(refs: List[ChannelReference]) -> str:
    return json.dumps([str(r.value) for r in refs], separators=(",", ":"))


class RuleAssembler:
    """
    Per-organization assembly context.

    Owns the folder deduplicators and the silences synthesized for the
    organization; the UID allocator is shared across the run.
    """

    def __init__(
        self,
        config: MigrationConfig,
        translator: ConditionTranslator,
        uid_allocator: UIDAllocator,
        silences: Optional[SilenceSynthesizer] = None,
        clock=_now_utc,
        existing_titles: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        self.config = config
        self.translator = translator
        self.uid_allocator = uid_allocator
        self.silences = silences or SilenceSynthesizer(
            duration=timedelta(days=config.silence_duration_days), clock=clock
        )
        self._clock = clock
        # titles already stored, by folder uid
        self._existing_titles = existing_titles or {}
        self.title_dedup: Dict[str, Deduplicator] = {}

    def deduplicator_for(self, folder_uid: str) -> Deduplicator:
        dedup = self.title_dedup.get(folder_uid)
        if dedup is None:
            dedup = Deduplicator(
                max_len=self.config.max_title_length,
                case_insensitive=bool(self.config.case_insensitive_titles),
                numeric_attempts=self.config.dedup_numeric_attempts,
                random_attempts=self.config.dedup_random_attempts,
            )
            for title in self._existing_titles.get(folder_uid, ()):
                dedup.add(title)
            self.title_dedup[folder_uid] = dedup
        return dedup

    def claim_title(self, name: str, folder_uid: str) -> str:
        dedup = self.deduplicator_for(folder_uid)
        title = dedup.truncate(name)
        if dedup.contains(title):
            deduped = dedup.deduplicate(title)
            logger.warning(
                "duplicate alert rule name detected, renaming",
                extra={"extra_data": {"old_name": title, "new_name": deduped, "folder_uid": folder_uid}},
            )
            title = deduped
        dedup.add(title)
        return title

    def rule_group_name(self, dashboard: DashboardRef, alert: LegacyAlert, title: str) -> str:
        if self.config.rule_group_mode == RuleGroupMode.title:
            group = title
        else:
            group = f"{dashboard.title} - {alert.panel_id}"
        return group[: self.config.max_title_length]

    def migrate_alert(
        self, alert: LegacyAlert, dashboard: DashboardRef, folder: FolderRef
    ) -> Tuple[UnifiedRule, List[ChannelReference]]:
        logger.debug(
            "migrating alert rule to unified alerting",
            extra={"extra_data": {"alert_id": alert.id, "dashboard_uid": dashboard.uid, "panel_id": alert.panel_id}},
        )
        settings = parse_settings(alert.settings)

        try:
            cond = self.translator.translate(settings, alert.org_id)
        except ConditionTranslationError:
            raise
        except Exception as e:
            raise ConditionTranslationError(f"failed to transform conditions: {e}") from e

        data = repair_queries(cond.data)
        labels, annotations = build_labels_and_annotations(alert, settings, dashboard.uid)
        channel_refs = extract_channel_refs(settings)

        uid = self.uid_allocator.allocate()
        title = self.claim_title(alert.name, folder.uid)

        labels[RULE_UID_LABEL] = uid
        labels[CONTACTS_LABEL] = contacts_label_value(channel_refs)

        rule = UnifiedRule(
            org_id=alert.org_id,
            uid=uid,
            title=title,
            condition=cond.condition,
            data=data,
            interval_seconds=rule_adjust_interval(alert.frequency, self.config.base_interval_seconds),
            namespace_uid=folder.uid,
            dashboard_uid=dashboard.uid,
            panel_id=alert.panel_id,
            rule_group=self.rule_group_name(dashboard, alert, title),
            rule_group_index=1,
            for_seconds=alert.for_seconds,
            labels=labels,
            annotations=annotations,
            is_paused=alert.state == "paused",
            no_data_state=translate_no_data(settings.no_data_state),
            exec_err_state=translate_exec_err(settings.execution_error_state),
            version=1,
            updated=self._clock(),
        )

        try:
            self.silences.add_error_silence(settings, rule)
        except SilenceCreationError as e:
            logger.warning(
                "failed to create silence for Error",
                extra={"extra_data": {"rule_name": rule.title, "err": str(e)}},
            )
        try:
            self.silences.add_no_data_silence(settings, rule)
        except SilenceCreationError as e:
            logger.warning(
                "failed to create silence for NoData",
                extra={"extra_data": {"rule_name": rule.title, "err": str(e)}},
            )

        return rule, channel_refs
