"""
Silences that emulate legacy "keep last state".

Unified alerting fires DatasourceNoData / DatasourceError alerts where the
legacy engine froze the previous state. A silence on the rule's routing
label plus the synthetic alertname keeps those alerts quiet.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from pydantic import ValidationError

from alert_migration.contracts import (
    RULE_UID_LABEL,
    LegacyExecErrOption,
    LegacyNoDataOption,
    ParsedLegacySettings,
    Silence,
    SilenceMatcher,
    UnifiedRule,
)
from alert_migration.errors import SilenceCreationError

NO_DATA_ALERT_NAME = "DatasourceNoData"
ERROR_ALERT_NAME = "DatasourceError"
SILENCE_CREATED_BY = "Grafana Migration"
SILENCE_COMMENT = "Created during auto migration to unified alerting"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class SilenceSynthesizer:
    def __init__(self, duration: timedelta = timedelta(days=365), clock: Callable[[], datetime] = _now_utc):
        self.duration = duration
        self._clock = clock
        self.silences: List[Silence] = []

    def _build(self, rule: UnifiedRule, alertname: str) -> Silence:
        if not rule.uid:
            raise SilenceCreationError(f"rule {rule.title!r} has no uid to match on")
        starts_at = self._clock()
        try:
            return Silence(
                id=str(uuid.uuid4()),
                org_id=rule.org_id,
                rule_uid=rule.uid,
                matchers=[
                    SilenceMatcher(name=RULE_UID_LABEL, value=rule.uid),
                    SilenceMatcher(name="alertname", value=alertname),
                ],
                starts_at=starts_at,
                ends_at=starts_at + self.duration,
                created_by=SILENCE_CREATED_BY,
                comment=SILENCE_COMMENT,
            )
        except ValidationError as e:
            raise SilenceCreationError(f"invalid silence for rule {rule.uid}: {e}") from e

    def add_no_data_silence(self, settings: ParsedLegacySettings, rule: UnifiedRule) -> Optional[Silence]:
        if settings.no_data_state != LegacyNoDataOption.keep_state:
            return None
        silence = self._build(rule, NO_DATA_ALERT_NAME)
        self.silences.append(silence)
        return silence

    def add_error_silence(self, settings: ParsedLegacySettings, rule: UnifiedRule) -> Optional[Silence]:
        if settings.execution_error_state != LegacyExecErrOption.keep_state:
            return None
        silence = self._build(rule, ERROR_ALERT_NAME)
        self.silences.append(silence)
        return silence
