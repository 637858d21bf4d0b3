from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from alert_migration.contracts import ParsedLegacySettings, UnifiedRule
from alert_migration.errors import SilenceCreationError
from alert_migration.silences import ERROR_ALERT_NAME, NO_DATA_ALERT_NAME, SilenceSynthesizer

T0 = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _rule(uid: str = "r1") -> UnifiedRule:
    return UnifiedRule(
        org_id=1,
        uid=uid,
        title="t",
        condition="B",
        data=[],
        interval_seconds=60,
        namespace_uid="f",
        rule_group="g",
        updated=T0,
    )


def _settings(no_data: str = "", exec_err: str = "") -> ParsedLegacySettings:
    return ParsedLegacySettings.model_validate({"noDataState": no_data, "executionErrorState": exec_err})


def test_no_silence_unless_keep_state():
    synth = SilenceSynthesizer(clock=lambda: T0)
    assert synth.add_no_data_silence(_settings("alerting", "alerting"), _rule()) is None
    assert synth.add_error_silence(_settings("alerting", "ok"), _rule()) is None
    assert synth.silences == []


def test_keep_state_creates_both_silences():
    synth = SilenceSynthesizer(duration=timedelta(days=30), clock=lambda: T0)
    settings = _settings("keep_state", "keep_state")
    nd = synth.add_no_data_silence(settings, _rule())
    err = synth.add_error_silence(settings, _rule())

    assert len(synth.silences) == 2
    assert {(m.name, m.value) for m in nd.matchers} == {("rule_uid", "r1"), ("alertname", NO_DATA_ALERT_NAME)}
    assert {(m.name, m.value) for m in err.matchers} == {("rule_uid", "r1"), ("alertname", ERROR_ALERT_NAME)}
    assert nd.starts_at == T0
    assert nd.ends_at == T0 + timedelta(days=30)
    assert nd.id != err.id


def test_rule_without_uid_fails():
    synth = SilenceSynthesizer(clock=lambda: T0)
    with pytest.raises(SilenceCreationError):
        synth.add_no_data_silence(_settings(no_data="keep_state"), _rule(uid=""))
    assert synth.silences == []


def test_invalid_window_fails():
    synth = SilenceSynthesizer(duration=timedelta(0), clock=lambda: T0)
    with pytest.raises(SilenceCreationError):
        synth.add_error_silence(_settings(exec_err="keep_state"), _rule())
