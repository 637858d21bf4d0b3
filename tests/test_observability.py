from __future__ import annotations

from datetime import datetime, timezone

from alert_migration.contracts import ChannelReference, ExecErrState, NoDataState, UnifiedRule
from alert_migration.observability import render_text, summarize_org, summarize_results
from alert_migration.org_migration import OrgMigrationResult

T0 = datetime(2026, 10, 19, tzinfo=timezone.utc)


def _rule(uid: str, folder: str = "F", paused: bool = False, no_data: NoDataState = NoDataState.NoData) -> UnifiedRule:
    return UnifiedRule(
        org_id=1,
        uid=uid,
        title=uid,
        condition="B",
        data=[],
        interval_seconds=60,
        namespace_uid=folder,
        rule_group="g",
        is_paused=paused,
        no_data_state=no_data,
        exec_err_state=ExecErrState.Alerting,
        updated=T0,
    )


def _result() -> OrgMigrationResult:
    return OrgMigrationResult(
        org_id=1,
        rules=[_rule("a"), _rule("b", folder="G", paused=True, no_data=NoDataState.OK), _rule("c")],
        channel_refs={"a": [ChannelReference(uid="x"), ChannelReference(id=3)], "b": [], "c": []},
        skipped={7: "SettingsParseError: bad json", 8: "DashboardNotFound: gone", 9: "SettingsParseError: again"},
    )


def test_summarize_org_counts():
    out = summarize_org(_result())
    assert out["alerts"] == 6
    assert out["rules"] == 3
    assert out["skipped"] == 3
    assert out["success_rate_pct"] == 50.0
    assert out["paused_rules"] == 1
    assert out["channel_refs"] == 2
    assert out["folders"] == 2
    assert out["no_data_states"] == {"NoData": 2, "OK": 1}
    assert out["skip_reasons"] == {"DashboardNotFound": 1, "SettingsParseError": 2}


def test_summarize_results_totals():
    empty = OrgMigrationResult(org_id=2)
    out = summarize_results([_result(), empty])
    assert out["totals"]["orgs"] == 2
    assert out["totals"]["rules"] == 3
    assert out["totals"]["alerts"] == 6
    assert out["orgs"][1]["success_rate_pct"] == 0.0
    assert out["generated_at"].endswith("Z")


def test_render_text_contains_sections():
    result = _result()
    result.stopped_early = True
    text = render_text(summarize_results([result]))
    assert "Organizations: 1" in text
    assert "Org 1:" in text
    assert "skip reasons" in text
    assert "stopped early" in text
