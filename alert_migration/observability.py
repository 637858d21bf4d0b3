from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from alert_migration.org_migration import OrgMigrationResult


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _pct(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return round((float(numerator) / float(denominator)) * 100.0, 2)


def summarize_org(result: OrgMigrationResult) -> Dict[str, Any]:
    attempted = result.migrated + len(result.skipped)
    no_data = Counter(str(r.no_data_state) for r in result.rules)
    exec_err = Counter(str(r.exec_err_state) for r in result.rules)
    error_kinds = Counter(reason.split(":", 1)[0] for reason in result.skipped.values())
    return {
        "org_id": result.org_id,
        "alerts": attempted,
        "rules": result.migrated,
        "skipped": len(result.skipped),
        "success_rate_pct": _pct(result.migrated, attempted),
        "silences": len(result.silences),
        "paused_rules": sum(bool(r.is_paused) for r in result.rules),
        "channel_refs": sum(len(v) for v in result.channel_refs.values()),
        "folders": len({r.namespace_uid for r in result.rules}),
        "no_data_states": dict(sorted(no_data.items())),
        "exec_err_states": dict(sorted(exec_err.items())),
        "skip_reasons": dict(sorted(error_kinds.items())),
        "stopped_early": bool(result.stopped_early),
    }


def summarize_results(results: Iterable[OrgMigrationResult]) -> Dict[str, Any]:
    orgs: List[Dict[str, Any]] = [summarize_org(r) for r in results]
    alerts = sum(o["alerts"] for o in orgs)
    rules = sum(o["rules"] for o in orgs)
    return {
        "generated_at": _now_utc().isoformat().replace("+00:00", "Z"),
        "orgs": orgs,
        "totals": {
            "orgs": len(orgs),
            "alerts": alerts,
            "rules": rules,
            "skipped": sum(o["skipped"] for o in orgs),
            "silences": sum(o["silences"] for o in orgs),
            "success_rate_pct": _pct(rules, alerts),
        },
    }


def render_text(summary: Dict[str, Any]) -> str:
    totals = summary.get("totals") or {}
    lines = [
        f"Generated:     {summary.get('generated_at')}",
        f"Organizations: {totals.get('orgs', 0)}",
        f"Alerts:        {totals.get('alerts', 0)}",
        f"Rules:         {totals.get('rules', 0)} ({totals.get('success_rate_pct', 0.0)}%)",
        f"Skipped:       {totals.get('skipped', 0)}",
        f"Silences:      {totals.get('silences', 0)}",
    ]
    for org in summary.get("orgs") or []:
        lines.extend(
            [
                "",
                f"Org {org.get('org_id')}:",
                f"  - rules: {org.get('rules', 0)} / {org.get('alerts', 0)}",
                f"  - folders: {org.get('folders', 0)}",
                f"  - paused: {org.get('paused_rules', 0)}",
                f"  - silences: {org.get('silences', 0)}",
                f"  - channel refs: {org.get('channel_refs', 0)}",
                f"  - no data states: {json.dumps(org.get('no_data_states', {}), sort_keys=True)}",
                f"  - exec err states: {json.dumps(org.get('exec_err_states', {}), sort_keys=True)}",
            ]
        )
        if org.get("skip_reasons"):
            lines.append(f"  - skip reasons: {json.dumps(org['skip_reasons'], sort_keys=True)}")
        if org.get("stopped_early"):
            lines.append("  - stopped early")
    return "\n".join(lines)
