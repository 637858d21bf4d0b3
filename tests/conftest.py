from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest

from alert_migration.condition_translation import ClassicConditionTranslator, DatasourceCache
from alert_migration.contracts import Datasource, LegacyAlert


def prom_condition(ref_id: str = "A", datasource_id: int = 1, threshold: float = 90.0) -> Dict[str, Any]:
    return {
        "evaluator": {"params": [threshold], "type": "gt"},
        "operator": {"type": "and"},
        "query": {
            "datasourceId": datasource_id,
            "model": {"refId": ref_id, "expr": "avg(cpu_usage)", "instant": True, "range": True, "hide": False},
            "params": [ref_id, "5m", "now"],
        },
        "reducer": {"params": [], "type": "avg"},
        "type": "query",
    }


def settings_json(
    *,
    no_data: str = "",
    exec_err: str = "",
    tags: Optional[Dict[str, Any]] = None,
    notifications: Optional[List[Dict[str, Any]]] = None,
    conditions: Optional[List[Dict[str, Any]]] = None,
) -> str:
    return json.dumps(
        {
            "noDataState": no_data,
            "executionErrorState": exec_err,
            "alertRuleTags": tags or {},
            "notifications": notifications or [],
            "conditions": conditions if conditions is not None else [prom_condition()],
        }
    )


def make_alert(
    alert_id: int = 1,
    *,
    name: str = "CPU > 90%",
    org_id: int = 1,
    dashboard_uid: str = "dash1",
    panel_id: int = 2,
    frequency: int = 60,
    state: str = "ok",
    message: str = "",
    settings: Optional[str] = None,
) -> LegacyAlert:
    return LegacyAlert(
        id=alert_id,
        org_id=org_id,
        dashboard_uid=dashboard_uid,
        panel_id=panel_id,
        name=name,
        message=message,
        frequency=frequency,
        state=state,
        settings=settings if settings is not None else settings_json(),
    )


@pytest.fixture
def datasources() -> DatasourceCache:
    return DatasourceCache.from_datasources(
        [
            Datasource(id=1, org_id=1, uid="prom-uid", name="Prometheus", type="prometheus", is_default=True),
            Datasource(id=2, org_id=1, uid="graphite-uid", name="Graphite", type="graphite"),
            Datasource(id=1, org_id=2, uid="prom-uid-2", name="Prometheus", type="prometheus", is_default=True),
        ]
    )


@pytest.fixture
def translator(datasources) -> ClassicConditionTranslator:
    return ClassicConditionTranslator(datasources)
