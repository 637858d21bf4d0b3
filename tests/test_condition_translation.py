from __future__ import annotations

import json

import pytest

from alert_migration.condition_translation import (
    ClassicConditionTranslator,
    DatasourceCache,
    parse_relative_time,
    ref_id_for,
)
from alert_migration.contracts import EXPRESSION_DATASOURCE_UID, ParsedLegacySettings
from alert_migration.errors import ConditionTranslationError

from conftest import prom_condition


def test_ref_ids():
    assert [ref_id_for(i) for i in (0, 1, 25, 26, 27)] == ["A", "B", "Z", "AA", "AB"]


def test_parse_relative_time():
    assert parse_relative_time("5m") == 300
    assert parse_relative_time("now") == 0
    assert parse_relative_time("now-1m") == 60
    assert parse_relative_time("1h") == 3600
    with pytest.raises(ValueError):
        parse_relative_time("yesterday")


def test_single_condition(translator):
    settings = ParsedLegacySettings.model_validate({"conditions": [prom_condition("Q")]})
    out = translator.translate(settings, org_id=1)

    assert out.condition == "B"
    query, expr = out.data
    assert query.ref_id == "A"
    assert query.datasource_uid == "prom-uid"
    assert query.relative_time_range.from_seconds == 300
    assert query.relative_time_range.to_seconds == 0
    model = json.loads(query.model)
    assert model["refId"] == "A"
    assert model["datasource"] == {"uid": "prom-uid", "type": "prometheus"}

    assert expr.datasource_uid == EXPRESSION_DATASOURCE_UID
    expr_model = json.loads(expr.model)
    assert expr_model["type"] == "classic_conditions"
    assert expr_model["conditions"][0]["query"]["params"] == ["A"]
    assert expr_model["conditions"][0]["evaluator"] == {"params": [90.0], "type": "gt"}


def test_shared_query_reused_across_conditions(translator):
    c1 = prom_condition("A", threshold=80)
    c2 = prom_condition("A", threshold=95)
    c2["operator"] = {"type": "or"}
    settings = ParsedLegacySettings.model_validate({"conditions": [c1, c2]})
    out = translator.translate(settings, org_id=1)

    assert [q.ref_id for q in out.data] == ["A", "B"]
    conds = json.loads(out.data[-1].model)["conditions"]
    assert [c["query"]["params"] for c in conds] == [["A"], ["A"]]
    assert conds[1]["operator"] == {"type": "or"}


def test_missing_datasource_id_uses_default(translator):
    cond = prom_condition()
    del cond["query"]["datasourceId"]
    settings = ParsedLegacySettings.model_validate({"conditions": [cond]})
    out = translator.translate(settings, org_id=2)
    assert out.data[0].datasource_uid == "prom-uid-2"


def test_unknown_datasource_raises(translator):
    settings = ParsedLegacySettings.model_validate({"conditions": [prom_condition(datasource_id=99)]})
    with pytest.raises(ConditionTranslationError):
        translator.translate(settings, org_id=1)


def test_no_conditions_raises(translator):
    with pytest.raises(ConditionTranslationError):
        translator.translate(ParsedLegacySettings(), org_id=1)


def test_bad_time_range_raises(translator):
    cond = prom_condition()
    cond["query"]["params"] = ["A", "five minutes", "now"]
    settings = ParsedLegacySettings.model_validate({"conditions": [cond]})
    with pytest.raises(ConditionTranslationError):
        translator.translate(settings, org_id=1)


def test_cache_loads_each_org_once():
    calls: list[int] = []

    def _loader(org_id: int):
        calls.append(org_id)
        return []

    cache = DatasourceCache(_loader)
    assert cache.get_datasource(3, 1) is None
    assert cache.get_default(3) is None
    assert calls == [3]
    assert ClassicConditionTranslator(cache).lookup is cache
