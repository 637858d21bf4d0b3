"""
Classic-condition translation.

Legacy alerts carry a list of conditions, each naming a panel query by ref id
plus a time range. Unified rules need one datasource query per distinct
(ref id, range) pair and a classic_conditions expression that evaluates the
original evaluators/reducers against those queries.
"""

from __future__ import annotations

import copy
import re
import string
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from alert_migration.contracts import (
    EXPRESSION_DATASOURCE_UID,
    AlertQuery,
    Datasource,
    ParsedLegacySettings,
    RelativeTimeRange,
    TranslatedCondition,
)
from alert_migration.errors import ConditionTranslationError
from alert_migration.hashing import stable_json_dumps

CLASSIC_CONDITIONS_TYPE = "classic_conditions"

_DURATION_RE = re.compile(r"^(\d+)(ms|s|m|h|d|w|y)$")
_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 7 * 86400,
    "y": 365 * 86400,
}


class DatasourceLookup(Protocol):
    def get_datasource(self, org_id: int, datasource_id: int) -> Optional[Datasource]:
        ...

    def get_default(self, org_id: int) -> Optional[Datasource]:
        ...


class ConditionTranslator(Protocol):
    def translate(self, settings: ParsedLegacySettings, org_id: int) -> TranslatedCondition:
        ...


class DatasourceCache:
    """
    Per-org datasource index, filled lazily from loader on first use.

    Safe to share between organizations migrating in parallel.
    """

    def __init__(self, loader: Callable[[int], Iterable[Datasource]]):
        self._loader = loader
        self._by_org: Dict[int, Dict[int, Datasource]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_datasources(cls, datasources: Iterable[Datasource]) -> "DatasourceCache":
        items = list(datasources)
        return cls(lambda org_id: [d for d in items if d.org_id == org_id])

    def _org(self, org_id: int) -> Dict[int, Datasource]:
        with self._lock:
            if org_id not in self._by_org:
                self._by_org[org_id] = {d.id: d for d in self._loader(org_id)}
            return self._by_org[org_id]

    def get_datasource(self, org_id: int, datasource_id: int) -> Optional[Datasource]:
        return self._org(org_id).get(datasource_id)

    def get_default(self, org_id: int) -> Optional[Datasource]:
        for ds in self._org(org_id).values():
            if ds.is_default:
                return ds
        return None


def parse_duration_seconds(value: str) -> int:
    m = _DURATION_RE.match(value.strip())
    if not m:
        raise ValueError(f"invalid duration {value!r}")
    return int(int(m.group(1)) * _UNIT_SECONDS[m.group(2)])


def parse_relative_time(value: str) -> int:
    """'5m' -> 300, 'now' -> 0, 'now-1m' -> 60."""
    value = (value or "").strip()
    if value == "now":
        return 0
    if value.startswith("now-"):
        return parse_duration_seconds(value[len("now-"):])
    return parse_duration_seconds(value)


def ref_id_for(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    letters = string.ascii_uppercase
    out = ""
    index += 1
    while index > 0:
        index, rem = divmod(index - 1, len(letters))
        out = letters[rem] + out
    return out


def _query_params(cond: Dict[str, Any]) -> Tuple[str, str, str]:
    params = ((cond.get("query") or {}).get("params")) or []
    if len(params) < 2:
        raise ConditionTranslationError(f"condition query params incomplete: {params!r}")
    ref_id = str(params[0])
    range_from = str(params[1])
    range_to = str(params[2]) if len(params) > 2 else "now"
    return ref_id, range_from, range_to


class ClassicConditionTranslator:
    def __init__(self, lookup: DatasourceLookup):
        self.lookup = lookup

    def _resolve(self, org_id: int, datasource_id: Any) -> Datasource:
        try:
            ds_id = int(datasource_id or 0)
        except (TypeError, ValueError) as e:
            raise ConditionTranslationError(f"invalid datasource id {datasource_id!r}") from e
        ds = self.lookup.get_datasource(org_id, ds_id) if ds_id else self.lookup.get_default(org_id)
        if ds is None:
            raise ConditionTranslationError(f"datasource {ds_id or 'default'} not found in org {org_id}")
        return ds

    def translate(self, settings: ParsedLegacySettings, org_id: int) -> TranslatedCondition:
        if not settings.conditions:
            raise ConditionTranslationError("alert has no conditions")

        new_ref_ids: Dict[Tuple[str, str, str], str] = {}
        queries: List[AlertQuery] = []
        classic: List[Dict[str, Any]] = []

        for cond in settings.conditions:
            key = _query_params(cond)
            if key not in new_ref_ids:
                new_ref = ref_id_for(len(new_ref_ids))
                new_ref_ids[key] = new_ref
                query = cond.get("query") or {}
                ds = self._resolve(org_id, query.get("datasourceId"))
                try:
                    time_range = RelativeTimeRange(
                        from_seconds=parse_relative_time(key[1]),
                        to_seconds=parse_relative_time(key[2]),
                    )
                except ValueError as e:
                    raise ConditionTranslationError(f"condition on {key[0]!r}: {e}") from e

                model = copy.deepcopy(query.get("model") or {})
                if not isinstance(model, dict):
                    raise ConditionTranslationError(f"condition on {key[0]!r}: query model is not an object")
                model["refId"] = new_ref
                model["datasource"] = {"uid": ds.uid, "type": ds.type}
                queries.append(
                    AlertQuery(
                        ref_id=new_ref,
                        relative_time_range=time_range,
                        datasource_uid=ds.uid,
                        model=stable_json_dumps(model),
                    )
                )

            classic.append(
                {
                    "evaluator": cond.get("evaluator") or {},
                    "operator": cond.get("operator") or {"type": "and"},
                    "query": {"params": [new_ref_ids[key]]},
                    "reducer": cond.get("reducer") or {},
                    "type": cond.get("type") or "query",
                }
            )

        condition_ref = ref_id_for(len(new_ref_ids))
        expr_model = {
            "refId": condition_ref,
            "type": CLASSIC_CONDITIONS_TYPE,
            "datasource": {"uid": EXPRESSION_DATASOURCE_UID, "type": EXPRESSION_DATASOURCE_UID},
            "conditions": classic,
        }
        queries.append(
            AlertQuery(
                ref_id=condition_ref,
                datasource_uid=EXPRESSION_DATASOURCE_UID,
                model=stable_json_dumps(expr_model),
            )
        )
        return TranslatedCondition(condition=condition_ref, data=queries)
