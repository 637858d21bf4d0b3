"""Rewrite legacy query models so they evaluate correctly under unified alerting."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from alert_migration.contracts import EXPRESSION_DATASOURCE_UID, AlertQuery
from alert_migration.errors import MalformedQuery, SerializationError
from alert_migration.hashing import stable_json_dumps

logger = logging.getLogger(__name__)

HIDE_FIELD = "hide"
GRAPHITE_TARGET_FIELD = "target"
GRAPHITE_TARGET_FULL_FIELD = "targetFull"
PROMETHEUS_TYPE = "prometheus"


def _parse_model(query: AlertQuery) -> Dict[str, Any]:
    try:
        model = json.loads(query.model)
    except (TypeError, ValueError) as e:
        raise MalformedQuery(query.ref_id, f"model is not valid JSON: {e}") from e
    if not isinstance(model, dict):
        raise MalformedQuery(query.ref_id, f"model must be a JSON object, got {type(model).__name__}")
    return model


def datasource_type(model: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """Returns (type, None) or (None, reason) when the type cannot be determined."""
    ds = model.get("datasource")
    if ds is None:
        return None, "missing datasource field"
    if not isinstance(ds, dict):
        return None, f"failed to parse datasource {ds!r}"
    ds_type = ds.get("type")
    if not isinstance(ds_type, str) or not ds_type:
        return None, f"missing type field {ds!r}"
    return ds_type, None


def is_prometheus_query(model: Dict[str, Any]) -> bool:
    ds_type, _ = datasource_type(model)
    return ds_type == PROMETHEUS_TYPE


def fix_graphite_referenced_subqueries(model: Dict[str, Any]) -> Dict[str, Any]:
    """targetFull holds the expanded form of target; only target is evaluated."""
    if GRAPHITE_TARGET_FULL_FIELD in model:
        model[GRAPHITE_TARGET_FIELD] = model.pop(GRAPHITE_TARGET_FULL_FIELD)
    return model


def fix_prometheus_both_type_query(model: Dict[str, Any], ref_id: str = "") -> Dict[str, Any]:
    """Turn Prometheus 'Both' (instant + range) queries into range queries."""
    flags: Dict[str, bool] = {}
    for field in ("instant", "range"):
        if field not in model:
            flags[field] = False
            continue
        value = model[field]
        if not isinstance(value, bool):
            if is_prometheus_query(model):
                logger.info(
                    "Failed to parse %s field on Prometheus query",
                    field,
                    extra={"extra_data": {"ref_id": ref_id, field: value}},
                )
            return model
        flags[field] = value

    if not (flags["instant"] and flags["range"]):
        return model

    ds_type, reason = datasource_type(model)
    if ds_type is None:
        logger.info(
            "Unable to convert query that resembles a Prometheus 'Both' type query to 'Range'",
            extra={"extra_data": {"ref_id": ref_id, "reason": reason}},
        )
        return model
    if ds_type != PROMETHEUS_TYPE:
        return model

    logger.warning(
        "Prometheus 'Both' type queries are not supported in unified alerting. Converting to range query.",
        extra={"extra_data": {"ref_id": ref_id}},
    )
    model["instant"] = False
    return model


def repair_query(query: AlertQuery) -> AlertQuery:
    if query.datasource_uid == EXPRESSION_DATASOURCE_UID:
        return query

    model = _parse_model(query)
    model.pop(HIDE_FIELD, None)
    model = fix_graphite_referenced_subqueries(model)
    model = fix_prometheus_both_type_query(model, ref_id=query.ref_id)

    try:
        encoded = stable_json_dumps(model)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"query {query.ref_id!r}: failed to encode repaired model: {e}") from e
    return query.model_copy(update={"model": encoded})


def repair_queries(queries: Sequence[AlertQuery]) -> List[AlertQuery]:
    return [repair_query(q) for q in queries]
