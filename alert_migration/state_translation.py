from __future__ import annotations

import logging

from alert_migration.contracts import (
    ExecErrState,
    LegacyExecErrOption,
    LegacyNoDataOption,
    NoDataState,
)

logger = logging.getLogger(__name__)

_NO_DATA = {
    "": NoDataState.NoData,
    LegacyNoDataOption.ok: NoDataState.OK,
    LegacyNoDataOption.no_data: NoDataState.NoData,
    LegacyNoDataOption.alerting: NoDataState.Alerting,
    # unified alerting raises a DatasourceNoData alert instead of freezing state
    LegacyNoDataOption.keep_state: NoDataState.NoData,
}

_EXEC_ERR = {
    "": ExecErrState.Alerting,
    LegacyExecErrOption.alerting: ExecErrState.Alerting,
    # unified alerting raises a DatasourceError alert instead of freezing state
    LegacyExecErrOption.keep_state: ExecErrState.Error,
    LegacyExecErrOption.ok: ExecErrState.OK,
}


def translate_no_data(value: str) -> NoDataState:
    state = _NO_DATA.get(value)
    if state is None:
        state = NoDataState.NoData
        logger.warning(
            "Unable to translate NoData state. Using default",
            extra={"extra_data": {"old": value, "new": str(state)}},
        )
    return state


def translate_exec_err(value: str) -> ExecErrState:
    state = _EXEC_ERR.get(value)
    if state is None:
        state = ExecErrState.Error
        logger.warning(
            "Unable to translate execution Error state. Using default",
            extra={"extra_data": {"old": value, "new": str(state)}},
        )
    return state
