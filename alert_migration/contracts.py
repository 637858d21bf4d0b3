from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

# Datasource UID carried by server-side expression queries.
EXPRESSION_DATASOURCE_UID = "__expr__"

DASHBOARD_UID_ANNOTATION = "__dashboardUid__"
PANEL_ID_ANNOTATION = "__panelId__"
ALERT_ID_ANNOTATION = "__alertId__"
MESSAGE_ANNOTATION = "message"

# Routing label shared by the rule and its compatibility silences.
RULE_UID_LABEL = "rule_uid"
# JSON array of the legacy notification channels the rule should route to.
CONTACTS_LABEL = "__contacts__"


class NoDataState(StrEnum):
    Alerting = "Alerting"
    NoData = "NoData"
    OK = "OK"


class ExecErrState(StrEnum):
    Alerting = "Alerting"
    Error = "Error"
    OK = "OK"


class LegacyNoDataOption(StrEnum):
    no_data = "no_data"
    alerting = "alerting"
    keep_state = "keep_state"
    ok = "ok"


class LegacyExecErrOption(StrEnum):
    alerting = "alerting"
    keep_state = "keep_state"
    ok = "ok"


class RuleGroupMode(StrEnum):
    dashboard_panel = "dashboard_panel"
    title = "title"


class LegacyAlert(BaseModel):
    """One row of the legacy dashboard alert table."""

    model_config = ConfigDict(frozen=True)

    id: int
    org_id: int
    dashboard_id: int = 0
    dashboard_uid: str = ""
    panel_id: int
    name: str
    message: str = ""
    frequency: int = 60
    for_seconds: int = 0
    state: str = ""
    settings: str = "{}"


class NotificationTarget(BaseModel):
    model_config = ConfigDict(extra="allow")

    uid: Optional[str] = None
    id: Optional[int] = None


class ParsedLegacySettings(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    no_data_state: str = Field(default="", alias="noDataState")
    execution_error_state: str = Field(default="", alias="executionErrorState")
    # values are strings or JSON scalars
    alert_rule_tags: Dict[str, Any] = Field(default_factory=dict, alias="alertRuleTags")
    notifications: List[NotificationTarget] = Field(default_factory=list)
    conditions: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator(
        "no_data_state", "execution_error_state", "alert_rule_tags", "notifications", "conditions", mode="before"
    )
    @classmethod
    def _null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is not None:
            return value
        if info.field_name == "alert_rule_tags":
            return {}
        if info.field_name in ("notifications", "conditions"):
            return []
        return ""


class RelativeTimeRange(BaseModel):
    from_seconds: int = 0
    to_seconds: int = 0


class AlertQuery(BaseModel):
    ref_id: str
    query_type: str = ""
    relative_time_range: RelativeTimeRange = Field(default_factory=RelativeTimeRange)
    datasource_uid: str
    # serialized JSON object
    model: str


class TranslatedCondition(BaseModel):
    condition: str
    data: List[AlertQuery]


class Datasource(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    org_id: int
    uid: str
    name: str = ""
    type: str
    is_default: bool = False


class DashboardRef(BaseModel):
    uid: str
    title: str = ""


class FolderRef(BaseModel):
    uid: str
    title: str = ""


class UnifiedRule(BaseModel):
    org_id: int
    uid: str
    title: str
    condition: str
    data: List[AlertQuery]
    interval_seconds: int
    namespace_uid: str
    dashboard_uid: Optional[str] = None
    panel_id: Optional[int] = None
    rule_group: str
    rule_group_index: int = 1
    for_seconds: int = 0
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    is_paused: bool = False
    no_data_state: NoDataState = NoDataState.NoData
    exec_err_state: ExecErrState = ExecErrState.Alerting
    version: int = 1
    updated: datetime


class SilenceMatcher(BaseModel):
    name: str
    value: str
    is_equal: bool = True
    is_regex: bool = False


class Silence(BaseModel):
    id: str
    org_id: int
    rule_uid: str
    matchers: List[SilenceMatcher] = Field(min_length=1)
    starts_at: datetime
    ends_at: datetime
    created_by: str
    comment: str

    @model_validator(mode="after")
    def _check_window(self) -> "Silence":
        if self.ends_at <= self.starts_at:
            raise ValueError("silence must end after it starts")
        return self


class ChannelReference(BaseModel):
    """Legacy notification channel, referenced by UID or by numeric id, never both."""

    model_config = ConfigDict(frozen=True)

    uid: Optional[str] = None
    id: Optional[int] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "ChannelReference":
        has_uid = bool(self.uid)
        has_id = self.id is not None and self.id > 0
        if has_uid == has_id:
            raise ValueError("channel reference needs exactly one of uid or id")
        return self

    @property
    def value(self) -> Union[str, int]:
        return self.uid if self.uid else int(self.id or 0)
