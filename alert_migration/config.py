from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from alert_migration.contracts import RuleGroupMode
from alert_migration.errors import ConfigError

DEFAULT_CONFIG_PATH = "config/migration.yaml"


@dataclass(frozen=True)
class MigrationConfig:
    max_title_length: int = 190
    max_uid_length: int = 40
    base_interval_seconds: int = 10
    rule_group_mode: RuleGroupMode = RuleGroupMode.dashboard_panel
    # None: derive from the database dialect
    case_insensitive_titles: Optional[bool] = None
    silence_duration_days: int = 365
    dedup_numeric_attempts: int = 10
    dedup_random_attempts: int = 10
    uid_attempts: int = 100

    def __post_init__(self) -> None:
        if isinstance(self.rule_group_mode, str) and not isinstance(self.rule_group_mode, RuleGroupMode):
            try:
                object.__setattr__(self, "rule_group_mode", RuleGroupMode(self.rule_group_mode))
            except ValueError as e:
                raise ConfigError(f"unknown rule_group_mode {self.rule_group_mode!r}") from e
        for name in ("max_title_length", "max_uid_length", "base_interval_seconds", "silence_duration_days"):
            if int(getattr(self, name)) < 1:
                raise ConfigError(f"{name} must be positive")
        for name in ("dedup_numeric_attempts", "dedup_random_attempts", "uid_attempts"):
            if int(getattr(self, name)) < 0:
                raise ConfigError(f"{name} must not be negative")
        if self.max_uid_length < 8:
            raise ConfigError("max_uid_length must be at least 8")

    def with_case_policy(self, case_insensitive: bool) -> "MigrationConfig":
        return dataclasses.replace(self, case_insensitive_titles=case_insensitive)

    def as_dict(self) -> Dict[str, Any]:
        out = dataclasses.asdict(self)
        out["rule_group_mode"] = str(self.rule_group_mode)
        return out


def load_config(path: Optional[str] = None) -> MigrationConfig:
    """
    Load MigrationConfig from YAML.

    Path resolution: explicit argument, then ALERT_MIGRATION_CONFIG, then
    config/migration.yaml. A missing default file yields the defaults; a
    missing explicit file is an error.
    """
    explicit = path or os.getenv("ALERT_MIGRATION_CONFIG")
    cfg_path = explicit or DEFAULT_CONFIG_PATH
    if not os.path.exists(cfg_path):
        if explicit:
            raise ConfigError(f"config file not found: {cfg_path}")
        return MigrationConfig()

    with open(cfg_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{cfg_path}: expected a mapping at top level")

    known = {f.name for f in dataclasses.fields(MigrationConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{cfg_path}: unknown keys {unknown}")
    try:
        return MigrationConfig(**data)
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{cfg_path}: {e}") from e
