"""Migration errors.

Everything except SilenceCreationError is fatal to the single legacy alert
being migrated: the orchestrator logs it, skips the alert and moves on.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base class for per-alert migration failures."""


class SettingsParseError(MigrationError):
    pass


class ConditionTranslationError(MigrationError):
    pass


class MalformedQuery(MigrationError):
    def __init__(self, ref_id: str, reason: str):
        super().__init__(f"query {ref_id!r}: {reason}")
        self.ref_id = ref_id


class SerializationError(MigrationError):
    pass


class DeduplicationExhausted(MigrationError):
    def __init__(self, name: str, attempts: int):
        super().__init__(f"no free name for {name!r} after {attempts} attempts")
        self.name = name
        self.attempts = attempts


class SilenceCreationError(MigrationError):
    """Non-fatal: the rule is kept without its compatibility silence."""


class ConfigError(ValueError):
    pass
