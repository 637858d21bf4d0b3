def test_imports_compile():
    # Contracts + hashing + config
    from alert_migration.contracts import LegacyAlert, UnifiedRule  # noqa: F401
    from alert_migration.hashing import short_uid, stable_json_dumps  # noqa: F401
    from alert_migration.config import load_config  # noqa: F401

    # DB layer imports
    from alert_migration.db.models import AlertRuleRow, LegacyAlertRow, SilenceRow  # noqa: F401
    from alert_migration.db.session import get_session  # noqa: F401
    from alert_migration.db.repo import insert_alert_rule, insert_silence  # noqa: F401

    # CLI entry point
    from alert_migration.cli import app  # noqa: F401

    assert LegacyAlert is not None and UnifiedRule is not None
    assert AlertRuleRow.__tablename__ == "alert_rule"
    assert LegacyAlertRow.__tablename__ == "alert"
    assert SilenceRow.__tablename__ == "alert_silence"
    assert callable(load_config)
    assert callable(get_session)
    assert callable(insert_alert_rule)
    assert callable(insert_silence)
