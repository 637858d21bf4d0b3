from __future__ import annotations

import pytest

from alert_migration.hashing import short_uid, stable_json_dumps


def test_stable_json_dumps_sorts_nested_keys():
    a = stable_json_dumps({"b": 1, "a": {"y": [{"d": 1, "c": 2}], "x": "é"}})
    b = stable_json_dumps({"a": {"x": "é", "y": [{"c": 2, "d": 1}]}, "b": 1})
    assert a == b == '{"a":{"x":"é","y":[{"c":2,"d":1}]},"b":1}'


def test_stable_json_dumps_rejects_nan():
    with pytest.raises(ValueError):
        stable_json_dumps({"v": float("nan")})


def test_short_uid_is_base62_and_bounded():
    uids = {short_uid() for _ in range(200)}
    assert len(uids) == 200
    assert all(0 < len(u) <= 22 and u.isalnum() for u in uids)
