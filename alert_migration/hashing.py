from __future__ import annotations

import json
import uuid
from typing import Any, Dict

_SHORT_UID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


def stable_json_dumps(payload: Dict[str, Any]) -> str:
    """Compact JSON with keys sorted at every level; stored query models use it."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def short_uid() -> str:
    """Random base-62 rendering of a uuid4 (at most 22 chars)."""
    n = uuid.uuid4().int
    out = []
    while n:
        n, rem = divmod(n, len(_SHORT_UID_ALPHABET))
        out.append(_SHORT_UID_ALPHABET[rem])
    return "".join(reversed(out)) or "0"
