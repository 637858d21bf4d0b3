"""Title deduplication per folder and run-wide rule UID allocation."""

from __future__ import annotations

import threading
from typing import Callable, Iterable, Optional, Set

from alert_migration.errors import DeduplicationExhausted
from alert_migration.hashing import short_uid


class Deduplicator:
    """
    Tracks the titles claimed inside one namespace (folder).

    Not thread-safe: a namespace is only ever written by the single
    OrgMigration that owns it.
    """

    def __init__(
        self,
        max_len: int,
        case_insensitive: bool = False,
        numeric_attempts: int = 10,
        random_attempts: int = 10,
        suffix_factory: Callable[[], str] = short_uid,
    ):
        if max_len < 1:
            raise ValueError("max_len must be positive")
        self.max_len = max_len
        self.case_insensitive = case_insensitive
        self.numeric_attempts = numeric_attempts
        self.random_attempts = random_attempts
        self._suffix_factory = suffix_factory
        self._set: Set[str] = set()

    def _key(self, name: str) -> str:
        return name.lower() if self.case_insensitive else name

    def truncate(self, name: str, max_len: Optional[int] = None) -> str:
        limit = self.max_len if max_len is None else max_len
        if len(name) > limit:
            return name[: max(limit, 0)]
        return name

    def contains(self, name: str) -> bool:
        return self._key(name) in self._set

    def add(self, name: str) -> None:
        self._set.add(self._key(name))

    def _with_suffix(self, name: str, suffix: str) -> str:
        return (self.truncate(name, self.max_len - len(suffix)) + suffix)[: self.max_len]

    def deduplicate(self, name: str) -> str:
        """
        Return a variant of name that is not claimed yet and fits max_len.

        Tries " #2", " #3", ... first, then random "_<uid>" suffixes. The
        result is not claimed; call add() once it is used.
        """
        base = self.truncate(name)
        if not self.contains(base):
            return base

        for i in range(self.numeric_attempts):
            candidate = self._with_suffix(base, f" #{i + 2}")
            if not self.contains(candidate):
                return candidate

        for _ in range(self.random_attempts):
            candidate = self._with_suffix(base, "_" + self._suffix_factory())
            if not self.contains(candidate):
                return candidate

        raise DeduplicationExhausted(name, self.numeric_attempts + self.random_attempts)


class UIDAllocator:
    """
    Issues rule UIDs that are unique for the whole run.

    Shared by every organization of the run, so allocation is locked.
    """

    def __init__(
        self,
        max_len: int = 40,
        attempts: int = 100,
        existing: Iterable[str] = (),
        uid_factory: Callable[[], str] = short_uid,
    ):
        self.max_len = max_len
        self.attempts = attempts
        self._uid_factory = uid_factory
        self._issued: Set[str] = set(existing)
        self._lock = threading.Lock()

    def reserve(self, uid: str) -> bool:
        """Claim a known UID; False when it was already taken."""
        with self._lock:
            if uid in self._issued:
                return False
            self._issued.add(uid)
            return True

    def allocate(self) -> str:
        with self._lock:
            for _ in range(max(self.attempts, 1)):
                uid = self._uid_factory()[: self.max_len]
                if uid and uid not in self._issued:
                    self._issued.add(uid)
                    return uid
        raise DeduplicationExhausted("rule uid", self.attempts)
