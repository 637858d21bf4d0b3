from __future__ import annotations

import threading

import pytest

from alert_migration.dedup import Deduplicator, UIDAllocator
from alert_migration.errors import DeduplicationExhausted


def test_truncate_hard_cuts_to_max():
    d = Deduplicator(max_len=5)
    assert d.truncate("abcdefgh") == "abcde"
    assert d.truncate("abc") == "abc"


def test_contains_respects_case_policy():
    sensitive = Deduplicator(max_len=50)
    sensitive.add("CPU High")
    assert sensitive.contains("CPU High")
    assert not sensitive.contains("cpu high")

    insensitive = Deduplicator(max_len=50, case_insensitive=True)
    insensitive.add("CPU High")
    assert insensitive.contains("cpu HIGH")


def test_deduplicate_returns_unclaimed_name_unchanged():
    d = Deduplicator(max_len=50)
    assert d.deduplicate("fresh") == "fresh"
    assert not d.contains("fresh")


def test_deduplicate_numeric_suffixes():
    d = Deduplicator(max_len=50)
    d.add("alert")
    first = d.deduplicate("alert")
    assert first == "alert #2"
    d.add(first)
    assert d.deduplicate("alert") == "alert #3"


def test_deduplicate_shortens_base_to_fit_suffix():
    d = Deduplicator(max_len=10)
    d.add("aaaaaaaaaa")
    out = d.deduplicate("aaaaaaaaaaXYZ")
    assert out == "aaaaaaa #2"
    assert len(out) == 10


def test_deduplicate_falls_back_to_random_suffix():
    suffixes = iter(["r1", "r2"])
    d = Deduplicator(max_len=50, numeric_attempts=1, random_attempts=2, suffix_factory=lambda: next(suffixes))
    d.add("x")
    d.add("x #2")
    d.add("x_r1")
    assert d.deduplicate("x") == "x_r2"


def test_deduplicate_exhausted():
    d = Deduplicator(max_len=50, numeric_attempts=2, random_attempts=1, suffix_factory=lambda: "same")
    for name in ("x", "x #2", "x #3", "x_same"):
        d.add(name)
    with pytest.raises(DeduplicationExhausted) as exc_info:
        d.deduplicate("x")
    assert exc_info.value.attempts == 3


def test_case_insensitive_dedup_skips_case_variants():
    d = Deduplicator(max_len=50, case_insensitive=True)
    d.add("Disk")
    d.add("DISK #2")
    assert d.deduplicate("disk") == "disk #3"


def test_uid_allocator_unique_and_bounded():
    values = iter(["x" * 50, "y" * 50])
    alloc = UIDAllocator(max_len=8, uid_factory=lambda: next(values))
    assert alloc.allocate() == "xxxxxxxx"
    assert alloc.allocate() == "yyyyyyyy"


def test_uid_allocator_skips_existing():
    values = iter(["taken", "taken", "free"])
    alloc = UIDAllocator(existing={"taken"}, uid_factory=lambda: next(values))
    assert alloc.reserve("taken") is False
    assert alloc.allocate() == "free"


def test_uid_allocator_exhausted():
    alloc = UIDAllocator(attempts=3, existing={"dup"}, uid_factory=lambda: "dup")
    with pytest.raises(DeduplicationExhausted):
        alloc.allocate()


def test_uid_allocator_reserve():
    alloc = UIDAllocator()
    assert alloc.reserve("abc") is True
    assert alloc.reserve("abc") is False


def test_uid_allocator_thread_safe():
    alloc = UIDAllocator()
    out: list[str] = []
    lock = threading.Lock()

    def worker():
        got = [alloc.allocate() for _ in range(200)]
        with lock:
            out.extend(got)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(out) == 800
    assert len(set(out)) == 800
    assert all(len(u) <= 40 for u in out)
