"""Tests for the misinformation memory."""

from datetime import datetime, timezone

from trustle.errors import StorageError
from trustle.memory import MisinformationMemory
from trustle.models import MisinformationRecord
from trustle.store import LocalStore


def _record(domain: str, score: float, day: int = 1) -> MisinformationRecord:
    return MisinformationRecord(
        domain=domain,
        url=f"https://{domain}/story",
        trust_score=score,
        timestamp=datetime(2025, 1, day, tzinfo=timezone.utc),
    )


def test_lookup_missing(memory: MisinformationMemory):
    assert memory.lookup("x.com") is None
    assert memory.lookup("") is None


def test_latest_write_wins(memory: MisinformationMemory):
    memory.upsert(_record("x.com", 30, day=1))
    memory.upsert(_record("x.com", 80, day=2))
    record = memory.lookup("x.com")
    assert record is not None
    assert record.trust_score == 80
    assert len(memory.all()) == 1


def test_domain_key_is_case_insensitive(memory: MisinformationMemory):
    memory.upsert(_record("News.Example.COM", 20))
    assert memory.lookup("news.example.com").trust_score == 20


def test_persists_across_instances(store: LocalStore, memory: MisinformationMemory):
    memory.upsert(_record("bad.example", 10))
    reopened = MisinformationMemory(store, "alice")
    assert reopened.lookup("bad.example").trust_score == 10
    assert MisinformationMemory(store, "bob").lookup("bad.example") is None


def test_all_newest_first(memory: MisinformationMemory):
    memory.upsert(_record("a.com", 10, day=1))
    memory.upsert(_record("b.com", 20, day=5))
    assert [r.domain for r in memory.all()] == ["b.com", "a.com"]


def test_lookup_storage_failure_reads_as_absent(memory: MisinformationMemory, monkeypatch):
    def broken(*args, **kwargs):
        raise StorageError("disk gone")

    monkeypatch.setattr(LocalStore, "load", broken)
    assert memory.lookup("x.com") is None


def test_corrupt_memory_reads_as_absent(store: LocalStore, memory: MisinformationMemory):
    store.save("alice", "misinformation", '{"records": {"x.com": {"domain": 5}}}')
    assert memory.lookup("x.com") is None
