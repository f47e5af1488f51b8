"""
存储单测：Redis 存储的键布局与 warning_count 原子累加（内存版假客户端），以及 get_store 的后端选择。
"""
from unittest.mock import patch

import pytest

from jobshield.scams.schemas import BanKind, BannedEntity, FlaggedJob, ScamReport, UserScamWarning
from jobshield.scams.store import MemoryScamStore, RedisScamStore, get_store, reset_store


class FakeRedis:
    """只实现存储用到的 hash 命令，值一律存为 str（等同 decode_responses=True）。"""

    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = {}

    def hget(self, name, key):
        return self.hashes.get(name, {}).get(key)

    def hset(self, name, key, value):
        self.hashes.setdefault(name, {})[key] = str(value)
        return 1

    def hsetnx(self, name, key, value):
        h = self.hashes.setdefault(name, {})
        if key in h:
            return 0
        h[key] = str(value)
        return 1

    def hvals(self, name):
        return list(self.hashes.get(name, {}).values())

    def hlen(self, name):
        return len(self.hashes.get(name, {}))

    def hexists(self, name, key):
        return key in self.hashes.get(name, {})

    def hincrby(self, name, key, amount=1):
        h = self.hashes.setdefault(name, {})
        h[key] = str(int(h.get(key, 0)) + amount)
        return int(h[key])


@pytest.fixture
def redis_store():
    return RedisScamStore(FakeRedis())


# ──────────────────────────────────────────────
# 1. Redis 存储
# ──────────────────────────────────────────────

class TestRedisStore:
    def test_report_roundtrip_and_key_layout(self, redis_store):
        report = redis_store.upsert_report(ScamReport(reported_by="u1", title="T", company_name="C"))
        assert report.id in redis_store._r.hashes["jobshield:reports"]
        assert redis_store._r.hashes["jobshield:report_warnings"][report.id] == "0"
        loaded = redis_store.get_report(report.id)
        assert loaded.title == "T"
        assert redis_store.count_reports() == 1
        assert redis_store.get_report("missing") is None

    def test_warning_count_survives_report_rewrite(self, redis_store):
        report = redis_store.upsert_report(ScamReport(reported_by="u1", title="T", company_name="C"))
        assert redis_store.increment_warning_count(report.id) == 1
        assert redis_store.increment_warning_count(report.id, by=2) == 3
        # 用旧副本（warning_count=0）覆盖举报，计数不应回退
        redis_store.upsert_report(report)
        assert redis_store.get_report(report.id).warning_count == 3
        assert [r.warning_count for r in redis_store.list_reports()] == [3]

    def test_increment_unknown_report(self, redis_store):
        assert redis_store.increment_warning_count("missing") == 0
        assert "jobshield:report_warnings" not in redis_store._r.hashes

    def test_bans_keyed_by_kind(self, redis_store):
        redis_store.upsert_ban(BannedEntity(kind=BanKind.EMAIL, key="a@gmail.com", reason="r", banned_by="x"))
        redis_store.upsert_ban(BannedEntity(kind=BanKind.EMAIL, key="a@gmail.com", reason="r2", banned_by="x"))
        assert redis_store.count_bans(BanKind.EMAIL) == 1
        assert redis_store.get_ban(BanKind.EMAIL, "a@gmail.com").reason == "r2"
        assert redis_store.get_ban(BanKind.COMPANY, "a@gmail.com") is None
        assert "jobshield:bans:email" in redis_store._r.hashes

    def test_flagged_jobs_and_warnings(self, redis_store):
        job = FlaggedJob(title="T", company_name="C", description="D", flagged_reason="r", ai_confidence=0.7, flagged_by="s")
        redis_store.upsert_flagged_job(job)
        assert redis_store.get_flagged_job(job.id).ai_confidence == 0.7
        assert len(redis_store.list_flagged_jobs()) == 1

        redis_store.upsert_warning(UserScamWarning(user_id="u1", scam_id="s1"))
        redis_store.upsert_warning(UserScamWarning(user_id="u1", scam_id="s1", dismissed=True))
        redis_store.upsert_warning(UserScamWarning(user_id="u2", scam_id="s1"))
        assert [w.dismissed for w in redis_store.list_warnings("u1")] == [True]
        assert redis_store.get_warning("u2", "s1") is not None
        assert "jobshield:warnings:u1" in redis_store._r.hashes


# ──────────────────────────────────────────────
# 2. 内存存储
# ──────────────────────────────────────────────

def test_memory_store_returns_copies():
    s = MemoryScamStore()
    report = s.upsert_report(ScamReport(reported_by="u1", title="T", company_name="C"))
    loaded = s.get_report(report.id)
    loaded.title = "changed"
    assert s.get_report(report.id).title == "T"
    assert s.increment_warning_count("missing") == 0


def test_memory_warning_count_survives_report_rewrite():
    s = MemoryScamStore()
    report = s.upsert_report(ScamReport(reported_by="u1", title="T", company_name="C"))
    stale = s.get_report(report.id)
    assert s.increment_warning_count(report.id) == 1
    assert s.increment_warning_count(report.id) == 2
    stale.notes = "reviewed"
    s.upsert_report(stale)
    loaded = s.get_report(report.id)
    assert loaded.warning_count == 2
    assert loaded.notes == "reviewed"


# ──────────────────────────────────────────────
# 3. 后端选择
# ──────────────────────────────────────────────

class TestGetStore:
    def test_default_is_memory(self):
        reset_store(None)
        assert isinstance(get_store(), MemoryScamStore)
        assert get_store() is get_store()

    def test_redis_without_url_fails(self, monkeypatch):
        reset_store(None)
        monkeypatch.setenv("JOBSHIELD_STORE", "redis")
        with pytest.raises(RuntimeError, match="REDIS_URL"):
            get_store()

    def test_redis_url_selects_redis(self, monkeypatch):
        reset_store(None)
        monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
        fake = RedisScamStore(FakeRedis())
        with patch.object(RedisScamStore, "from_url", return_value=fake) as from_url:
            assert get_store() is fake
        from_url.assert_called_once_with("redis://localhost:6379/0")
