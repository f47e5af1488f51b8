"""
公共夹具：每个用例使用全新的内存存储，stub 认证下 ADMIN_TOKEN 为管理员。
"""
import pytest

from jobshield.scams.store import MemoryScamStore, reset_store

ADMIN_TOKEN = "admin-token-test"


@pytest.fixture(autouse=True)
def store(monkeypatch):
    monkeypatch.delenv("JOBSHIELD_AUTH_URL", raising=False)
    monkeypatch.delenv("JOBSHIELD_STORE", raising=False)
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("JOBSHIELD_ADMIN_TOKENS", ADMIN_TOKEN)
    s = MemoryScamStore()
    reset_store(s)
    yield s
    reset_store(None)
