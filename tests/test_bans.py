"""
封禁名单单测：按自然键幂等覆盖、可选 URL / 邮箱、单张名单写入失败不影响其余、封禁查询与统计。
"""
from jobshield.scams.bans import ban, ban_entities, banned_entity_stats, check_banned, upsert_ban
from jobshield.scams.schemas import BanKind, HeuristicResult, JobPosting, ScamType, Severity
from jobshield.scams.store import MemoryScamStore

ANALYSIS = HeuristicResult(
    is_scam=True,
    confidence=0.9,
    scam_type=ScamType.PAYMENT_SCAM,
    severity=Severity.CRITICAL,
    reasoning="Red flags detected: Requests upfront payment",
)


class FailingUrlStore(MemoryScamStore):
    """URL 名单写入总是失败的存储。"""

    def upsert_ban(self, entity):
        if entity.kind is BanKind.URL:
            raise RuntimeError("url registry unavailable")
        return super().upsert_ban(entity)


def test_reban_overwrites_single_record(store):
    upsert_ban(BanKind.COMPANY, "Quick Cash LLC", "first reason", "admin-1")
    upsert_ban(BanKind.COMPANY, "  quick cash llc ", "second reason", "admin-2")
    records = store.list_bans(BanKind.COMPANY)
    assert len(records) == 1
    assert records[0].key == "quick cash llc"
    assert records[0].reason == "second reason"
    assert records[0].banned_by == "admin-2"


def test_url_key_ignores_trailing_slash(store):
    upsert_ban(BanKind.URL, "https://Scam.example/jobs/", "r", "a")
    assert check_banned(url="https://scam.example/jobs").is_banned is True


def test_ban_only_writes_present_identifiers(store):
    posting = JobPosting(title="t", company="Quick Cash LLC", description="d")
    written = ban(posting, ANALYSIS, banned_by="system-ai")
    assert written == [BanKind.COMPANY]
    assert store.count_bans(BanKind.URL) == 0
    assert store.count_bans(BanKind.EMAIL) == 0
    entity = store.get_ban(BanKind.COMPANY, "quick cash llc")
    assert "payment_scam" in entity.reason
    assert "90%" in entity.reason


def test_ban_all_three_registries(store):
    posting = JobPosting(
        title="t", company="Quick Cash LLC", description="d",
        url="https://quick-cash.tk", contact_email="boss@gmail.com",
    )
    assert ban(posting, ANALYSIS, banned_by="system-ai") == [BanKind.COMPANY, BanKind.URL, BanKind.EMAIL]
    result = check_banned(company="QUICK CASH LLC", url="https://quick-cash.tk", email="boss@gmail.com")
    assert result.is_banned is True
    assert len(result.reasons) == 3
    assert result.banned_company.kind is BanKind.COMPANY
    assert result.banned_email.key == "boss@gmail.com"


def test_registry_failure_is_swallowed():
    failing = FailingUrlStore()
    written = ban_entities(
        company="Quick Cash LLC",
        url="https://quick-cash.tk",
        email="boss@gmail.com",
        reason="r",
        banned_by="system-ai",
        store=failing,
    )
    assert written == [BanKind.COMPANY, BanKind.EMAIL]
    assert failing.count_bans(BanKind.EMAIL) == 1


def test_check_banned_clean(store):
    result = check_banned(company="Acme Corp", url=None, email="")
    assert result.is_banned is False
    assert result.reasons == []
    assert result.banned_company is None


def test_banned_entity_stats(store):
    ban_entities("A Co", "https://a.example", None, "r1", "admin")
    ban_entities("B Co", None, "x@gmail.com", "r2", "admin")
    stats = banned_entity_stats()
    assert stats["bannedCompanies"] == 2
    assert stats["bannedUrls"] == 1
    assert stats["bannedEmails"] == 1
    assert stats["total"] == 4
    assert len(stats["recentBans"]) == 4
    assert "bannedAt" in stats["recentBans"][0]
