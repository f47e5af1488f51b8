"""
封禁传播与封禁查询。

ban()：公司名（必写）、URL（有则写）、邮箱（有则写）三张名单分别按自然键幂等 upsert，
无事务包裹；任一写入失败只记日志并跳过，不影响调用方（分析 / 举报）的主流程。
"""
from __future__ import annotations

import logging
from typing import Optional

from jobshield.scams.schemas import (
    BanKind,
    BannedCheckResult,
    BannedEntity,
    HeuristicResult,
    JobPosting,
    utcnow,
)
from jobshield.scams.store import ScamStore, get_store

logger = logging.getLogger(__name__)

_LABELS = {BanKind.COMPANY: "Company", BanKind.URL: "URL", BanKind.EMAIL: "Email"}


def normalize_key(kind: BanKind, value: str) -> str:
    """自然键规范化：去空白、小写；URL 去掉末尾的 /。"""
    key = (value or "").strip().lower()
    if kind is BanKind.URL:
        key = key.rstrip("/")
    return key


def upsert_ban(
    kind: BanKind,
    value: str,
    reason: str,
    banned_by: str,
    store: ScamStore | None = None,
) -> BannedEntity:
    """单张名单的幂等写入：已存在则覆盖 reason / banned_at / banned_by。"""
    store = store or get_store()
    entity = BannedEntity(kind=kind, key=normalize_key(kind, value), reason=reason, banned_at=utcnow(), banned_by=banned_by)
    return store.upsert_ban(entity)


def ban_entities(
    company: str,
    url: Optional[str],
    email: Optional[str],
    reason: str,
    banned_by: str,
    store: ScamStore | None = None,
) -> list[BanKind]:
    """
    依次写入公司 / URL / 邮箱名单，返回写入成功的名单。
    每次写入独立：失败记录异常后继续下一张，不向上抛出。
    """
    store = store or get_store()
    targets = [(BanKind.COMPANY, company), (BanKind.URL, url), (BanKind.EMAIL, email)]
    written: list[BanKind] = []
    for kind, value in targets:
        if not value or not value.strip():
            continue
        try:
            upsert_ban(kind, value, reason, banned_by, store)
            written.append(kind)
        except Exception:
            logger.exception("Failed to write %s ban for %r", kind.value, value)
    logger.info("Banned %s (%s): %s", company, ", ".join(k.value for k in written) or "none", reason)
    return written


def ban_reason(analysis: HeuristicResult) -> str:
    return (
        f"AI detected {analysis.scam_type.value} "
        f"(confidence {analysis.confidence:.0%}): {analysis.reasoning}"
    )


def ban(
    posting: JobPosting,
    analysis: HeuristicResult,
    banned_by: str,
    store: ScamStore | None = None,
) -> list[BanKind]:
    """按分析结果封禁职位的公司、URL、联系邮箱。"""
    return ban_entities(
        company=posting.company,
        url=posting.url,
        email=posting.contact_email,
        reason=ban_reason(analysis),
        banned_by=banned_by,
        store=store,
    )


def check_banned(
    company: Optional[str] = None,
    url: Optional[str] = None,
    email: Optional[str] = None,
    store: ScamStore | None = None,
) -> BannedCheckResult:
    """查询公司 / URL / 邮箱是否在封禁名单中（精确匹配规范化后的自然键）。"""
    store = store or get_store()
    found: dict[BanKind, Optional[BannedEntity]] = {}
    reasons: list[str] = []
    for kind, value in ((BanKind.COMPANY, company), (BanKind.URL, url), (BanKind.EMAIL, email)):
        entity = store.get_ban(kind, normalize_key(kind, value)) if value and value.strip() else None
        found[kind] = entity
        if entity:
            reasons.append(f"{_LABELS[kind]} is banned: {entity.reason}")
    return BannedCheckResult(
        is_banned=bool(reasons),
        reasons=reasons,
        banned_company=found[BanKind.COMPANY],
        banned_url=found[BanKind.URL],
        banned_email=found[BanKind.EMAIL],
    )


def banned_entity_stats(store: ScamStore | None = None, recent: int = 10) -> dict:
    """管理员统计：各名单数量与最近的封禁记录。"""
    store = store or get_store()
    counts = {kind.value: store.count_bans(kind) for kind in BanKind}
    latest: list[BannedEntity] = []
    for kind in BanKind:
        latest.extend(store.list_bans(kind))
    latest.sort(key=lambda e: e.banned_at, reverse=True)
    return {
        "bannedCompanies": counts[BanKind.COMPANY.value],
        "bannedUrls": counts[BanKind.URL.value],
        "bannedEmails": counts[BanKind.EMAIL.value],
        "total": sum(counts.values()),
        "recentBans": [e.to_api() for e in latest[:recent]],
    }
