"""
相似举报匹配与用户警告。

check()：对待查职位的 title / companyName / url / email 做不区分大小写的子串匹配，
只看状态为 REPORTED / VERIFIED / UNDER_REVIEW 的举报；排序为已核实优先、严重度降序、警告次数降序。
风险非 LOW 时，对前 3 条匹配分别 upsert 用户警告并给该举报的 warning_count 加 1（每次都加，不看是否新警告）。
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from jobshield.scams.errors import WarningNotFoundError
from jobshield.scams.schemas import (
    SEVERITY_RANK,
    CheckResult,
    MatchCandidate,
    RiskLevel,
    ScamReport,
    ScamStatus,
    ScamSummary,
    Severity,
    UserScamWarning,
    utcnow,
)
from jobshield.scams.store import ScamStore, get_store

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = frozenset({ScamStatus.REPORTED, ScamStatus.VERIFIED, ScamStatus.UNDER_REVIEW})
MAX_WARNED_MATCHES = 3

WARNING_VERIFIED = "This job posting matches verified scam reports"
WARNING_SIMILAR = "This job posting shows similarities to reported scams"
WARNING_CAUTION = "Similar reports found, exercise caution"


def _contains(haystack: Optional[str], needle: Optional[str]) -> bool:
    needle = (needle or "").strip().lower()
    return bool(needle) and needle in (haystack or "").lower()


def _is_match(report: ScamReport, candidate: MatchCandidate) -> bool:
    return (
        _contains(report.company_name, candidate.company_name)
        or _contains(report.title, candidate.title)
        or _contains(report.url, candidate.url)
        or _contains(report.email, candidate.email)
    )


def _rank(report: ScamReport) -> tuple[int, int, int]:
    return (
        0 if report.status is ScamStatus.VERIFIED else 1,
        -SEVERITY_RANK[report.severity],
        -report.warning_count,
    )


def find_matches(candidate: MatchCandidate, store: ScamStore | None = None) -> list[ScamReport]:
    store = store or get_store()
    matches = [r for r in store.list_reports() if r.status in ACTIVE_STATUSES and _is_match(r, candidate)]
    matches.sort(key=_rank)
    return matches


def assess_risk(matches: list[ScamReport]) -> tuple[RiskLevel, list[str]]:
    if not matches:
        return RiskLevel.LOW, []
    if any(r.status is ScamStatus.VERIFIED for r in matches):
        return RiskLevel.HIGH, [WARNING_VERIFIED]
    if any(r.severity in (Severity.HIGH, Severity.CRITICAL) for r in matches):
        return RiskLevel.MEDIUM, [WARNING_SIMILAR]
    return RiskLevel.LOW, [WARNING_CAUTION]


def record_warning(user_id: str, scam_id: str, store: ScamStore | None = None) -> tuple[UserScamWarning, bool]:
    """
    (user_id, scam_id) 唯一：已存在则只刷新 warned_at（dismissed 保持不变），否则新建。
    返回 (警告, 是否新建)。
    """
    store = store or get_store()
    existing = store.get_warning(user_id, scam_id)
    if existing:
        existing.warned_at = utcnow()
        return store.upsert_warning(existing), False
    return store.upsert_warning(UserScamWarning(user_id=user_id, scam_id=scam_id)), True


def check(candidate: MatchCandidate, user_id: str, store: ScamStore | None = None) -> CheckResult:
    store = store or get_store()
    matches = find_matches(candidate, store)
    risk, warnings = assess_risk(matches)
    if risk is not RiskLevel.LOW:
        for report in matches[:MAX_WARNED_MATCHES]:
            record_warning(user_id, report.id, store)
            store.increment_warning_count(report.id)
        logger.info(
            "User %s warned: risk=%s matches=%d company=%s",
            user_id, risk.value, len(matches), candidate.company_name,
        )
    return CheckResult(
        risk_level=risk,
        warnings=warnings,
        matching_scams=[ScamSummary.of(r) for r in matches],
    )


def my_warnings(user_id: str, store: ScamStore | None = None) -> list[dict[str, Any]]:
    """用户未忽略的警告，按 warned_at 倒序，每条附带举报摘要。"""
    store = store or get_store()
    active = [w for w in store.list_warnings(user_id) if not w.dismissed]
    active.sort(key=lambda w: w.warned_at, reverse=True)
    out: list[dict[str, Any]] = []
    for warning in active:
        report = store.get_report(warning.scam_id)
        item = warning.to_api()
        item["scam"] = ScamSummary.of(report).to_api() if report else None
        out.append(item)
    return out


def dismiss_warning(user_id: str, scam_id: str, store: ScamStore | None = None) -> UserScamWarning:
    store = store or get_store()
    warning = store.get_warning(user_id, scam_id)
    if warning is None:
        raise WarningNotFoundError(user_id, scam_id)
    if not warning.dismissed:
        warning.dismissed = True
        store.upsert_warning(warning)
    return warning
