"""
诈骗举报登记与生命周期：REPORTED →（UNDER_REVIEW）→ VERIFIED，只前进。

- 手动举报：必填 title / companyName / scamType；(title, companyName[, url]) 相同视为重复，返回已有 id。
- AI 自动举报：不去重，每次封禁决策新增一条（confidence ≥ 0.95 时直接为 VERIFIED）。
- 核实：仅管理员，单向，记录 verified_at / verified_by。
"""
from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import Field

from jobshield.scams.errors import InvalidStatusTransition, ReportValidationError, ScamNotFoundError
from jobshield.scams.policy import report_status_for
from jobshield.scams.schemas import (
    CamelModel,
    FlaggedJob,
    HeuristicResult,
    JobPosting,
    STATUS_RANK,
    ScamReport,
    ScamStatus,
    ScamType,
    Severity,
    utcnow,
)
from jobshield.scams.store import ScamStore, get_store

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Title, company name, and scam type are required"
DUPLICATE_MESSAGE = "This scam has already been reported"
RECENT_WINDOW = timedelta(days=30)
MAX_PAGE_SIZE = 100


class ScamReportInput(CamelModel):
    """手动举报入参；必填项在 create_report 中校验，以便返回统一的 400 文案。"""
    title: Optional[str] = None
    company_name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    salary: Optional[str] = None
    employment_type: Optional[str] = None
    scam_type: Optional[str] = None
    evidence_urls: list[str] = Field(default_factory=list)
    notes: Optional[str] = None


@dataclass
class ReportOutcome:
    """手动举报结果：成功则 report 有值；重复则 existing_scam_id 有值。"""
    report: Optional[ScamReport] = None
    existing_scam_id: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.report is not None


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def find_duplicate(
    title: str,
    company_name: str,
    url: Optional[str] = None,
    store: ScamStore | None = None,
) -> Optional[ScamReport]:
    """(title, companyName) 完全相同，且传了 url 时 url 也相同，即视为同一举报。"""
    store = store or get_store()
    for report in store.list_reports():
        if report.title != title or report.company_name != company_name:
            continue
        if url and report.url != url:
            continue
        return report
    return None


def create_report(payload: ScamReportInput, reported_by: str, store: ScamStore | None = None) -> ReportOutcome:
    """手动举报：校验必填 → 去重 → 写入。重复时不写入，返回已有举报 id。"""
    store = store or get_store()
    title = _clean(payload.title)
    company_name = _clean(payload.company_name)
    raw_type = _clean(payload.scam_type)
    if not title or not company_name or not raw_type:
        raise ReportValidationError(REQUIRED_FIELDS_MESSAGE)
    try:
        scam_type = ScamType(raw_type.lower())
    except ValueError:
        allowed = ", ".join(t.value for t in ScamType)
        raise ReportValidationError(f"Unknown scam type {raw_type!r}; expected one of: {allowed}")

    url = _clean(payload.url)
    existing = find_duplicate(title, company_name, url, store)
    if existing:
        logger.info("Duplicate scam report suppressed: existing=%s reported_by=%s", existing.id, reported_by)
        return ReportOutcome(existing_scam_id=existing.id)

    report = ScamReport(
        reported_by=reported_by,
        title=title,
        company_name=company_name,
        location=_clean(payload.location),
        description=_clean(payload.description),
        url=url,
        email=_clean(payload.email),
        phone=_clean(payload.phone),
        salary=_clean(payload.salary),
        employment_type=_clean(payload.employment_type),
        scam_type=scam_type,
        evidence_urls=[u.strip() for u in payload.evidence_urls if u and u.strip()],
        notes=_clean(payload.notes),
    )
    store.upsert_report(report)
    logger.info(
        "New scam reported: id=%s reported_by=%s company=%s type=%s",
        report.id, reported_by, report.company_name, report.scam_type.value,
    )
    return ReportOutcome(report=report)


def _mark_verified(report: ScamReport, verified_by: str) -> ScamReport:
    report.status = ScamStatus.VERIFIED
    report.verified_at = utcnow()
    report.verified_by = verified_by
    return report


def auto_report(
    posting: JobPosting,
    analysis: HeuristicResult,
    reported_by: str,
    store: ScamStore | None = None,
) -> ScamReport:
    """
    AI 高置信度自动举报：不做去重，每次封禁决策都新增一条举报。
    confidence ≥ 0.95 时直接为 VERIFIED，否则为 REPORTED。
    """
    store = store or get_store()
    status = report_status_for(analysis.confidence)
    report = ScamReport(
        reported_by=reported_by,
        title=posting.title.strip(),
        company_name=posting.company.strip(),
        location=_clean(posting.location),
        description=_clean(posting.description),
        url=_clean(posting.url),
        email=_clean(posting.contact_email),
        phone=_clean(posting.contact_phone),
        salary=_clean(posting.salary),
        employment_type=_clean(posting.job_type),
        scam_type=analysis.scam_type,
        severity=analysis.severity,
        notes=analysis.reasoning,
    )
    if status is ScamStatus.VERIFIED:
        _mark_verified(report, reported_by)
    store.upsert_report(report)
    logger.info(
        "Scam auto-reported: id=%s status=%s confidence=%.2f company=%s",
        report.id, report.status.value, analysis.confidence, report.company_name,
    )
    return report


def report_from_flagged(job: FlaggedJob, admin_id: str, store: ScamStore | None = None) -> ScamReport:
    """管理员审核判定为诈骗的职位：建立（或复用并核实）举报，状态 VERIFIED。"""
    store = store or get_store()
    existing = find_duplicate(job.title, job.company_name, job.url, store)
    if existing:
        if existing.status is not ScamStatus.VERIFIED:
            store.upsert_report(_mark_verified(existing, admin_id))
        return existing
    report = ScamReport(
        reported_by=job.flagged_by,
        title=job.title,
        company_name=job.company_name,
        description=job.description,
        url=job.url,
        email=job.contact_email,
        severity=Severity.HIGH,
        notes=job.flagged_reason,
    )
    store.upsert_report(_mark_verified(report, admin_id))
    logger.info("Scam report created from flagged job %s: id=%s", job.id, report.id)
    return report


def get_report(scam_id: str, store: ScamStore | None = None) -> ScamReport:
    store = store or get_store()
    report = store.get_report(scam_id)
    if report is None:
        raise ScamNotFoundError(scam_id)
    return report


def verify(scam_id: str, admin_id: str, store: ScamStore | None = None) -> ScamReport:
    """管理员核实举报；已核实的举报原样返回。"""
    store = store or get_store()
    report = get_report(scam_id, store)
    if report.status is ScamStatus.VERIFIED:
        return report
    store.upsert_report(_mark_verified(report, admin_id))
    logger.info("Scam verified: id=%s verified_by=%s company=%s", report.id, admin_id, report.company_name)
    return report


def start_review(scam_id: str, admin_id: str, store: ScamStore | None = None) -> ScamReport:
    """管理员开始复核：REPORTED → UNDER_REVIEW；已是 UNDER_REVIEW 原样返回，已核实则拒绝。"""
    store = store or get_store()
    report = get_report(scam_id, store)
    target = ScamStatus.UNDER_REVIEW
    if report.status is target:
        return report
    if STATUS_RANK[report.status] > STATUS_RANK[target]:
        raise InvalidStatusTransition(f"cannot move {report.status.value} report back to {target.value}")
    report.status = target
    store.upsert_report(report)
    logger.info("Scam under review: id=%s by=%s", report.id, admin_id)
    return report


def list_reports(
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    severity: Optional[str] = None,
    scam_type: Optional[str] = None,
    store: ScamStore | None = None,
) -> tuple[list[ScamReport], dict[str, Any]]:
    """分页列出举报（按创建时间倒序），可按 status / severity / scamType 过滤。"""
    store = store or get_store()
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    reports = [
        r for r in store.list_reports()
        if (not status or r.status.value == status.upper())
        and (not severity or r.severity.value == severity.upper())
        and (not scam_type or r.scam_type.value == scam_type.lower())
    ]
    reports.sort(key=lambda r: r.created_at, reverse=True)
    total = len(reports)
    offset = (page - 1) * limit
    items = reports[offset:offset + limit]
    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit),
        "hasMore": offset + len(items) < total,
    }
    return items, pagination


def stats(store: ScamStore | None = None, now: datetime | None = None) -> dict[str, Any]:
    """举报统计：总数、已核实数、近 30 天新增、前 5 类诈骗类型、严重度与状态分布。"""
    store = store or get_store()
    now = now or utcnow()
    reports = store.list_reports()
    by_type = Counter(r.scam_type.value for r in reports)
    by_severity = Counter(r.severity.value for r in reports)
    by_status = Counter(r.status.value for r in reports)
    return {
        "totalReports": len(reports),
        "verifiedScams": by_status.get(ScamStatus.VERIFIED.value, 0),
        "recentReports": sum(1 for r in reports if r.created_at >= now - RECENT_WINDOW),
        "topScamTypes": [{"type": t, "count": c} for t, c in by_type.most_common(5)],
        "severityDistribution": [{"severity": s, "count": c} for s, c in by_severity.items()],
        "statusDistribution": [{"status": s, "count": c} for s, c in by_status.items()],
    }
