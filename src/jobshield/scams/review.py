"""
人工审核队列：中等置信度（0.6–0.8）的职位进入此处，由管理员处理一次。

处理动作：approve（放行）、dismiss（驳回标记）、ban（封禁公司 / URL / 邮箱并建立已核实举报）。
"""
from __future__ import annotations

import logging
from typing import Optional

from jobshield.scams import bans, reports
from jobshield.scams.errors import AlreadyReviewedError, FlaggedJobNotFoundError
from jobshield.scams.schemas import FlaggedJob, HeuristicResult, JobPosting, ReviewAction, utcnow
from jobshield.scams.store import ScamStore, get_store

logger = logging.getLogger(__name__)


def flag(
    posting: JobPosting,
    analysis: HeuristicResult,
    flagged_by: str,
    store: ScamStore | None = None,
) -> FlaggedJob:
    store = store or get_store()
    job = FlaggedJob(
        title=posting.title.strip(),
        company_name=posting.company.strip(),
        description=posting.description,
        url=posting.url,
        contact_email=posting.contact_email,
        flagged_reason=analysis.reasoning,
        ai_confidence=analysis.confidence,
        flagged_by=flagged_by,
    )
    store.upsert_flagged_job(job)
    logger.info("Job flagged for review: id=%s confidence=%.2f company=%s", job.id, job.ai_confidence, job.company_name)
    return job


def list_flagged(reviewed: Optional[bool] = None, store: ScamStore | None = None) -> list[FlaggedJob]:
    """待审核列表，默认返回全部；按标记时间倒序。"""
    store = store or get_store()
    jobs = [j for j in store.list_flagged_jobs() if reviewed is None or j.reviewed == reviewed]
    jobs.sort(key=lambda j: j.created_at, reverse=True)
    return jobs


def review(job_id: str, action: ReviewAction, admin_id: str, store: ScamStore | None = None) -> FlaggedJob:
    """管理员处理待审核职位；同一条只能处理一次。"""
    store = store or get_store()
    job = store.get_flagged_job(job_id)
    if job is None:
        raise FlaggedJobNotFoundError(job_id)
    if job.reviewed:
        raise AlreadyReviewedError(f"flagged job {job_id} was already reviewed ({job.review_action.value})")

    job.reviewed = True
    job.reviewed_at = utcnow()
    job.reviewed_by = admin_id
    job.review_action = action
    store.upsert_flagged_job(job)

    if action is ReviewAction.BAN:
        reports.report_from_flagged(job, admin_id, store)
        bans.ban_entities(
            company=job.company_name,
            url=job.url,
            email=job.contact_email,
            reason=f"Confirmed by admin review: {job.flagged_reason}",
            banned_by=admin_id,
            store=store,
        )
    logger.info("Flagged job reviewed: id=%s action=%s by=%s", job.id, action.value, admin_id)
    return job
