"""
AI 职位分析编排：规则打分 → 执行策略 → 副作用（封禁 / 进审核队列 / 无）→ 返回结果。
"""
from __future__ import annotations

import logging

from jobshield.core.config import system_user_id
from jobshield.scams import bans, reports, review
from jobshield.scams.heuristics import score
from jobshield.scams.policy import decide
from jobshield.scams.schemas import AnalysisOutcome, EnforcementAction, JobPosting
from jobshield.scams.store import ScamStore, get_store

logger = logging.getLogger(__name__)


def analyze(posting: JobPosting, requested_by: str | None = None, store: ScamStore | None = None) -> AnalysisOutcome:
    """
    分析单条职位并执行对应动作。
    封禁时先自动举报（≥0.95 直接 VERIFIED）再传播封禁；封禁名单写入失败不影响返回。
    """
    store = store or get_store()
    result = score(posting)
    action = decide(result)
    system = system_user_id()
    outcome = AnalysisOutcome(is_scam=result.is_scam, analysis=result, action=action)

    if action is EnforcementAction.BAN:
        report = reports.auto_report(posting, result, system, store)
        bans.ban(posting, result, banned_by=system, store=store)
        outcome.scam_report_id = report.id
    elif action is EnforcementAction.FLAG:
        outcome.flagged_job_id = review.flag(posting, result, flagged_by=system, store=store).id

    logger.info(
        "Job analysed: company=%s confidence=%.2f action=%s requested_by=%s",
        posting.company, result.confidence, action.value, requested_by or "-",
    )
    return outcome
