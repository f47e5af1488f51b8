"""
职位诈骗治理：规则打分 + 执行策略 + 封禁名单 + 人工审核队列 + 举报登记 + 相似匹配与用户警告。
打分与策略为纯函数；其余模块经 ScamStore 读写，可用内存或 Redis。
"""
from .schemas import (
    AnalysisOutcome,
    EnforcementAction,
    HeuristicResult,
    JobPosting,
    ScamReport,
    ScamStatus,
    ScamType,
    Severity,
)
from .heuristics import score
from .policy import decide
from .analysis import analyze
from .store import ScamStore, get_store, reset_store

__all__ = [
    "AnalysisOutcome",
    "EnforcementAction",
    "HeuristicResult",
    "JobPosting",
    "ScamReport",
    "ScamStatus",
    "ScamType",
    "Severity",
    "score",
    "decide",
    "analyze",
    "ScamStore",
    "get_store",
    "reset_store",
]
