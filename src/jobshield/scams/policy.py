"""
执行策略：按 confidence 把打分结果映射为 放行 / 待审核 / 封禁。纯函数，副作用由调用方执行。

[0, 0.6) 放行；[0.6, 0.8) 进人工审核队列；[0.8, 1.0] 自动举报并封禁。
自动举报在 confidence ≥ 0.95 时直接为 VERIFIED，否则为 REPORTED。
"""
from jobshield.scams.schemas import EnforcementAction, HeuristicResult, ScamStatus

FLAG_THRESHOLD = 0.6
BAN_THRESHOLD = 0.8
AUTO_VERIFY_THRESHOLD = 0.95


def decide(result: HeuristicResult) -> EnforcementAction:
    confidence = result.confidence
    if confidence >= BAN_THRESHOLD:
        return EnforcementAction.BAN
    if confidence >= FLAG_THRESHOLD:
        return EnforcementAction.FLAG
    return EnforcementAction.APPROVE


def report_status_for(confidence: float) -> ScamStatus:
    """AI 自动举报的初始状态。"""
    return ScamStatus.VERIFIED if confidence >= AUTO_VERIFY_THRESHOLD else ScamStatus.REPORTED
