"""
诈骗举报、封禁名单、审核队列与用户警告的数据模型。
对外 JSON 字段统一为 camelCase（reportedBy、companyName 等），Python 侧使用 snake_case。
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class ScamType(str, Enum):
    FAKE_POSITION = "fake_position"
    PAYMENT_SCAM = "payment_scam"
    IDENTITY_THEFT = "identity_theft"
    PYRAMID_SCHEME = "pyramid_scheme"
    FAKE_COMPANY = "fake_company"
    PHISHING = "phishing"
    OTHER = "other"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


# 排序用：数值越大越严重
SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class ScamStatus(str, Enum):
    REPORTED = "REPORTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    VERIFIED = "VERIFIED"


# 状态只能前进：REPORTED → UNDER_REVIEW → VERIFIED
STATUS_RANK: dict[ScamStatus, int] = {
    ScamStatus.REPORTED: 0,
    ScamStatus.UNDER_REVIEW: 1,
    ScamStatus.VERIFIED: 2,
}


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class EnforcementAction(str, Enum):
    """执行策略的三种结果；取值即 analyze-job 响应中的 action。"""
    APPROVE = "approved"
    FLAG = "flagged_for_review"
    BAN = "banned"


class ReviewAction(str, Enum):
    """管理员对待审核职位的处理动作。"""
    APPROVE = "approve"
    BAN = "ban"
    DISMISS = "dismiss"


class BanKind(str, Enum):
    COMPANY = "company"
    URL = "url"
    EMAIL = "email"


class CamelModel(BaseModel):
    """camelCase 别名 + 允许按字段名赋值。"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class JobPosting(CamelModel):
    """待分析的职位（analyze-job 的 jobData）。"""
    title: str = Field(..., min_length=1, description="职位名称")
    company: str = Field(..., min_length=1, description="公司名称")
    description: str = Field(..., description="职位描述全文")
    location: Optional[str] = Field(None, description="工作地点")
    url: Optional[str] = Field(None, description="职位链接")
    contact_email: Optional[str] = Field(None, description="联系邮箱")
    contact_phone: Optional[str] = Field(None, description="联系电话")
    salary: Optional[str] = Field(None, description="薪资描述，如 $25/hour")
    job_type: Optional[str] = Field(None, description="雇佣类型")
    requirements: list[str] = Field(default_factory=list, description="任职要求")
    benefits: list[str] = Field(default_factory=list, description="福利")


class HeuristicResult(CamelModel):
    """规则打分结果（瞬时，不落库）。"""
    is_scam: bool = Field(..., description="confidence ≥ 0.4 即判为诈骗")
    confidence: float = Field(..., ge=0.0, le=1.0, description="命中权重之和，封顶 1.0")
    scam_type: ScamType = Field(ScamType.FAKE_POSITION, description="按优先级选出的诈骗类型")
    severity: Severity = Field(Severity.LOW, description="按 confidence 分档")
    reasoning: str = Field("", description="命中规则的拼接说明")
    red_flags: list[str] = Field(default_factory=list, description="命中的规则标签")


class ScamReport(CamelModel):
    """诈骗举报：审计记录，只追加；状态只前进。"""
    id: str = Field(default_factory=new_id)
    reported_by: str = Field(..., description="举报人 user id（AI 自动举报为系统用户）")
    title: str
    company_name: str
    location: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    salary: Optional[str] = None
    employment_type: Optional[str] = None
    scam_type: ScamType = ScamType.FAKE_POSITION
    severity: Severity = Severity.MEDIUM
    status: ScamStatus = ScamStatus.REPORTED
    evidence_urls: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    warning_count: int = Field(0, ge=0, description="因匹配而向用户展示警告的次数")
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)


class BannedEntity(CamelModel):
    """封禁名单中的一条：按自然键（公司名 / URL / 邮箱）唯一，重复封禁覆盖。"""
    kind: BanKind
    key: str = Field(..., description="规范化后的自然键")
    reason: str
    banned_at: datetime = Field(default_factory=utcnow)
    banned_by: str


class FlaggedJob(CamelModel):
    """待人工审核的职位；管理员审核后只改一次。"""
    id: str = Field(default_factory=new_id)
    title: str
    company_name: str
    description: str
    url: Optional[str] = None
    contact_email: Optional[str] = None
    flagged_reason: str
    ai_confidence: float = Field(..., ge=0.0, le=1.0)
    flagged_by: str
    reviewed: bool = False
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    review_action: Optional[ReviewAction] = None
    created_at: datetime = Field(default_factory=utcnow)


class UserScamWarning(CamelModel):
    """用户被警告记录：(user_id, scam_id) 唯一，重复警告只刷新 warned_at。"""
    user_id: str
    scam_id: str
    warned_at: datetime = Field(default_factory=utcnow)
    dismissed: bool = False


class ScamSummary(CamelModel):
    """匹配结果与我的警告中展示的举报摘要。"""
    id: str
    reported_by: str
    title: str
    company_name: str
    scam_type: ScamType
    severity: Severity
    status: ScamStatus
    warning_count: int = 0
    created_at: datetime

    @classmethod
    def of(cls, report: ScamReport) -> "ScamSummary":
        return cls(
            id=report.id,
            reported_by=report.reported_by,
            title=report.title,
            company_name=report.company_name,
            scam_type=report.scam_type,
            severity=report.severity,
            status=report.status,
            warning_count=report.warning_count,
            created_at=report.created_at,
        )


class MatchCandidate(CamelModel):
    """POST /scams/check 的待查职位。"""
    title: str = Field(..., min_length=1)
    company_name: str = Field(..., min_length=1)
    url: Optional[str] = None
    email: Optional[str] = None


class CheckResult(CamelModel):
    risk_level: RiskLevel
    warnings: list[str] = Field(default_factory=list)
    matching_scams: list[ScamSummary] = Field(default_factory=list)


class BannedCheckResult(CamelModel):
    is_banned: bool
    reasons: list[str] = Field(default_factory=list)
    banned_company: Optional[BannedEntity] = None
    banned_url: Optional[BannedEntity] = None
    banned_email: Optional[BannedEntity] = None


class AnalysisOutcome(CamelModel):
    """analyze-job 的结果：打分 + 执行动作，并附带副作用产生的记录 id。"""
    is_scam: bool
    analysis: HeuristicResult
    action: EnforcementAction
    scam_report_id: Optional[str] = None
    flagged_job_id: Optional[str] = None
