"""
/scams 接口的请求模型（其余复用 jobshield.scams.schemas 与 reports.ScamReportInput）。
"""
from typing import Optional

from pydantic import Field

from jobshield.scams.schemas import CamelModel, JobPosting


class AnalyzeJobRequest(CamelModel):
    """POST /scams/analyze-job 请求：{jobData: {...}}。"""
    job_data: JobPosting = Field(..., description="待分析职位")


class CheckBannedRequest(CamelModel):
    """POST /scams/check-banned 请求；三项均可选。"""
    company: Optional[str] = Field(None, description="公司名")
    url: Optional[str] = Field(None, description="职位链接")
    email: Optional[str] = Field(None, description="联系邮箱")


class FlaggedReviewRequest(CamelModel):
    """PUT /scams/flagged-jobs/{id}/review 请求。"""
    action: str = Field(..., description="approve | ban | dismiss")
