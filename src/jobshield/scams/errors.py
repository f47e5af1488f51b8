"""诈骗治理领域异常；API 层负责映射为 HTTP 状态码。"""


class ScamServiceError(Exception):
    """领域异常基类。"""


class ReportValidationError(ScamServiceError):
    """举报缺少必填字段或取值非法（400）。"""


class ScamNotFoundError(ScamServiceError):
    def __init__(self, scam_id: str):
        super().__init__(f"scam report {scam_id} not found")
        self.scam_id = scam_id


class FlaggedJobNotFoundError(ScamServiceError):
    def __init__(self, job_id: str):
        super().__init__(f"flagged job {job_id} not found")
        self.job_id = job_id


class WarningNotFoundError(ScamServiceError):
    def __init__(self, user_id: str, scam_id: str):
        super().__init__(f"no warning for scam {scam_id}")
        self.user_id = user_id
        self.scam_id = scam_id


class AlreadyReviewedError(ScamServiceError):
    """待审核职位只能被处理一次（409）。"""


class InvalidStatusTransition(ScamServiceError):
    """举报状态只能前进（409）。"""
