"""
JobShield HTTP 入口：职位诈骗治理接口（/scams）。

- 用户：手动举报、相似举报检查、AI 职位分析、封禁查询、举报列表与统计、我的警告。
- 管理员：核实举报、开始复核、处理审核队列、封禁名单统计。

统一返回 {success, data}；错误返回 {success: false, error}，状态码保持 401 / 403 / 400 / 404 / 409。
启动：uvicorn jobshield.api.app:app --host 127.0.0.1 --port 8010
"""
import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jobshield.core.config import log_level
from jobshield.scams import analysis, bans, matching, reports, review
from jobshield.scams.errors import (
    AlreadyReviewedError,
    FlaggedJobNotFoundError,
    InvalidStatusTransition,
    ReportValidationError,
    ScamNotFoundError,
    ScamServiceError,
    WarningNotFoundError,
)
from jobshield.scams.reports import DUPLICATE_MESSAGE, ScamReportInput
from jobshield.scams.schemas import MatchCandidate, ReviewAction

from .auth import AuthContext, get_auth, require_admin
from .schemas import AnalyzeJobRequest, CheckBannedRequest, FlaggedReviewRequest

logging.basicConfig(
    level=log_level(),
    format="%(asctime)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="JobShield API",
    description="职位诈骗治理：规则打分、自动封禁、人工审核、举报登记与用户警告",
    version="0.1.0",
)

_ERROR_STATUS: dict[type, int] = {
    ReportValidationError: 400,
    ScamNotFoundError: 404,
    FlaggedJobNotFoundError: 404,
    WarningNotFoundError: 404,
    AlreadyReviewedError: 409,
    InvalidStatusTransition: 409,
}


def _ok(data, message: str | None = None) -> dict:
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def _error(status_code: int, error: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error}, headers=headers)


@app.middleware("http")
async def log_scam_requests(request: Request, call_next):
    if request.url.path.startswith("/scams"):
        logger.info("[ScamTracker] %s %s", request.method, request.url.path)
    return await call_next(request)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return _error(400, "; ".join(parts) or "Invalid request")


@app.exception_handler(ScamServiceError)
async def scam_service_error(request: Request, exc: ScamServiceError):
    status = _ERROR_STATUS.get(type(exc), 500)
    if status == 500:
        logger.error("Unhandled scam service error: %s", exc)
    return _error(status, str(exc))


@app.get("/health")
def health():
    """探活。"""
    return {"status": "ok", "service": "jobshield"}


@app.get("/scams")
def list_scams(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=reports.MAX_PAGE_SIZE),
    status: str | None = None,
    severity: str | None = None,
    scam_type: str | None = Query(None, alias="scamType"),
    auth: AuthContext = Depends(get_auth),
):
    """举报列表（分页，按创建时间倒序），可按 status / severity / scamType 过滤。"""
    items, pagination = reports.list_reports(page, limit, status, severity, scam_type)
    return _ok({"scams": [r.to_api() for r in items], "pagination": pagination})


@app.post("/scams/report")
def report_scam(body: ScamReportInput, auth: AuthContext = Depends(get_auth)):
    """手动举报。重复举报返回 success=false 与已有举报 id（HTTP 200）。"""
    outcome = reports.create_report(body, reported_by=auth.user_id)
    if not outcome.success:
        return {
            "success": False,
            "error": DUPLICATE_MESSAGE,
            "data": {"existingScamId": outcome.existing_scam_id},
        }
    return _ok(
        outcome.report.to_api(),
        "Scam reported successfully. Thank you for helping protect the community!",
    )


@app.post("/scams/check")
def check_scam(body: MatchCandidate, auth: AuthContext = Depends(get_auth)):
    """检查职位是否与已有举报相似；中高风险时记录对当前用户的警告。"""
    return _ok(matching.check(body, user_id=auth.user_id).to_api())


@app.post("/scams/analyze-job")
def analyze_job(body: AnalyzeJobRequest, auth: AuthContext = Depends(get_auth)):
    """规则打分 → 执行策略：approved / flagged_for_review / banned。"""
    outcome = analysis.analyze(body.job_data, requested_by=auth.user_id)
    return _ok(outcome.to_api())


@app.post("/scams/check-banned")
def check_banned(body: CheckBannedRequest, auth: AuthContext = Depends(get_auth)):
    """查询公司 / URL / 邮箱是否已被封禁。"""
    return _ok(bans.check_banned(body.company, body.url, body.email).to_api())


@app.get("/scams/stats")
def scam_stats(auth: AuthContext = Depends(get_auth)):
    return _ok(reports.stats())


@app.get("/scams/my-warnings")
def my_warnings(auth: AuthContext = Depends(get_auth)):
    """当前用户未忽略的警告，按时间倒序。"""
    return _ok(matching.my_warnings(auth.user_id))


@app.put("/scams/my-warnings/{scam_id}/dismiss")
def dismiss_warning(scam_id: str, auth: AuthContext = Depends(get_auth)):
    return _ok(matching.dismiss_warning(auth.user_id, scam_id).to_api())


@app.get("/scams/flagged-jobs")
def flagged_jobs(reviewed: bool | None = None, auth: AuthContext = Depends(require_admin)):
    """审核队列（管理员）；reviewed=false 只看未处理的。"""
    return _ok([j.to_api() for j in review.list_flagged(reviewed)])


@app.put("/scams/flagged-jobs/{job_id}/review")
def review_flagged_job(job_id: str, body: FlaggedReviewRequest, auth: AuthContext = Depends(require_admin)):
    """处理待审核职位（管理员）：approve / ban / dismiss，每条只能处理一次。"""
    try:
        action = ReviewAction((body.action or "").strip().lower())
    except ValueError:
        allowed = ", ".join(a.value for a in ReviewAction)
        raise HTTPException(status_code=400, detail=f"action must be one of: {allowed}")
    return _ok(review.review(job_id, action, admin_id=auth.user_id).to_api())


@app.get("/scams/banned-entities/stats")
def banned_entity_stats(auth: AuthContext = Depends(require_admin)):
    return _ok(bans.banned_entity_stats())


@app.put("/scams/{scam_id}/verify")
def verify_scam(scam_id: str, auth: AuthContext = Depends(require_admin)):
    """核实举报（管理员），单向。"""
    return _ok(reports.verify(scam_id, admin_id=auth.user_id).to_api(), "Scam verified successfully")


@app.put("/scams/{scam_id}/review")
def start_scam_review(scam_id: str, auth: AuthContext = Depends(require_admin)):
    """开始复核（管理员）：REPORTED → UNDER_REVIEW。"""
    return _ok(reports.start_review(scam_id, admin_id=auth.user_id).to_api())
