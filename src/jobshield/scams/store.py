"""
诈骗治理存储：举报、三张封禁名单、审核队列、用户警告。

窄接口（每类实体 get / upsert / list / count），让打分与策略保持纯函数、可脱离数据库测试。
支持内存存储（默认）与 Redis（配置 REDIS_URL 或 JOBSHIELD_STORE=redis 时）。
Redis 键：jobshield:reports、jobshield:report_warnings、jobshield:bans:{kind}、
jobshield:flagged_jobs、jobshield:warnings:{user_id}，值为模型 JSON。
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import Lock
from typing import Any, Optional

from jobshield.core.config import get_redis_url, store_backend
from jobshield.scams.schemas import BanKind, BannedEntity, FlaggedJob, ScamReport, UserScamWarning

logger = logging.getLogger(__name__)


class ScamStore(ABC):
    """存储接口：所有读写都以模型副本进出，调用方修改返回值不影响已存数据。"""

    # ----- 举报 -----

    @abstractmethod
    def get_report(self, scam_id: str) -> Optional[ScamReport]:
        ...

    @abstractmethod
    def upsert_report(self, report: ScamReport) -> ScamReport:
        """按 id 覆盖写入；warning_count 只在首次写入时生效，改写举报不会覆盖已累加的计数。"""
        ...

    @abstractmethod
    def list_reports(self) -> list[ScamReport]:
        ...

    @abstractmethod
    def increment_warning_count(self, scam_id: str, by: int = 1) -> int:
        """原子地给举报的 warning_count 加 by，返回新值。"""
        ...

    def count_reports(self) -> int:
        return len(self.list_reports())

    # ----- 封禁名单 -----

    @abstractmethod
    def get_ban(self, kind: BanKind, key: str) -> Optional[BannedEntity]:
        ...

    @abstractmethod
    def upsert_ban(self, entity: BannedEntity) -> BannedEntity:
        """按 (kind, key) 覆盖写入：同一自然键只保留最后一次封禁。"""
        ...

    @abstractmethod
    def list_bans(self, kind: BanKind) -> list[BannedEntity]:
        ...

    def count_bans(self, kind: BanKind) -> int:
        return len(self.list_bans(kind))

    # ----- 审核队列 -----

    @abstractmethod
    def get_flagged_job(self, job_id: str) -> Optional[FlaggedJob]:
        ...

    @abstractmethod
    def upsert_flagged_job(self, job: FlaggedJob) -> FlaggedJob:
        ...

    @abstractmethod
    def list_flagged_jobs(self) -> list[FlaggedJob]:
        ...

    # ----- 用户警告 -----

    @abstractmethod
    def get_warning(self, user_id: str, scam_id: str) -> Optional[UserScamWarning]:
        ...

    @abstractmethod
    def upsert_warning(self, warning: UserScamWarning) -> UserScamWarning:
        ...

    @abstractmethod
    def list_warnings(self, user_id: str) -> list[UserScamWarning]:
        ...


class MemoryScamStore(ScamStore):
    """进程内存储（单机）；FastAPI 同步路由在线程池执行，读写加锁。"""

    def __init__(self) -> None:
        self._lock = Lock()
        self._reports: dict[str, ScamReport] = {}
        self._bans: dict[BanKind, dict[str, BannedEntity]] = {kind: {} for kind in BanKind}
        self._flagged: dict[str, FlaggedJob] = {}
        self._warnings: dict[tuple[str, str], UserScamWarning] = {}

    def get_report(self, scam_id: str) -> Optional[ScamReport]:
        with self._lock:
            report = self._reports.get(scam_id)
            return report.model_copy(deep=True) if report else None

    def upsert_report(self, report: ScamReport) -> ScamReport:
        with self._lock:
            stored = report.model_copy(deep=True)
            existing = self._reports.get(report.id)
            # 计数只在首次写入时取调用方的值，之后只由 increment_warning_count 修改
            if existing is not None:
                stored.warning_count = existing.warning_count
            self._reports[report.id] = stored
        return report

    def list_reports(self) -> list[ScamReport]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._reports.values()]

    def increment_warning_count(self, scam_id: str, by: int = 1) -> int:
        with self._lock:
            report = self._reports.get(scam_id)
            if report is None:
                return 0
            report.warning_count += by
            return report.warning_count

    def get_ban(self, kind: BanKind, key: str) -> Optional[BannedEntity]:
        with self._lock:
            entity = self._bans[kind].get(key)
            return entity.model_copy() if entity else None

    def upsert_ban(self, entity: BannedEntity) -> BannedEntity:
        with self._lock:
            self._bans[entity.kind][entity.key] = entity.model_copy()
        return entity

    def list_bans(self, kind: BanKind) -> list[BannedEntity]:
        with self._lock:
            return [e.model_copy() for e in self._bans[kind].values()]

    def get_flagged_job(self, job_id: str) -> Optional[FlaggedJob]:
        with self._lock:
            job = self._flagged.get(job_id)
            return job.model_copy() if job else None

    def upsert_flagged_job(self, job: FlaggedJob) -> FlaggedJob:
        with self._lock:
            self._flagged[job.id] = job.model_copy()
        return job

    def list_flagged_jobs(self) -> list[FlaggedJob]:
        with self._lock:
            return [j.model_copy() for j in self._flagged.values()]

    def get_warning(self, user_id: str, scam_id: str) -> Optional[UserScamWarning]:
        with self._lock:
            warning = self._warnings.get((user_id, scam_id))
            return warning.model_copy() if warning else None

    def upsert_warning(self, warning: UserScamWarning) -> UserScamWarning:
        with self._lock:
            self._warnings[(warning.user_id, warning.scam_id)] = warning.model_copy()
        return warning

    def list_warnings(self, user_id: str) -> list[UserScamWarning]:
        with self._lock:
            return [w.model_copy() for (uid, _), w in self._warnings.items() if uid == user_id]


class RedisScamStore(ScamStore):
    """
    Redis 存储：每类实体一个 hash，field 为 id / 自然键，value 为模型 JSON。
    warning_count 单独存放在 report_warnings hash 中用 HINCRBY 累加，读举报时合并。
    """

    def __init__(self, client: Any, prefix: str = "jobshield"):
        self._r = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisScamStore":
        import redis
        return cls(redis.from_url(url, decode_responses=True))

    def _key(self, *parts: str) -> str:
        return ":".join((self._prefix, *parts))

    def _with_count(self, raw: str) -> ScamReport:
        report = ScamReport.model_validate_json(raw)
        count = self._r.hget(self._key("report_warnings"), report.id)
        if count is not None:
            report.warning_count = int(count)
        return report

    def get_report(self, scam_id: str) -> Optional[ScamReport]:
        raw = self._r.hget(self._key("reports"), scam_id)
        return self._with_count(raw) if raw else None

    def upsert_report(self, report: ScamReport) -> ScamReport:
        self._r.hset(self._key("reports"), report.id, report.model_dump_json())
        # 计数只在首次写入时初始化，之后只由 HINCRBY 修改
        self._r.hsetnx(self._key("report_warnings"), report.id, report.warning_count)
        return report

    def list_reports(self) -> list[ScamReport]:
        return [self._with_count(raw) for raw in self._r.hvals(self._key("reports"))]

    def count_reports(self) -> int:
        return int(self._r.hlen(self._key("reports")))

    def increment_warning_count(self, scam_id: str, by: int = 1) -> int:
        if not self._r.hexists(self._key("reports"), scam_id):
            return 0
        return int(self._r.hincrby(self._key("report_warnings"), scam_id, by))

    def get_ban(self, kind: BanKind, key: str) -> Optional[BannedEntity]:
        raw = self._r.hget(self._key("bans", kind.value), key)
        return BannedEntity.model_validate_json(raw) if raw else None

    def upsert_ban(self, entity: BannedEntity) -> BannedEntity:
        self._r.hset(self._key("bans", entity.kind.value), entity.key, entity.model_dump_json())
        return entity

    def list_bans(self, kind: BanKind) -> list[BannedEntity]:
        return [BannedEntity.model_validate_json(raw) for raw in self._r.hvals(self._key("bans", kind.value))]

    def count_bans(self, kind: BanKind) -> int:
        return int(self._r.hlen(self._key("bans", kind.value)))

    def get_flagged_job(self, job_id: str) -> Optional[FlaggedJob]:
        raw = self._r.hget(self._key("flagged_jobs"), job_id)
        return FlaggedJob.model_validate_json(raw) if raw else None

    def upsert_flagged_job(self, job: FlaggedJob) -> FlaggedJob:
        self._r.hset(self._key("flagged_jobs"), job.id, job.model_dump_json())
        return job

    def list_flagged_jobs(self) -> list[FlaggedJob]:
        return [FlaggedJob.model_validate_json(raw) for raw in self._r.hvals(self._key("flagged_jobs"))]

    def get_warning(self, user_id: str, scam_id: str) -> Optional[UserScamWarning]:
        raw = self._r.hget(self._key("warnings", user_id), scam_id)
        return UserScamWarning.model_validate_json(raw) if raw else None

    def upsert_warning(self, warning: UserScamWarning) -> UserScamWarning:
        self._r.hset(self._key("warnings", warning.user_id), warning.scam_id, warning.model_dump_json())
        return warning

    def list_warnings(self, user_id: str) -> list[UserScamWarning]:
        return [UserScamWarning.model_validate_json(raw) for raw in self._r.hvals(self._key("warnings", user_id))]


_store: ScamStore | None = None
_store_lock = Lock()


def get_store() -> ScamStore:
    """
    返回当前存储实例（进程内单例）。
    JOBSHIELD_STORE=redis 或配置了 REDIS_URL 时使用 Redis，否则使用内存。
    """
    global _store
    with _store_lock:
        if _store is None:
            backend = store_backend()
            if backend == "redis":
                url = get_redis_url()
                if not url:
                    raise RuntimeError("JOBSHIELD_STORE=redis requires REDIS_URL")
                _store = RedisScamStore.from_url(url)
            else:
                _store = MemoryScamStore()
            logger.info("Scam store initialised: %s", type(_store).__name__)
        return _store


def reset_store(store: ScamStore | None = None) -> None:
    """替换当前存储（测试用）；不传则下次 get_store 时按配置重建。"""
    global _store
    with _store_lock:
        _store = store
