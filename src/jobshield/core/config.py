"""
配置：从环境变量读取，供存储、鉴权与日志使用。
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# 可选加载 .env（若存在）：先项目根（与 pyproject.toml 同层），再当前工作目录
_env_paths = [
    Path(__file__).resolve().parents[3] / ".env",  # 从 src/jobshield/core 往上的项目根
    Path.cwd() / ".env",
]
for _p in _env_paths:
    if _p.exists():
        load_dotenv(_p)
        break


def get_redis_url() -> str:
    return os.getenv("REDIS_URL", "").strip()


def store_backend() -> str:
    """
    举报/封禁/审核队列的存储后端。
    memory = 进程内存储（单机、重启即丢，默认）；redis = 使用 REDIS_URL 指向的 Redis。
    未显式设置 JOBSHIELD_STORE 时，配置了 REDIS_URL 即走 redis。
    """
    explicit = (os.getenv("JOBSHIELD_STORE") or "").strip().lower()
    if explicit:
        return explicit
    return "redis" if get_redis_url() else "memory"


def get_auth_url() -> str:
    """外部认证服务地址：GET 携带 Bearer token，返回 {id, role}。为空则使用 stub 认证。"""
    return os.getenv("JOBSHIELD_AUTH_URL", "").strip()


def admin_stub_tokens() -> set[str]:
    """stub 认证下视为管理员的 token 列表（逗号分隔）。仅用于本地与测试。"""
    raw = os.getenv("JOBSHIELD_ADMIN_TOKENS", "")
    return {t.strip() for t in raw.split(",") if t.strip()}


def system_user_id() -> str:
    """AI 自动举报、自动封禁时记录的操作者 id。"""
    return (os.getenv("JOBSHIELD_SYSTEM_USER") or "system-ai").strip()


def log_level() -> str:
    return (os.getenv("JOBSHIELD_LOG_LEVEL") or "INFO").strip().upper()
