# 配置：环境变量 + .env

from .config import (
    get_redis_url,
    store_backend,
    get_auth_url,
    admin_stub_tokens,
    system_user_id,
    log_level,
)

__all__ = [
    "get_redis_url",
    "store_backend",
    "get_auth_url",
    "admin_stub_tokens",
    "system_user_id",
    "log_level",
]
