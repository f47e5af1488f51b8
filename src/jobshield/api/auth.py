"""
认证：从请求头取 Bearer token，交外部认证服务解析为 {id, role}（或 stub），注入请求上下文。

未配置 JOBSHIELD_AUTH_URL 时使用 stub：任意非空 token 视为普通用户，
JOBSHIELD_ADMIN_TOKENS 中列出的 token 视为管理员。
"""
import json
import logging
import re
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Literal

from fastapi import Depends, Header, HTTPException

from jobshield.core.config import admin_stub_tokens, get_auth_url

logger = logging.getLogger(__name__)

Role = Literal["USER", "ADMIN"]


@dataclass
class AuthContext:
    """请求上下文中的用户身份与角色。"""
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


def get_bearer_token(authorization: str | None = Header(None, alias="Authorization")) -> str | None:
    """从请求头取出 Bearer token；无头或格式不对返回 None。"""
    if not authorization or not isinstance(authorization, str):
        return None
    auth = authorization.strip()
    if not auth.lower().startswith("bearer "):
        return None
    token = auth[7:].strip()
    return token if token else None


def _verify_token_stub(token: str) -> AuthContext:
    """Stub：user_id 由 token 派生；在管理员 token 列表中则为 ADMIN。"""
    safe = re.sub(r"[^a-zA-Z0-9\-]", "", token[:32]) or "anon"
    role: Role = "ADMIN" if token in admin_stub_tokens() else "USER"
    return AuthContext(user_id=f"stub-{safe}", role=role)


def _verify_token_remote(url: str, token: str) -> AuthContext | None:
    """调用外部认证服务校验 token；失败或非 200 返回 None。兼容 {id, role} 与 {user: {id, role}}。"""
    req = urllib.request.Request(url, headers={"Authorization": f"Bearer {token}"}, method="GET")
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            if resp.status != 200:
                return None
            data = json.loads(resp.read().decode())
    except (urllib.error.URLError, OSError, ValueError) as e:
        logger.warning("Auth service call failed: %s", e)
        return None
    user = data.get("user") or data.get("data") or data
    user_id = user.get("id") or user.get("user_id")
    if not user_id:
        return None
    role: Role = "ADMIN" if str(user.get("role") or "").upper() == "ADMIN" else "USER"
    return AuthContext(user_id=str(user_id), role=role)


def verify_token(token: str) -> AuthContext | None:
    """校验 token：若配置 JOBSHIELD_AUTH_URL 则远程校验，否则 stub。"""
    url = get_auth_url()
    if url:
        return _verify_token_remote(url, token)
    return _verify_token_stub(token)


def get_auth(authorization: str | None = Header(None, alias="Authorization")) -> AuthContext:
    """依赖项：无 token 或校验失败抛出 401。"""
    token = get_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Authorization header required")
    ctx = verify_token(token)
    if ctx is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return ctx


def require_admin(auth: AuthContext = Depends(get_auth)) -> AuthContext:
    """依赖项：非管理员抛出 403。"""
    if not auth.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return auth
