"""
认证网关
GET /api/auth/me   - 获取当前令牌对应的用户

AUTH_ENABLED 打开时，行情与缓存接口都要求 Bearer 令牌，未认证直接返回 401。
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header, status

from market_gateway.config import settings
from market_gateway.services.auth_service import get_auth_service

router = APIRouter(prefix="/api/auth", tags=["认证"])


# ── 依赖注入：从 Bearer Token 解析当前用户 ─────────────────

async def get_current_user(
    authorization: Optional[str] = Header(default=None),
) -> dict:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="未提供认证令牌")
    token = authorization[7:]
    token_data = get_auth_service().verify_token(token)
    if token_data is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="令牌无效或已过期")
    return {"username": token_data.sub}


async def require_user(
    authorization: Optional[str] = Header(default=None),
) -> Optional[dict]:
    """按配置决定是否启用认证网关"""
    if not settings.AUTH_ENABLED:
        return None
    return await get_current_user(authorization)


# ── 路由处理器 ────────────────────────────────────────────

@router.get("/me")
async def me(current_user: dict = Depends(get_current_user)):
    """获取当前用户信息"""
    return current_user
