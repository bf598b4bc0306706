"""
认证服务
只校验外部身份系统签发的 JWT，不负责签发登录令牌与用户存储
"""

import logging
from typing import Optional

import jwt
from pydantic import BaseModel

from market_gateway.config import settings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    sub: str
    exp: int


class AuthService:
    """令牌校验服务"""

    @staticmethod
    def verify_token(token: str) -> Optional[TokenPayload]:
        try:
            payload = jwt.decode(
                token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
            )
            return TokenPayload(sub=payload["sub"], exp=int(payload["exp"]))
        except jwt.ExpiredSignatureError:
            logger.debug("Token 已过期")
        except (jwt.InvalidTokenError, KeyError) as exc:
            logger.debug(f"Token 无效: {exc}")
        return None


# ── 模块级别单例 ──────────────────────────────────────────
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
