"""
行情网关配置模块
支持从环境变量读取配置，自动检测 Docker 容器环境并启用服务发现
"""

import os
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _is_docker() -> bool:
    """检测当前是否运行在 Docker 容器内"""
    return (
        os.path.exists("/.dockerenv")
        or os.environ.get("DOCKER_CONTAINER", "").lower() in ("1", "true", "yes")
    )


def _default_redis_host() -> str:
    """Docker 环境使用服务名 'redis'，本地使用 'localhost'"""
    return "redis" if _is_docker() else "localhost"


class GatewaySettings(BaseSettings):
    """行情网关配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── 基础配置 ──────────────────────────────────────────
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=7125)
    DEBUG: bool = Field(default=False)
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"]
    )

    # ── TLS 监听（证书与私钥均为空时使用明文 HTTP） ─────────
    SSL_CERTFILE: str = Field(default="")
    SSL_KEYFILE: str = Field(default="")

    @property
    def TLS_ENABLED(self) -> bool:
        return bool(self.SSL_CERTFILE and self.SSL_KEYFILE)

    # ── Redis 配置（支持服务发现） ─────────────────────────
    REDIS_HOST: str = Field(default_factory=_default_redis_host)
    REDIS_PORT: int = Field(default=6379)
    REDIS_PASSWORD: str = Field(default="")
    REDIS_DB: int = Field(default=0)
    REDIS_ENABLED: bool = Field(default=True)
    REDIS_MAX_CONNECTIONS: int = Field(default=20)

    @property
    def REDIS_URL(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── 上游行情源 ─────────────────────────────────────────
    UPSTREAM_BASE_URL: str = Field(default="https://api.binance.com")

    # ── 认证网关（令牌由外部身份系统签发，这里只做校验） ─────
    AUTH_ENABLED: bool = Field(default=False)
    JWT_SECRET: str = Field(default="change-me-in-production-0123456789abcdef")
    JWT_ALGORITHM: str = Field(default="HS256")

    # ── 日志配置 ──────────────────────────────────────────
    LOG_LEVEL: str = Field(default="INFO")


@lru_cache
def get_settings() -> GatewaySettings:
    """获取全局配置（单例）"""
    return GatewaySettings()


settings = get_settings()
