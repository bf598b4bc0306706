"""
行情缓存网关
独立 FastAPI 应用程序入口

启动方式:
    uvicorn market_gateway.main:app --host 0.0.0.0 --port 7125
    python -m market_gateway.main
"""

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from market_gateway import __version__
from market_gateway.config import settings
from market_gateway.db import init_redis, close_connections
from market_gateway.layers.acquisition import close_upstream_fetcher
from market_gateway.routers import health, auth, market_data, cache
from market_gateway.services.market_data_service import GatewayError

# ── 日志配置 ──────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── 生命周期管理 ──────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用启动/关闭生命周期钩子"""
    logger.info("=" * 60)
    logger.info(f"🚀 Market Data Gateway v{__version__} 启动中")
    logger.info(f"   Upstream  : {settings.UPSTREAM_BASE_URL}")
    logger.info(f"   Redis     : {settings.REDIS_HOST}:{settings.REDIS_PORT}")
    logger.info(f"   Auth      : {'enabled' if settings.AUTH_ENABLED else 'disabled'}")
    logger.info("=" * 60)

    # 初始化 Redis（失败不阻断启动，降级运行）
    if await init_redis():
        logger.info("✅ 缓存后端就绪（Redis）")
    else:
        logger.warning("⚠️ Redis 不可用，缓存降级为进程内存模式")

    yield

    logger.info("🔄 行情网关正在关闭...")
    await close_upstream_fetcher()
    await close_connections()
    logger.info("✅ 行情网关已关闭")


# ── 应用实例 ──────────────────────────────────────────────
app = FastAPI(
    title="Market Data Gateway",
    description=(
        "行情数据缓存网关，在 Binance REST API 前提供 cache-aside 缓存：\n"
        "- 📈 K 线（POST /api/marketData）\n"
        "- 🔣 交易对列表（GET /api/symbols）\n"
        "- ⏱️ 支持的周期（GET /api/intervals）\n\n"
        "**分层架构**\n"
        "```\n"
        "Acquisition Layer  ← 请求上游行情接口\n"
        "Cache Layer        ← Redis / 进程内存缓存（绝对 + 滑动过期）\n"
        "Processing Layer   ← 上游载荷整形与校验\n"
        "```"
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS 中间件 ───────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── 请求计时中间件 ─────────────────────────────────────────
@app.middleware("http")
async def add_process_time(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{(time.time() - start) * 1000:.1f}ms"
    return response


# ── 异常处理 ──────────────────────────────────────────────
@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    logger.warning(f"上游失败透传: {exc.status_code} {exc.message}")
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"未处理的异常: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "内部服务错误", "message": str(exc)},
    )


# ── 注册路由 ──────────────────────────────────────────────
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(market_data.router)
app.include_router(cache.router)


# ── 根路由 ───────────────────────────────────────────────
@app.get("/", include_in_schema=False)
async def root():
    return {
        "service": "Market Data Gateway",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


# ── 直接运行入口 ──────────────────────────────────────────
if __name__ == "__main__":
    tls = {}
    if settings.TLS_ENABLED:
        tls = {"ssl_certfile": settings.SSL_CERTFILE, "ssl_keyfile": settings.SSL_KEYFILE}
    uvicorn.run(
        "market_gateway.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        **tls,
    )
