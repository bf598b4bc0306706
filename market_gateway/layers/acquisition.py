"""
Layer 1 – 数据获取层
向上游行情源发起 HTTP GET，把结果归类为三种互斥结果之一：
  FetchSuccess        - 2xx，携带状态码与原始响应体
  FetchRejected       - 非 2xx，携带上游状态码与原因短语
  FetchTransportError - DNS / 连接 / 超时等传输层异常

不做重试、退避与熔断；超时沿用 httpx 默认值。
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Union

import httpx

from market_gateway.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS: Dict[str, str] = {
    "Accept": "application/json",
    "User-Agent": "market-gateway/1.0",
}


@dataclass(frozen=True)
class FetchSuccess:
    status: int
    body: str


@dataclass(frozen=True)
class FetchRejected:
    status: int
    reason: str


@dataclass(frozen=True)
class FetchTransportError:
    message: str


FetchResult = Union[FetchSuccess, FetchRejected, FetchTransportError]


class UpstreamFetcher:
    """上游行情源客户端（Binance REST API v3）"""

    def __init__(self, base_url: Optional[str] = None, http: Optional[httpx.AsyncClient] = None):
        self._base_url = (base_url or settings.UPSTREAM_BASE_URL).rstrip("/")
        self._client = http
        self._owns_client = http is None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers=_DEFAULT_HEADERS.copy())
        return self._client

    async def fetch(self, path: str, params: Optional[Dict[str, Union[str, int]]] = None) -> FetchResult:
        url = f"{self._base_url}{path}"
        start = time.perf_counter()
        try:
            response = await self._http().get(url, params=params)
        except httpx.HTTPError as exc:
            logger.error(f"上游请求失败: {url}: {exc}")
            return FetchTransportError(message=str(exc) or type(exc).__name__)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(f"上游请求耗时: {path} {response.status_code} {elapsed:.1f}ms")

        if response.is_success:
            return FetchSuccess(status=response.status_code, body=response.text)
        return FetchRejected(status=response.status_code, reason=response.reason_phrase)

    async def fetch_klines(self, symbol: str, interval: str, limit: int) -> FetchResult:
        """拉取 K 线数组"""
        return await self.fetch(
            "/api/v3/klines",
            params={"symbol": symbol, "interval": interval, "limit": limit},
        )

    async def fetch_exchange_info(self) -> FetchResult:
        """拉取交易所交易对元数据"""
        return await self.fetch("/api/v3/exchangeInfo")

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


# ── 模块级别单例 ──────────────────────────────────────────
_fetcher: Optional[UpstreamFetcher] = None


def get_upstream_fetcher() -> UpstreamFetcher:
    global _fetcher
    if _fetcher is None:
        _fetcher = UpstreamFetcher()
    return _fetcher


async def close_upstream_fetcher() -> None:
    """关闭共享 HTTP 连接池；下次请求时按需重建"""
    if _fetcher is not None:
        await _fetcher.close()
