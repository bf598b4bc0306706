"""
行情网关服务
整合数据获取、缓存、处理三层，按接口执行 cache-aside 流程：
  缓存键 → 读缓存 → 命中直接返回 / 未命中：拉取上游 → 整形 → 回写缓存 → 返回

并发未命中同一个键时各自请求上游并各自回写（后写者覆盖），不做合并。
"""

import logging
import time
from datetime import timedelta
from typing import List, Optional

from market_gateway.layers.acquisition import (
    FetchRejected,
    FetchResult,
    FetchSuccess,
    FetchTransportError,
    UpstreamFetcher,
    get_upstream_fetcher,
)
from market_gateway.layers.cache import CacheEntryOptions, CacheStore, get_cache_layer
from market_gateway.layers.processing import ResponseTransformer, get_response_transformer
from market_gateway.models.market import INTERVALS, MarketDataRequest, SymbolInfo

logger = logging.getLogger(__name__)

EXCHANGE_INFO_KEY = "exchangeInfo"
INTERVALS_KEY = "intervals"

# 单次 K 线请求条数，固定值，不随部署配置变化
KLINE_LIMIT = 500

KLINE_CACHE_OPTIONS = CacheEntryOptions(
    absolute_expiry=timedelta(minutes=5), sliding_expiry=timedelta(minutes=2)
)
EXCHANGE_INFO_CACHE_OPTIONS = CacheEntryOptions(
    absolute_expiry=timedelta(minutes=30), sliding_expiry=timedelta(minutes=10)
)
INTERVALS_CACHE_OPTIONS = CacheEntryOptions(
    absolute_expiry=timedelta(hours=1), sliding_expiry=timedelta(minutes=30)
)


def kline_cache_key(symbol: str, interval: str) -> str:
    """K 线缓存键，大小写敏感，原样拼接"""
    return f"marketData_{symbol}_{interval}"


class GatewayError(Exception):
    """需要原样回给调用方的上游失败（状态码 + 文本）"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _unwrap(result: FetchResult) -> FetchSuccess:
    """成功结果原样返回；传输失败映射为 500，上游拒绝透传状态码与原因"""
    if isinstance(result, FetchSuccess):
        return result
    if isinstance(result, FetchTransportError):
        raise GatewayError(500, f"Request error: {result.message}")
    if isinstance(result, FetchRejected):
        raise GatewayError(result.status, result.reason)
    raise TypeError(f"未知的拉取结果类型: {type(result).__name__}")


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class MarketDataGateway:
    """行情网关业务服务"""

    def __init__(
        self,
        cache: Optional[CacheStore] = None,
        fetcher: Optional[UpstreamFetcher] = None,
        transformer: Optional[ResponseTransformer] = None,
    ):
        self._cache = cache if cache is not None else get_cache_layer()
        self._fetcher = fetcher if fetcher is not None else get_upstream_fetcher()
        self._transformer = transformer if transformer is not None else get_response_transformer()

    # ── K 线 ──────────────────────────────────────────────

    async def get_klines(self, request: MarketDataRequest) -> str:
        """
        获取 K 线数组的 JSON 文本

        命中时原样返回缓存文本；未命中时拉取上游并以缩进 JSON 写入缓存。
        两种情况下返回的文本逐字节一致。

        Raises:
            GatewayError: 上游传输失败（500）或上游拒绝（上游状态码）
        """
        key = kline_cache_key(request.symbol, request.interval)
        start = time.perf_counter()
        cached = await self._cache.get_string(key)
        if cached:
            if self._transformer.is_valid_kline_payload(cached):
                logger.info(f"缓存命中: {key} ({_elapsed_ms(start):.1f}ms)")
                return cached
            logger.warning(f"缓存内容格式无效，按未命中处理: {key}")

        logger.info(f"缓存未命中: {key}")
        result = _unwrap(await self._fetcher.fetch_klines(
            request.symbol, request.interval, KLINE_LIMIT
        ))

        klines = self._transformer.to_klines(result.body)
        formatted = self._transformer.serialize_klines(klines)
        await self._cache.set_string(key, formatted, KLINE_CACHE_OPTIONS)
        return formatted

    # ── 交易对 ────────────────────────────────────────────

    async def get_symbols(self) -> List[SymbolInfo]:
        """
        获取全部交易对

        未命中时缓存的是上游原始 JSON（而非投影后的结果），
        命中时再经同一套驼峰映射反序列化。
        """
        key = EXCHANGE_INFO_KEY
        start = time.perf_counter()
        cached = await self._cache.get_string(key)
        if cached:
            info = self._transformer.parse_cached_exchange_info(cached)
            if info is not None:
                logger.info(f"缓存命中: {key} ({_elapsed_ms(start):.1f}ms)")
                return info.symbols
            logger.warning(f"缓存内容格式无效，按未命中处理: {key}")

        logger.info(f"缓存未命中: {key} ({_elapsed_ms(start):.1f}ms)")
        result = _unwrap(await self._fetcher.fetch_exchange_info())

        info = self._transformer.to_exchange_info(result.body)
        await self._cache.set_string(key, result.body, EXCHANGE_INFO_CACHE_OPTIONS)
        return info.symbols

    # ── 周期 ──────────────────────────────────────────────

    async def get_intervals(self) -> List[str]:
        """获取支持的 K 线周期列表，从不访问上游"""
        key = INTERVALS_KEY
        cached = await self._cache.get_string(key)
        if cached:
            intervals = self._transformer.parse_cached_intervals(cached)
            if intervals is not None:
                logger.info(f"缓存命中: {key}")
                return intervals
            logger.warning(f"缓存内容格式无效，按未命中处理: {key}")

        logger.info(f"缓存未命中: {key}")
        intervals = list(INTERVALS)
        await self._cache.set_string(
            key, self._transformer.serialize_intervals(intervals), INTERVALS_CACHE_OPTIONS
        )
        return intervals


# ── 依赖注入 ──────────────────────────────────────────────
_gateway: Optional[MarketDataGateway] = None


def get_market_data_gateway() -> MarketDataGateway:
    global _gateway
    if _gateway is None:
        _gateway = MarketDataGateway()
    return _gateway
