"""行情数据模型"""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


# 支持的 K 线周期（秒 / 分 / 时 / 日 / 周 / 月），进程内只读
INTERVALS: Tuple[str, ...] = (
    "1s", "1m", "3m", "5m", "15m", "30m",
    "1H", "2H", "4H", "6H", "8H", "12H",
    "1D", "3D", "1W", "1M",
)


class MarketDataRequest(BaseModel):
    """K 线请求体，取值由上游校验"""
    symbol: str = Field(..., min_length=1, examples=["BTCUSDT"])
    interval: str = Field(..., min_length=1, examples=["1m"])


# openTime, open, high, low, close, volume, closeTime,
# quoteAssetVolume, numberOfTrades, takerBuyBaseAssetVolume, takerBuyQuoteAssetVolume
Kline = Tuple[int, str, str, str, str, str, int, str, int, str, str]

KLINE_FIELDS = 11

KlineList = TypeAdapter(List[Kline])


class SymbolInfo(BaseModel):
    """交易对，仅保留代码，其余上游字段丢弃"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    symbol: str


class ExchangeInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    symbols: List[SymbolInfo]


IntervalList = TypeAdapter(List[str])
