"""
Layer 3 – 数据处理层
把上游 JSON 整形为网关的标准响应结构，并校验缓存内容的形状。

小数字段始终保持字符串，不经过 float，避免金额精度损失。
"""

import json
import logging
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError

from market_gateway.models.market import (
    KLINE_FIELDS,
    ExchangeInfo,
    IntervalList,
    Kline,
    KlineList,
)

logger = logging.getLogger(__name__)


class PayloadFormatError(ValueError):
    """上游响应体结构不符合预期"""


class ResponseTransformer:
    """数据处理层：上游载荷整形 + 缓存载荷校验"""

    # ── K 线 ──────────────────────────────────────────────

    def to_klines(self, body: str) -> List[Kline]:
        """
        将上游数组的数组投影为 11 字段 K 线元组

        只取每行前 11 个位置字段（丢弃 Binance 的 "ignore" 等附加字段），
        保持上游顺序，不重新排序。
        """
        rows = _loads(body)
        if not isinstance(rows, list):
            raise PayloadFormatError(f"K 线载荷应为数组，实际为 {type(rows).__name__}")

        projected = []
        for index, row in enumerate(rows):
            if not isinstance(row, list) or len(row) < KLINE_FIELDS:
                raise PayloadFormatError(f"第 {index} 行 K 线字段不足 {KLINE_FIELDS} 个")
            projected.append(tuple(row[:KLINE_FIELDS]))

        try:
            return KlineList.validate_python(projected, strict=True)
        except ValidationError as exc:
            raise PayloadFormatError(f"K 线字段类型不符: {exc}") from exc

    def serialize_klines(self, klines: Sequence[Kline]) -> str:
        return json.dumps([list(k) for k in klines], indent=2)

    def is_valid_kline_payload(self, text: str) -> bool:
        """校验缓存中的 K 线文本是否仍是合法的 K 线数组"""
        try:
            KlineList.validate_json(text, strict=True)
            return True
        except ValidationError:
            return False

    # ── 交易对 ────────────────────────────────────────────

    def to_exchange_info(self, body: str) -> ExchangeInfo:
        try:
            return ExchangeInfo.model_validate_json(body)
        except ValidationError as exc:
            raise PayloadFormatError(f"exchangeInfo 载荷结构不符: {exc}") from exc

    def parse_cached_exchange_info(self, text: str) -> Optional[ExchangeInfo]:
        try:
            return ExchangeInfo.model_validate_json(text)
        except ValidationError:
            return None

    # ── 周期 ──────────────────────────────────────────────

    def serialize_intervals(self, intervals: Sequence[str]) -> str:
        return json.dumps(list(intervals))

    def parse_cached_intervals(self, text: str) -> Optional[List[str]]:
        try:
            return IntervalList.validate_json(text, strict=True)
        except ValidationError:
            return None


def _loads(body: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise PayloadFormatError(f"上游响应不是合法 JSON: {exc}") from exc


# ── 模块级别单例 ──────────────────────────────────────────
_transformer: Optional[ResponseTransformer] = None


def get_response_transformer() -> ResponseTransformer:
    global _transformer
    if _transformer is None:
        _transformer = ResponseTransformer()
    return _transformer
