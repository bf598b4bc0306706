"""
行情数据路由
POST /api/marketData   - 获取 K 线数组
GET  /api/symbols      - 获取全部交易对
GET  /api/intervals    - 获取支持的 K 线周期
"""

from typing import List

from fastapi import APIRouter, Depends, Response

from market_gateway.models.market import MarketDataRequest, SymbolInfo
from market_gateway.routers.auth import require_user
from market_gateway.services.market_data_service import (
    MarketDataGateway,
    get_market_data_gateway,
)

router = APIRouter(prefix="/api", tags=["行情数据"], dependencies=[Depends(require_user)])


@router.post("/marketData")
async def get_market_data(
    body: MarketDataRequest,
    gateway: MarketDataGateway = Depends(get_market_data_gateway),
):
    """
    获取 K 线数组（最多 500 条，按开盘时间升序）

    每条为 11 个字段的数组：openTime, open, high, low, close, volume, closeTime,
    quoteAssetVolume, numberOfTrades, takerBuyBaseAssetVolume, takerBuyQuoteAssetVolume
    """
    formatted = await gateway.get_klines(body)
    return Response(content=formatted, media_type="application/json")


@router.get("/symbols", response_model=List[SymbolInfo])
async def get_symbols(gateway: MarketDataGateway = Depends(get_market_data_gateway)):
    """获取全部交易对"""
    return await gateway.get_symbols()


@router.get("/intervals", response_model=List[str])
async def get_intervals(gateway: MarketDataGateway = Depends(get_market_data_gateway)):
    """获取支持的 K 线周期"""
    return await gateway.get_intervals()
