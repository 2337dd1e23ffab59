"""현물 방언 (spot v1 시세 목록 + v2 호가/캔들/주문)"""

from __future__ import annotations

from typing import Any

from typing_extensions import override

from bitget_bridge.core.dto.io._base import as_int, as_str
from bitget_bridge.core.dto.io.market import CandleDTO, OrderBookDTO, TickerDTO
from bitget_bridge.core.dto.io.trading import BalanceDTO, OrderDTO, OrderRequestDTO
from bitget_bridge.core.rest.dialects.base import (
    MarketDialect,
    RequestSpec,
    candle_rows,
    decimal_str,
    default_force,
    normalize_order_status,
    now_ms,
    to_decimal,
)
from bitget_bridge.core.rest.symbols import format_spot_interval
from bitget_bridge.core.types import QueryParams, RawPayload

TICKERS_PATH = "/api/spot/v1/market/tickers"
ORDERBOOK_PATH = "/api/v2/spot/market/orderbook"
CANDLES_PATH = "/api/v2/spot/market/candles"
PLACE_ORDER_PATH = "/api/v2/spot/trade/place-order"
CANCEL_ORDER_PATH = "/api/v2/spot/trade/cancel-order"
UNFILLED_ORDERS_PATH = "/api/v2/spot/trade/unfilled-orders"
ASSETS_PATH = "/api/v2/spot/account/assets"


def _find_ticker(symbol: str, data: Any) -> RawPayload | None:
    """전체 티커 목록에서 심볼 일치 항목 검색"""
    if not isinstance(data, list):
        return None
    return next(
        (item for item in data if isinstance(item, dict) and item.get("symbol") == symbol),
        None,
    )


class SpotDialect(MarketDialect):
    """현물 요청 구성/응답 매핑 테이블

    심볼은 항상 bare 형태 (``BTCUSDT``)로 전달합니다.
    """

    @override
    def ticker_request(self, symbol: str) -> RequestSpec:
        # v1 tickers 는 심볼 필터가 없어 전체 목록을 받아 검색한다
        return RequestSpec("GET", TICKERS_PATH)

    @override
    def parse_price(self, symbol: str, data: Any) -> str | None:
        ticker = _find_ticker(symbol, data)
        if ticker is None or not ticker.get("close"):
            return None
        return as_str(ticker["close"])

    @override
    def parse_ticker(self, symbol: str, data: Any) -> TickerDTO | None:
        ticker = _find_ticker(symbol, data)
        if ticker is None:
            return None
        return TickerDTO(
            symbol=ticker["symbol"],
            last=as_str(ticker.get("close")),
            bid=as_str(ticker.get("buyOne")),
            ask=as_str(ticker.get("sellOne")),
            high_24h=as_str(ticker.get("high24h")),
            low_24h=as_str(ticker.get("low24h")),
            volume_24h=as_str(ticker.get("baseVol")),
            change_24h=as_str(ticker.get("change")),
            change_percent_24h=as_str(ticker.get("changePercent")),
            timestamp=as_int(ticker.get("ts"), now_ms()),
        )

    @override
    def orderbook_request(self, symbol: str, depth: int) -> RequestSpec:
        return RequestSpec(
            "GET",
            ORDERBOOK_PATH,
            {"symbol": symbol, "type": "step0", "limit": str(depth)},
        )

    @override
    def parse_orderbook(self, symbol: str, data: Any) -> OrderBookDTO:
        data = data or {}
        return OrderBookDTO(
            symbol=symbol,
            bids=data.get("bids") or [],
            asks=data.get("asks") or [],
            timestamp=as_int(data.get("ts"), now_ms()),
        )

    @override
    def candles_request(self, symbol: str, interval: str, limit: int) -> RequestSpec:
        return RequestSpec(
            "GET",
            CANDLES_PATH,
            {
                "symbol": symbol,
                "granularity": format_spot_interval(interval),
                "limit": str(limit),
            },
        )

    @override
    def parse_candles(self, symbol: str, data: Any) -> list[CandleDTO]:
        return candle_rows(symbol, data)

    @override
    def place_order_request(self, order: OrderRequestDTO) -> RequestSpec:
        body: QueryParams = {
            "symbol": order.symbol,
            "side": order.side,
            "orderType": order.type,
            "size": order.quantity,
        }
        if order.price is not None:
            body["price"] = order.price
        if force := default_force(order):
            body["force"] = force
        if order.client_order_id:
            body["clientOid"] = order.client_order_id
        return RequestSpec("POST", PLACE_ORDER_PATH, body, private=True)

    @override
    def cancel_order_request(self, order_id: str, symbol: str) -> RequestSpec:
        return RequestSpec(
            "POST",
            CANCEL_ORDER_PATH,
            {"orderId": order_id, "symbol": symbol},
            private=True,
        )

    @override
    def orders_request(self, symbol: str | None) -> RequestSpec:
        params: QueryParams = {"symbol": symbol} if symbol else {}
        return RequestSpec("GET", UNFILLED_ORDERS_PATH, params, private=True)

    @override
    def parse_orders(self, symbol: str | None, data: Any) -> list[OrderDTO]:
        orders: list[OrderDTO] = []
        for item in data or []:
            quantity = as_str(item.get("quantity") or item.get("size"))
            filled = as_str(item.get("fillQuantity") or item.get("baseVolume"))
            created = as_int(item.get("cTime"), 0)
            orders.append(
                OrderDTO(
                    order_id=as_str(item.get("orderId"), ""),
                    client_order_id=item.get("clientOid") or None,
                    symbol=item.get("symbol") or symbol or "",
                    side=item.get("side"),
                    type=item.get("orderType"),
                    quantity=quantity,
                    price=item.get("price") or None,
                    status=normalize_order_status(item.get("status")),
                    filled=filled,
                    remaining=decimal_str(to_decimal(quantity) - to_decimal(filled)),
                    timestamp=created,
                    update_time=as_int(item.get("uTime"), created),
                )
            )
        return orders

    # ── 현물 전용 ──

    def balance_request(self) -> RequestSpec:
        return RequestSpec("GET", ASSETS_PATH, private=True)

    def parse_balances(self, data: Any) -> list[BalanceDTO]:
        balances: list[BalanceDTO] = []
        for item in data or []:
            free = as_str(item.get("available"))
            locked = as_str(item.get("frozen"))
            balances.append(
                BalanceDTO(
                    asset=item.get("coin", ""),
                    free=free,
                    locked=locked,
                    total=decimal_str(to_decimal(free) + to_decimal(locked)),
                )
            )
        return balances
