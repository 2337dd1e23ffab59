"""선물 방언 (USDT-M perpetual)

엔드포인트 세대별 심볼 규칙:
- v1 mix 엔드포인트: 접미사 형태 (``BTCUSDT_UMCBL``)
- v2 mix 엔드포인트: bare 형태 (``BTCUSDT``) + productType/marginCoin 동반
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from typing_extensions import override

from bitget_bridge.core.dto.io._base import as_int, as_str
from bitget_bridge.core.dto.io.market import CandleDTO, OrderBookDTO, TickerDTO
from bitget_bridge.core.dto.io.trading import (
    MarginAccountDTO,
    OrderDTO,
    OrderRequestDTO,
    PositionDTO,
)
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
from bitget_bridge.core.rest.symbols import (
    format_futures_interval,
    to_futures_form,
    to_spot_form,
)
from bitget_bridge.core.types import (
    DEFAULT_MARGIN_COIN,
    PRODUCT_TYPE_USDT_FUTURES,
    PositionSide,
    QueryParams,
    RawPayload,
)

TICKER_PATH = "/api/mix/v1/market/ticker"
DEPTH_PATH = "/api/mix/v1/market/depth"
CANDLES_PATH = "/api/v2/mix/market/candles"
PLACE_ORDER_PATH = "/api/v2/mix/order/place-order"
CANCEL_ORDER_PATH = "/api/v2/mix/order/cancel-order"
CURRENT_ORDERS_PATH = "/api/mix/v1/order/current"
ALL_POSITION_PATH = "/api/v2/mix/position/all-position"
SET_LEVERAGE_PATH = "/api/v2/mix/account/set-leverage"
ACCOUNTS_PATH = "/api/v2/mix/account/accounts"

_TWO_PLACES = Decimal("0.01")


def change_from_open(last: Any, open_utc: Any) -> str:
    """UTC 시가 대비 변동률(%) 소수 2자리, 시가가 없거나 0이면 "0.00" """
    open_price = to_decimal(open_utc)
    if open_price == 0:
        return "0.00"
    change = (to_decimal(last) - open_price) / open_price * 100
    return decimal_str(change.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


class FuturesDialect(MarketDialect):
    """선물 요청 구성/응답 매핑 테이블"""

    def __init__(
        self,
        product_type: str = PRODUCT_TYPE_USDT_FUTURES,
        margin_coin: str = DEFAULT_MARGIN_COIN,
    ) -> None:
        self.product_type = product_type
        self.margin_coin = margin_coin

    @override
    def ticker_request(self, symbol: str) -> RequestSpec:
        return RequestSpec("GET", TICKER_PATH, {"symbol": to_futures_form(symbol)})

    @override
    def parse_price(self, symbol: str, data: Any) -> str | None:
        if not isinstance(data, dict) or not data.get("last"):
            return None
        return as_str(data["last"])

    @override
    def parse_ticker(self, symbol: str, data: Any) -> TickerDTO | None:
        if not isinstance(data, dict) or not data:
            return None
        return TickerDTO(
            symbol=data.get("symbol") or to_futures_form(symbol),
            last=as_str(data.get("last")),
            bid=as_str(data.get("bestBid")),
            ask=as_str(data.get("bestAsk")),
            high_24h=as_str(data.get("high24h")),
            low_24h=as_str(data.get("low24h")),
            volume_24h=as_str(data.get("baseVolume")),
            change_24h=change_from_open(data.get("last"), data.get("openUtc")),
            change_percent_24h=as_str(data.get("priceChangePercent")),
            timestamp=as_int(data.get("timestamp"), now_ms()),
        )

    @override
    def orderbook_request(self, symbol: str, depth: int) -> RequestSpec:
        return RequestSpec(
            "GET",
            DEPTH_PATH,
            {"symbol": to_futures_form(symbol), "limit": str(depth)},
        )

    @override
    def parse_orderbook(self, symbol: str, data: Any) -> OrderBookDTO:
        data = data or {}
        return OrderBookDTO(
            symbol=to_futures_form(symbol),
            bids=data.get("bids") or [],
            asks=data.get("asks") or [],
            timestamp=as_int(data.get("timestamp"), now_ms()),
        )

    @override
    def candles_request(self, symbol: str, interval: str, limit: int) -> RequestSpec:
        return RequestSpec(
            "GET",
            CANDLES_PATH,
            {
                "productType": self.product_type,
                "symbol": to_spot_form(symbol),
                "granularity": format_futures_interval(interval),
                "limit": str(limit),
            },
        )

    @override
    def parse_candles(self, symbol: str, data: Any) -> list[CandleDTO]:
        # 호출자가 넘긴 심볼 표기를 그대로 유지
        return candle_rows(symbol, data)

    @override
    def place_order_request(self, order: OrderRequestDTO) -> RequestSpec:
        body: QueryParams = {
            "symbol": to_spot_form(order.symbol),
            "productType": self.product_type,
            "marginCoin": order.margin_coin,
            "marginMode": order.margin_mode,
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
        if order.reduce_only is not None:
            body["reduceOnly"] = "YES" if order.reduce_only else "NO"
        return RequestSpec("POST", PLACE_ORDER_PATH, body, private=True)

    @override
    def cancel_order_request(self, order_id: str, symbol: str) -> RequestSpec:
        return RequestSpec(
            "POST",
            CANCEL_ORDER_PATH,
            {
                "orderId": order_id,
                "symbol": to_spot_form(symbol),
                "productType": self.product_type,
                "marginCoin": self.margin_coin,
            },
            private=True,
        )

    @override
    def orders_request(self, symbol: str | None) -> RequestSpec:
        params: QueryParams = {"symbol": to_futures_form(symbol)} if symbol else {}
        return RequestSpec("GET", CURRENT_ORDERS_PATH, params, private=True)

    @override
    def parse_orders(self, symbol: str | None, data: Any) -> list[OrderDTO]:
        orders: list[OrderDTO] = []
        for item in data or []:
            quantity = as_str(item.get("size"))
            filled = as_str(item.get("fillSize") or item.get("filledQty"))
            created = as_int(item.get("cTime"), 0)
            raw_symbol = item.get("symbol") or symbol or ""
            orders.append(
                OrderDTO(
                    order_id=as_str(item.get("orderId"), ""),
                    client_order_id=item.get("clientOid") or None,
                    symbol=to_futures_form(raw_symbol),
                    side=_order_side(item.get("side")),
                    type=item.get("orderType"),
                    quantity=quantity,
                    price=item.get("price") or None,
                    status=normalize_order_status(item.get("state") or item.get("status")),
                    filled=filled,
                    remaining=decimal_str(to_decimal(quantity) - to_decimal(filled)),
                    timestamp=created,
                    update_time=as_int(item.get("uTime"), created),
                )
            )
        return orders

    # ── 선물 전용 ──

    def positions_request(self, symbol: str | None) -> RequestSpec:
        params: QueryParams = {
            "productType": self.product_type,
            "marginCoin": self.margin_coin,
        }
        if symbol:
            params["symbol"] = to_spot_form(symbol)
        return RequestSpec("GET", ALL_POSITION_PATH, params, private=True)

    def parse_positions(self, symbol: str | None, data: Any) -> list[PositionDTO]:
        positions = [_position(item) for item in data or []]
        if symbol:
            bare = to_spot_form(symbol)
            positions = [p for p in positions if to_spot_form(p.symbol) == bare]
        return positions

    def set_leverage_request(self, symbol: str, leverage: int, hold_side: str) -> RequestSpec:
        return RequestSpec(
            "POST",
            SET_LEVERAGE_PATH,
            {
                "symbol": to_spot_form(symbol),
                "productType": self.product_type,
                "marginCoin": self.margin_coin,
                "leverage": str(leverage),
                "holdSide": hold_side,
            },
            private=True,
        )

    def margin_request(self, symbol: str | None) -> RequestSpec:
        params: QueryParams = {"productType": self.product_type}
        if symbol:
            params["symbol"] = to_spot_form(symbol)
        return RequestSpec("GET", ACCOUNTS_PATH, params, private=True)

    def parse_margin_accounts(self, data: Any) -> list[MarginAccountDTO]:
        if isinstance(data, dict):
            data = [data]
        return [
            MarginAccountDTO(
                margin_coin=item.get("marginCoin", ""),
                available=as_str(item.get("available")),
                locked=as_str(item.get("locked")),
                account_equity=as_str(item.get("accountEquity")),
                usdt_equity=as_str(item.get("usdtEquity")),
                crossed_max_available=as_str(item.get("crossedMaxAvailable")),
                raw=item,
            )
            for item in data or []
        ]


def _order_side(raw: Any) -> str:
    """v1 선물 side (open_long, close_short 등) → buy/sell"""
    side = str(raw or "").lower()
    if side in ("buy", "sell"):
        return side
    if side in ("open_long", "close_short", "buy_single"):
        return "buy"
    return "sell"


def _position(item: RawPayload) -> PositionDTO:
    signed_size = to_decimal(item.get("size") or item.get("total"))
    hold_side = item.get("holdSide")
    if hold_side not in (PositionSide.LONG, PositionSide.SHORT):
        hold_side = PositionSide.LONG if signed_size > 0 else PositionSide.SHORT
    return PositionDTO(
        symbol=item.get("symbol", ""),
        side=hold_side,
        size=decimal_str(abs(signed_size)),
        entry_price=as_str(item.get("averageOpenPrice") or item.get("openPriceAvg")),
        mark_price=as_str(item.get("markPrice")),
        pnl=as_str(item.get("unrealizedPL") or item.get("achievedProfits")),
        pnl_percent=as_str(item.get("unrealizedPLR")),
        margin=as_str(item.get("margin") or item.get("marginSize")),
        leverage=as_str(item.get("leverage")),
        timestamp=as_int(item.get("cTime"), now_ms()),
    )
