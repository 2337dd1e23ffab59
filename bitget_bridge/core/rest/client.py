"""
Bitget REST 어댑터

현물/선물 두 업스트림 API 계열을 하나의 인터페이스로 묶습니다.

호출 흐름:
    rate limit 점검 → 심볼 분류 → 방언 선택 → query/body 구성
    → (비공개) 서명 헤더 부착 → 전송 → 봉투 검사 → 도메인 모델 매핑

모든 호출(공개/비공개)은 RetryExecutor로 감싸며, rate limit 점검은 매 시도마다
네트워크 I/O 이전에 동기적으로 수행됩니다.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

import orjson
from pydantic import ValidationError as PydanticValidationError

from bitget_bridge.common.exceptions.errors import (
    NotFoundError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from bitget_bridge.common.logger import PipelineLogger
from bitget_bridge.core.dto.internal.common import Credentials
from bitget_bridge.core.dto.io.envelope import ApiEnvelopeDTO
from bitget_bridge.core.dto.io.market import CandleDTO, OrderBookDTO, TickerDTO
from bitget_bridge.core.dto.io.trading import (
    BalanceDTO,
    MarginAccountDTO,
    OrderDTO,
    OrderRequestDTO,
    PositionDTO,
)
from bitget_bridge.core.rest.dialects.base import MarketDialect, RequestSpec, placed_order
from bitget_bridge.core.rest.dialects.futures import FuturesDialect
from bitget_bridge.core.rest.dialects.spot import SpotDialect
from bitget_bridge.core.rest.signer import RateLimiter, RequestSigner, current_timestamp_ms
from bitget_bridge.core.rest.symbols import classify
from bitget_bridge.core.services.retry import RetryExecutor
from bitget_bridge.core.types import (
    ErrorCode,
    MarketKind,
    OrderStatus,
    OrderType,
    PositionSide,
    QueryParams,
)
from bitget_bridge.infra.http.http_client import HttpTransport

logger = PipelineLogger.get_logger("rest_client", "rest")

MIN_LEVERAGE = 1
MAX_LEVERAGE = 125


def _encode_query(params: QueryParams) -> str:
    """None 값을 제외하고 삽입 순서대로 직렬화"""
    return urlencode({k: str(v) for k, v in params.items() if v is not None})


def _encode_body(params: QueryParams) -> str:
    if not params:
        return ""
    return orjson.dumps({k: v for k, v in params.items() if v is not None}).decode("utf-8")


class BitgetRestClient:
    """현물/선물 통합 REST 클라이언트

    Args:
        credentials: 접속 정보 (공개 시세는 키 없이 동작)
        transport: HTTP 전송 계층 (테스트에서는 가짜 구현 주입)
        rate_limiter: 요청 수 제한기 (인스턴스 내 모든 호출이 공유)
        retry: 재시도 실행기
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        transport: HttpTransport | None = None,
        rate_limiter: RateLimiter | None = None,
        retry: RetryExecutor | None = None,
    ) -> None:
        self.credentials = credentials
        self._transport = transport or HttpTransport()
        self._rate_limiter = rate_limiter or RateLimiter()
        self._retry = retry or RetryExecutor()
        self._signer = RequestSigner(credentials.secret_key)
        self._spot = SpotDialect()
        self._futures = FuturesDialect()

    async def __aenter__(self) -> BitgetRestClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._transport.close()

    def _dialect_for(self, symbol: str) -> MarketDialect:
        match classify(symbol):
            case MarketKind.FUTURES:
                return self._futures
            case _:
                return self._spot

    # ── 요청 파이프라인 ──

    def _build_headers(self, spec: RequestSpec, request_path: str, body: str) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if not spec.private:
            return headers

        timestamp = current_timestamp_ms()
        headers["ACCESS-KEY"] = self.credentials.api_key
        headers["ACCESS-SIGN"] = self._signer.sign(timestamp, spec.method, request_path, body)
        headers["ACCESS-TIMESTAMP"] = timestamp
        headers["ACCESS-PASSPHRASE"] = self.credentials.passphrase
        if self.credentials.sandbox:
            headers["paptrading"] = "1"
        return headers

    async def _send(self, spec: RequestSpec) -> ApiEnvelopeDTO:
        """단일 시도 (재시도 없음)"""
        self._rate_limiter.check()

        request_path = spec.path
        body = ""
        if spec.method == "GET":
            query = _encode_query(spec.params)
            if query:
                request_path = f"{spec.path}?{query}"
        else:
            body = _encode_body(spec.params)

        headers = self._build_headers(spec, request_path, body)
        logger.debug(
            f"{spec.method} {spec.path}",
            method=spec.method,
            path=spec.path,
            private=spec.private,
        )
        payload = await self._transport.request(
            spec.method,
            f"{self.credentials.base_url}{request_path}",
            headers=headers,
            body=body or None,
        )

        try:
            envelope = ApiEnvelopeDTO.model_validate(payload)
        except PydanticValidationError as e:
            raise TransportError(
                "Malformed response envelope", code=ErrorCode.NETWORK_ERROR
            ) from e

        if not envelope.is_success:
            logger.warning(
                "Upstream returned error envelope",
                path=spec.path,
                code=envelope.code,
                upstream_msg=envelope.msg,
            )
            raise UpstreamError(envelope.code, envelope.msg)
        return envelope

    async def _call(self, spec: RequestSpec) -> Any:
        """재시도 정책을 적용해 호출하고 봉투의 data를 반환"""
        if spec.private and not self.credentials.has_private_access:
            raise ValidationError(
                f"API credentials are required for {spec.method} {spec.path}"
            )
        envelope = await self._retry.execute(
            lambda: self._send(spec), context=f"{spec.method} {spec.path}"
        )
        return envelope.data

    # ── 공개 시세 ──

    async def get_price(self, symbol: str) -> str:
        dialect = self._dialect_for(symbol)
        data = await self._call(dialect.ticker_request(symbol))
        price = dialect.parse_price(symbol, data)
        if price is None:
            raise NotFoundError(f"Price not found for symbol: {symbol}")
        return price

    async def get_ticker(self, symbol: str) -> TickerDTO:
        dialect = self._dialect_for(symbol)
        data = await self._call(dialect.ticker_request(symbol))
        ticker = dialect.parse_ticker(symbol, data)
        if ticker is None:
            raise NotFoundError(f"Ticker not found for symbol: {symbol}")
        return ticker

    async def get_order_book(self, symbol: str, depth: int = 20) -> OrderBookDTO:
        dialect = self._dialect_for(symbol)
        data = await self._call(dialect.orderbook_request(symbol, depth))
        return dialect.parse_orderbook(symbol, data)

    async def get_candles(self, symbol: str, interval: str, limit: int = 100) -> list[CandleDTO]:
        dialect = self._dialect_for(symbol)
        data = await self._call(dialect.candles_request(symbol, interval, limit))
        return dialect.parse_candles(symbol, data)

    # ── 계정/주문 ──

    async def get_balance(self, asset: str | None = None) -> list[BalanceDTO]:
        data = await self._call(self._spot.balance_request())
        balances = self._spot.parse_balances(data)
        if asset:
            balances = [b for b in balances if b.asset == asset]
        return balances

    async def place_order(self, order: OrderRequestDTO) -> OrderDTO:
        """주문 접수 (심볼로 현물/선물 자동 선택)

        지정가 주문에 가격이 없으면 네트워크 호출 전에 ValidationError.
        """
        if order.type == OrderType.LIMIT and not order.price:
            raise ValidationError("Price is required for limit orders")

        dialect = self._dialect_for(order.symbol)
        data = await self._call(dialect.place_order_request(order))
        placed = placed_order(order, data if isinstance(data, dict) else None)
        logger.info(
            "Order placed",
            order_id=placed.order_id,
            symbol=order.symbol,
            side=order.side,
            order_type=order.type,
        )
        return placed

    async def cancel_order(self, order_id: str, symbol: str) -> bool:
        dialect = self._dialect_for(symbol)
        await self._call(dialect.cancel_order_request(order_id, symbol))
        logger.info("Order cancelled", order_id=order_id, symbol=symbol)
        return True

    async def get_orders(
        self, symbol: str | None = None, status: OrderStatus | str | None = None
    ) -> list[OrderDTO]:
        """미체결 주문 조회 (심볼이 없으면 현물 전체)"""
        wanted: OrderStatus | None = None
        if status:
            try:
                wanted = OrderStatus(status)
            except ValueError as e:
                raise ValidationError(f"Unknown order status: {status}") from e

        dialect = self._dialect_for(symbol) if symbol else self._spot
        data = await self._call(dialect.orders_request(symbol))
        orders = dialect.parse_orders(symbol, data)
        if wanted is not None:
            orders = [o for o in orders if o.status == wanted]
        return orders

    # ── 선물 ──

    async def get_positions(self, symbol: str | None = None) -> list[PositionDTO]:
        data = await self._call(self._futures.positions_request(symbol))
        return self._futures.parse_positions(symbol, data)

    async def set_leverage(
        self,
        symbol: str,
        leverage: int,
        hold_side: PositionSide | str = PositionSide.LONG,
    ) -> bool:
        if not MIN_LEVERAGE <= leverage <= MAX_LEVERAGE:
            raise ValidationError(
                f"Leverage must be between {MIN_LEVERAGE} and {MAX_LEVERAGE}, got {leverage}"
            )
        await self._call(
            self._futures.set_leverage_request(symbol, leverage, str(hold_side))
        )
        logger.info("Leverage updated", symbol=symbol, leverage=leverage, hold_side=str(hold_side))
        return True

    async def get_margin_info(self, symbol: str | None = None) -> list[MarginAccountDTO]:
        data = await self._call(self._futures.margin_request(symbol))
        return self._futures.parse_margin_accounts(data)
