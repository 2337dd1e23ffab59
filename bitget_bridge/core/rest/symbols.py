"""심볼 분류 및 캔들 간격 방언 변환 (순수 함수)

- 선물 심볼은 언더스코어 구분 상품 접미사를 가진다 (정규형 ``_UMCBL``)
- 간격 변환은 모든 입력에 대해 정의된 total 함수이며, 모르는 문자열은 그대로 반환한다
"""

from __future__ import annotations

import re

from bitget_bridge.core.types import FUTURES_SUFFIX, IntervalDialect, MarketKind

_MINUTE = re.compile(r"^(\d+)m$")
_HOUR = re.compile(r"^(\d+)[hH]$")
_DAY = re.compile(r"^(\d+)[dD]$")
_WEEK = re.compile(r"^(\d+)[wW]$")


def classify(symbol: str) -> MarketKind:
    """언더스코어가 있으면 선물, 없으면 현물"""
    return MarketKind.FUTURES if "_" in symbol else MarketKind.SPOT


def is_futures(symbol: str) -> bool:
    return classify(symbol) is MarketKind.FUTURES


def to_futures_form(symbol: str) -> str:
    """``BTCUSDT`` → ``BTCUSDT_UMCBL`` (이미 접미사가 있으면 그대로)"""
    if is_futures(symbol):
        return symbol
    return f"{symbol}{FUTURES_SUFFIX}"


def to_spot_form(symbol: str) -> str:
    """``BTCUSDT_UMCBL`` → ``BTCUSDT`` (접미사가 없으면 그대로)"""
    return symbol.removesuffix(FUTURES_SUFFIX)


def format_futures_interval(interval: str) -> str:
    """선물 방언: 1m→1m, 4h→4H, 1d→1D, 1w→1W, 그 외(1M, 6Hutc 등)는 그대로"""
    if _MINUTE.match(interval):
        return interval
    if match := _HOUR.match(interval):
        return f"{match.group(1)}H"
    if _DAY.match(interval) or _WEEK.match(interval):
        return interval.upper()
    return interval


def format_spot_interval(interval: str) -> str:
    """현물 방언: 5m→5min, 1h→1h, 1d→1day, 1w→1week, 그 외(1M, 6Hutc 등)는 그대로"""
    if match := _MINUTE.match(interval):
        return f"{match.group(1)}min"
    if _HOUR.match(interval):
        return interval.lower()
    if match := _DAY.match(interval):
        return f"{match.group(1)}day"
    if match := _WEEK.match(interval):
        return f"{match.group(1)}week"
    return interval


def format_interval(interval: str, dialect: IntervalDialect | str) -> str:
    match IntervalDialect(dialect):
        case IntervalDialect.FUTURES:
            return format_futures_interval(interval)
        case IntervalDialect.SPOT:
            return format_spot_interval(interval)
