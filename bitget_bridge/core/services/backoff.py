from __future__ import annotations

from bitget_bridge.core.dto.internal.common import ConnectionPolicyDomain, RetryConfig


def compute_retry_delay(config: RetryConfig, attempt: int) -> float:
    """지수 백오프 계산 (지터 없음).

    Args:
        config: 백오프 파라미터가 담긴 재시도 설정
        attempt: 1부터 시작하는 재시도 번호 (첫 시도 이후 첫 번째 재시도 = 1)

    Returns:
        다음 대기 시간(초) = min(base * multiplier^(attempt-1), max)
    """
    delay = config.base_delay * (config.backoff_multiplier ** (attempt - 1))
    return min(delay, config.max_delay)


def compute_reconnect_delay(policy: ConnectionPolicyDomain) -> float:
    """스트리밍 재연결 대기 시간.

    재연결은 고정 간격이며, 증가 없이 횟수 한도(max_reconnects)로만 제한된다.
    """
    return max(0.0, policy.reconnect_interval)
