"""
Dependency Injection Containers

아키텍처:
- InfrastructureContainer: 캐시 매니저, HTTP 전송 계층 + Settings 주입
- ApplicationContainer: REST 클라이언트, 캐시 게이트웨이, 스트리밍 매니저

주요 패턴:
- Resource Provider: async init/shutdown 자동 관리 (캐시 스윕, HTTP 세션)
- Object Provider: settings.py 싱글톤 주입 (DI)
- Singleton: 프로세스당 1개의 게이트웨이/스트리밍 매니저

모듈 전역 캐시/rate limiter 없이, 모든 공유 상태는 여기서 명시적으로 생성됩니다.

사용 예시:
    container = ApplicationContainer()
    await container.init_resources()
    gateway = await container.gateway()
    ...
    await container.shutdown_resources()
"""

from dependency_injector import containers, providers

from bitget_bridge.application.gateway import BitgetGateway
from bitget_bridge.config.init_infra import (
    init_cache_manager,
    init_http_transport,
    init_rest_client,
)
from bitget_bridge.config.settings import (
    bitget_settings,
    cache_settings,
    rate_limit_settings,
    retry_settings,
    websocket_settings,
)
from bitget_bridge.core.connection.stream_manager import StreamConnectionManager


# ========================================
# 1. Infrastructure Container (인프라 레이어)
# ========================================
class InfrastructureContainer(containers.DeclarativeContainer):
    """인프라 컨테이너

    - 캐시 매니저 (주기 스윕 포함), HTTP 세션
    - Settings: settings.py 싱글톤 주입 (DI)
    """

    # ===== Settings 주입 (DI) =====
    bitget_config = providers.Object(bitget_settings)
    cache_config = providers.Object(cache_settings)
    rate_limit_config = providers.Object(rate_limit_settings)
    retry_config = providers.Object(retry_settings)

    cache_manager = providers.Resource(init_cache_manager, settings=cache_config)

    http_transport = providers.Resource(
        init_http_transport,
        timeout=bitget_config.provided.request_timeout,
    )


# ========================================
# 2. Application Container (최상위)
# ========================================
class ApplicationContainer(containers.DeclarativeContainer):
    """애플리케이션 최상위 컨테이너"""

    infra = providers.Container(InfrastructureContainer)

    websocket_config = providers.Object(websocket_settings)

    rest_client = providers.Resource(
        init_rest_client,
        bitget=infra.bitget_config,
        transport=infra.http_transport,
        rate_limit=infra.rate_limit_config,
        retry=infra.retry_config,
    )

    gateway = providers.Singleton(
        BitgetGateway,
        client=rest_client,
        caches=infra.cache_manager,
    )

    stream_manager = providers.Singleton(
        StreamConnectionManager,
        url=infra.bitget_config.provided.ws_url,
        policy=websocket_config.provided.to_policy.call(),
    )
