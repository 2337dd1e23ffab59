from __future__ import annotations

import asyncio
import logging
import queue
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any

# LogRecord 예약 속성 (extra 키로 쓰면 KeyError)
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class PipelineLogger:
    """
    큐 기반 컴포넌트 로거
    - QueueHandler로 호출 지점은 즉시 반환, 실제 출력은 QueueListener 스레드가 담당
    - 키워드 인자는 LogRecord extra로 병합
    """

    _default_level = logging.INFO
    _default_log_to_file = True
    _default_log_dir = "logs"

    @classmethod
    def configure(
        cls,
        level: int | str | None = None,
        log_to_file: bool | None = None,
        log_dir: str | None = None,
    ) -> None:
        """이후 생성되는 로거의 기본값을 변경한다 (엔트리포인트/테스트에서 호출)."""
        if level is not None:
            cls._default_level = (
                logging.getLevelName(level.upper()) if isinstance(level, str) else level
            )
        if log_to_file is not None:
            cls._default_log_to_file = log_to_file
        if log_dir is not None:
            cls._default_log_dir = log_dir

    @classmethod
    def get_logger(cls, name: str, component: str | None = None, **kwargs) -> PipelineLogger:
        """
        로거 인스턴스를 반환하는 간단한 팩토리 메서드.
        표준 logging.getLogger가 이름 단위로 사실상 싱글톤이므로
        별도 레지스트리 없이 인스턴스를 생성합니다.
        """
        return cls(name, component, **kwargs)

    def __init__(
        self,
        name: str,
        component: str | None = None,
        level: int | None = None,
        log_to_file: bool | None = None,
        log_to_console: bool = True,
        log_dir: str | None = None,
        rotation: str = "midnight",
    ):
        """
        Args:
            name: 로거 이름
            component: 컴포넌트 이름 (로그 파일 하위 디렉토리)
            level: 로깅 레벨 (미지정 시 configure 기본값)
            log_to_file: 파일 로깅 여부 (미지정 시 configure 기본값)
            log_to_console: 콘솔 로깅 여부
            log_dir: 로그 디렉토리
            rotation: 로그 로테이션 주기
        """
        self.name = name
        self.component = component
        self.log_to_console = log_to_console
        self.rotation = rotation
        self._level = level
        self._log_to_file = log_to_file
        self._log_dir = log_dir

        self.log_queue: queue.Queue = queue.Queue()
        self.context: dict[str, Any] = {}
        self.listener: QueueListener | None = None

    @property
    def logger(self) -> logging.Logger:
        """첫 사용 시점에 핸들러 구성 (모듈 import 이후의 configure 값을 반영)"""
        if self.listener is None:
            self._setup_logger()
        return self._logger

    def _setup_logger(self) -> None:
        self.level = self._level or self._default_level
        self.log_to_file = self._default_log_to_file if self._log_to_file is None else self._log_to_file
        self.log_dir = self._log_dir or self._default_log_dir

        self.logger_name = f"{self.name}.{self.component}" if self.component else self.name
        self._logger = logging.getLogger(self.logger_name)
        self._logger.setLevel(self.level)
        self._logger.propagate = False

        if self._logger.hasHandlers():
            self._logger.handlers.clear()

        self.formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(component)s] %(message)s"
        )

        handlers: list[logging.Handler] = []

        if self.log_to_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(self.formatter)
            handlers.append(console)

        if self.log_to_file:
            log_filename = self._get_log_filename()
            Path(log_filename).parent.mkdir(parents=True, exist_ok=True)

            file_handler = TimedRotatingFileHandler(
                filename=log_filename,
                when=self.rotation,
                backupCount=7,
            )
            file_handler.setFormatter(self.formatter)
            handlers.append(file_handler)

        self.queue_handler = QueueHandler(self.log_queue)
        self._logger.addHandler(self.queue_handler)

        self.listener = QueueListener(self.log_queue, *handlers, respect_handler_level=True)
        self.listener.start()

    def _get_log_filename(self) -> str:
        today = datetime.now().strftime("%Y-%m-%d")
        component_part = f"{self.component}/" if self.component else ""
        return f"{self.log_dir}/{component_part}{self.name}_{today}.log"

    def set_context(self, **kwargs) -> None:
        self.context.update(kwargs)

    def clear_context(self) -> None:
        self.context.clear()

    def _process_message(self, level: int, msg: str, extra: dict[str, Any] | None = None) -> None:
        log_extra: dict[str, Any] = {"component": self.component or "main"}
        if self.context:
            log_extra.update(self.context)

        exc_info_param = None
        if extra:
            exc_info_param = extra.pop("exc_info", None)
            nested_extra = extra.pop("extra", None)
            if isinstance(nested_extra, dict):
                log_extra.update(nested_extra)
            log_extra.update(extra)

        # LogRecord 예약 속성과 충돌하는 키는 접두사로 회피
        for reserved in _RESERVED_ATTRS.intersection(log_extra):
            log_extra[f"ctx_{reserved}"] = log_extra.pop(reserved)

        self.logger.log(level, msg, exc_info=exc_info_param, extra=log_extra)

    async def alog(self, level: int, msg: str, **kwargs) -> None:
        """
        비동기 로깅
        - 실행 중인 이벤트 루프가 있으면 스레드 풀로 위임
        - 루프가 없으면 동기 처리
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._process_message(level, msg, kwargs)
            return
        await loop.run_in_executor(None, self._process_message, level, msg, kwargs)

    def debug(self, msg: str, **kwargs) -> None:
        self._process_message(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs) -> None:
        self._process_message(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs) -> None:
        self._process_message(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs) -> None:
        self._process_message(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs) -> None:
        self._process_message(logging.CRITICAL, msg, kwargs)

    async def ainfo(self, msg: str, **kwargs) -> None:
        await self.alog(logging.INFO, msg, **kwargs)

    async def awarning(self, msg: str, **kwargs) -> None:
        await self.alog(logging.WARNING, msg, **kwargs)

    async def aerror(self, msg: str, **kwargs) -> None:
        await self.alog(logging.ERROR, msg, **kwargs)

    def close(self) -> None:
        if self.listener is not None:
            self.listener.stop()
            self.listener = None

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:
            pass
