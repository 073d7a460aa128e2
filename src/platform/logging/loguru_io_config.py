"""
Loguru sinks and shared state for the validation client

Console sink always; an hourly rotating file sink when DEBUG or LOG_TO_FILE is
set (kiosks and door devices often have no log collector). Standard logging
(uvicorn/granian, httpx, dependency_injector) is routed into the same sinks.
"""

from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
from functools import cache
import logging
import os
import sys
from typing import TYPE_CHECKING

from loguru import logger as loguru_logger


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.constant.path import LOG_DIR as DEFAULT_LOG_DIR
from src.platform.logging.service_context import get_service_context


LOG_DIR = os.environ.get('TEST_LOG_DIR', str(DEFAULT_LOG_DIR))

# Argument names whose values never reach a sink in clear text
SENSITIVE_KEYWORDS = {
    'token',
    'session_token',
    'access_token',
    'qr_image',
    'password',
}

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    TICKET_ID = 'ticket_id'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'


# Loggers whose DEBUG chatter drowns out the session timers
_NOISY_DEBUG_LOGGERS = ('httpx', 'httpcore', 'asyncio', 'PIL')


def default_extra() -> dict[str, str]:
    return {
        ExtraField.SERVICE_CONTEXT: get_service_context(),
        ExtraField.TICKET_ID: '-',
        ExtraField.CHAIN_START_TIME: '',
        ExtraField.CALL_TARGET: '',
    }


@cache
def _stdlib_bound_logger() -> 'LoguruLogger':
    return loguru_logger.bind(**default_extra())


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno <= logging.DEBUG and record.name.startswith(_NOISY_DEBUG_LOGGERS):
            return

        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        _stdlib_bound_logger().opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<m>ticket={{extra[{ExtraField.TICKET_ID}]}}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)

min_log_level = 'DEBUG' if settings.DEBUG else 'INFO'


def _log_file_path() -> str:
    stamp = datetime.now(timezone.utc).strftime('%Y-%m-%d_%H')
    prefix = 'test_' if os.environ.get('TEST_LOG_DIR') else ''
    return f'{LOG_DIR}/{prefix}{stamp}.log'


loguru_logger.remove()
custom_logger = loguru_logger.bind(**default_extra())
custom_logger.add(sys.stdout, format=io_log_format, level=min_log_level, enqueue=True)

if settings.DEBUG or settings.LOG_TO_FILE:
    custom_logger.add(
        _log_file_path(),
        format=io_log_format,
        rotation='1 hour',
        retention='7 days',
        compression='gz',
        enqueue=True,
        level=min_log_level,
    )

logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
