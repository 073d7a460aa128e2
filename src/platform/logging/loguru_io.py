from collections.abc import Awaitable
from functools import wraps
from inspect import iscoroutinefunction
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar, cast, overload


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io_config import (
    ExtraField,
    call_depth_var,
    custom_logger,
)
from src.platform.logging.loguru_io_utils import (
    build_call_target_func_path,
    get_chain_start_time,
    mask_sensitive,
    normalize_args_kwargs,
    reset_call_depth,
    resolve_ticket_id,
    should_mask_keyword,
    truncate_content,
)

_F = TypeVar('_F', bound=Callable[..., Any])


class LoguruIO:
    """
    Decorator logging the inputs, output and failure of one call.

    Arguments and return values are only rendered when DEBUG is on; failures
    are always logged, once per exception however deep it bubbles.
    """

    depth = 2  # wrapper + decorated function

    def __init__(
        self, custom_logger: 'LoguruLogger', *, reraise: bool = True, truncate_content: bool = False
    ) -> None:
        self._custom_logger = custom_logger
        self.reraise = reraise
        self.truncate_content = truncate_content
        self.call_target = ''

    def _bind(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> 'LoguruLogger':
        extra: dict[str, Any] = {
            ExtraField.CALL_TARGET: self.call_target,
            ExtraField.CHAIN_START_TIME: get_chain_start_time(),
        }
        if ticket_id := resolve_ticket_id(args, kwargs):
            extra[ExtraField.TICKET_ID] = ticket_id
        return self._custom_logger.bind(**extra)

    def _enter(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> 'LoguruLogger':
        call_depth_var.set(call_depth_var.get() + 1)
        bound = self._bind(args, kwargs)
        if settings.DEBUG:
            bound.opt(depth=self.depth).debug(
                f'args: {self.mask_sensitive(args)}, kwargs: {self.mask_sensitive(kwargs)}'
            )
        return bound

    def _leave(self, bound: 'LoguruLogger', return_value: Any) -> None:
        if settings.DEBUG:
            bound.opt(depth=self.depth).debug(f'return: {self.mask_sensitive(return_value)}')

    def _failed(self, bound: 'LoguruLogger', e: Exception) -> None:
        if getattr(e, '_has_logged', False):
            return
        e._has_logged = True  # type: ignore[attr-defined]
        # Expected domain/API failures get one line, anything else a traceback
        if isinstance(e, CustomBaseError):
            bound.opt(depth=self.depth).error(f'{type(e).__name__}: {e}')
        else:
            bound.opt(depth=self.depth).exception(f'{type(e).__name__}: {e}')

    def mask_sensitive(self, data: Any) -> Any:
        if isinstance(data, dict):
            processed: Any = {
                key: self.mask_sensitive(should_mask_keyword(key, value))
                for key, value in data.items()
            }
        elif isinstance(data, list | tuple):
            processed = type(data)(self.mask_sensitive(item) for item in data)
        else:
            processed = mask_sensitive(data)
        return truncate_content(processed) if self.truncate_content else processed

    def __call__(self, func: _F) -> _F:
        self.call_target = build_call_target_func_path(func)

        if iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                bound = self._enter(args, kwargs)
                try:
                    args, kwargs = normalize_args_kwargs(func, *args, **kwargs)
                    return_value = await cast(Awaitable[Any], func(*args, **kwargs))
                except Exception as e:
                    self._failed(bound, e)
                    if self.reraise:
                        raise
                    return None
                finally:
                    reset_call_depth()
                self._leave(bound, return_value)
                return return_value

            return cast(_F, async_wrapper)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = self._enter(args, kwargs)
            try:
                args, kwargs = normalize_args_kwargs(func, *args, **kwargs)
                return_value = func(*args, **kwargs)
            except Exception as e:
                self._failed(bound, e)
                if self.reraise:
                    raise
                return None
            finally:
                reset_call_depth()
            self._leave(bound, return_value)
            return return_value

        return cast(_F, sync_wrapper)


_P = ParamSpec('_P')
_T = TypeVar('_T')


class Logger:
    base = custom_logger

    @overload
    @staticmethod
    def io(func: Callable[_P, _T]) -> Callable[_P, _T]: ...

    @overload
    @staticmethod
    def io(func: None = ..., *, reraise: bool = ..., truncate_content: bool = ...) -> LoguruIO: ...

    @staticmethod
    def io(
        func: Callable[_P, _T] | None = None, *, reraise: bool = True, truncate_content: bool = True
    ) -> Callable[_P, _T] | LoguruIO:
        decorator = LoguruIO(
            custom_logger=custom_logger, reraise=reraise, truncate_content=truncate_content
        )
        return decorator(func) if func else decorator
