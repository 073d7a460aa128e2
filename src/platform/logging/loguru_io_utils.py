from inspect import FullArgSpec, getfile, getfullargspec, getsourcelines
from os.path import basename
import re
from time import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


_SENSITIVE_PATTERN = re.compile(
    r"(\b(?:{keys})\b)(=|': )'[^']*'".format(keys='|'.join(sorted(SENSITIVE_KEYWORDS)))
)


def get_chain_start_time() -> float:
    if not (start_time := chain_start_time_var.get()):
        start_time = time()
        chain_start_time_var.set(start_time)
    return start_time


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    lineno = getsourcelines(func)[1]
    return f'{basename(getfile(getattr(func, "__func__", func)))}::{func.__qualname__}:{lineno}'


def resolve_ticket_id(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str | None:
    """Ticket a call is about: an explicit keyword, else the bound controller/use case"""
    for key in ('ticket_id', 'voter_ticket_id'):
        if isinstance(value := kwargs.get(key), str):
            return value
    if args and isinstance(value := getattr(args[0], 'ticket_id', None), str):
        return value
    return None


def reset_call_depth() -> None:
    layer = call_depth_var.get() - 1
    call_depth_var.set(layer)
    if not layer:
        chain_start_time_var.set(0)


def normalize_args_kwargs(
    func: Callable[..., Any], *args: Any, **kwargs: Any
) -> tuple[tuple[Any, ...], dict[Any, Any]]:
    if hasattr(func, '__wrapped__'):
        func = func.__wrapped__  # type: ignore
    full_arg_spec: FullArgSpec = getfullargspec(func)
    spec_args: list[str] = full_arg_spec.args

    if not full_arg_spec.varkw:
        kw_list: list[str] = spec_args + full_arg_spec.kwonlyargs
        kwargs = {k: v for k, v in kwargs.items() if k in kw_list}

    if not full_arg_spec.varargs:
        spec_default: list[Any] = list(full_arg_spec.defaults) if full_arg_spec.defaults else []
        args_dict = dict(
            zip(
                spec_args,
                [None] * (len(spec_args) - len(spec_default)) + spec_default,
                strict=False,
            )
        )
        if args_dict := {k: v for k, v in args_dict.items() if k not in kwargs}:
            args_max_len: int = len(args_dict)
            args_min_len: int = len([value for value in args_dict.values() if value is None])
            if len(args) not in range(args_min_len, args_max_len + 1):
                args = args[:args_max_len]
        else:
            args = ()

    return args, kwargs


def mask_sensitive(data: Any) -> Any:
    """Mask `token='...'` style fragments inside reprs of attrs/pydantic objects."""
    try:
        data_str = str(data)
        masked = _SENSITIVE_PATTERN.sub(r"\1\2'********'", data_str)
        return data if data_str == masked else masked
    except Exception:
        return data


def should_mask_keyword(keyword: Any, value: Any) -> Any:
    return '********' if keyword in SENSITIVE_KEYWORDS else value


def truncate_content(data: Any, max_length: int = 500) -> Any:
    if isinstance(data, str) and len(data) > max_length:
        return f'{data[:max_length]}...(+{len(data) - max_length} chars)'
    return data
