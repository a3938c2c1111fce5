"""DEBUG tracing for layout helpers.

``apply_debug_logging(globals(), logger=logger)`` at the bottom of a module
wraps its public and private functions so that, with DEBUG enabled, every
call logs a compact summary of its arguments and result. Position arrays and
graph records are summarized instead of printed whole.
"""

from __future__ import annotations

import inspect
import logging
import reprlib
from functools import singledispatch, wraps
from typing import Any, Callable, Dict, Iterable, MutableMapping, Optional, Tuple, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

MAX_ITEMS = 6
MAX_LENGTH = 300

_short = reprlib.Repr()
_short.maxother = 120
_short.maxstring = 80
_short.maxlist = MAX_ITEMS
_short.maxtuple = MAX_ITEMS


@singledispatch
def describe(value: Any) -> str:
    """Short, log-friendly rendering of ``value``."""

    label = type(value).__name__
    if label == "Node":
        return f"<Node {value.id} {value.name!r} a={value.area:g} @({value.x:.1f},{value.y:.1f})>"
    if label == "Link":
        return f"<Link {value.source}-{value.target} {value.kind.value}>"
    if label == "GraphStore":
        return f"<GraphStore {len(value.nodes)} nodes / {len(value.links)} links>"
    text = _short.repr(value)
    return text if len(text) <= MAX_LENGTH else text[:MAX_LENGTH] + "..."


@describe.register(np.ndarray)
def _(value) -> str:
    head = f"<array {'x'.join(str(n) for n in value.shape) or 'scalar'} {value.dtype}"
    if value.size == 0:
        return head + " empty>"
    if value.size <= MAX_ITEMS:
        return f"{head} {np.array2string(value, precision=3, separator=',')}>"
    if np.issubdtype(value.dtype, np.number):
        return f"{head} range=[{value.min():.4g}, {value.max():.4g}]>"
    return head + ">"


@describe.register(list)
@describe.register(tuple)
def _(value) -> str:
    shown = ", ".join(describe(item) for item in value[:MAX_ITEMS])
    if len(value) > MAX_ITEMS:
        shown += f", +{len(value) - MAX_ITEMS} more"
    return f"({shown})" if isinstance(value, tuple) else f"[{shown}]"


@describe.register(dict)
def _(value) -> str:
    pairs = list(value.items())
    shown = ", ".join(f"{describe(k)}: {describe(v)}" for k, v in pairs[:MAX_ITEMS])
    if len(pairs) > MAX_ITEMS:
        shown += f", +{len(pairs) - MAX_ITEMS} more"
    return "{" + shown + "}"


def _call_summary(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> str:
    rendered = [describe(arg) for arg in args]
    rendered.extend(f"{key}={describe(value)}" for key, value in kwargs.items())
    return ", ".join(rendered)


def debug_log_call(logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True) -> Callable[[F], F]:
    """Decorator logging entry, exit and exceptions of a call at DEBUG level."""

    def decorator(func: F) -> F:
        if getattr(func, "__debug_traced__", False):
            return func
        label = name or func.__qualname__

        @wraps(func)
        def traced(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("-> %s(%s)", label, _call_summary(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.debug("!! %s raised", label, exc_info=True)
                raise
            logger.debug("<- %s = %s", label, describe(result) if log_result else "...")
            return result

        traced.__debug_traced__ = True  # type: ignore[attr-defined]
        return cast(F, traced)

    return decorator


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Iterable[str] = (),
) -> int:
    """Trace every function defined in ``namespace``'s module.

    Classes and imported callables are left untouched. Returns the number of
    functions wrapped.
    """

    module_name = namespace.get("__name__")
    logger = logger or logging.getLogger(str(module_name))
    excluded = set(skip)
    wrapped = 0
    for attr, value in list(namespace.items()):
        if attr in excluded or not inspect.isfunction(value):
            continue
        if value.__module__ != module_name:
            continue
        traced = debug_log_call(logger, name=attr)(value)
        if traced is not value:
            namespace[attr] = traced
            wrapped += 1
    return wrapped


__all__ = ["apply_debug_logging", "debug_log_call", "describe"]
