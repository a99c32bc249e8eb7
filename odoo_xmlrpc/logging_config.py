"""
logging_config.py
------------------

Shared logging configuration and helpers for structured logging
throughout the XML-RPC client.  It uses Python's built-in ``logging``
module so that output can be captured by standard handlers or shipped
to external systems.  Messages are serialised as JSON to make them
easier to parse downstream.

Import ``logger`` and call its methods instead of ``logging.info``
directly.  The ``log_call`` decorator records entry and exit points at
DEBUG level without leaking credentials, and ``log_rpc_call`` records a
single XML-RPC exchange.  Call arguments are never logged by
``log_rpc_call`` because the backend expects the database password or
API key as a positional argument.
"""

from __future__ import annotations

import functools
import inspect
import json
import logging
import sys
from typing import Any, Callable, Dict

from odoo_xmlrpc.core.config import get_settings

# -----------------------------------------------------------------------------
# Configure logging
# -----------------------------------------------------------------------------

logger = logging.getLogger("odoo_xmlrpc")

_SENSITIVE_KEYS = ("token", "password", "secret", "api_key", "apikey")


def configure_logging(level: str | int | None = None) -> None:
    """Attach a stdout handler to the package logger.

    The format mirrors what applications embedding the client usually
    expect: timestamp, level and the raw (JSON) message.  ``level``
    defaults to ``ODOO_LOG_LEVEL``.  Calling this more than once only
    updates the level.
    """
    if level is None:
        level = get_settings().log_level.upper()
    logger.setLevel(level)
    if not any(getattr(h, "_odoo_xmlrpc", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        handler._odoo_xmlrpc = True  # type: ignore[attr-defined]
        logger.addHandler(handler)


def _sanitize(obj: Any) -> Any:
    """Recursively sanitise objects for logging.

    Dictionaries lose every key that looks like a credential (``token``,
    ``password``, ``secret``, ``api_key``).  Lists and tuples are
    processed element-wise and byte strings are summarised by length.
    Anything that is not JSON serialisable is replaced by its ``repr``.

    Parameters
    ----------
    obj : Any
        Arbitrary Python object to sanitise.

    Returns
    -------
    Any
        A representation of the input that is safe to serialise.
    """
    if isinstance(obj, (bytes, bytearray)):
        return f"<binary {len(obj)} bytes>"
    if isinstance(obj, dict):
        clean: Dict[str, Any] = {}
        for k, v in obj.items():
            if any(keyword in str(k).lower() for keyword in _SENSITIVE_KEYS):
                continue
            clean[str(k)] = _sanitize(v)
        return clean
    if isinstance(obj, (list, tuple)):
        return [_sanitize(i) for i in obj]
    if hasattr(obj, "model_dump"):
        try:
            return _sanitize(obj.model_dump())
        except (TypeError, ValueError):
            return repr(obj)
    try:
        return json.loads(json.dumps(obj))
    except (TypeError, ValueError):
        return repr(obj)


def _emit(level: int, payload: Dict[str, Any]) -> None:
    try:
        message = json.dumps(payload)
    except (TypeError, ValueError):
        message = json.dumps({k: repr(v) for k, v in payload.items()})
    logger.log(level, message)


def log_call(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to log entry and exit of functions.

    Emits a ``call_start`` event before the wrapped callable runs and a
    ``call_end`` event afterwards, both at DEBUG level.  Arguments and
    return values go through :func:`_sanitize`.  Coroutine functions are
    awaited inside the wrapper so the ``call_end`` event reflects the
    awaited result rather than the coroutine object.

    Examples
    --------

    >>> @log_call
    ... async def version():
    ...     return {"server_version": "17.0"}
    """

    def _start(args: Any, kwargs: Any) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        _emit(logging.DEBUG, {
            "event": "call_start",
            "function": func.__qualname__,
            "args": _sanitize(args),
            "kwargs": _sanitize(kwargs),
        })

    def _end(result: Any) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        _emit(logging.DEBUG, {
            "event": "call_end",
            "function": func.__qualname__,
            "result": _sanitize(result),
        })

    skip_self = _is_method(func)

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            _start(args[1:] if args and skip_self else args, kwargs)
            result = await func(*args, **kwargs)
            _end(result)
            return result

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _start(args[1:] if args and skip_self else args, kwargs)
        result = func(*args, **kwargs)
        _end(result)
        return result

    return wrapper


def _is_method(func: Callable[..., Any]) -> bool:
    # skip ``self`` so instances holding credentials are never serialised
    params = list(inspect.signature(func).parameters)
    return bool(params) and params[0] == "self"


def log_rpc_call(endpoint: str, method: str, *, arg_count: int,
                 outcome: str | None = None, status: int | None = None,
                 fault_code: int | None = None,
                 duration_ms: float | None = None) -> None:
    """Log one XML-RPC exchange at DEBUG level.

    Called by the transport before sending (without ``outcome``) and
    once the exchange finished.  Only high level information is
    recorded: endpoint, qualified method name, number of arguments,
    outcome (``success``, ``fault`` or ``error``), HTTP status, fault
    code and duration.

    :param endpoint: target URL of the exchange
    :param method: qualified XML-RPC method name (``object.execute_kw``)
    :param arg_count: number of positional parameters sent
    :param outcome: result of the exchange, omitted for the start event
    :param status: HTTP status code when a response was received
    :param fault_code: fault code when the server answered with a fault
    :param duration_ms: time taken in milliseconds
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return
    data: Dict[str, Any] = {
        "event": "rpc_call",
        "endpoint": endpoint,
        "method": method,
        "arg_count": arg_count,
    }
    if outcome is not None:
        data["outcome"] = outcome
    if status is not None:
        data["status"] = status
    if fault_code is not None:
        data["fault_code"] = fault_code
    if duration_ms is not None:
        data["duration_ms"] = round(duration_ms, 2)
    _emit(logging.DEBUG, data)


__all__ = ["logger", "configure_logging", "log_call", "log_rpc_call"]
