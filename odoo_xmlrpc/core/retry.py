"""
core/retry.py
--------------

Bounded retries with exponential backoff for asynchronous operations.

:class:`RetryPolicy` wraps any zero-argument coroutine function.  It
runs the operation, returns its result on success and, on failure,
either re-raises immediately (last attempt, or the predicate rejects
the error) or sleeps and tries again.  The delay starts at
``base_delay``, is multiplied by ``backoff_factor`` after every retry
and never exceeds ``max_delay``.

Attempts are strictly sequential: the next attempt starts only after
the previous one has fully resolved.  Only idempotent operations should
be wrapped; retrying a ``create`` after the server committed it but the
response was lost would insert the record twice.

There is no process-wide default policy.  Callers that want shared
defaults build one :class:`RetryConfig` (for example with
:meth:`RetryConfig.from_settings`) and pass it around.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from odoo_xmlrpc.core.config import Settings, get_settings
from odoo_xmlrpc.core.errors import ClassifiedError, is_retryable
from odoo_xmlrpc.logging_config import logger

T = TypeVar("T")

RetryPredicate = Callable[[BaseException], bool]
Sleeper = Callable[[float], Awaitable[Any]]


class RetryConfig(BaseModel):
    """Tunables of one retry invocation. Delays are in seconds."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    max_attempts: int = Field(3, ge=1)
    base_delay: float = Field(1.0, ge=0)
    max_delay: float = Field(30.0, ge=0)
    backoff_factor: float = Field(2.0, gt=1)
    retry_predicate: RetryPredicate = is_retryable

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RetryConfig":
        settings = settings or get_settings()
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            backoff_factor=settings.retry_backoff_factor,
        )

    def merged(self, **overrides: Any) -> "RetryConfig":
        """Return a validated copy with ``overrides`` applied.

        ``None`` values are ignored so callers can forward optional
        keyword arguments untouched.
        """
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return self
        unknown = set(updates) - set(type(self).model_fields)
        if unknown:
            raise TypeError(f"Unknown retry option(s): {', '.join(sorted(unknown))}")
        return type(self).model_validate({**dict(self), **updates})


class RetryPolicy:
    """Explicitly constructed retry policy.

    :param config: defaults for every :meth:`run`; per call overrides are
        merged on top
    :param sleep: coroutine used to wait between attempts, replaceable in
        tests
    """

    def __init__(self, config: Optional[RetryConfig] = None, *, sleep: Sleeper = asyncio.sleep) -> None:
        self.config = config or RetryConfig()
        self._sleep = sleep

    async def run(self, operation: Callable[[], Awaitable[T]], **overrides: Any) -> T:
        config = self.config.merged(**overrides)
        delay = min(config.base_delay, config.max_delay)
        name = getattr(operation, "__qualname__", repr(operation))

        for attempt in range(1, config.max_attempts + 1):
            started = time.monotonic()
            try:
                return await operation()
            except Exception as exc:
                if attempt >= config.max_attempts:
                    _log_give_up(name, attempt, exc, "attempts_exhausted")
                    raise
                if not config.retry_predicate(exc):
                    _log_give_up(name, attempt, exc, "not_retryable")
                    raise
                logger.warning(json.dumps({
                    "event": "retry_scheduled",
                    "operation": name,
                    "attempt": attempt,
                    "max_attempts": config.max_attempts,
                    "delay_s": delay,
                    "elapsed_ms": round((time.monotonic() - started) * 1000, 2),
                    "detail": str(exc),
                }))
                await self._sleep(delay)
                delay = min(delay * config.backoff_factor, config.max_delay)

        # max_attempts >= 1, so the loop always returns or raises
        raise RuntimeError("retry loop exited without a result")


def _log_give_up(name: str, attempt: int, exc: BaseException, reason: str) -> None:
    data = {
        "event": "retry_give_up",
        "operation": name,
        "attempt": attempt,
        "reason": reason,
    }
    if isinstance(exc, ClassifiedError):
        data["error"] = exc.to_dict()
    else:
        data["detail"] = str(exc)
    logger.error(json.dumps(data))


async def retry(
    operation: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    **overrides: Any,
) -> T:
    """Run ``operation`` under a one-off :class:`RetryPolicy`."""
    return await RetryPolicy(config).run(operation, **overrides)
