"""Bounded retry for transient gateway failures."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..errors import GatewayError

T = TypeVar("T")

MAX_RETRIES = 1
RETRY_BASE_DELAY_SECONDS = 0.2


async def execute_with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Callable[[int, float, GatewayError], None] | None = None,
) -> T:
    """Run ``fn`` and retry it on transient :class:`GatewayError`.

    Makes at most ``max_retries + 1`` attempts. Before retry ``n`` (0-based
    index of the failed attempt) it waits ``base_delay * (n + 1)`` seconds.
    Non-transient errors, other exceptions and the last attempt's failure
    propagate unchanged.
    """

    attempt = 0
    while True:
        try:
            return await fn()
        except GatewayError as exc:
            if not exc.is_transient or attempt >= max_retries:
                raise
            delay = base_delay * (attempt + 1)
            if on_retry is not None:
                on_retry(attempt, delay, exc)
            await sleep(delay)
        attempt += 1
