"""
Timeouts and bounded retries for external lookups.

Acceptance-critical lookups (does this word exist?) get a few attempts with
exponential backoff. Best-effort lookups (hints) get exactly one attempt.
Either way every attempt is bounded by a timeout, so a session lock is never
held indefinitely.
"""

from __future__ import annotations
from typing import Awaitable, Callable, TypeVar
import asyncio
import logging
import random

from ..errors import DependencyError, ServiceUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_timeout(
    call: Callable[[], Awaitable[T]],
    timeout: float,
    unavailable: type[DependencyError],
    what: str,
) -> T:
    """
    Run one attempt of an external call.

    A timeout is reported as the dependency's own unavailable error so the
    caller handles it exactly like a network failure.
    """
    try:
        return await asyncio.wait_for(call(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise unavailable(f"{what} timed out after {timeout:.1f}s") from e


async def with_retries(
    call: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    timeout: float,
    backoff: float,
    backoff_max: float,
    unavailable: type[DependencyError],
    what: str,
    conversation_id: str | None = None,
) -> T:
    """
    Call an external dependency with timeout, retrying on DependencyError.

    Raises ServiceUnavailable once all attempts are spent.
    """
    attempts = max(1, attempts)
    last_error: DependencyError | None = None

    for attempt in range(attempts):
        try:
            return await call_with_timeout(call, timeout, unavailable, what)
        except DependencyError as e:
            last_error = e
            if attempt + 1 >= attempts:
                break
            delay = min(backoff_max, backoff * (2 ** attempt)) + random.uniform(0, backoff / 2)
            logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %.2fs",
                what, attempt + 1, attempts, e, delay,
            )
            await asyncio.sleep(delay)

    logger.error("%s unavailable after %d attempt(s): %s", what, attempts, last_error)
    raise ServiceUnavailable(
        f"{what} is temporarily unavailable, please try again",
        conversation_id=conversation_id,
        dependency=getattr(last_error, "error_code", None),
    ) from last_error


async def once(
    call: Callable[[], Awaitable[T]],
    *,
    timeout: float,
    unavailable: type[DependencyError],
    what: str,
    conversation_id: str | None = None,
) -> T:
    """Single best-effort attempt; failure becomes ServiceUnavailable."""
    try:
        return await call_with_timeout(call, timeout, unavailable, what)
    except DependencyError as e:
        logger.warning("%s failed (no retry): %s", what, e)
        raise ServiceUnavailable(
            f"{what} is temporarily unavailable, please try again",
            conversation_id=conversation_id,
            dependency=e.error_code,
        ) from e
