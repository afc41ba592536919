"""Ordered fallback over external-call strategies with a shared deadline.

:func:`call_with_fallback` tries a list of named async strategies in order.
All attempts draw from one time budget: a slow first strategy leaves less
time for the next, and the whole chain never outlives *timeout*.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Strategy = tuple[str, Callable[[], Awaitable[T]]]


class FallbackExhaustedError(Exception):
    """Raised when every strategy failed or the shared budget ran out.

    Attributes:
        attempts: Names of the strategies that were started, in order.
        errors: The exception raised by each attempted strategy.
    """

    def __init__(
        self,
        message: str,
        attempts: list[str],
        errors: list[BaseException],
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.errors = errors


async def call_with_fallback(
    strategies: Sequence[Strategy[T]],
    timeout: float,
) -> T:
    """Run *strategies* in order until one succeeds.

    Each strategy is a ``(name, factory)`` pair; the factory is called only
    when its turn comes, so later strategies cost nothing if an earlier one
    succeeds.

    Args:
        strategies: Ordered ``(name, factory)`` pairs.
        timeout: Total seconds shared by all attempts.

    Returns:
        The first successful strategy's result.

    Raises:
        FallbackExhaustedError: If every strategy raised, or the deadline
            passed before one succeeded.
    """
    if not strategies:
        raise FallbackExhaustedError("No strategies configured", [], [])

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempts: list[str] = []
    errors: list[BaseException] = []

    for name, factory in strategies:
        remaining = deadline - loop.time()
        if remaining <= 0:
            logger.warning("Time budget exhausted before strategy '%s'", name)
            break

        attempts.append(name)
        try:
            return await asyncio.wait_for(_isolated(factory), timeout=remaining)
        except asyncio.TimeoutError as exc:
            logger.warning("Strategy '%s' timed out after %.1fs", name, remaining)
            errors.append(exc)
            break
        except _StrategyTimeoutError as exc:
            # The strategy's own timeout; budget remains for the next one.
            logger.warning("Strategy '%s' failed: %s", name, exc.__cause__)
            errors.append(exc.__cause__ or exc)
        except Exception as exc:
            logger.warning("Strategy '%s' failed: %s", name, exc)
            errors.append(exc)

    summary = "; ".join(
        f"{name}: {type(err).__name__}: {err}" for name, err in zip(attempts, errors)
    )
    raise FallbackExhaustedError(
        f"All strategies failed ({summary or 'deadline reached'})",
        attempts,
        errors,
    )


class _StrategyTimeoutError(Exception):
    """A timeout raised inside a strategy rather than by the shared deadline."""


async def _isolated(factory: Callable[[], Awaitable[T]]) -> T:
    # asyncio.TimeoutError is the builtin TimeoutError on 3.11+.
    try:
        return await factory()
    except (TimeoutError, asyncio.TimeoutError) as exc:
        raise _StrategyTimeoutError(str(exc)) from exc
