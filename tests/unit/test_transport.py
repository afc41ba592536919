"""Tests for the ordered fallback combinator.

| Test | Scenario | Expected |
|---|---|---|
| test_first_strategy_wins | primary succeeds | secondary never started |
| test_falls_back_on_error | primary raises | secondary result |
| test_all_fail | every strategy raises | FallbackExhaustedError with both names |
| test_timeout_shares_budget | primary hangs | gives up within the budget |
| test_strategy_timeout_falls_back | primary raises its own TimeoutError | secondary result |
| test_no_strategies | empty list | FallbackExhaustedError |
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from cal_chat.transport import FallbackExhaustedError, call_with_fallback


async def _hang() -> str:
    await asyncio.sleep(10)
    return "too late"


class TestCallWithFallback:
    """Tests for call_with_fallback()."""

    async def test_first_strategy_wins(self) -> None:
        primary = AsyncMock(return_value="primary")
        secondary = AsyncMock(return_value="secondary")

        result = await call_with_fallback([("a", primary), ("b", secondary)], timeout=1.0)

        assert result == "primary"
        secondary.assert_not_called()

    async def test_falls_back_on_error(self) -> None:
        primary = AsyncMock(side_effect=RuntimeError("quota"))
        secondary = AsyncMock(return_value="secondary")

        result = await call_with_fallback([("a", primary), ("b", secondary)], timeout=1.0)

        assert result == "secondary"
        primary.assert_awaited_once()

    async def test_all_fail(self) -> None:
        strategies = [
            ("a", AsyncMock(side_effect=RuntimeError("quota"))),
            ("b", AsyncMock(side_effect=ValueError("bad"))),
        ]

        with pytest.raises(FallbackExhaustedError) as exc_info:
            await call_with_fallback(strategies, timeout=1.0)

        assert exc_info.value.attempts == ["a", "b"]
        assert [type(e) for e in exc_info.value.errors] == [RuntimeError, ValueError]
        assert "quota" in str(exc_info.value)

    async def test_timeout_shares_budget(self) -> None:
        """A hanging strategy consumes the whole budget; the chain stops there."""
        secondary = AsyncMock(return_value="secondary")
        loop = asyncio.get_running_loop()
        started = loop.time()

        with pytest.raises(FallbackExhaustedError) as exc_info:
            await call_with_fallback([("slow", _hang), ("b", secondary)], timeout=0.05)

        assert loop.time() - started < 1.0
        assert exc_info.value.attempts == ["slow"]
        secondary.assert_not_called()

    @pytest.mark.parametrize("error", [TimeoutError("read timed out"), asyncio.TimeoutError()])
    async def test_strategy_timeout_falls_back(self, error: Exception) -> None:
        """A timeout raised by the strategy itself is an ordinary failure."""
        primary = AsyncMock(side_effect=error)
        secondary = AsyncMock(return_value="secondary")

        result = await call_with_fallback([("a", primary), ("b", secondary)], timeout=5.0)

        assert result == "secondary"
        secondary.assert_awaited_once()

    async def test_strategy_timeout_recorded(self) -> None:
        strategies = [
            ("a", AsyncMock(side_effect=TimeoutError("read timed out"))),
            ("b", AsyncMock(side_effect=RuntimeError("quota"))),
        ]

        with pytest.raises(FallbackExhaustedError) as exc_info:
            await call_with_fallback(strategies, timeout=5.0)

        assert exc_info.value.attempts == ["a", "b"]
        assert isinstance(exc_info.value.errors[0], TimeoutError)

    async def test_no_strategies(self) -> None:
        with pytest.raises(FallbackExhaustedError, match="No strategies"):
            await call_with_fallback([], timeout=1.0)
