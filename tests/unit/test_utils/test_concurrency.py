"""Tests for bounded fan-out."""

import asyncio

import pytest

from src.utils.concurrency import BulkResult, gather_bounded


class TestGatherBounded:
    """Tests for gather_bounded()."""

    @pytest.mark.asyncio
    async def test_respects_concurrency(self):
        """No more than `concurrency` tasks run at once."""
        active = 0
        peak = 0

        def make(i):
            async def task():
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                return i

            return task

        result = await gather_bounded([make(i) for i in range(6)], concurrency=2)

        assert peak == 2
        assert result.succeeded == 6
        assert result.results == [0, 1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_failures_do_not_cancel_siblings(self):
        """A failing task is counted while the others complete."""

        async def ok():
            return "ok"

        async def boom():
            raise RuntimeError("boom")

        result = await gather_bounded([ok, boom, ok], concurrency=3)

        assert result.succeeded == 2
        assert result.failed == 1
        assert result.total == 3
        assert result.errors == ["boom"]

    @pytest.mark.asyncio
    async def test_empty(self):
        """No tasks yields an empty result."""
        result = await gather_bounded([], concurrency=3)
        assert result == BulkResult()

    @pytest.mark.asyncio
    async def test_invalid_concurrency(self):
        """Concurrency below 1 is rejected."""
        with pytest.raises(ValueError):
            await gather_bounded([], concurrency=0)
