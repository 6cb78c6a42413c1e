"""Tests for poll_until."""

import asyncio

import pytest

from src.session.polling import PollCancelledError, PollTimeoutError, poll_until


def _counter_probe(values):
    remaining = list(values)

    async def probe():
        return remaining.pop(0) if remaining else values[-1]

    return probe


@pytest.mark.asyncio
async def test_returns_first_matching_value():
    probe = _counter_probe(["login", "login", "https://x/cgi-bin/home"])

    result = await poll_until(
        probe, lambda url: "cgi-bin" in url, interval=0.001, timeout=1.0
    )

    assert result == "https://x/cgi-bin/home"


@pytest.mark.asyncio
async def test_times_out():
    probe = _counter_probe(["login"])

    with pytest.raises(PollTimeoutError):
        await poll_until(probe, lambda url: False, interval=0.01, timeout=0.05)


@pytest.mark.asyncio
async def test_cancel_event_stops_polling():
    cancel = asyncio.Event()
    probe = _counter_probe(["login"])

    async def trigger():
        await asyncio.sleep(0.02)
        cancel.set()

    task = asyncio.create_task(trigger())
    with pytest.raises(PollCancelledError):
        await poll_until(
            probe, lambda url: False, interval=0.01, timeout=None, cancel_event=cancel
        )
    await task


@pytest.mark.asyncio
async def test_preset_cancel_event_raises_before_probing():
    cancel = asyncio.Event()
    cancel.set()
    calls = []

    async def probe():
        calls.append(1)
        return "x"

    with pytest.raises(PollCancelledError):
        await poll_until(probe, bool, interval=0.01, timeout=1.0, cancel_event=cancel)
    assert calls == []


@pytest.mark.asyncio
async def test_probe_errors_count_as_misses():
    attempts = {"n": 0}

    async def flaky():
        attempts["n"] += 1
        if attempts["n"] < 3:
            raise RuntimeError("page detached")
        return "ok"

    result = await poll_until(flaky, lambda v: v == "ok", interval=0.001, timeout=1.0)

    assert result == "ok"
    assert attempts["n"] == 3
