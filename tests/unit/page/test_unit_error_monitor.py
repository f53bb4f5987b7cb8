# tests/unit/page/test_unit_error_monitor.py — v1
"""Tests for page/error_monitor.py — classification and escalation."""

from __future__ import annotations

import asyncio

import pytest

from staleguard.core.models import ErrorSignal, ScriptTag
from staleguard.page.error_monitor import ErrorMonitor, is_stale_build_signal


class Escalations:
    def __init__(self, fail: bool = False) -> None:
        self.reasons: list[str] = []
        self.fail = fail

    async def __call__(self, reason: str) -> None:
        self.reasons.append(reason)
        if self.fail:
            raise RuntimeError("reset failed")


@pytest.fixture
def escalations() -> Escalations:
    return Escalations()


@pytest.fixture
def monitor(escalations) -> ErrorMonitor:
    return ErrorMonitor(escalations, load_timeout_s=0.01)


class TestClassification:
    @pytest.mark.parametrize(
        "message",
        [
            "Uncaught SyntaxError: Unexpected token '<'",
            "SyntaxError: Unexpected end of input",
            "Loading chunk 7 failed.",
            "ChunkLoadError: Loading chunk vendors failed",
            "Failed to fetch dynamically imported module: https://a.test/assets/x.js",
            "Script error.",
        ],
    )
    def test_stale_build_messages(self, message):
        assert is_stale_build_signal(ErrorSignal(kind="error", message=message))

    def test_plain_error_not_classified(self):
        signal = ErrorSignal(
            kind="error",
            message="TypeError: cannot read properties of undefined",
            filename="https://a.test/assets/index-abc123.js",
        )
        assert not is_stale_build_signal(signal)

    @pytest.mark.parametrize("kind", ["script_load", "load_timeout"])
    def test_load_signals_always_classified(self, kind):
        assert is_stale_build_signal(ErrorSignal(kind=kind))


class TestThresholds:
    @pytest.mark.asyncio
    async def test_two_generic_errors_do_not_escalate(self, monitor, escalations):
        assert await monitor.on_error("TypeError: x is undefined") is False
        assert await monitor.on_error("TypeError: y is undefined") is False
        assert escalations.reasons == []

    @pytest.mark.asyncio
    async def test_three_generic_errors_escalate_once(self, monitor, escalations):
        for i in range(3):
            await monitor.on_error(f"TypeError: {i}")
        assert escalations.reasons == ["error_threshold"]
        assert monitor.counter.count == 0

    @pytest.mark.asyncio
    async def test_two_consecutive_classified_escalate(self, monitor, escalations):
        await monitor.on_error("Loading chunk 3 failed")
        assert escalations.reasons == []
        assert await monitor.on_unhandled_rejection("ChunkLoadError: chunk 4") is True
        assert escalations.reasons == ["stale_build"]

    @pytest.mark.asyncio
    async def test_interleaved_classified_counts_generally(self, monitor, escalations):
        await monitor.on_error("Loading chunk 3 failed")
        await monitor.on_error("TypeError: boom")
        assert escalations.reasons == []
        await monitor.on_error("Loading chunk 5 failed")
        assert escalations.reasons == ["error_threshold"]

    @pytest.mark.asyncio
    async def test_counter_reset_even_when_escalation_fails(self):
        escalations = Escalations(fail=True)
        monitor = ErrorMonitor(escalations)
        for i in range(3):
            await monitor.on_error(f"e{i}")
        assert escalations.reasons == ["error_threshold"]
        assert monitor.counter.count == 0
        assert monitor.escalations == 1

    @pytest.mark.asyncio
    async def test_signals_during_escalation_do_not_reescalate(self):
        gate = asyncio.Event()
        calls: list[str] = []

        async def slow_escalate(reason: str) -> None:
            calls.append(reason)
            await gate.wait()

        monitor = ErrorMonitor(slow_escalate)
        task = asyncio.gather(*(monitor.on_error(f"e{i}") for i in range(3)))
        await asyncio.sleep(0)
        await monitor.on_error("Loading chunk 1 failed")
        await monitor.on_error("Loading chunk 2 failed")
        gate.set()
        await task
        assert calls == ["error_threshold"]

    @pytest.mark.asyncio
    async def test_dismiss_resets_counter(self, monitor, escalations):
        await monitor.on_error("a")
        await monitor.on_error("b")
        monitor.dismiss()
        await monitor.on_error("c")
        assert escalations.reasons == []


class TestScriptVerification:
    @pytest.mark.asyncio
    async def test_all_loaded(self, monitor):
        scripts = [ScriptTag(src="/a.js"), ScriptTag(src="/b.js")]
        assert await monitor.verify_scripts(scripts) is False
        assert monitor.counter.count == 0

    @pytest.mark.asyncio
    async def test_missing_scripts_record_one_signal(self, monitor):
        scripts = [
            ScriptTag(src="/a.js", loaded=False),
            ScriptTag(src="/b.js", loaded=False),
            ScriptTag(src="/c.js"),
        ]
        await monitor.verify_scripts(scripts)
        assert monitor.counter.count == 1
        assert monitor.counter.classified_streak == 1

    @pytest.mark.asyncio
    async def test_failed_scripts_plus_chunk_error_escalate(self, monitor, escalations):
        await monitor.verify_scripts([ScriptTag(src="/a.js", loaded=False)])
        await monitor.on_error("Loading chunk 2 failed")
        assert escalations.reasons == ["stale_build"]


class TestLoadWatchdog:
    @pytest.mark.asyncio
    async def test_fires_when_still_loading(self, monitor):
        await monitor.start_load_watchdog(lambda: True)
        assert monitor.counter.count == 1

    @pytest.mark.asyncio
    async def test_quiet_when_loaded(self, monitor):
        await monitor.start_load_watchdog(lambda: False)
        assert monitor.counter.count == 0

    @pytest.mark.asyncio
    async def test_stop_cancels(self, escalations):
        monitor = ErrorMonitor(escalations, load_timeout_s=5)
        task = monitor.start_load_watchdog(lambda: True)
        await asyncio.sleep(0)
        monitor.stop_load_watchdog()
        await asyncio.wait_for(task, timeout=1)
        assert monitor.counter.count == 0
