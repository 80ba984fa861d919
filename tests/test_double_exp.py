"""Tests for the double-EXP window."""

import asyncio
import json
import logging

import pytest

from chat_exp.double_exp import (
    DOUBLE_EXP_MULTIPLIER,
    DoubleExpWindow,
    parse_duration,
)


@pytest.fixture
def window(tmp_path, clock):
    win = DoubleExpWindow(tmp_path / "exp-config.json", clock)
    win.load()
    yield win
    win.close()


def _stored(win):
    return json.loads(win.path.read_text(encoding="utf-8"))


class TestParseDuration:
    def test_minutes(self):
        assert parse_duration("30 minutes") == 30 * 60 * 1000

    def test_singular_hour(self):
        assert parse_duration("1 hour") == 60 * 60 * 1000

    def test_case_and_spacing(self):
        assert parse_duration(" 2Days ") == 2 * 24 * 60 * 60 * 1000

    @pytest.mark.parametrize("text", ["", "soon", "5", "hours", "1.5 hours", "-1 hour", "3 weeks"])
    def test_rejects_malformed(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            parse_duration("0 minutes")


class TestMultiplier:
    def test_off_by_default(self, window):
        assert not window.is_active()
        assert window.current_multiplier() == 1

    def test_indefinite(self, window, clock):
        window.enable()
        clock.advance(10 ** 9)
        assert window.current_multiplier() == DOUBLE_EXP_MULTIPLIER
        assert window.end_time is None

    def test_timed_then_expired(self, window, clock):
        window.enable(1000)
        assert window.current_multiplier() == DOUBLE_EXP_MULTIPLIER
        clock.advance(1000)
        assert window.current_multiplier() == 1
        assert window.end_time is None
        assert _stored(window) == {"doubleExp": False, "doubleExpEndTime": None}

    def test_disable_reverts_immediately(self, window):
        window.enable()
        window.disable()
        assert window.current_multiplier() == 1

    def test_remaining(self, window, clock):
        assert window.remaining_ms() is None
        window.enable(5000)
        clock.advance(2000)
        assert window.remaining_ms() == 3000
        window.enable()
        assert window.remaining_ms() is None


class TestEnableDisable:
    def test_enable_persists(self, window, clock):
        window.enable(60_000)
        assert _stored(window) == {"doubleExp": True, "doubleExpEndTime": clock.now + 60_000}

    def test_disable_clears_end_time(self, window):
        window.enable(60_000)
        window.disable()
        assert window.end_time is None
        assert _stored(window) == {"doubleExp": False, "doubleExpEndTime": None}

    @pytest.mark.parametrize("duration", [0, -5, 1.5, True])
    def test_invalid_duration_rejected(self, window, duration):
        with pytest.raises(ValueError):
            window.enable(duration)
        assert not window.enabled
        assert not window.path.exists()

    def test_every_toggle_bumps_generation(self, window):
        gen = window.generation
        window.enable()
        window.disable()
        assert window.generation == gen + 2


class TestToggle:
    def test_no_argument_flips(self, window):
        assert window.toggle() is True
        assert window.end_time is None
        assert window.toggle("") is False

    def test_off(self, window):
        window.enable()
        assert window.toggle("OFF") is False

    def test_duration(self, window, clock):
        assert window.toggle("2 hours") is True
        assert window.end_time == clock.now + 2 * 60 * 60 * 1000

    def test_malformed_changes_nothing(self, window):
        window.enable()
        with pytest.raises(ValueError):
            window.toggle("forever")
        assert window.enabled
        assert window.end_time is None


class TestLoad:
    def _write(self, tmp_path, record):
        path = tmp_path / "exp-config.json"
        path.write_text(json.dumps(record), encoding="utf-8")
        return path

    def test_restores_active_window(self, tmp_path, clock):
        path = self._write(tmp_path, {"doubleExp": True, "doubleExpEndTime": clock.now + 5000})
        win = DoubleExpWindow(path, clock)
        win.load()
        assert win.is_active()
        assert win.end_time == clock.now + 5000

    def test_expires_stale_window(self, tmp_path, clock):
        path = self._write(tmp_path, {"doubleExp": True, "doubleExpEndTime": clock.now - 1})
        win = DoubleExpWindow(path, clock)
        win.load()
        assert not win.enabled
        assert _stored(win) == {"doubleExp": False, "doubleExpEndTime": None}

    def test_residual_end_time_dropped(self, tmp_path, clock):
        path = self._write(tmp_path, {"doubleExp": False, "doubleExpEndTime": clock.now + 5000})
        win = DoubleExpWindow(path, clock)
        win.load()
        assert not win.enabled
        assert win.end_time is None

    def test_malformed_loads_disabled(self, tmp_path, clock, caplog):
        path = self._write(tmp_path, {"doubleExp": "yes", "doubleExpEndTime": "tomorrow"})
        win = DoubleExpWindow(path, clock)
        with caplog.at_level(logging.WARNING):
            win.load()
        assert not win.enabled
        assert "malformed" in caplog.text

    def test_corrupt_file_loads_disabled(self, tmp_path, clock):
        path = tmp_path / "exp-config.json"
        path.write_text("not json", encoding="utf-8")
        win = DoubleExpWindow(path, clock)
        win.load()
        assert not win.enabled


class TestExpiryTimer:
    def test_timer_expires_window(self, tmp_path, clock):
        async def scenario():
            win = DoubleExpWindow(tmp_path / "exp-config.json", clock)
            win.enable(20)
            clock.advance(20)
            await asyncio.sleep(0.1)
            return win

        win = asyncio.run(scenario())
        assert win.enabled is False
        assert _stored(win) == {"doubleExp": False, "doubleExpEndTime": None}

    def test_reenable_indefinite_survives_old_timer(self, tmp_path, clock):
        async def scenario():
            win = DoubleExpWindow(tmp_path / "exp-config.json", clock)
            win.enable(20)
            win.enable()
            clock.advance(1000)
            await asyncio.sleep(0.1)
            return win

        win = asyncio.run(scenario())
        assert win.enabled is True
        assert win.end_time is None
        assert _stored(win) == {"doubleExp": True, "doubleExpEndTime": None}

    def test_reenable_longer_window_survives_old_timer(self, tmp_path, clock):
        async def scenario():
            win = DoubleExpWindow(tmp_path / "exp-config.json", clock)
            win.enable(20)
            win.enable(60_000)
            clock.advance(20)
            await asyncio.sleep(0.1)
            win.close()
            return win

        win = asyncio.run(scenario())
        assert win.enabled is True
        assert _stored(win)["doubleExpEndTime"] == win.end_time

    def test_timer_rearms_when_clock_lags(self, tmp_path, clock):
        async def scenario():
            win = DoubleExpWindow(tmp_path / "exp-config.json", clock)
            win.enable(20)
            await asyncio.sleep(0.1)
            still_on = win.enabled
            clock.advance(20)
            await asyncio.sleep(0.1)
            return still_on, win.enabled

        assert asyncio.run(scenario()) == (True, False)

    def test_stale_generation_is_noop(self, window, clock):
        window.enable(20)
        stale = window.generation
        window.enable(60_000)
        clock.advance(30)
        window._on_timer(stale)
        assert window.enabled is True
        assert window.end_time == clock.now - 30 + 60_000

    def test_no_loop_falls_back_to_lazy_check(self, window, clock):
        window.enable(20)
        clock.advance(20)
        assert window.enabled is True
        assert window.is_active() is False
