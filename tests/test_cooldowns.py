"""Tests for the self-grant cooldown gate."""

from chat_exp.cooldowns import EXP_COOLDOWN_MS, CooldownGate


class TestCooldownGate:
    def test_unknown_user_not_throttled(self, clock):
        gate = CooldownGate(clock=clock)
        assert not gate.is_throttled("alice")
        assert gate.last_grant("alice") is None

    def test_throttled_inside_window(self, clock):
        gate = CooldownGate(clock=clock)
        gate.record("alice")
        clock.advance(EXP_COOLDOWN_MS - 1)
        assert gate.is_throttled("alice")

    def test_free_at_window_edge(self, clock):
        gate = CooldownGate(clock=clock)
        gate.record("alice")
        clock.advance(EXP_COOLDOWN_MS)
        assert not gate.is_throttled("alice")

    def test_record_overwrites(self, clock):
        gate = CooldownGate(window_ms=100, clock=clock)
        gate.record("alice")
        clock.advance(150)
        gate.record("alice")
        assert gate.last_grant("alice") == clock.now
        assert gate.is_throttled("alice")

    def test_users_independent(self, clock):
        gate = CooldownGate(clock=clock)
        gate.record("alice")
        assert not gate.is_throttled("bob")

    def test_zero_window_never_throttles(self, clock):
        gate = CooldownGate(window_ms=0, clock=clock)
        gate.record("alice")
        assert not gate.is_throttled("alice")
