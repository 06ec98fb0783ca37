"""
Tests for the edit key gate and the session lockout policy.
"""

import pytest

from resource_hub.access import AccessGate, EditSession, hash_secret


class CountingGate:
    """Gate stand-in that records how often a candidate is evaluated."""

    def __init__(self, secret):
        self.secret = secret
        self.calls = 0

    def verify_secret(self, candidate):
        self.calls += 1
        return candidate == self.secret


class TestAccessGate:
    def test_unconfigured(self, store):
        gate = AccessGate(store)
        assert not gate.has_configured_secret()
        assert not gate.verify_secret("anything")

    def test_set_and_verify(self, store):
        gate = AccessGate(store)
        gate.set_secret("open sesame")
        assert gate.has_configured_secret()
        assert gate.verify_secret("open sesame")
        assert not gate.verify_secret("open sesame ")
        assert not gate.verify_secret("")

    def test_stored_hash_shape(self, store):
        AccessGate(store).set_secret("k")
        cfg = store.get_config()
        assert len(cfg["hash"]) == 64
        assert len(cfg["salt"]) == 32
        assert cfg["hash"] == hash_secret("k", bytes.fromhex(cfg["salt"]))

    def test_fresh_salt_on_every_set(self, store):
        gate = AccessGate(store)
        gate.set_secret("same")
        first = store.get_config()["salt"]
        gate.set_secret("same")
        assert store.get_config()["salt"] != first
        assert gate.verify_secret("same")

    def test_empty_secret_rejected(self, store):
        with pytest.raises(ValueError):
            AccessGate(store).set_secret("  ")


class TestEditSession:
    def test_success_enables_edit_mode(self):
        scope = {}
        es = EditSession(scope)
        res = es.unlock(CountingGate("k"), "k")
        assert res.ok and not res.locked
        assert es.edit_mode
        es.lock()
        assert not es.edit_mode

    def test_failures_report_remaining(self):
        es = EditSession({})
        gate = CountingGate("k")
        assert es.unlock(gate, "x").remaining == 2
        assert es.unlock(gate, "x").remaining == 1
        assert not es.edit_mode

    def test_three_failures_lock_and_fourth_is_not_evaluated(self):
        scope = {}
        es = EditSession(scope)
        gate = CountingGate("k")
        for _ in range(3):
            es.unlock(gate, "wrong")
        assert es.locked
        assert gate.calls == 3

        res = es.unlock(gate, "k")
        assert not res.ok and res.locked
        assert gate.calls == 3
        assert not es.edit_mode

    def test_success_resets_counter(self):
        es = EditSession({})
        gate = CountingGate("k")
        es.unlock(gate, "x")
        es.unlock(gate, "x")
        es.unlock(gate, "k")
        assert es.failed_attempts == 0

    def test_cleared_scope_lifts_lockout(self):
        scope = {}
        es = EditSession(scope)
        for _ in range(3):
            es.unlock(CountingGate("k"), "x")
        scope.clear()
        assert not es.locked
