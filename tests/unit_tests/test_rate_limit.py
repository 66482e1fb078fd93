"""Tests for the sliding-window rate limit gate and its HTTP wiring."""

import time

from taskauth.rate_limit import RateLimitGate
from taskauth.services.passwords import PasswordHasher


class TestRateLimitGate:
    def test_quota_then_reject(self):
        gate = RateLimitGate("memory://", "3/60 seconds")
        decisions = [gate.allow("1.2.3.4") for _ in range(4)]

        assert [d.permitted for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions[:3]] == [2, 1, 0]
        assert decisions[-1].remaining == 0

    def test_reset_at_is_within_window(self):
        gate = RateLimitGate("memory://", "3/60 seconds")
        now = time.time()
        decision = gate.allow("1.2.3.4")
        assert now <= decision.reset_at <= now + 61

    def test_keys_are_independent(self):
        gate = RateLimitGate("memory://", "1/60 seconds")
        assert gate.allow("a").permitted
        assert not gate.allow("a").permitted
        assert gate.allow("b").permitted

    def test_reset_clears_counters(self):
        gate = RateLimitGate("memory://", "1/60 seconds")
        gate.allow("a")
        gate.reset()
        assert gate.allow("a").permitted

    def test_rejection_headers(self):
        gate = RateLimitGate("memory://", "1/60 seconds")
        gate.allow("a")
        decision = gate.allow("a")
        headers = decision.headers(time.time())
        assert headers["X-RateLimit-Limit"] == "1"
        assert headers["X-RateLimit-Remaining"] == "0"
        assert int(headers["Retry-After"]) >= 1


class TestRateLimitedEndpoints:
    """The gate rejects before any password work is done."""

    def test_21st_login_rejected_without_hash_comparison(self, limited_client, monkeypatch):
        compared = []
        original_verify = PasswordHasher.verify

        def counting_verify(self, plaintext, hashed):
            compared.append(plaintext)
            return original_verify(self, plaintext, hashed)

        monkeypatch.setattr(PasswordHasher, "verify", counting_verify)

        # Request 1: registration counts against the same client key.
        resp = limited_client.post(
            "/api/auth/register",
            json={"name": "Ann", "email": "ann@x.com", "password": "secret123"},
        )
        assert resp.json()["success"] is True

        # Requests 2..20
        for i in range(19):
            resp = limited_client.post(
                "/api/auth/login", json={"email": "ann@x.com", "password": "wrong"}
            )
            assert resp.status_code == 200, f"Request {i + 2} should not be rate-limited"
            assert resp.json()["message"] == "Invalid Credentials"

        # Request 21
        resp = limited_client.post(
            "/api/auth/login", json={"email": "ann@x.com", "password": "wrong"}
        )
        assert resp.status_code == 429
        assert resp.json()["success"] is False
        assert "Retry-After" in resp.headers
        assert len(compared) == 19

    def test_permitted_response_carries_quota_headers(self, limited_client):
        resp = limited_client.post(
            "/api/auth/register",
            json={"name": "Ann", "email": "ann@x.com", "password": "secret123"},
        )
        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Limit"] == "20"
        assert resp.headers["X-RateLimit-Remaining"] == "19"

    def test_logout_is_not_limited(self, limited_client):
        for _ in range(25):
            resp = limited_client.post("/api/auth/logout")
            assert resp.status_code == 200
