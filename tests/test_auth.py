"""API key authentication, key validation and brute-force protection tests."""
import pytest

from dashboard.core.config import settings
from dashboard.core.security import BruteForceProtection, brute_force_protection


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestApiKeyRequired:
    def test_missing_key(self, client):
        r = client.get("/api/to_do_list")
        assert r.status_code == 401
        assert r.json()["detail"] == "Invalid or missing API key"

    def test_wrong_key(self, client):
        r = client.get("/api/notifications", headers={"X-API-Key": "nope"})
        assert r.status_code == 401

    def test_valid_key(self, client, auth_headers):
        r = client.get("/api/to_do_list", headers=auth_headers)
        assert r.status_code == 200

    def test_unset_key_rejects_everything(self, client, monkeypatch):
        monkeypatch.setattr(settings, "API_SECURITY_KEY", "")
        r = client.get("/api/to_do_list", headers={"X-API-Key": ""})
        assert r.status_code == 401

    def test_health_is_public(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["db_connected"] is True
        assert body["redis_connected"] is True

    def test_health_degraded_without_redis(self, client, redis_mock):
        from redis.exceptions import ConnectionError as RedisConnectionError

        redis_mock.ping.side_effect = RedisConnectionError("down")
        r = client.get("/health")
        assert r.json()["status"] == "degraded"
        assert r.json()["redis_connected"] is False


class TestValidateEndpoint:
    def test_valid(self, client, api_key):
        r = client.post("/api/auth/validate", json={"api_key": api_key})
        assert r.status_code == 200
        assert r.json() == {"valid": True, "message": "API key is valid"}

    def test_camel_case_field(self, client, api_key):
        r = client.post("/api/auth/validate", json={"apiKey": api_key})
        assert r.json()["valid"] is True

    def test_invalid(self, client):
        r = client.post("/api/auth/validate", json={"api_key": "guess"})
        assert r.status_code == 401
        assert r.json() == {"valid": False, "message": "Invalid API key"}

    @pytest.mark.parametrize("body", [{}, {"api_key": ""}, {"api_key": "   "}])
    def test_missing(self, client, body):
        r = client.post("/api/auth/validate", json=body)
        assert r.status_code == 400

    def test_server_key_not_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "API_SECURITY_KEY", "")
        r = client.post("/api/auth/validate", json={"api_key": "anything"})
        assert r.status_code == 500

    def test_blocked_after_repeated_failures(self, client, api_key):
        for _ in range(settings.BRUTE_FORCE_MAX_ATTEMPTS):
            assert client.post("/api/auth/validate", json={"api_key": "guess"}).status_code == 401

        # Even the right key is refused while blocked
        r = client.post("/api/auth/validate", json={"api_key": api_key})
        assert r.status_code == 429
        body = r.json()
        assert body["valid"] is False
        assert body["retry_after"] > 0
        assert r.headers["Retry-After"] == str(body["retry_after"])

    def test_success_clears_failures(self, client, api_key):
        client.post("/api/auth/validate", json={"api_key": "guess"})
        assert brute_force_protection.attempt_count("testclient") == 1
        client.post("/api/auth/validate", json={"api_key": api_key})
        assert brute_force_protection.attempt_count("testclient") == 0


class TestBruteForceProtection:
    def _protection(self, clock):
        return BruteForceProtection(max_attempts=3, window_seconds=900, block_seconds=1800, clock=clock)

    def test_blocks_at_threshold(self):
        clock = FakeClock()
        protection = self._protection(clock)
        protection.record_failure("1.2.3.4")
        protection.record_failure("1.2.3.4")
        assert protection.retry_after("1.2.3.4") is None

        protection.record_failure("1.2.3.4")
        assert protection.retry_after("1.2.3.4") == 1800
        assert protection.retry_after("5.6.7.8") is None

    def test_block_expires(self):
        clock = FakeClock()
        protection = self._protection(clock)
        for _ in range(3):
            protection.record_failure("1.2.3.4")
        clock.now += 1799.5
        assert protection.retry_after("1.2.3.4") == 1
        clock.now += 1
        assert protection.retry_after("1.2.3.4") is None
        assert protection.attempt_count("1.2.3.4") == 0

    def test_window_resets_count(self):
        clock = FakeClock()
        protection = self._protection(clock)
        protection.record_failure("1.2.3.4")
        protection.record_failure("1.2.3.4")
        clock.now += 901
        protection.record_failure("1.2.3.4")
        assert protection.attempt_count("1.2.3.4") == 1
        assert protection.retry_after("1.2.3.4") is None

    def test_cleanup(self):
        clock = FakeClock()
        protection = self._protection(clock)
        protection.record_failure("stale")
        clock.now += 600
        protection.record_failure("recent")
        clock.now += 400
        protection.cleanup()
        assert protection.attempt_count("stale") == 0
        assert protection.attempt_count("recent") == 1

    def test_stale_entries_swept_during_use(self):
        clock = FakeClock()
        protection = self._protection(clock)
        for i in range(1000):
            protection.record_failure(f"10.0.{i // 256}.{i % 256}")
        assert len(protection._attempts) == 1000

        clock.now += 901
        protection.record_failure("192.168.0.1")
        assert list(protection._attempts) == ["192.168.0.1"]

    def test_sweep_keeps_blocked_ips_until_block_ends(self):
        clock = FakeClock()
        protection = self._protection(clock)
        for _ in range(3):
            protection.record_failure("1.2.3.4")

        clock.now += 1000
        protection.record_failure("5.6.7.8")
        assert protection.retry_after("1.2.3.4") == 800

        clock.now += 900
        protection.retry_after("5.6.7.8")
        assert protection.attempt_count("1.2.3.4") == 0
