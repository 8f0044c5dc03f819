"""
Geo gate tests.

Verifies:
- US whitelist with hard-blocked states
- dev host and admin bypass
- decisions are cached for the TTL and persisted with the context
- lookup failures fail open
"""

import httpx
import pytest

from wholesale.client import (
    ClientSessionContext,
    GeoGate,
    GeoLocation,
    GeoLookupError,
    IpApiGeoLookup,
)


class FakeLookup:
    def __init__(self, location=None, error=None):
        self.location = location
        self.error = error
        self.calls = 0

    def resolve(self, ip=None):
        self.calls += 1
        if self.error:
            raise self.error
        return self.location


class Clock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def _loc(region, country_code="US", country="United States"):
    return GeoLocation(country=country, country_code=country_code, region_code=region)


@pytest.fixture
def context(tmp_path):
    return ClientSessionContext.load(tmp_path / "session.json")


class TestRules:

    def test_allowed_state(self, context):
        decision = GeoGate(context, FakeLookup(_loc("TX"))).check()
        assert decision.allowed is True
        assert decision.source == "lookup"

    @pytest.mark.parametrize("region", ["ID", "OR", "SD"])
    def test_blocked_states(self, context, region):
        decision = GeoGate(context, FakeLookup(_loc(region))).check()
        assert decision.allowed is False
        assert f"({region})" in decision.reason

    def test_non_us_is_blocked(self, context):
        decision = GeoGate(context, FakeLookup(_loc("ON", "CA", "Canada"))).check()
        assert decision.allowed is False
        assert "Canada" in decision.reason

    def test_non_us_allowed_when_us_only_off(self, context):
        gate = GeoGate(context, FakeLookup(_loc("TX", "MX", "Mexico")), us_only=False)
        assert gate.check().allowed is True

    def test_blocked_wins_over_whitelist(self, context):
        gate = GeoGate(context, FakeLookup(_loc("ID")), allowed_states=["ID", "TX"])
        assert gate.check().allowed is False

    def test_state_outside_whitelist(self, context):
        gate = GeoGate(context, FakeLookup(_loc("CA")), allowed_states=["TX"])
        decision = gate.check()
        assert decision.allowed is False
        assert "California" in decision.reason


class TestBypassAndCache:

    @pytest.mark.parametrize("host", ["localhost", "127.0.0.1"])
    def test_dev_hosts_skip_lookup(self, context, host):
        lookup = FakeLookup(_loc("ID"))
        decision = GeoGate(context, lookup).check(hostname=host)
        assert decision.allowed is True
        assert decision.source == "dev_bypass"
        assert lookup.calls == 0

    def test_admin_session_skips_lookup(self, context):
        context.set_login("tok", {"id": 1, "is_admin": True})
        lookup = FakeLookup(_loc("ID"))
        assert GeoGate(context, lookup).check().source == "admin_bypass"
        assert lookup.calls == 0

    def test_decision_is_cached_and_persisted(self, context):
        clock = Clock()
        lookup = FakeLookup(_loc("SD"))
        gate = GeoGate(context, lookup, clock=clock)

        assert gate.check().allowed is False
        again = gate.check()
        assert again.allowed is False
        assert again.source == "cache"
        assert lookup.calls == 1

        reloaded = ClientSessionContext.load(context.path)
        assert reloaded.geo_cache["result"] == "blocked"

    def test_cache_expires(self, context):
        clock = Clock()
        lookup = FakeLookup(_loc("TX"))
        gate = GeoGate(context, lookup, clock=clock, cache_ttl=60)
        gate.check()
        clock.now += 61
        assert gate.check().source == "lookup"
        assert lookup.calls == 2

    def test_lookup_failure_fails_open(self, context):
        lookup = FakeLookup(error=GeoLookupError("timeout"))
        gate = GeoGate(context, lookup)
        decision = gate.check()
        assert decision.allowed is True
        assert decision.source == "fail_open"
        assert gate.check().source == "cache"
        assert lookup.calls == 1


class TestIpApiLookup:

    def test_parses_success(self):
        def handler(request):
            assert request.url.path == "/json/8.8.8.8"
            return httpx.Response(200, json={
                "status": "success", "country": "United States", "countryCode": "US",
                "region": "ca", "regionName": "California", "city": "Mountain View",
            })

        location = IpApiGeoLookup(transport=httpx.MockTransport(handler)).resolve("8.8.8.8")
        assert location.country_code == "US"
        assert location.region_code == "CA"
        assert location.city == "Mountain View"

    def test_fail_status_raises(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"status": "fail", "message": "private range"})
        )
        with pytest.raises(GeoLookupError):
            IpApiGeoLookup(transport=transport).resolve("10.0.0.1")

    def test_http_error_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(429))
        with pytest.raises(GeoLookupError):
            IpApiGeoLookup(transport=transport).resolve()
