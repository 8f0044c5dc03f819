# Overview: Advisory geo-IP access gate with cached decisions and fail-open lookups.

"""
Geo gate.

Whitelist-only pre-check run before a visitor sees the wholesale UI:

- visitors outside the US are denied when us_only is set
- hard-blocked states are denied even if they also appear in the whitelist
- states missing from the whitelist are denied

Admin sessions and local development hosts skip the check. A decision is
cached in the ClientSessionContext for `cache_ttl` seconds. When the lookup
fails the visitor is let through (and that is cached too).

This is a UX deterrent only. Applications and orders are re-checked
against the restricted-state table on the server.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import httpx

from .session_context import ClientSessionContext

logger = logging.getLogger(__name__)

US_STATES = (
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
    "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
    "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
    "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
    "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
    "DC",
)

STATE_NAMES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming", "DC": "District of Columbia",
}

DEFAULT_BLOCKED_STATES = ("ID", "OR", "SD")
DEV_HOSTS = ("localhost", "127.0.0.1")
DEFAULT_CACHE_TTL = 60 * 60

IP_API_URL = "http://ip-api.com/json/"
IP_API_FIELDS = "status,message,country,countryCode,region,regionName,city"


class GeoLookupError(Exception):
    """The lookup service failed or answered without a location."""


@dataclass(frozen=True)
class GeoLocation:
    country: str
    country_code: str
    region_code: str
    region_name: str = ""
    city: str = ""


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: Optional[str] = None
    # dev_bypass | admin_bypass | cache | lookup | fail_open
    source: str = "lookup"


class IpApiGeoLookup:
    """ip-api.com client (free tier, no key, 45 req/min)."""

    def __init__(
        self,
        *,
        base_url: str = IP_API_URL,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    def resolve(self, ip: str | None = None) -> GeoLocation:
        url = self.base_url + (ip or "")
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(url, params={"fields": IP_API_FIELDS})
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GeoLookupError(str(exc)) from exc

        if not isinstance(data, dict) or data.get("status") != "success":
            message = data.get("message") if isinstance(data, dict) else None
            raise GeoLookupError(f"lookup returned non-success: {message or 'unknown'}")

        return GeoLocation(
            country=data.get("country") or "",
            country_code=(data.get("countryCode") or "").upper(),
            region_code=(data.get("region") or "").upper(),
            region_name=data.get("regionName") or "",
            city=data.get("city") or "",
        )


class GeoGate:
    def __init__(
        self,
        context: ClientSessionContext,
        lookup=None,
        *,
        allowed_states: Iterable[str] | None = None,
        blocked_states: Iterable[str] = DEFAULT_BLOCKED_STATES,
        us_only: bool = True,
        admin_bypass: bool = True,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ):
        self.context = context
        self.lookup = lookup or IpApiGeoLookup()
        self.blocked_states = frozenset(s.upper() for s in blocked_states)
        if allowed_states is None:
            allowed_states = [s for s in US_STATES if s not in self.blocked_states]
        self.allowed_states = frozenset(s.upper() for s in allowed_states)
        self.us_only = us_only
        self.admin_bypass = admin_bypass
        self.cache_ttl = cache_ttl
        self.clock = clock

    # -- cache ---------------------------------------------------------------

    def _cached(self) -> GateDecision | None:
        cache = self.context.geo_cache
        if not isinstance(cache, dict):
            return None
        try:
            age = self.clock() - float(cache.get("timestamp", 0))
        except (TypeError, ValueError):
            return None
        if age > self.cache_ttl:
            self.context.geo_cache = None
            return None
        allowed = cache.get("result") == "allowed"
        return GateDecision(allowed=allowed, reason=cache.get("reason"), source="cache")

    def _remember(self, decision: GateDecision) -> GateDecision:
        self.context.geo_cache = {
            "result": "allowed" if decision.allowed else "blocked",
            "reason": decision.reason,
            "timestamp": self.clock(),
        }
        self.context.save()
        return decision

    # -- rules ---------------------------------------------------------------

    def evaluate(self, location: GeoLocation) -> GateDecision:
        if self.us_only and location.country_code != "US":
            return GateDecision(
                allowed=False,
                reason=(
                    "Hemp Life Farmers only services the United States. "
                    f"Your detected location: {location.country or location.country_code}"
                ),
            )

        code = location.region_code
        name = STATE_NAMES.get(code, code)
        if code in self.blocked_states:
            return GateDecision(
                allowed=False,
                reason=f"Hemp Life Farmers cannot service {name} ({code}) due to state-level hemp restrictions.",
            )
        if code not in self.allowed_states:
            return GateDecision(
                allowed=False,
                reason=f"Hemp Life Farmers does not currently service {name} ({code}).",
            )
        return GateDecision(allowed=True)

    def check(self, client_ip: str | None = None, hostname: str | None = None) -> GateDecision:
        if hostname in DEV_HOSTS:
            return GateDecision(allowed=True, source="dev_bypass")
        if self.admin_bypass and self.context.is_admin:
            return GateDecision(allowed=True, source="admin_bypass")

        cached = self._cached()
        if cached is not None:
            return cached

        try:
            location = self.lookup.resolve(client_ip)
        except GeoLookupError as exc:
            logger.warning("Geo lookup failed, allowing access: %s", exc)
            return self._remember(GateDecision(allowed=True, source="fail_open"))

        decision = self.evaluate(location)
        logger.info(
            "Geo check %s: %s, %s", "allowed" if decision.allowed else "blocked",
            location.region_code, location.country_code,
        )
        return self._remember(decision)
