"""
Client-side helpers for the wholesale API.

- ClientSessionContext: explicit persisted client state (token, profile, geo cache)
- GeoGate: advisory geo-IP pre-check; the server remains authoritative
- WholesaleClient: typed HTTP adapter over the /api surface
"""

from .session_context import ClientSessionContext
from .geo_gate import GateDecision, GeoGate, GeoLocation, GeoLookupError, IpApiGeoLookup
from .api_client import ApiError, WholesaleClient

__all__ = [
    'ClientSessionContext',
    'GateDecision', 'GeoGate', 'GeoLocation', 'GeoLookupError', 'IpApiGeoLookup',
    'ApiError', 'WholesaleClient',
]
