"""IP geolocation through an external lookup service.

The lookup never raises: loopback addresses get a fixed "Local" record,
and timeouts or bad responses degrade to an "Unknown" record. Successful
results are cached per cleaned IP for the life of the process.
"""

import ipaddress
import logging

import httpx
from pydantic import ValidationError

from leadtrace.schemas.visitor import Geo

logger = logging.getLogger(__name__)

LOOKUP_FIELDS = "city,regionName,country,lat,lon,org,as"
LOCAL_GEO = {
    "city": "Local",
    "region": "Local",
    "country": "Local",
    "lat": 0.0,
    "lng": 0.0,
    "org": "Localhost",
}
UNKNOWN_GEO = {"city": "Unknown"}


def clean_ip(ip: str) -> str:
    """Strip the IPv4-mapped IPv6 prefix."""
    return ip.removeprefix("::ffff:")


def is_local(ip: str) -> bool:
    if not ip or ip == "localhost":
        return True
    try:
        return ipaddress.ip_address(clean_ip(ip)).is_loopback
    except ValueError:
        return False


class GeoLocator:
    def __init__(self, lookup_url: str, timeout: float = 3.0) -> None:
        self._lookup_url = lookup_url
        self._client = httpx.AsyncClient(timeout=timeout)
        self._cache: dict[str, dict] = {}

    async def locate(self, ip: str) -> Geo:
        if is_local(ip):
            return Geo(ip=ip, **LOCAL_GEO)

        cleaned = clean_ip(ip)
        if cleaned in self._cache:
            return Geo(ip=ip, **self._cache[cleaned])

        try:
            response = await self._client.get(
                self._lookup_url.format(ip=cleaned),
                params={"fields": LOOKUP_FIELDS},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            logger.warning("Geolocation lookup for %s timed out", cleaned)
            return Geo(ip=ip, **UNKNOWN_GEO)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Geolocation lookup for %s failed: %s", cleaned, exc)
            return Geo(ip=ip, **UNKNOWN_GEO)

        if not isinstance(data, dict):
            return Geo(ip=ip, **UNKNOWN_GEO)

        fields = {
            "city": data.get("city") or "",
            "region": data.get("regionName") or "",
            "country": data.get("country") or "",
            "lat": data.get("lat") or 0.0,
            "lng": data.get("lon") or 0.0,
            "org": data.get("org") or "",
            "asn": data.get("as") or "",
        }
        try:
            geo = Geo(ip=ip, **fields)
        except ValidationError:
            logger.warning("Geolocation lookup for %s returned unusable fields", cleaned)
            return Geo(ip=ip, **UNKNOWN_GEO)

        self._cache[cleaned] = fields
        return geo

    async def aclose(self) -> None:
        await self._client.aclose()
