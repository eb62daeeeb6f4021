"""Device classification and best-effort network lookups."""

import logging
import re
from dataclasses import dataclass

import httpx

from prelander_funnel.adapters.geo_client import GeoLookupClient
from prelander_funnel.domain.analytics import (
    UNKNOWN_COUNTRY,
    UNKNOWN_IP,
    Device,
    EnvironmentSnapshot,
)

_TABLET_PATTERN = re.compile(r"ipad|tablet", re.IGNORECASE)
_MOBILE_PATTERN = re.compile(r"mobile|iphone|android", re.IGNORECASE)

_logger = logging.getLogger(__name__)


def classify_device(user_agent: str | None) -> str:
    """Classify a user agent as Mobile, Tablet or Desktop."""
    if not user_agent:
        return Device.DESKTOP.value
    # iPad agents also advertise "Mobile", so tablet markers win.
    if _TABLET_PATTERN.search(user_agent):
        return Device.TABLET.value
    if _MOBILE_PATTERN.search(user_agent):
        return Device.MOBILE.value
    return Device.DESKTOP.value


@dataclass
class EnvironmentSniffer:
    """Resolves device, IP and country, degrading to sentinels on failure."""

    client: GeoLookupClient

    async def get_ip_address(self) -> str:
        """Return the public IP or ``unknown``."""
        try:
            payload = await self.client.fetch_ip()
        except (httpx.HTTPError, ValueError) as exc:
            _logger.debug("IP lookup failed: %s", exc)
            return UNKNOWN_IP
        ip = payload.get("ip") if isinstance(payload, dict) else None
        return ip if isinstance(ip, str) and ip else UNKNOWN_IP

    async def get_country(self, ip: str) -> str:
        """Return the country name for an IP or ``Unknown``."""
        if not ip or ip == UNKNOWN_IP:
            return UNKNOWN_COUNTRY
        try:
            payload = await self.client.fetch_location(ip)
        except (httpx.HTTPError, ValueError) as exc:
            _logger.debug("Country lookup failed for %s: %s", ip, exc)
            return UNKNOWN_COUNTRY
        country = payload.get("country_name") if isinstance(payload, dict) else None
        return country if isinstance(country, str) and country else UNKNOWN_COUNTRY

    async def snapshot(
        self,
        user_agent: str | None,
        source: str | None = None,
        client_ip: str | None = None,
    ) -> EnvironmentSnapshot:
        """Capture the environment for an analytics write."""
        ip = client_ip or await self.get_ip_address()
        country = await self.get_country(ip)
        return EnvironmentSnapshot(
            ip_address=ip,
            country=country,
            device=classify_device(user_agent),
            source=source,
        )
