"""IP and geolocation lookup clients."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class GeoLookupClient(Protocol):
    """Interface for public IP and country lookups."""

    async def fetch_ip(self) -> dict[str, object]:
        """Return the raw IP lookup payload."""

    async def fetch_location(self, ip: str) -> dict[str, object]:
        """Return the raw geolocation payload for an IP."""


@dataclass
class HttpxGeoLookupClient(GeoLookupClient):
    """HTTPX-backed lookup client for ipify/ipapi style services."""

    ip_lookup_url: str
    geo_base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, ip_lookup_url: str, geo_base_url: str) -> "HttpxGeoLookupClient":
        """Create a lookup client with a managed httpx session."""
        return cls(
            ip_lookup_url=ip_lookup_url,
            geo_base_url=geo_base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
        )

    async def fetch_ip(self) -> dict[str, object]:
        """Fetch the caller's public IP."""
        response = await self.http_client.get(self.ip_lookup_url)
        response.raise_for_status()
        return response.json()

    async def fetch_location(self, ip: str) -> dict[str, object]:
        """Fetch geolocation details for an IP."""
        response = await self.http_client.get(f"{self.geo_base_url}/{ip}/json/")
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
