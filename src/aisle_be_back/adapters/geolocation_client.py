"""IP geolocation client used as the trip origin."""

import logging
from dataclasses import dataclass

import httpx

from aisle_be_back.domain.shopping import Coordinates
from aisle_be_back.services.trips import LocationProvider

_logger = logging.getLogger(__name__)


@dataclass
class HttpxGeolocationClient(LocationProvider):
    """HTTPX-backed IP geolocation lookup."""

    url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, url: str) -> "HttpxGeolocationClient":
        """Create a geolocation client with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient())

    async def current_position(self) -> Coordinates | None:
        """Return the approximate location, or None when it cannot be resolved."""
        try:
            response = await self.http_client.get(self.url, timeout=10)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError):
            _logger.warning("Geolocation lookup failed", exc_info=True)
            return None
        lat = payload.get("latitude", payload.get("lat"))
        lng = payload.get("longitude", payload.get("lon", payload.get("lng")))
        if lat is None or lng is None:
            return None
        try:
            return Coordinates(lat=float(lat), lng=float(lng))
        except (TypeError, ValueError):
            return None

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
