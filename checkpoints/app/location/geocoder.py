"""Forward geocoding through the Nominatim search API."""

import asyncio
import dataclasses
import logging
from typing import Any, Protocol

import httpx

import common.settings

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class GeocodeResult:
    """The first match for a free-text query."""

    latitude: float
    longitude: float
    display_name: str | None = None
    geometry: dict[str, Any] | None = None


class Geocoder(Protocol):
    """Anything that can turn a query string into at most one result."""

    async def search(
        self, query: str, *, polygon: bool = False
    ) -> GeocodeResult | None: ...


def parse_result(raw: Any) -> GeocodeResult | None:
    """Build a GeocodeResult from one Nominatim result object.

    Returns None when latitude or longitude are missing or not numeric. A
    ``geojson`` member that is not an object is dropped.
    """
    if not isinstance(raw, dict):
        return None
    try:
        latitude = float(raw['lat'])
        longitude = float(raw['lon'])
    except (KeyError, TypeError, ValueError):
        return None
    geometry = raw.get('geojson')
    return GeocodeResult(
        latitude=latitude,
        longitude=longitude,
        display_name=raw.get('display_name'),
        geometry=geometry if isinstance(geometry, dict) else None,
    )


class NominatimGeocoder:
    """Geocoder backed by OpenStreetMap Nominatim.

    Every failure mode (timeouts, transport errors, non-2xx statuses, invalid
    JSON, empty or malformed results) is reported as None.
    """

    def __init__(
        self,
        url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.url = url or common.settings.NOMINATIM_URL
        self.user_agent = user_agent or common.settings.GEOCODER_USER_AGENT
        self.timeout = timeout or common.settings.GEOCODE_TIMEOUT_SECONDS

    async def search(
        self, query: str, *, polygon: bool = False
    ) -> GeocodeResult | None:
        """Return the first match for *query*, with GeoJSON when *polygon*."""
        params: dict[str, str | int] = {'q': query, 'format': 'json', 'limit': 1}
        if polygon:
            params['polygon_geojson'] = 1
        try:
            async with asyncio.timeout(self.timeout):
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(
                        self.url,
                        params=params,
                        headers={'User-Agent': self.user_agent},
                    )
                    response.raise_for_status()
                    results = response.json()
        except TimeoutError:
            logger.warning('Geocoding %r timed out after %ss', query, self.timeout)
            return None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning('Geocoding %r failed: %s', query, exc)
            return None

        if not isinstance(results, list) or not results:
            logger.info('No geocoding result for %r', query)
            return None
        result = parse_result(results[0])
        if result is None:
            logger.warning('Malformed geocoding result for %r', query)
        return result
