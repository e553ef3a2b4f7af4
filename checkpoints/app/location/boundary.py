"""City boundary overlays for the selected checkpoint."""

import asyncio
import dataclasses
import logging
from typing import Any

import common.settings
from checkpoints.app.location import known_locations
from checkpoints.app.location.coordinates import Coordinate
from checkpoints.app.location.geocoder import Geocoder
from checkpoints.app.models import CheckpointRecord

logger = logging.getLogger(__name__)

FALLBACK_RADIUS_METERS = 5000.0

UNKNOWN_CITY_NAMES = frozenset({'unknown city', 'unknown'})

Ring = tuple[Coordinate, ...]


@dataclasses.dataclass(frozen=True)
class PolygonOverlay:
    """An administrative boundary outline."""

    ring: Ring


@dataclasses.dataclass(frozen=True)
class CircleOverlay:
    """Fixed-radius stand-in used when no boundary is known."""

    center: Coordinate
    radius_meters: float = FALLBACK_RADIUS_METERS


BoundaryOverlay = PolygonOverlay | CircleOverlay


@dataclasses.dataclass(frozen=True)
class Bounds:
    south: float
    west: float
    north: float
    east: float


def bounding_box(ring: Ring) -> Bounds:
    """Smallest latitude/longitude box containing every vertex of *ring*."""
    latitudes = [c.latitude for c in ring]
    longitudes = [c.longitude for c in ring]
    return Bounds(min(latitudes), min(longitudes), max(latitudes), max(longitudes))


def reduce_geometry(geometry: Any) -> Ring | None:
    """Reduce Polygon/MultiPolygon GeoJSON to its first outer ring.

    GeoJSON positions are ``[longitude, latitude]``. Any other geometry type,
    an empty ring or a malformed position returns None.
    """
    if not isinstance(geometry, dict):
        return None
    kind = geometry.get('type')
    coords = geometry.get('coordinates')
    try:
        if kind == 'Polygon':
            positions = coords[0]
        elif kind == 'MultiPolygon':
            positions = coords[0][0]
        else:
            return None
        ring = tuple(Coordinate(float(p[1]), float(p[0])) for p in positions)
    except (TypeError, IndexError, KeyError, ValueError):
        logger.warning('Malformed %s geometry', kind)
        return None
    return ring or None


def boundary_key(city_name: str, state: str) -> str:
    return f'{city_name.strip()}-{state.strip()}'.lower()


class BoundaryCache:
    """Boundary rings per city, with negative results remembered."""

    def __init__(self) -> None:
        self._entries: dict[str, Ring | None] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Ring | None:
        return self._entries.get(key)

    def store(self, key: str, ring: Ring | None) -> None:
        self._entries[key] = ring


class BoundaryProvider:
    """Fetches city outlines and picks the overlay shown for a selection."""

    def __init__(
        self,
        geocoder: Geocoder,
        cache: BoundaryCache | None = None,
        country: str | None = None,
        fallback_radius_meters: float = FALLBACK_RADIUS_METERS,
    ) -> None:
        self.geocoder = geocoder
        self.cache = cache if cache is not None else BoundaryCache()
        self.country = country or common.settings.DEFAULT_COUNTRY
        self.fallback_radius_meters = fallback_radius_meters
        self._pending: dict[str, asyncio.Future[Ring | None]] = {}

    async def fetch_boundary(self, city_name: str, state: str) -> Ring | None:
        """Return the city's outline ring, or None when it has none.

        At most one request is made per (city, state) for the life of the
        provider; the outcome is cached whether or not a ring was found.
        """
        key = boundary_key(city_name, state)
        if key in self.cache:
            return self.cache.get(key)
        pending = self._pending.get(key)
        if pending is None:
            query = (
                f'{city_name.strip()}, {known_locations.state_name(state)}, '
                f'{self.country}'
            )
            pending = asyncio.ensure_future(self._fetch(key, query))
            self._pending[key] = pending
            pending.add_done_callback(lambda _: self._pending.pop(key, None))
        return await asyncio.shield(pending)

    async def _fetch(self, key: str, query: str) -> Ring | None:
        try:
            result = await self.geocoder.search(query, polygon=True)
        except Exception:
            logger.warning('Boundary lookup raised for %r', query, exc_info=True)
            result = None
        ring = reduce_geometry(result.geometry) if result else None
        self.cache.store(key, ring)
        if ring is None:
            logger.info('No boundary for %r, falling back to a circle', query)
        return ring

    async def resolve_overlay(
        self, record: CheckpointRecord, coordinate: Coordinate
    ) -> BoundaryOverlay:
        """Boundary polygon for the record's city, else a circle at *coordinate*."""
        city = (record.city or '').strip()
        if not city or city.lower() in UNKNOWN_CITY_NAMES:
            return CircleOverlay(coordinate, self.fallback_radius_meters)
        ring = await self.fetch_boundary(city, record.state)
        if ring is None:
            return CircleOverlay(coordinate, self.fallback_radius_meters)
        return PolygonOverlay(ring)
