"""Coordinate resolution for checkpoint records.

Records only carry free-text city/county/state fields. Two lookups turn them
into map positions:

* ``lookup_sync`` never waits: curated table, then earlier geocoding results,
  then the default center. Used for first paint.
* ``resolve_async`` is authoritative: cached results, then the geocoder (city
  first, county second). Every attempt, failed or not, is cached so a location
  is geocoded at most once per process.
"""

import asyncio
import dataclasses
import logging

import common.settings
from checkpoints.app.location import known_locations
from checkpoints.app.location.geocoder import Geocoder
from checkpoints.app.models import CheckpointRecord

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in degrees."""

    latitude: float
    longitude: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


DEFAULT_CENTER = Coordinate(*known_locations.DEFAULT_CENTER)


def _coordinate_table(raw: dict[str, tuple[float, float]]) -> dict[str, Coordinate]:
    return {name: Coordinate(lat, lon) for name, (lat, lon) in raw.items()}


def location_key(kind: str, name: str, state: str) -> str:
    """Build a normalized cache key such as ``city:fresno:ca``."""
    return f'{kind}:{name.strip().lower()}:{state.strip().lower()}'


class ResolutionCache:
    """Geocoding outcomes keyed by location key, kept for the process lifetime.

    An entry holding None records an attempt that found nothing, which is
    distinct from a key that was never attempted.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Coordinate | None] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Coordinate | None:
        """Return the resolved coordinate, or None if unresolved or absent."""
        return self._entries.get(key)

    def store(self, key: str, coordinate: Coordinate | None) -> None:
        self._entries[key] = coordinate


class CoordinateResolver:
    """Resolves checkpoint records to coordinates."""

    def __init__(
        self,
        geocoder: Geocoder,
        cache: ResolutionCache | None = None,
        city_table: dict[str, tuple[float, float]] | None = None,
        county_table: dict[str, tuple[float, float]] | None = None,
        country: str | None = None,
        default_center: Coordinate = DEFAULT_CENTER,
    ) -> None:
        self.geocoder = geocoder
        self.cache = cache if cache is not None else ResolutionCache()
        self.city_table = _coordinate_table(
            known_locations.CITY_COORDINATES if city_table is None else city_table
        )
        self.county_table = _coordinate_table(
            known_locations.COUNTY_COORDINATES
            if county_table is None
            else county_table
        )
        self.country = country or common.settings.DEFAULT_COUNTRY
        self.default_center = default_center
        self._pending: dict[str, asyncio.Future[Coordinate | None]] = {}

    # -- keys and queries ---------------------------------------------------

    def city_key(self, record: CheckpointRecord) -> str | None:
        city = (record.city or '').strip()
        return location_key('city', city, record.state) if city else None

    def county_key(self, record: CheckpointRecord) -> str | None:
        county = (record.county or '').strip()
        return location_key('county', county, record.state) if county else None

    def _keys(self, record: CheckpointRecord) -> list[str]:
        return [
            key
            for key in (self.city_key(record), self.county_key(record))
            if key is not None
        ]

    def city_query(self, record: CheckpointRecord) -> str:
        return f'{(record.city or "").strip()}, {record.state.strip()}, {self.country}'

    def county_query(self, record: CheckpointRecord) -> str:
        county = (record.county or '').strip()
        if not county.lower().endswith('county'):
            county = f'{county} County'
        return f'{county}, {record.state.strip()}, {self.country}'

    # -- synchronous path ---------------------------------------------------

    def static_lookup(self, record: CheckpointRecord) -> Coordinate | None:
        """Return the curated coordinate for the record's city or county."""
        city = (record.city or '').strip()
        if city and city in self.city_table:
            return self.city_table[city]
        county = (record.county or '').strip()
        if county and county in self.county_table:
            return self.county_table[county]
        return None

    def lookup_sync(self, record: CheckpointRecord) -> Coordinate:
        """Best-effort coordinate without waiting on the network."""
        coordinate = self.static_lookup(record)
        if coordinate is not None:
            return coordinate
        for key in self._keys(record):
            cached = self.cache.get(key)
            if cached is not None:
                return cached
        return self.default_center

    def needs_resolution(self, record: CheckpointRecord) -> bool:
        """Whether resolve_async could still learn something for this record.

        False for records placed by the curated table, records without any
        location, and records whose city/county chain is already cached.
        """
        if self.static_lookup(record) is not None:
            return False
        for key in self._keys(record):
            if key not in self.cache:
                return True
            if self.cache.get(key) is not None:
                return False
        return False

    # -- asynchronous path --------------------------------------------------

    async def resolve_async(self, record: CheckpointRecord) -> Coordinate:
        """Authoritative coordinate for *record*; the default center on failure."""
        city_key = self.city_key(record)
        county_key = self.county_key(record)
        for key in (city_key, county_key):
            if key is not None:
                cached = self.cache.get(key)
                if cached is not None:
                    return cached

        if city_key is not None:
            coordinate = await self._attempt(city_key, self.city_query(record))
            if coordinate is not None:
                return coordinate
        if county_key is not None:
            coordinate = await self._attempt(county_key, self.county_query(record))
            if coordinate is not None:
                return coordinate
        return self.default_center

    async def _attempt(self, key: str, query: str) -> Coordinate | None:
        """Geocode *query* once per key, sharing the request between callers."""
        if key in self.cache:
            return self.cache.get(key)
        pending = self._pending.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._geocode(key, query))
            self._pending[key] = pending
            pending.add_done_callback(lambda _: self._pending.pop(key, None))
        return await asyncio.shield(pending)

    async def _geocode(self, key: str, query: str) -> Coordinate | None:
        try:
            result = await self.geocoder.search(query)
        except Exception:
            logger.warning('Geocoder raised for %r', query, exc_info=True)
            result = None
        coordinate = (
            Coordinate(result.latitude, result.longitude) if result else None
        )
        self.cache.store(key, coordinate)
        if coordinate is None:
            logger.info('Could not resolve %s, using default center', key)
        else:
            logger.debug('Resolved %s to %s', key, coordinate)
        return coordinate
