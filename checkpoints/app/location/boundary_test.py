"""Unit tests for boundary overlays."""

import asyncio
import unittest
import unittest.mock
from typing import Any

from checkpoints.app.location import boundary
from checkpoints.app.location.coordinates import Coordinate
from checkpoints.app.location.geocoder import GeocodeResult
from checkpoints.app.models import CheckpointRecord

SQUARE = [[-119.8, 36.7], [-119.7, 36.7], [-119.7, 36.8], [-119.8, 36.8]]


def _geocoder_returning(geometry: Any) -> unittest.mock.AsyncMock:
    geocoder = unittest.mock.AsyncMock()
    geocoder.search.return_value = GeocodeResult(36.75, -119.75, geometry=geometry)
    return geocoder


class TestReduceGeometry(unittest.TestCase):
    """Tests for reduce_geometry."""

    def test_polygon_outer_ring(self) -> None:
        """Polygons keep their first ring with positions swapped to lat/lon."""
        hole = [[-119.76, 36.76], [-119.74, 36.76], [-119.74, 36.74]]
        ring = boundary.reduce_geometry(
            {'type': 'Polygon', 'coordinates': [SQUARE, hole]}
        )
        assert ring is not None
        self.assertEqual(len(ring), 4)
        self.assertEqual(ring[0], Coordinate(36.7, -119.8))

    def test_multipolygon_first_ring_of_first_polygon(self) -> None:
        other = [[-120.0, 37.0], [-120.1, 37.0], [-120.1, 37.1]]
        ring = boundary.reduce_geometry(
            {'type': 'MultiPolygon', 'coordinates': [[SQUARE], [other]]}
        )
        assert ring is not None
        self.assertEqual(ring[2], Coordinate(36.8, -119.7))

    def test_point_is_rejected(self) -> None:
        self.assertIsNone(
            boundary.reduce_geometry({'type': 'Point', 'coordinates': [-119.7, 36.7]})
        )

    def test_missing_geometry(self) -> None:
        self.assertIsNone(boundary.reduce_geometry(None))

    def test_malformed_coordinates(self) -> None:
        self.assertIsNone(
            boundary.reduce_geometry({'type': 'Polygon', 'coordinates': None})
        )
        self.assertIsNone(
            boundary.reduce_geometry({'type': 'Polygon', 'coordinates': [[['x']]]})
        )

    def test_empty_ring(self) -> None:
        self.assertIsNone(
            boundary.reduce_geometry({'type': 'Polygon', 'coordinates': [[]]})
        )


class TestBoundingBox(unittest.TestCase):
    """Tests for bounding_box."""

    def test_extents(self) -> None:
        ring = (Coordinate(36.7, -119.8), Coordinate(36.8, -119.7))
        self.assertEqual(
            boundary.bounding_box(ring), boundary.Bounds(36.7, -119.8, 36.8, -119.7)
        )


class TestFetchBoundary(unittest.TestCase):
    """Tests for BoundaryProvider.fetch_boundary."""

    def test_fetches_and_caches_ring(self) -> None:
        """A found boundary is fetched once and then served from cache."""
        geocoder = _geocoder_returning({'type': 'Polygon', 'coordinates': [SQUARE]})
        provider = boundary.BoundaryProvider(geocoder, country='USA')

        first = asyncio.run(provider.fetch_boundary('Fresno', 'CA'))
        second = asyncio.run(provider.fetch_boundary(' fresno', 'ca'))

        self.assertIsNotNone(first)
        self.assertEqual(first, second)
        geocoder.search.assert_called_once_with(
            'Fresno, California, USA', polygon=True
        )

    def test_negative_result_is_cached(self) -> None:
        """A city without geometry is never looked up twice."""
        geocoder = _geocoder_returning(None)
        provider = boundary.BoundaryProvider(geocoder)

        self.assertIsNone(asyncio.run(provider.fetch_boundary('Fresno', 'CA')))
        self.assertIsNone(asyncio.run(provider.fetch_boundary('Fresno', 'CA')))
        self.assertEqual(geocoder.search.call_count, 1)
        self.assertIn('fresno-ca', provider.cache)

    def test_no_result_is_cached(self) -> None:
        geocoder = unittest.mock.AsyncMock()
        geocoder.search.return_value = None
        provider = boundary.BoundaryProvider(geocoder)
        self.assertIsNone(asyncio.run(provider.fetch_boundary('Atlantis', 'CA')))
        self.assertIn('atlantis-ca', provider.cache)

    def test_exception_is_no_boundary(self) -> None:
        geocoder = unittest.mock.AsyncMock()
        geocoder.search.side_effect = OSError('timed out')
        provider = boundary.BoundaryProvider(geocoder)
        self.assertIsNone(asyncio.run(provider.fetch_boundary('Fresno', 'CA')))

    def test_concurrent_fetches_share_request(self) -> None:
        geocoder = _geocoder_returning({'type': 'Polygon', 'coordinates': [SQUARE]})
        provider = boundary.BoundaryProvider(geocoder)

        async def fetch_twice() -> list[boundary.Ring | None]:
            return await asyncio.gather(
                provider.fetch_boundary('Fresno', 'CA'),
                provider.fetch_boundary('Fresno', 'CA'),
            )

        first, second = asyncio.run(fetch_twice())
        self.assertEqual(first, second)
        self.assertEqual(geocoder.search.call_count, 1)


class TestResolveOverlay(unittest.TestCase):
    """Tests for BoundaryProvider.resolve_overlay."""

    center = Coordinate(36.75, -119.75)

    def test_polygon_when_boundary_found(self) -> None:
        geocoder = _geocoder_returning({'type': 'Polygon', 'coordinates': [SQUARE]})
        provider = boundary.BoundaryProvider(geocoder)
        record = CheckpointRecord(id='1', City='Fresno')
        overlay = asyncio.run(provider.resolve_overlay(record, self.center))
        self.assertIsInstance(overlay, boundary.PolygonOverlay)

    def test_stateless_record_queries_default_state(self) -> None:
        """A record without a State looks up its boundary in California."""
        geocoder = _geocoder_returning({'type': 'Polygon', 'coordinates': [SQUARE]})
        provider = boundary.BoundaryProvider(geocoder, country='USA')
        record = CheckpointRecord(id='1', City='Nowhereville')

        asyncio.run(provider.resolve_overlay(record, self.center))

        geocoder.search.assert_called_once_with(
            'Nowhereville, California, USA', polygon=True
        )
        self.assertIn('nowhereville-ca', provider.cache)

    def test_circle_when_no_geojson(self) -> None:
        """No geometry falls back to a 5 km circle and caches the miss."""
        geocoder = _geocoder_returning(None)
        provider = boundary.BoundaryProvider(geocoder)
        record = CheckpointRecord(id='1', City='Fresno')

        overlay = asyncio.run(provider.resolve_overlay(record, self.center))
        again = asyncio.run(provider.resolve_overlay(record, self.center))

        self.assertEqual(overlay, boundary.CircleOverlay(self.center, 5000.0))
        self.assertEqual(again, overlay)
        self.assertEqual(geocoder.search.call_count, 1)

    def test_circle_without_city(self) -> None:
        """Records without a city never trigger a lookup."""
        geocoder = _geocoder_returning(None)
        provider = boundary.BoundaryProvider(geocoder)
        overlay = asyncio.run(
            provider.resolve_overlay(
                CheckpointRecord(id='1', County='Alameda'), self.center
            )
        )
        self.assertEqual(overlay, boundary.CircleOverlay(self.center))
        geocoder.search.assert_not_called()

    def test_circle_for_unknown_placeholder(self) -> None:
        geocoder = _geocoder_returning(None)
        provider = boundary.BoundaryProvider(geocoder)
        overlay = asyncio.run(
            provider.resolve_overlay(
                CheckpointRecord(id='1', City='Unknown City'), self.center
            )
        )
        self.assertIsInstance(overlay, boundary.CircleOverlay)
        geocoder.search.assert_not_called()

    def test_custom_radius(self) -> None:
        provider = boundary.BoundaryProvider(
            _geocoder_returning(None), fallback_radius_meters=2500.0
        )
        overlay = asyncio.run(
            provider.resolve_overlay(CheckpointRecord(id='1'), self.center)
        )
        self.assertEqual(overlay, boundary.CircleOverlay(self.center, 2500.0))


if __name__ == '__main__':
    unittest.main()
