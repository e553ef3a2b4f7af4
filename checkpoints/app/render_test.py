"""Unit tests for the map rendering command."""

import asyncio
import datetime
import pathlib
import tempfile
import unittest
import unittest.mock

from checkpoints.app import render, services
from checkpoints.app.client import CheckpointSourceError
from checkpoints.app.location.batch import BatchGeocodeScheduler
from checkpoints.app.location.boundary import BoundaryProvider
from checkpoints.app.location.colors import LocationColorAssigner
from checkpoints.app.location.coordinates import CoordinateResolver
from checkpoints.app.location.geocoder import GeocodeResult
from checkpoints.app.maps import filters
from checkpoints.app.models import CheckpointRecord

RECORDS = [
    CheckpointRecord(id='1', City='Fresno', Date='2025-01-01'),
    CheckpointRecord(id='2', County='Alameda', Date='2099-01-01'),
    CheckpointRecord(id='3', City='Bakersfield', Date='2099-02-01'),
]


def _map_services() -> services.MapServices:
    geocoder = unittest.mock.AsyncMock()
    geocoder.search.return_value = GeocodeResult(35.3733, -119.0187)
    resolver = CoordinateResolver(geocoder)
    return services.MapServices(
        resolver=resolver,
        boundaries=BoundaryProvider(geocoder),
        colors=LocationColorAssigner(),
        scheduler=BatchGeocodeScheduler(resolver, delay_seconds=0.0),
    )


class TestRenderMap(unittest.TestCase):
    """Tests for render_map."""

    def test_geocodes_before_rendering(self) -> None:
        result = asyncio.run(
            render.render_map(
                RECORDS,
                _map_services(),
                clock=filters.FixedClock(datetime.date(2025, 6, 1)),
            )
        )
        self.assertEqual(result.rendered, 2)
        self.assertEqual(result.moved, 1)
        self.assertIn('35.3733', result.html)
        self.assertIn('37.602', result.html)
        self.assertNotIn('Fresno', result.html)

    def test_selection_adds_overlay(self) -> None:
        result = asyncio.run(
            render.render_map(
                RECORDS,
                _map_services(),
                mode='all',
                selected='2',
                clock=filters.FixedClock(datetime.date(2025, 6, 1)),
            )
        )
        self.assertEqual(result.rendered, 3)
        self.assertIn('8, 6', result.html)


class TestMain(unittest.TestCase):
    """Tests for the command-line entry point."""

    def test_parse_defaults(self) -> None:
        args = render._parse_args([])
        self.assertEqual(args.filter, 'upcoming')
        self.assertEqual(args.output, pathlib.Path('checkpoints.html'))

    def test_writes_html(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            output = pathlib.Path(tmp) / 'map.html'
            with (
                unittest.mock.patch.object(
                    render.CheckpointSource,
                    'fetch',
                    unittest.mock.AsyncMock(return_value=RECORDS),
                ),
                unittest.mock.patch.object(
                    render.services, 'build_map_services', _map_services
                ),
            ):
                code = render.main(['--filter', 'all', '-o', str(output)])

            self.assertEqual(code, 0)
            self.assertIn('Bakersfield', output.read_text(encoding='utf-8'))

    def test_fetch_failure_exits_nonzero(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            output = pathlib.Path(tmp) / 'map.html'
            with unittest.mock.patch.object(
                render.CheckpointSource,
                'fetch',
                unittest.mock.AsyncMock(side_effect=CheckpointSourceError('down')),
            ):
                code = render.main(['-o', str(output)])

            self.assertEqual(code, 1)
            self.assertFalse(output.exists())


if __name__ == '__main__':
    unittest.main()
