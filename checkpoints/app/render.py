"""Render a checkpoint map to a standalone HTML file.

Fetches records from a deployed checkpoint API, geocodes everything the
curated tables do not cover, and writes the Leaflet page:

    checkpoint-map --filter all --output map.html
"""

import argparse
import asyncio
import dataclasses
import logging
import pathlib
import sys
from collections.abc import Sequence

import common.log
from checkpoints.app import services
from checkpoints.app.client import CheckpointSource, CheckpointSourceError
from checkpoints.app.location.coordinates import Coordinate
from checkpoints.app.maps import filters
from checkpoints.app.maps.folium_handle import FoliumMapHandle
from checkpoints.app.maps.sync import MapSyncEngine
from checkpoints.app.models import CheckpointRecord

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class RenderResult:
    html: str
    rendered: int
    moved: int


async def render_map(
    records: Sequence[CheckpointRecord],
    map_services: services.MapServices,
    mode: filters.FilterMode = 'upcoming',
    query: str = '',
    selected: str | None = None,
    user_location: Coordinate | None = None,
    clock: filters.Clock | None = None,
) -> RenderResult:
    """Render *records* after geocoding has run to completion."""
    clock = clock or filters.SystemClock()
    handle = FoliumMapHandle()
    engine = MapSyncEngine(
        handle,
        map_services.resolver,
        map_services.colors,
        map_services.boundaries,
        clock=clock,
    )
    predicate = filters.CheckpointFilter(mode, query, clock)
    rendered = engine.push_records(records, predicate)
    moved = await map_services.scheduler.run(rendered, engine)
    if user_location is not None:
        engine.set_user_location(user_location)
    if selected is not None:
        await engine.select(selected)
    return RenderResult(handle.to_html(), len(rendered), moved)


async def _run(args: argparse.Namespace) -> RenderResult:
    source = CheckpointSource(args.api_url)
    records = await source.fetch(state=args.state)
    user_location = None
    if args.lat is not None and args.lon is not None:
        user_location = Coordinate(args.lat, args.lon)
    return await render_map(
        records,
        services.build_map_services(),
        mode=args.filter,
        query=args.query,
        selected=args.selected,
        user_location=user_location,
    )


def _parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description='Render a DUI checkpoint map')
    parser.add_argument('--api-url', default=None, help='Checkpoint API base URL')
    parser.add_argument('--state', default=None, help='Only fetch this state')
    parser.add_argument(
        '--filter',
        choices=['upcoming', 'all'],
        default='upcoming',
        help='Show upcoming checkpoints or all of them',
    )
    parser.add_argument('-q', '--query', default='', help='City/county search text')
    parser.add_argument('--selected', default=None, help='Record id to highlight')
    parser.add_argument('--lat', type=float, default=None, help='User latitude')
    parser.add_argument('--lon', type=float, default=None, help='User longitude')
    parser.add_argument(
        '-o',
        '--output',
        type=pathlib.Path,
        default=pathlib.Path('checkpoints.html'),
        help='Where to write the HTML page',
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(format='%(levelname)s %(name)s: %(message)s')
    common.log.configure_logging()
    try:
        result = asyncio.run(_run(args))
    except CheckpointSourceError as exc:
        logger.error('Could not fetch checkpoints: %s', exc)
        return 1
    args.output.write_text(result.html, encoding='utf-8')
    print(
        f'Wrote {result.rendered} checkpoints to {args.output} '
        f'({result.moved} repositioned by geocoding)'
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
