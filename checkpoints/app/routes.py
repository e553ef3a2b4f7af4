"""API routes for checkpoint records and the rendered map page."""

import logging
import urllib.parse
from typing import Any, Literal

import fastapi
import fastapi.responses
import sqlmodel

from checkpoints.app import database, services
from checkpoints.app.location.coordinates import Coordinate
from checkpoints.app.maps import filters
from checkpoints.app.maps.folium_handle import FoliumMapHandle
from checkpoints.app.maps.sync import MapSyncEngine

logger = logging.getLogger(__name__)

router = fastapi.APIRouter()


def get_clock() -> filters.Clock:
    """Clock used for "today" and "upcoming"; overridden in tests."""
    return filters.SystemClock()


def _previous_location_dict(previous: Any) -> dict[str, Any]:
    return {
        'id': str(previous.id),
        'checkpoint_id': previous.checkpoint_id,
        'county': previous.county,
        'city': previous.city,
        'location': previous.location,
        'mapurl': previous.mapurl,
        'created_at': previous.created_at.isoformat(),
    }


@router.get('/api/dui-checkpoints')
async def list_checkpoints(
    state: str | None = None,
    city: str | None = None,
    county: str | None = None,
    upcoming: str | None = None,
    session: sqlmodel.Session = fastapi.Depends(database.get_session),
    clock: filters.Clock = fastapi.Depends(get_clock),
) -> dict[str, Any]:
    """List checkpoints, optionally filtered by place and upcoming dates."""
    upcoming_from = clock.today() if upcoming == 'true' else None
    rows = services.list_checkpoints(session, state, city, county, upcoming_from)
    return {
        'success': True,
        'count': len(rows),
        'checkpoints': [row.to_record().to_wire() for row in rows],
    }


@router.get('/api/dui-checkpoints/{checkpoint_id}')
async def get_checkpoint(
    checkpoint_id: int,
    session: sqlmodel.Session = fastapi.Depends(database.get_session),
) -> dict[str, Any]:
    """Fetch a single checkpoint by id."""
    checkpoint = services.get_checkpoint(session, checkpoint_id)
    if checkpoint is None:
        raise fastapi.HTTPException(status_code=404, detail='Checkpoint not found')
    return {'success': True, 'checkpoint': checkpoint.to_record().to_wire()}


@router.get('/api/previous-locations')
async def list_previous_locations(
    checkpoint_id: str | None = fastapi.Query(default=None, alias='checkpointId'),
    session: sqlmodel.Session = fastapi.Depends(database.get_session),
) -> dict[str, Any]:
    """Earlier locations for a checkpoint, newest first."""
    if not checkpoint_id:
        raise fastapi.HTTPException(
            status_code=400, detail='Missing required query parameter: checkpointId'
        )
    try:
        parsed_id = int(checkpoint_id)
    except ValueError:
        raise fastapi.HTTPException(
            status_code=400, detail='Invalid checkpointId, must be a number'
        ) from None
    rows = services.list_previous_locations(session, parsed_id)
    return {
        'success': True,
        'count': len(rows),
        'locations': [_previous_location_dict(row) for row in rows],
    }


@router.get('/map', response_class=fastapi.responses.HTMLResponse)
async def map_page(
    background_tasks: fastapi.BackgroundTasks,
    mode: Literal['upcoming', 'all'] = fastapi.Query(
        default='upcoming', alias='filter'
    ),
    q: str = '',
    selected: str | None = None,
    lat: float | None = None,
    lon: float | None = None,
    session: sqlmodel.Session = fastapi.Depends(database.get_session),
    clock: filters.Clock = fastapi.Depends(get_clock),
    map_services: services.MapServices = fastapi.Depends(services.get_map_services),
) -> fastapi.responses.HTMLResponse:
    """Render the checkpoint map as a standalone Leaflet page.

    Markers appear at their best known position right away; geocoding for the
    rest runs after the response is sent so later renders place them exactly.
    """
    records = [row.to_record() for row in services.list_checkpoints(session)]
    query = urllib.parse.urlencode({'filter': mode, 'q': q})
    handle = FoliumMapHandle(
        select_url=f'?{query}&selected={{record_id}}',
        details_url='/api/dui-checkpoints/{record_id}',
    )
    engine = MapSyncEngine(
        handle,
        map_services.resolver,
        map_services.colors,
        map_services.boundaries,
        clock=clock,
    )
    rendered = engine.push_records(records, filters.CheckpointFilter(mode, q, clock))
    if lat is not None and lon is not None:
        engine.set_user_location(Coordinate(lat, lon))
    if selected is not None:
        await engine.select(selected)

    pending = map_services.scheduler.pending(rendered)
    if pending:
        background_tasks.add_task(map_services.scheduler.run, pending, engine)
    logger.debug('Rendering %d of %d checkpoints', len(rendered), len(records))
    return fastapi.responses.HTMLResponse(handle.to_html())
