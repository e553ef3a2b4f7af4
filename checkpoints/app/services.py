"""Checkpoint queries and the shared map collaborators."""

import dataclasses
import datetime
import functools
import logging

import sqlmodel

import common.settings
from checkpoints.app.location.batch import BatchGeocodeScheduler
from checkpoints.app.location.boundary import BoundaryProvider
from checkpoints.app.location.colors import LocationColorAssigner
from checkpoints.app.location.coordinates import CoordinateResolver
from checkpoints.app.location.geocoder import NominatimGeocoder
from checkpoints.app.models import Checkpoint, PreviousLocation

logger = logging.getLogger(__name__)


def list_checkpoints(
    session: sqlmodel.Session,
    state: str | None = None,
    city: str | None = None,
    county: str | None = None,
    upcoming_from: datetime.date | None = None,
) -> list[Checkpoint]:
    """Return checkpoints ordered by date ascending.

    ``state`` matches case-insensitively and exactly; ``city`` and ``county``
    match any case-insensitive substring. With ``upcoming_from`` only
    checkpoints on or after that day are returned.
    """
    statement = sqlmodel.select(Checkpoint)
    if state:
        statement = statement.where(sqlmodel.col(Checkpoint.state).ilike(state))
    if city:
        statement = statement.where(sqlmodel.col(Checkpoint.city).ilike(f'%{city}%'))
    if county:
        statement = statement.where(
            sqlmodel.col(Checkpoint.county).ilike(f'%{county}%')
        )
    if upcoming_from is not None:
        statement = statement.where(
            sqlmodel.col(Checkpoint.date) >= upcoming_from.isoformat()
        )
    statement = statement.order_by(sqlmodel.col(Checkpoint.date))
    return list(session.exec(statement).all())


def get_checkpoint(session: sqlmodel.Session, checkpoint_id: int) -> Checkpoint | None:
    return session.get(Checkpoint, checkpoint_id)


def list_previous_locations(
    session: sqlmodel.Session, checkpoint_id: int
) -> list[PreviousLocation]:
    """Earlier locations of a checkpoint, newest first."""
    statement = (
        sqlmodel.select(PreviousLocation)
        .where(PreviousLocation.checkpoint_id == checkpoint_id)
        .order_by(sqlmodel.col(PreviousLocation.created_at).desc())
    )
    return list(session.exec(statement).all())


@dataclasses.dataclass
class MapServices:
    """Caches and collaborators shared by every map render in the process."""

    resolver: CoordinateResolver
    boundaries: BoundaryProvider
    colors: LocationColorAssigner
    scheduler: BatchGeocodeScheduler


def build_map_services() -> MapServices:
    geocoder = NominatimGeocoder()
    resolver = CoordinateResolver(geocoder)
    return MapServices(
        resolver=resolver,
        boundaries=BoundaryProvider(geocoder),
        colors=LocationColorAssigner(),
        scheduler=BatchGeocodeScheduler(resolver),
    )


@functools.cache
def get_map_services() -> MapServices:
    """Process-wide map services, built on first use."""
    logger.info('Using geocoder at %s', common.settings.NOMINATIM_URL)
    return build_map_services()
