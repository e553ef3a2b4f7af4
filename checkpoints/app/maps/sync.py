"""Keeps a live map's markers and overlays in step with the current records.

Each record id moves through three states: absent, rendered at its
best-effort position, and rendered at its geocoded position. ``reconcile``
diffs the incoming records against what is on the map, the batch scheduler
feeds geocoded positions back through ``apply_resolved_coordinate``, and
``select`` swaps the single boundary overlay.
"""

import dataclasses
import functools
import logging
from collections.abc import Callable, Iterable

from geopy import distance  # pyright: ignore[reportMissingTypeStubs]

from checkpoints.app.location.boundary import (
    BoundaryOverlay,
    BoundaryProvider,
    PolygonOverlay,
    bounding_box,
)
from checkpoints.app.location.colors import LocationColorAssigner
from checkpoints.app.location.coordinates import Coordinate, CoordinateResolver
from checkpoints.app.maps import filters
from checkpoints.app.maps.handle import (
    MapHandle,
    MarkerHandle,
    MarkerPopup,
    MarkerStyle,
    OverlayHandle,
)
from checkpoints.app.models import CheckpointRecord

logger = logging.getLogger(__name__)

REPOSITION_THRESHOLD_KM = 1.0
BOUNDARY_PADDING = 50
BOUNDARY_MAX_ZOOM = 13
CIRCLE_ZOOM = 12
USER_LOCATION_ZOOM = 10


@dataclasses.dataclass
class MarkerState:
    """What the engine knows about one rendered record."""

    record: CheckpointRecord
    handle: MarkerHandle
    coordinate: Coordinate
    style: MarkerStyle
    popup: MarkerPopup
    resolved: bool = False


def _location_fields(record: CheckpointRecord) -> tuple[str | None, ...]:
    return (record.city, record.county, record.state)


def make_popup(record: CheckpointRecord) -> MarkerPopup:
    return MarkerPopup(
        record_id=record.id,
        title=(record.city or '').strip() or 'Unknown City',
        subtitle=(record.county or '').strip(),
        date_label=filters.format_date(record.date),
    )


class MapSyncEngine:
    """Owns the map handle and reconciles it against record sets."""

    def __init__(
        self,
        map_handle: MapHandle,
        resolver: CoordinateResolver,
        colors: LocationColorAssigner,
        boundaries: BoundaryProvider,
        clock: filters.Clock | None = None,
        on_marker_selected: Callable[[str], None] | None = None,
        on_view_details_requested: Callable[[str], None] | None = None,
    ) -> None:
        self.map = map_handle
        self.resolver = resolver
        self.colors = colors
        self.boundaries = boundaries
        self.clock = clock or filters.SystemClock()
        self.on_marker_selected = on_marker_selected
        self.on_view_details_requested = on_view_details_requested

        self._markers: dict[str, MarkerState] = {}
        self._selected_id: str | None = None
        self._selection_generation = 0
        self._overlay: OverlayHandle | None = None
        self._user_marker: MarkerHandle | None = None

    # -- accessors ----------------------------------------------------------

    @property
    def marker_count(self) -> int:
        return len(self._markers)

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def has_overlay(self) -> bool:
        return self._overlay is not None

    def is_selected(self, record_id: str) -> bool:
        return self._selected_id == record_id

    def marker_state(self, record_id: str) -> MarkerState | None:
        return self._markers.get(record_id)

    def rendered_records(self) -> list[CheckpointRecord]:
        return [state.record for state in self._markers.values()]

    # -- reconciliation -----------------------------------------------------

    def push_records(
        self,
        records: Iterable[CheckpointRecord],
        predicate: Callable[[CheckpointRecord], bool] | None = None,
    ) -> list[CheckpointRecord]:
        """Filter *records* with *predicate* and render the survivors."""
        rendered = [r for r in records if predicate is None or predicate(r)]
        self.reconcile(rendered)
        return rendered

    def reconcile(self, records: Iterable[CheckpointRecord]) -> None:
        """Create, update and remove markers so the map shows exactly *records*.

        Reconciling the same records twice leaves the map untouched.
        """
        incoming: dict[str, CheckpointRecord] = {}
        for record in records:
            incoming[record.id] = record

        for record in incoming.values():
            self._upsert(record)

        stale = [record_id for record_id in self._markers if record_id not in incoming]
        for record_id in stale:
            state = self._markers.pop(record_id)
            self.map.remove_marker(state.handle)

        if self._selected_id is not None and self._selected_id not in incoming:
            self._clear_selection()
        if stale:
            logger.debug('Removed %d markers', len(stale))

    def _style_for(self, record: CheckpointRecord) -> MarkerStyle:
        return MarkerStyle(
            color=self.colors.color_for_record(record),
            selected=self._selected_id == record.id,
            is_today=filters.is_today(record.date, self.clock),
        )

    def _upsert(self, record: CheckpointRecord) -> None:
        style = self._style_for(record)
        popup = make_popup(record)
        state = self._markers.get(record.id)
        if state is None:
            coordinate = self.resolver.lookup_sync(record)
            handle = self.map.add_marker(
                coordinate,
                style,
                popup,
                on_click=functools.partial(self._handle_click, record.id),
                on_view_details=functools.partial(
                    self._handle_view_details, record.id
                ),
            )
            self._markers[record.id] = MarkerState(
                record, handle, coordinate, style, popup
            )
            return

        changes: dict[str, object] = {}
        if _location_fields(state.record) != _location_fields(record):
            state.resolved = False
        if not state.resolved:
            coordinate = self.resolver.lookup_sync(record)
            if coordinate != state.coordinate:
                state.coordinate = coordinate
                changes['coordinate'] = coordinate
        if style != state.style:
            state.style = style
            changes['style'] = style
        if popup != state.popup:
            state.popup = popup
            changes['popup'] = popup
        state.record = record
        if changes:
            self.map.update_marker(state.handle, **changes)  # type: ignore[arg-type]

    def apply_resolved_coordinate(
        self, record_id: str, coordinate: Coordinate
    ) -> bool:
        """Move a marker to its geocoded position. Returns True if it moved.

        Markers that left the map are skipped. A marker only moves when it
        still sits at the default center or the new position is more than
        REPOSITION_THRESHOLD_KM away; a default-center answer never pulls a
        placed marker back to the center.
        """
        state = self._markers.get(record_id)
        if state is None:
            logger.debug('Record %s is no longer rendered, skipping', record_id)
            return False
        state.resolved = True
        default = self.resolver.default_center
        if coordinate == state.coordinate:
            return False
        if coordinate == default:
            return False
        at_default = state.coordinate == default
        moved_km = distance.geodesic(
            state.coordinate.as_tuple(), coordinate.as_tuple()
        ).km
        if not at_default and moved_km <= REPOSITION_THRESHOLD_KM:
            return False
        state.coordinate = coordinate
        self.map.update_marker(state.handle, coordinate=coordinate)
        return True

    # -- selection ----------------------------------------------------------

    def _restyle(self, record_id: str | None) -> None:
        if record_id is None:
            return
        state = self._markers.get(record_id)
        if state is None:
            return
        style = self._style_for(state.record)
        if style != state.style:
            state.style = style
            self.map.update_marker(state.handle, style=style)

    def _detach_overlay(self) -> None:
        if self._overlay is not None:
            self.map.remove_overlay(self._overlay)
            self._overlay = None

    def _clear_selection(self) -> None:
        self._selection_generation += 1
        self._detach_overlay()
        previous, self._selected_id = self._selected_id, None
        self._restyle(previous)

    async def select(self, record_id: str | None) -> BoundaryOverlay | None:
        """Select a rendered record and show its boundary or fallback circle.

        The previous overlay is removed before the new one is looked up. If the
        selection changes while the lookup is in flight, the stale overlay is
        dropped, so the map never carries two overlays. Returns the attached
        overlay, or None when nothing was attached.
        """
        if record_id is not None and record_id not in self._markers:
            logger.debug('Cannot select %s: not rendered', record_id)
            record_id = None
        self._clear_selection()
        if record_id is None:
            return None

        self._selected_id = record_id
        self._restyle(record_id)
        generation = self._selection_generation
        state = self._markers[record_id]
        overlay = await self.boundaries.resolve_overlay(state.record, state.coordinate)
        if generation != self._selection_generation:
            logger.debug('Selection moved on, dropping overlay for %s', record_id)
            return None

        self._overlay = self.map.add_overlay(overlay, state.style.color)
        if isinstance(overlay, PolygonOverlay):
            self.map.fit_bounds(
                bounding_box(overlay.ring), BOUNDARY_PADDING, BOUNDARY_MAX_ZOOM
            )
        else:
            self.map.set_view(overlay.center, CIRCLE_ZOOM)
        return overlay

    def _handle_click(self, record_id: str) -> None:
        if self.on_marker_selected is not None:
            self.on_marker_selected(record_id)

    def _handle_view_details(self, record_id: str) -> None:
        if self.on_view_details_requested is not None:
            self.on_view_details_requested(record_id)

    # -- user location ------------------------------------------------------

    def set_user_location(self, coordinate: Coordinate | None) -> None:
        """Replace the user-location marker and center the map on it."""
        if self._user_marker is not None:
            self.map.remove_marker(self._user_marker)
            self._user_marker = None
        if coordinate is None:
            return
        self._user_marker = self.map.add_user_marker(coordinate)
        self.map.set_view(coordinate, USER_LOCATION_ZOOM)
