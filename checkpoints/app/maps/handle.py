"""Interface between the sync engine and a concrete map renderer.

The map handle owns every marker and overlay it creates. Callers only hold the
opaque ids it hands out and go back through the handle to change or remove
them, so the engine never touches renderer objects directly.
"""

import dataclasses
from collections.abc import Callable
from typing import NewType, Protocol

from checkpoints.app.location.boundary import BoundaryOverlay, Bounds
from checkpoints.app.location.coordinates import Coordinate

MarkerHandle = NewType('MarkerHandle', int)
OverlayHandle = NewType('OverlayHandle', int)


@dataclasses.dataclass(frozen=True)
class MarkerStyle:
    color: str
    selected: bool = False
    is_today: bool = False


@dataclasses.dataclass(frozen=True)
class MarkerPopup:
    """Text shown when a marker is opened."""

    record_id: str
    title: str
    subtitle: str
    date_label: str


class MapHandle(Protocol):
    def add_marker(
        self,
        coordinate: Coordinate,
        style: MarkerStyle,
        popup: MarkerPopup,
        on_click: Callable[[], None],
        on_view_details: Callable[[], None],
    ) -> MarkerHandle: ...

    def update_marker(
        self,
        handle: MarkerHandle,
        *,
        coordinate: Coordinate | None = None,
        style: MarkerStyle | None = None,
        popup: MarkerPopup | None = None,
    ) -> None: ...

    def remove_marker(self, handle: MarkerHandle) -> None: ...

    def add_user_marker(self, coordinate: Coordinate) -> MarkerHandle: ...

    def add_overlay(self, overlay: BoundaryOverlay, color: str) -> OverlayHandle: ...

    def remove_overlay(self, handle: OverlayHandle) -> None: ...

    def set_view(self, coordinate: Coordinate, zoom: int) -> None: ...

    def fit_bounds(self, bounds: Bounds, padding: int, max_zoom: int) -> None: ...
