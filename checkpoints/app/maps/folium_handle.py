"""Map handle that keeps markers in memory and renders them with folium."""

import dataclasses
import html
import logging
from collections.abc import Callable

import folium

from checkpoints.app.location.boundary import (
    BoundaryOverlay,
    Bounds,
    CircleOverlay,
    PolygonOverlay,
)
from checkpoints.app.location.coordinates import DEFAULT_CENTER, Coordinate
from checkpoints.app.maps.handle import (
    MarkerHandle,
    MarkerPopup,
    MarkerStyle,
    OverlayHandle,
)

logger = logging.getLogger(__name__)

TILE_URL = 'https://{s}.basemaps.cartocdn.com/rastertiles/voyager/{z}/{x}/{y}{r}.png'
TILE_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> '
    'contributors &copy; <a href="https://carto.com/attributions">CARTO</a>'
)
DEFAULT_ZOOM = 6

MARKER_SIZE = 34
SELECTED_MARKER_SIZE = 44
USER_MARKER_COLOR = '#2563EB'

POLYGON_DASH = '5, 5'
CIRCLE_DASH = '8, 6'
OVERLAY_WEIGHT = 3
OVERLAY_FILL_OPACITY = 0.15


@dataclasses.dataclass
class _Marker:
    coordinate: Coordinate
    style: MarkerStyle
    popup: MarkerPopup
    on_click: Callable[[], None]
    on_view_details: Callable[[], None]


def marker_html(style: MarkerStyle) -> str:
    """SVG pin in the marker color, with a ring when selected and a today badge."""
    size = SELECTED_MARKER_SIZE if style.selected else MARKER_SIZE
    ring = ''
    if style.selected:
        ring = (
            f'<circle cx="12" cy="9" r="11" fill="none" stroke="{style.color}" '
            'stroke-width="1.5" opacity="0.45"/>'
        )
    badge = ''
    if style.is_today:
        badge = (
            '<span style="position:absolute;top:-4px;right:-4px;width:16px;'
            'height:16px;border-radius:8px;background:#DC2626;color:#FFFFFF;'
            'font:bold 11px/16px sans-serif;text-align:center;'
            'border:2px solid #FFFFFF">!</span>'
        )
    return (
        f'<div style="position:relative;width:{size}px;height:{size}px">'
        f'<svg width="{size}" height="{size}" viewBox="0 0 24 24">{ring}'
        f'<path d="M12 2C8.13 2 5 5.13 5 9c0 5.25 7 13 7 13s7-7.75 7-13'
        f'c0-3.87-3.13-7-7-7z" fill="{style.color}" stroke="#FFFFFF" '
        'stroke-width="1.5"/>'
        '<circle cx="12" cy="9" r="2.5" fill="#FFFFFF"/>'
        f'</svg>{badge}</div>'
    )


class FoliumMapHandle:
    """In-memory map state that renders to a Leaflet page on demand.

    Every marker and overlay lives in a registry keyed by the handle given
    out when it was added; ``render`` builds a fresh ``folium.Map`` from the
    registries. ``select_url`` and ``details_url`` are formatted with
    ``record_id`` to build the popup links.
    """

    def __init__(
        self,
        center: Coordinate = DEFAULT_CENTER,
        zoom: int = DEFAULT_ZOOM,
        select_url: str = '?selected={record_id}',
        details_url: str | None = None,
    ) -> None:
        self.center = center
        self.zoom = zoom
        self.bounds: tuple[Bounds, int, int] | None = None
        self.select_url = select_url
        self.details_url = details_url
        self.markers: dict[MarkerHandle, _Marker] = {}
        self.user_markers: dict[MarkerHandle, Coordinate] = {}
        self.overlays: dict[OverlayHandle, tuple[BoundaryOverlay, str]] = {}
        self._next_id = 0

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    # -- markers ------------------------------------------------------------

    def add_marker(
        self,
        coordinate: Coordinate,
        style: MarkerStyle,
        popup: MarkerPopup,
        on_click: Callable[[], None],
        on_view_details: Callable[[], None],
    ) -> MarkerHandle:
        handle = MarkerHandle(self._new_id())
        self.markers[handle] = _Marker(
            coordinate, style, popup, on_click, on_view_details
        )
        return handle

    def update_marker(
        self,
        handle: MarkerHandle,
        *,
        coordinate: Coordinate | None = None,
        style: MarkerStyle | None = None,
        popup: MarkerPopup | None = None,
    ) -> None:
        marker = self.markers[handle]
        if coordinate is not None:
            marker.coordinate = coordinate
        if style is not None:
            marker.style = style
        if popup is not None:
            marker.popup = popup

    def remove_marker(self, handle: MarkerHandle) -> None:
        if self.markers.pop(handle, None) is None:
            self.user_markers.pop(handle, None)

    def add_user_marker(self, coordinate: Coordinate) -> MarkerHandle:
        handle = MarkerHandle(self._new_id())
        self.user_markers[handle] = coordinate
        return handle

    def click(self, handle: MarkerHandle) -> None:
        self.markers[handle].on_click()

    def request_details(self, handle: MarkerHandle) -> None:
        self.markers[handle].on_view_details()

    # -- overlays and view --------------------------------------------------

    def add_overlay(self, overlay: BoundaryOverlay, color: str) -> OverlayHandle:
        handle = OverlayHandle(self._new_id())
        self.overlays[handle] = (overlay, color)
        return handle

    def remove_overlay(self, handle: OverlayHandle) -> None:
        self.overlays.pop(handle, None)

    def set_view(self, coordinate: Coordinate, zoom: int) -> None:
        self.center = coordinate
        self.zoom = zoom
        self.bounds = None

    def fit_bounds(self, bounds: Bounds, padding: int, max_zoom: int) -> None:
        self.bounds = (bounds, padding, max_zoom)

    # -- rendering ----------------------------------------------------------

    def _popup_html(self, popup: MarkerPopup) -> str:
        parts = [f'<strong>{html.escape(popup.title)}</strong>']
        if popup.subtitle:
            parts.append(f'<div>{html.escape(popup.subtitle)}</div>')
        parts.append(f'<div>{html.escape(popup.date_label)}</div>')
        select = self.select_url.format(record_id=popup.record_id)
        parts.append(
            f'<a href="{html.escape(select)}" target="_top">Show area</a>'
        )
        if self.details_url:
            details = self.details_url.format(record_id=popup.record_id)
            parts.append(
                f' | <a href="{html.escape(details)}" target="_top">View details</a>'
            )
        return ''.join(parts)

    def _overlay_layer(
        self, overlay: BoundaryOverlay, color: str
    ) -> folium.Polygon | folium.Circle:
        if isinstance(overlay, PolygonOverlay):
            return folium.Polygon(
                locations=[list(c.as_tuple()) for c in overlay.ring],
                color=color,
                weight=OVERLAY_WEIGHT,
                fill=True,
                fill_color=color,
                fill_opacity=OVERLAY_FILL_OPACITY,
                dash_array=POLYGON_DASH,
            )
        assert isinstance(overlay, CircleOverlay)
        return folium.Circle(
            location=list(overlay.center.as_tuple()),
            radius=overlay.radius_meters,
            color=color,
            weight=OVERLAY_WEIGHT,
            fill=True,
            fill_color=color,
            fill_opacity=OVERLAY_FILL_OPACITY,
            dash_array=CIRCLE_DASH,
        )

    def render(self) -> folium.Map:
        """Build a folium map from the current registries."""
        fmap = folium.Map(
            location=list(self.center.as_tuple()), zoom_start=self.zoom, tiles=None
        )
        folium.TileLayer(
            tiles=TILE_URL,
            attr=TILE_ATTRIBUTION,
            name='Voyager',
            subdomains='abcd',
            max_zoom=20,
        ).add_to(fmap)

        for overlay, color in self.overlays.values():
            self._overlay_layer(overlay, color).add_to(fmap)

        for marker in self.markers.values():
            size = SELECTED_MARKER_SIZE if marker.style.selected else MARKER_SIZE
            folium.Marker(
                location=list(marker.coordinate.as_tuple()),
                icon=folium.DivIcon(
                    html=marker_html(marker.style),
                    icon_size=(size, size),
                    icon_anchor=(size // 2, size),
                ),
                popup=folium.Popup(self._popup_html(marker.popup), max_width=260),
                tooltip=marker.popup.title,
            ).add_to(fmap)

        for coordinate in self.user_markers.values():
            folium.CircleMarker(
                location=list(coordinate.as_tuple()),
                radius=8,
                color='#FFFFFF',
                weight=3,
                fill=True,
                fill_color=USER_MARKER_COLOR,
                fill_opacity=1.0,
                tooltip='Your location',
            ).add_to(fmap)

        if self.bounds is not None:
            bounds, padding, max_zoom = self.bounds
            fmap.fit_bounds(
                [[bounds.south, bounds.west], [bounds.north, bounds.east]],
                padding=(padding, padding),
                max_zoom=max_zoom,
            )
        logger.debug(
            'Rendered map with %d markers and %d overlays',
            len(self.markers),
            len(self.overlays),
        )
        return fmap

    def to_html(self) -> str:
        """Render a standalone HTML page."""
        return self.render().get_root().render()
