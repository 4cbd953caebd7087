from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from carte.domain.features import (
    STYLE_ORTHO,
    STYLE_VECTOR,
    ViewportState,
    parse_bbox,
    parse_coordinates,
)

SEARCH_RESULT_ZOOM = 17


class ViewportController:
    """Track the map center, zoom and base style of one editor."""

    def __init__(
        self,
        state: Optional[ViewportState] = None,
        style_urls: Optional[Mapping[str, str]] = None,
        search_zoom: float = SEARCH_RESULT_ZOOM,
    ) -> None:
        self.state = state or ViewportState()
        self._style_urls = dict(style_urls or {})
        self._search_zoom = search_zoom

    def set_center_from_search(self, coordinates: Sequence[Any]) -> ViewportState:
        """Zoom onto an address picked in the search box."""
        self.state.center = parse_coordinates(coordinates)
        self.state.zoom = self._search_zoom
        return self.state

    def toggle_base_style(self) -> str:
        """Switch between aerial imagery and the vector map."""
        self.state.style = STYLE_VECTOR if self.state.style == STYLE_ORTHO else STYLE_ORTHO
        return self.state.style

    def fit_bounds(self, bbox: Sequence[Any]) -> ViewportState:
        self.state.bbox = parse_bbox(bbox)
        return self.state

    @property
    def style_url(self) -> Optional[str]:
        return self._style_urls.get(self.state.style)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.state.to_dict(), "style_url": self.style_url}
