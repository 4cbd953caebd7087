"""
Domain models for the map editor.

Features are kept in GeoJSON vocabulary: a Feature is a single Point,
LineString or Polygon drawn on the map, a FeatureCollection is the wire form
written into the hidden form input, and ViewportState describes what the map
is currently showing.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Final, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

GEOMETRY_POINT: Final[str] = 'Point'
GEOMETRY_LINESTRING: Final[str] = 'LineString'
GEOMETRY_POLYGON: Final[str] = 'Polygon'
GEOMETRY_TYPES: Final[frozenset] = frozenset({GEOMETRY_POINT, GEOMETRY_LINESTRING, GEOMETRY_POLYGON})

# Values of properties.source on the wire
SOURCE_USER_SELECTION: Final[str] = 'selection_utilisateur'
SOURCE_REFERENCE: Final[str] = 'cadastre'

STYLE_ORTHO: Final[str] = 'ortho'
STYLE_VECTOR: Final[str] = 'vector'


class InvalidFeatureError(ValueError):
    """Raised when a feature payload cannot be accepted."""


class InvalidFeatureCollectionError(InvalidFeatureError):
    """Raised when a feature collection payload is malformed."""


def _is_position(value: Any) -> bool:
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        return False
    return all(_is_number(c) for c in value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_position_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0 and all(_is_position(p) for p in value)


def _coordinates_match(geometry_type: str, coordinates: Any) -> bool:
    if geometry_type == GEOMETRY_POINT:
        return _is_position(coordinates)
    if geometry_type == GEOMETRY_LINESTRING:
        return _is_position_list(coordinates)
    if geometry_type == GEOMETRY_POLYGON:
        return (
            isinstance(coordinates, (list, tuple))
            and len(coordinates) > 0
            and all(_is_position_list(ring) for ring in coordinates)
        )
    return False


def _as_lists(value: Any) -> Any:
    """Turn nested tuples into lists so the value is JSON shaped."""
    if isinstance(value, (list, tuple)):
        return [_as_lists(item) for item in value]
    return value


def feature_source(payload: Mapping[str, Any]) -> Optional[str]:
    """Return properties.source of a GeoJSON feature dict, if any."""
    properties = payload.get('properties') if isinstance(payload, Mapping) else None
    if not isinstance(properties, Mapping):
        return None
    return properties.get('source')


@dataclass(frozen=True)
class Feature:
    """A single user drawn or reference shape."""

    id: Optional[str]
    geometry_type: str
    coordinates: Any
    source: Optional[str] = SOURCE_USER_SELECTION
    properties: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_user_selection(self) -> bool:
        return self.source == SOURCE_USER_SELECTION

    @property
    def geometry(self) -> Dict[str, Any]:
        """GeoJSON geometry object of this feature."""
        return {'type': self.geometry_type, 'coordinates': _as_lists(self.coordinates)}

    def validate(self) -> None:
        """Raise InvalidFeatureError unless the feature can be stored."""
        if self.id is None or not isinstance(self.id, str) or not self.id:
            raise InvalidFeatureError('Feature id is missing.')
        self.validate_geometry()

    def validate_geometry(self) -> None:
        """Raise InvalidFeatureError unless the geometry is drawable; the id is not checked."""
        label = f'feature {self.id}' if self.id else 'feature'
        if self.geometry_type not in GEOMETRY_TYPES:
            raise InvalidFeatureError(
                f'Unsupported geometry type {self.geometry_type!r} for {label}.'
            )
        if not _coordinates_match(self.geometry_type, self.coordinates):
            raise InvalidFeatureError(
                f'Coordinates of {label} do not describe a {self.geometry_type}.'
            )

    def with_source(self, source: str) -> 'Feature':
        return replace(self, source=source)

    def with_id(self, feature_id: str) -> 'Feature':
        return replace(self, id=feature_id)

    def to_geojson(self) -> Dict[str, Any]:
        """Convert to a GeoJSON Feature dict."""
        properties = dict(self.properties)
        if self.source is not None:
            properties['source'] = self.source
        data: Dict[str, Any] = {'type': 'Feature'}
        if self.id is not None:
            data['id'] = self.id
        data['properties'] = properties
        data['geometry'] = self.geometry
        return data

    @classmethod
    def from_geojson(
        cls,
        data: Mapping[str, Any],
        default_source: Optional[str] = SOURCE_USER_SELECTION,
    ) -> 'Feature':
        """
        Create a Feature from a GeoJSON Feature dict.

        The id is taken from the top-level ``id`` member, the source from
        ``properties.source`` (falling back to ``default_source``). Missing or
        unsupported geometry raises InvalidFeatureError; a missing id does not,
        since seeded features get their id from the draw surface.
        """
        if not isinstance(data, Mapping):
            raise InvalidFeatureError('Feature payload must be an object.')

        geometry = data.get('geometry')
        if not isinstance(geometry, Mapping):
            raise InvalidFeatureError('Feature geometry is missing.')

        geometry_type = geometry.get('type')
        if geometry_type not in GEOMETRY_TYPES:
            raise InvalidFeatureError(f'Unsupported geometry type {geometry_type!r}.')

        coordinates = geometry.get('coordinates')
        if coordinates is None:
            raise InvalidFeatureError('Feature coordinates are missing.')

        raw_properties = data.get('properties')
        properties = dict(raw_properties) if isinstance(raw_properties, Mapping) else {}
        source = properties.pop('source', None) or default_source

        feature_id = data.get('id')
        return cls(
            id=str(feature_id) if feature_id is not None else None,
            geometry_type=geometry_type,
            coordinates=_as_lists(coordinates),
            source=source,
            properties=properties,
        )


@dataclass
class FeatureCollection:
    """GeoJSON FeatureCollection as exchanged with the host form."""

    features: List[Dict[str, Any]] = field(default_factory=list)
    bbox: Optional[List[float]] = None

    def user_selections(self) -> List[Dict[str, Any]]:
        """Features owned by the user, in collection order."""
        return [f for f in self.features if feature_source(f) == SOURCE_USER_SELECTION]

    def references(self) -> List[Dict[str, Any]]:
        """Read-only overlay features such as cadastral parcels."""
        return [f for f in self.features if feature_source(f) == SOURCE_REFERENCE]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'type': 'FeatureCollection'}
        if self.bbox is not None:
            data['bbox'] = list(self.bbox)
        data['features'] = [dict(f) for f in self.features]
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_features(cls, features: Iterable[Feature]) -> 'FeatureCollection':
        return cls(features=[feature.to_geojson() for feature in features])

    @classmethod
    def from_geojson(cls, payload: Union[str, Mapping[str, Any], None]) -> 'FeatureCollection':
        """
        Parse a FeatureCollection from a dict or a JSON string.

        ``None`` and an empty string give an empty collection, which is what a
        form field that was never filled in holds.
        """
        if payload is None or payload == '':
            return cls()
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError as exc:
                raise InvalidFeatureCollectionError(f'Feature collection is not valid JSON: {exc}') from exc
        if not isinstance(payload, Mapping):
            raise InvalidFeatureCollectionError('Feature collection must be an object.')
        if payload.get('type') != 'FeatureCollection':
            raise InvalidFeatureCollectionError(
                f"Expected type 'FeatureCollection', got {payload.get('type')!r}."
            )

        features = payload.get('features')
        if features is None:
            features = []
        if not isinstance(features, list) or not all(isinstance(f, Mapping) for f in features):
            raise InvalidFeatureCollectionError('Feature collection features must be a list of objects.')

        bbox = payload.get('bbox')
        if bbox is not None and not _is_bbox(bbox):
            raise InvalidFeatureCollectionError(f'Invalid bbox {bbox!r}.')

        return cls(features=[dict(f) for f in features], bbox=list(bbox) if bbox is not None else None)


def _is_bbox(value: Any) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 4
        and all(_is_number(c) for c in value)
    )


@dataclass
class ViewportState:
    """What the map is currently showing."""

    center: Tuple[float, float] = (1.7, 46.9)
    zoom: float = 5
    style: str = STYLE_ORTHO
    bbox: Optional[List[float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'center': [self.center[0], self.center[1]],
            'zoom': self.zoom,
            'style': self.style,
            'bbox': list(self.bbox) if self.bbox is not None else None,
        }


def parse_coordinates(value: Sequence[Any]) -> Tuple[float, float]:
    """Parse a ``[longitude, latitude]`` pair."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f'Expected [longitude, latitude], got {value!r}.')
    lon, lat = (float(c) for c in value)
    if not -180 <= lon <= 180 or not -90 <= lat <= 90:
        raise ValueError(f'Coordinates out of range: {value!r}.')
    return lon, lat


def parse_bbox(value: Sequence[Any]) -> List[float]:
    if not _is_bbox(value):
        raise ValueError(f'Invalid bbox {value!r}.')
    return [float(c) for c in value]
