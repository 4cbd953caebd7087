from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Union

from carte.domain.features import (
    SOURCE_USER_SELECTION,
    Feature,
    InvalidFeatureError,
    feature_source,
)
from carte.services.draw_surface import DrawSurface
from carte.services.geometry_store import GeometryStore

logger = logging.getLogger(__name__)

FeaturePayload = Union[Feature, Mapping[str, Any]]


def _as_feature(payload: FeaturePayload) -> Feature:
    if isinstance(payload, Feature):
        return payload
    return Feature.from_geojson(payload)


def _feature_id(payload: FeaturePayload) -> str:
    feature_id = payload.id if isinstance(payload, Feature) else (
        payload.get("id") if isinstance(payload, Mapping) else None
    )
    if feature_id is None or feature_id == "":
        raise InvalidFeatureError("Feature id is missing.")
    return str(feature_id)


class DrawSessionController:
    """
    Apply draw surface events to the geometry store.

    Every handler applies its features in order inside one store batch, so
    listeners are notified once per event. A malformed feature raises
    InvalidFeatureError; the features before it in the same event stay
    applied and nothing else in the store is touched.
    """

    def __init__(self, store: GeometryStore, surface: DrawSurface) -> None:
        self._store = store
        self._surface = surface

    @property
    def store(self) -> GeometryStore:
        return self._store

    def on_create(self, features: Iterable[FeaturePayload]) -> List[Feature]:
        """Handle features drawn by the user."""
        return self._upsert_all(features, "create")

    def on_update(self, features: Iterable[FeaturePayload]) -> List[Feature]:
        """Handle features moved or reshaped by the user, replacing them by id."""
        return self._upsert_all(features, "update")

    def on_delete(self, features: Iterable[FeaturePayload]) -> List[str]:
        """Handle features trashed by the user."""
        removed = []
        with self._store.batch():
            for payload in features:
                feature_id = _feature_id(payload)
                self._store.remove(feature_id)
                removed.append(feature_id)
        logger.debug("Draw delete applied to %s", removed)
        return removed

    def on_map_ready(self, initial_features: Iterable[Mapping[str, Any]]) -> List[Feature]:
        """
        Push the user's previously saved features onto the draw surface.

        Reference features (cadastral parcels) are skipped. The surface only
        receives the geometry and picks its own id, and the store is seeded
        under that id: persisted ids do not survive a reload. A saved feature
        that cannot be parsed is logged and left out rather than blocking the
        editor.
        """
        seeded = []
        with self._store.batch():
            for payload in initial_features:
                if feature_source(payload) != SOURCE_USER_SELECTION:
                    continue
                try:
                    feature = Feature.from_geojson(payload, default_source=None)
                    feature.validate_geometry()
                except InvalidFeatureError as exc:
                    logger.warning("Skipping saved feature that cannot be drawn: %s", exc)
                    continue
                ui_id = self._surface.add(
                    {"type": "Feature", "properties": {}, "geometry": feature.geometry}
                )
                seeded_feature = feature.with_id(ui_id)
                self._store.upsert(seeded_feature)
                seeded.append(seeded_feature)
        logger.debug("Seeded draw surface with %d saved feature(s)", len(seeded))
        return seeded

    def _upsert_all(self, features: Iterable[FeaturePayload], event: str) -> List[Feature]:
        applied = []
        with self._store.batch():
            for payload in features:
                feature = _as_feature(payload).with_source(SOURCE_USER_SELECTION)
                self._store.upsert(feature)
                applied.append(feature)
        logger.debug("Draw %s applied to %s", event, [f.id for f in applied])
        return applied
