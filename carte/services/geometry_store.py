from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from carte.domain.features import Feature, FeatureCollection, InvalidFeatureError

logger = logging.getLogger(__name__)

StoreListener = Callable[["GeometryStore"], None]


class GeometryStore:
    """
    In-memory set of the features drawn by the user during one editor session.

    Features are keyed by id, at most one per id. Replacing a feature removes
    it and appends the new version, so ``all()`` lists the most recently
    touched feature last.

    Listeners registered with ``subscribe`` are called synchronously after
    every mutation. Inside a ``batch()`` block they are called once, when the
    outermost block exits, and only if something changed.
    """

    def __init__(self, features: Optional[Iterable[Feature]] = None) -> None:
        self._features: Dict[str, Feature] = {}
        self._listeners: List[StoreListener] = []
        self._batch_depth = 0
        self._dirty = False
        for feature in features or ():
            self.upsert(feature)

    def __len__(self) -> int:
        return len(self._features)

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self._features

    def get(self, feature_id: str) -> Optional[Feature]:
        return self._features.get(feature_id)

    def upsert(self, feature: Feature) -> None:
        """Insert the feature, replacing any feature with the same id."""
        feature.validate()
        if not feature.is_user_selection:
            raise InvalidFeatureError(
                f"Feature {feature.id} has source {feature.source!r}; only user selections are stored."
            )
        self._features.pop(feature.id, None)
        self._features[feature.id] = feature
        self._changed()

    def remove(self, feature_id: str) -> None:
        """Delete the feature if present. Removing an unknown id is a no-op."""
        if self._features.pop(feature_id, None) is not None:
            self._changed()

    def clear(self) -> None:
        if self._features:
            self._features.clear()
            self._changed()

    def all(self) -> List[Feature]:
        return list(self._features.values())

    def to_feature_collection(self) -> FeatureCollection:
        return FeatureCollection.from_features(self._features.values())

    # Change notification

    def subscribe(self, listener: StoreListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: StoreListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @contextmanager
    def batch(self) -> Iterator["GeometryStore"]:
        """Group several mutations into a single notification."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._notify()

    def _changed(self) -> None:
        if self._batch_depth:
            self._dirty = True
        else:
            self._notify()

    def _notify(self) -> None:
        self._dirty = False
        logger.debug("Geometry store changed, %d feature(s)", len(self._features))
        for listener in list(self._listeners):
            listener(self)
