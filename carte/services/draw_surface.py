from __future__ import annotations

import uuid
from typing import Any, Dict, List, Protocol


class DrawSurface(Protocol):
    """The interactive drawing layer of the map, as seen by the server."""

    def add(self, feature: Dict[str, Any]) -> str:
        """Draw the feature and return the id the surface assigned to it."""
        ...


class CommandQueueDrawSurface(DrawSurface):
    """
    Draw surface driven over HTTP.

    ``add`` assigns a fresh id and queues an ``add`` command; the browser
    drains the queue and replays each command on its draw control, which keeps
    the id it is given. Draw events the browser sends back afterwards carry
    that id.
    """

    def __init__(self) -> None:
        self._pending: List[Dict[str, Any]] = []

    def add(self, feature: Dict[str, Any]) -> str:
        feature_id = uuid.uuid4().hex
        self._pending.append({"command": "add", "feature": {**feature, "id": feature_id}})
        return feature_id

    @property
    def pending(self) -> List[Dict[str, Any]]:
        return list(self._pending)

    def drain(self) -> List[Dict[str, Any]]:
        """Return the queued commands and empty the queue."""
        commands, self._pending = self._pending, []
        return commands
