from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from flask import current_app

from carte.domain.features import FeatureCollection, ViewportState
from carte.services.address_search import AddressSearchService, SearchResult, SearchSession
from carte.services.draw_session import DrawSessionController
from carte.services.draw_surface import CommandQueueDrawSurface
from carte.services.form_bridge import FormFieldBridge, field_selector
from carte.services.geometry_store import GeometryStore
from carte.services.viewport import ViewportController
from carte.storage.protocols import FormFieldGateway

DRAW_EVENTS = ("create", "update", "delete")


class EditorSessionError(Exception):
    """Base exception raised for editor session issues."""


class EditorNotFoundError(EditorSessionError):
    """Raised when an editor session is not found."""


class UnknownDrawEventError(EditorSessionError):
    """Raised when a draw event name is not create, update or delete."""


@dataclass
class EditorSession:
    """Everything one mounted map editor needs, for the lifetime of the form."""

    id: int
    record_id: str
    store: GeometryStore
    surface: CommandQueueDrawSurface
    controller: DrawSessionController
    bridge: FormFieldBridge
    viewport: ViewportController
    search: SearchSession
    created_at: str
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    unmounted: bool = False

    @property
    def selector(self) -> str:
        return field_selector(self.record_id)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the session; the caller holds ``lock``."""
        return {
            "id": self.id,
            "record_id": self.record_id,
            "field_selector": self.selector,
            "created_at": self.created_at,
            "feature_collection": self.store.to_feature_collection().to_dict(),
            "viewport": self.viewport.to_dict(),
        }


class EditorSessionService:
    """Handle editor sessions: mounting, draw events, viewport and unmounting.

    Sessions only live in memory; unmounting or restarting the process drops
    them. The hidden field value they write is what survives.
    """

    def __init__(
        self,
        fields: FormFieldGateway,
        search_service: AddressSearchService,
        default_center: Sequence[float] = (1.7, 46.9),
        default_zoom: float = 5,
        search_zoom: float = 17,
        style_urls: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._fields = fields
        self._search_service = search_service
        self._default_center = (float(default_center[0]), float(default_center[1]))
        self._default_zoom = default_zoom
        self._search_zoom = search_zoom
        self._style_urls = dict(style_urls or {})
        self._sessions: Dict[int, EditorSession] = {}
        self._ids = itertools.count(1)
        self._registry_lock = threading.Lock()

    @classmethod
    def from_app_config(
        cls, fields: FormFieldGateway, search_service: AddressSearchService
    ) -> "EditorSessionService":
        """Create EditorSessionService from Flask app configuration."""
        config = current_app.config
        return cls(
            fields=fields,
            search_service=search_service,
            default_center=config["DEFAULT_CENTER"],
            default_zoom=config["DEFAULT_ZOOM"],
            search_zoom=config["SEARCH_ZOOM"],
            style_urls=config["MAP_STYLE_URLS"],
        )

    def mount(
        self,
        record_id: str,
        feature_collection: Union[str, Mapping[str, Any], None] = None,
    ) -> EditorSession:
        """
        Mount an editor for a record.

        The saved feature collection is parsed, its user selections are pushed
        to the draw surface, and the field is synced once so it reflects the
        seeded store. Raises InvalidFeatureCollectionError for a malformed
        collection.
        """
        collection = FeatureCollection.from_geojson(feature_collection)

        store = GeometryStore()
        surface = CommandQueueDrawSurface()
        viewport = ViewportController(
            state=ViewportState(center=self._default_center, zoom=self._default_zoom),
            style_urls=self._style_urls,
            search_zoom=self._search_zoom,
        )
        if collection.bbox is not None:
            viewport.fit_bounds(collection.bbox)

        with self._registry_lock:
            editor_id = next(self._ids)
        session = EditorSession(
            id=editor_id,
            record_id=str(record_id),
            store=store,
            surface=surface,
            controller=DrawSessionController(store, surface),
            bridge=FormFieldBridge(store, self._fields),
            viewport=viewport,
            search=SearchSession(self._search_service),
            created_at=datetime.now(timezone.utc).isoformat(),
        )

        session.controller.on_map_ready(collection.features)
        session.bridge.bind(session.selector)
        session.bridge.sync(session.selector)

        with self._registry_lock:
            self._sessions[editor_id] = session

        current_app.logger.info(
            f"Mounted editor {editor_id} for record {record_id} "
            f"({len(store)} saved selection(s), {len(collection.references())} reference feature(s))"
        )
        return session

    def get(self, editor_id: int) -> EditorSession:
        """Get editor session by ID."""
        with self._registry_lock:
            session = self._sessions.get(editor_id)
        if session is None:
            raise EditorNotFoundError(f"Editor with id {editor_id} not found.")
        return session

    @contextmanager
    def _locked(self, editor_id: int) -> Iterator[EditorSession]:
        """Hold the session lock, failing if the editor was unmounted meanwhile."""
        session = self.get(editor_id)
        with session.lock:
            if session.unmounted:
                raise EditorNotFoundError(f"Editor with id {editor_id} not found.")
            yield session

    def snapshot(self, editor_id: int) -> Dict[str, Any]:
        """Serialized state of one editor, taken under its lock."""
        with self._locked(editor_id) as session:
            return session.to_dict()

    def list_snapshots(self) -> List[Dict[str, Any]]:
        with self._registry_lock:
            sessions = list(self._sessions.values())
        snapshots = []
        for session in sessions:
            with session.lock:
                if not session.unmounted:
                    snapshots.append(session.to_dict())
        return snapshots

    def unmount(self, editor_id: int) -> None:
        """Discard an editor session; the field keeps its last synced value."""
        with self._registry_lock:
            session = self._sessions.pop(editor_id, None)
        if session is None:
            raise EditorNotFoundError(f"Editor with id {editor_id} not found.")
        with session.lock:
            session.unmounted = True
            session.bridge.unbind()
            session.store.clear()
        current_app.logger.info(f"Unmounted editor {editor_id} for record {session.record_id}")

    def apply_draw_event(
        self, editor_id: int, event: str, features: Iterable[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        """
        Apply a create, update or delete event sent by the draw surface.

        Returns the editor's feature collection as it stands after the event.
        """
        if event not in DRAW_EVENTS:
            raise UnknownDrawEventError(f"Unknown draw event {event!r}.")
        with self._locked(editor_id) as session:
            if event == "create":
                session.controller.on_create(features)
            elif event == "update":
                session.controller.on_update(features)
            else:
                session.controller.on_delete(features)
            collection = session.store.to_feature_collection().to_dict()
        current_app.logger.debug(
            f"Editor {editor_id}: draw {event} applied, {len(collection['features'])} feature(s)"
        )
        return collection

    def drain_commands(self, editor_id: int) -> List[Dict[str, Any]]:
        with self._locked(editor_id) as session:
            return session.surface.drain()

    def search_address(self, editor_id: int, term: str) -> Optional[SearchResult]:
        """Run a search in the editor's search box; None when it was superseded."""
        session = self.get(editor_id)
        return session.search.search(term)

    def center_on(self, editor_id: int, coordinates: Sequence[Any]) -> Dict[str, Any]:
        with self._locked(editor_id) as session:
            session.viewport.set_center_from_search(coordinates)
            return session.viewport.to_dict()

    def toggle_style(self, editor_id: int) -> Dict[str, Any]:
        with self._locked(editor_id) as session:
            session.viewport.toggle_base_style()
            return session.viewport.to_dict()
