from carte.services.address_search import (
    AddressGeocoder,
    AddressSearchService,
    AddressSuggestion,
    GeocoderError,
    SearchSession,
)
from carte.services.draw_session import DrawSessionController
from carte.services.draw_surface import CommandQueueDrawSurface, DrawSurface
from carte.services.editor_service import (
    EditorNotFoundError,
    EditorSessionError,
    EditorSessionService,
    UnknownDrawEventError,
)
from carte.services.form_bridge import FormFieldBridge, field_selector
from carte.services.geometry_store import GeometryStore
from carte.services.viewport import ViewportController

__all__ = [
    "AddressGeocoder",
    "AddressSearchService",
    "AddressSuggestion",
    "CommandQueueDrawSurface",
    "DrawSessionController",
    "DrawSurface",
    "EditorNotFoundError",
    "EditorSessionError",
    "EditorSessionService",
    "FormFieldBridge",
    "GeocoderError",
    "GeometryStore",
    "SearchSession",
    "UnknownDrawEventError",
    "ViewportController",
    "field_selector",
]
