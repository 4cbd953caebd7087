from __future__ import annotations

from typing import Optional

from flask import current_app

from carte.services.address_search import AddressSearchService
from carte.services.editor_service import EditorSessionService
from carte.storage.fields import SqlFormFieldStore

FORM_FIELDS_KEY = "form_fields"
SEARCH_SERVICE_KEY = "address_search_service"
EDITOR_SERVICE_KEY = "editor_service"


def register_services(app, search_service: Optional[AddressSearchService] = None) -> None:
    """Pre-instantiate core services and store them on the application."""
    with app.app_context():
        fields = SqlFormFieldStore()
        fields.add_listener(_log_field_change)
        app.extensions[FORM_FIELDS_KEY] = fields

        search_service = search_service or AddressSearchService.from_app_config()
        app.extensions[SEARCH_SERVICE_KEY] = search_service

        editor_service = EditorSessionService.from_app_config(fields, search_service)
        app.extensions[EDITOR_SERVICE_KEY] = editor_service


def _log_field_change(selector: str, value: Optional[str]) -> None:
    current_app.logger.debug(f"Form field {selector} changed ({len(value or '')} chars)")


def get_form_fields() -> SqlFormFieldStore:
    """Return the shared form field store."""
    fields = current_app.extensions.get(FORM_FIELDS_KEY)
    if fields is None:
        fields = SqlFormFieldStore()
        fields.add_listener(_log_field_change)
        current_app.extensions[FORM_FIELDS_KEY] = fields
    return fields


def get_search_service() -> AddressSearchService:
    """Return the shared address search service."""
    service = current_app.extensions.get(SEARCH_SERVICE_KEY)
    if service is None:
        service = AddressSearchService.from_app_config()
        current_app.extensions[SEARCH_SERVICE_KEY] = service
    return service


def get_editor_service() -> EditorSessionService:
    """Return the shared editor session service."""
    service = current_app.extensions.get(EDITOR_SERVICE_KEY)
    if service is None:
        service = EditorSessionService.from_app_config(get_form_fields(), get_search_service())
        current_app.extensions[EDITOR_SERVICE_KEY] = service
    return service
