from __future__ import annotations

import logging
from typing import Optional

from carte.services.geometry_store import GeometryStore
from carte.storage.protocols import FormFieldGateway

logger = logging.getLogger(__name__)


def field_selector(record_id: str) -> str:
    """Selector of the hidden input holding the feature collection of a record."""
    return f'[data-feature-collection-id="{record_id}"]'


class FormFieldBridge:
    """Write the store contents into the host form's hidden input."""

    def __init__(self, store: GeometryStore, fields: FormFieldGateway) -> None:
        self._store = store
        self._fields = fields
        self._selector: Optional[str] = None

    @property
    def selector(self) -> Optional[str]:
        return self._selector

    def sync(self, target_field_selector: str) -> None:
        """Serialize the store into the field, then fire its change notification."""
        value = self._store.to_feature_collection().to_json()
        self._fields.write(target_field_selector, value)
        self._fields.dispatch_change(target_field_selector)
        logger.debug("Synced %d feature(s) into %s", len(self._store), target_field_selector)

    def bind(self, target_field_selector: str) -> None:
        """Sync into ``target_field_selector`` after every store mutation."""
        self.unbind()
        self._selector = target_field_selector
        self._store.subscribe(self._on_store_changed)

    def unbind(self) -> None:
        if self._selector is not None:
            self._store.unsubscribe(self._on_store_changed)
            self._selector = None

    def _on_store_changed(self, store: GeometryStore) -> None:
        if self._selector is not None:
            self.sync(self._selector)
