from __future__ import annotations

from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from carte.extensions import db
from carte.storage.models import FormField
from carte.storage.protocols import FormFieldGateway

FieldChangeListener = Callable[[str, Optional[str]], None]


class FormFieldError(Exception):
    """Raised when a form field value cannot be read or written."""


class SqlFormFieldStore(FormFieldGateway):
    """Form field values kept in the database through Flask-SQLAlchemy.

    Must be used inside an application context. Change notifications are
    delivered synchronously to the registered listeners, in registration
    order, with the selector and the value currently stored.
    """

    def __init__(self) -> None:
        self._listeners: List[FieldChangeListener] = []

    def write(self, selector: str, value: str) -> None:
        try:
            record = db.session.get(FormField, selector)
            if record is None:
                record = FormField(selector=selector)
                db.session.add(record)
            record.value = value
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise FormFieldError(f"Unable to write form field {selector}: {exc}") from exc

    def read(self, selector: str) -> Optional[str]:
        try:
            record = db.session.get(FormField, selector)
        except SQLAlchemyError as exc:
            raise FormFieldError(f"Unable to read form field {selector}: {exc}") from exc
        return record.value if record is not None else None

    def dispatch_change(self, selector: str) -> None:
        value = self.read(selector)
        for listener in list(self._listeners):
            listener(selector, value)

    def add_listener(self, listener: FieldChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: FieldChangeListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass
