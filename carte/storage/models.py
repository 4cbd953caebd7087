from __future__ import annotations

from datetime import datetime, timezone

from carte.extensions import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormField(db.Model):
    """Current value of a hidden form input, keyed by its selector."""

    __tablename__ = "form_fields"

    selector = db.Column(db.String(255), primary_key=True)
    value = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> dict:
        return {
            "selector": self.selector,
            "value": self.value,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
