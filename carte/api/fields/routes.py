from __future__ import annotations

import json

from flask import Blueprint, current_app, jsonify

from carte.app.container import get_form_fields
from carte.services.form_bridge import field_selector

fields_bp = Blueprint("fields", __name__)


@fields_bp.get("/api/fields/<record_id>")
def get_field(record_id: str):
    """Return the feature collection currently held by a record's hidden field."""
    selector = field_selector(record_id)
    try:
        value = get_form_fields().read(selector)
        if value is None:
            return jsonify({"success": False, "message": f"No value for record {record_id}."}), 404
        return jsonify({
            "success": True,
            "selector": selector,
            "value": value,
            "feature_collection": json.loads(value),
        }), 200
    except Exception as e:
        current_app.logger.error(f"Error reading field {selector}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500
