from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from carte.app.container import get_editor_service
from carte.domain.features import InvalidFeatureError
from carte.services.editor_service import EditorNotFoundError, UnknownDrawEventError

editors_bp = Blueprint("editors", __name__)


@editors_bp.post("/api/editors")
def mount_editor():
    """Mount a map editor for a record, seeded with its saved feature collection."""
    data = request.get_json(silent=True) or {}
    record_id = data.get("record_id")
    if record_id is None or str(record_id).strip() == "":
        return jsonify({"success": False, "message": "record_id is required"}), 400

    service = get_editor_service()
    try:
        session = service.mount(str(record_id), data.get("feature_collection"))
        return jsonify({
            "success": True,
            "editor": service.snapshot(session.id),
            "commands": service.drain_commands(session.id),
        }), 201
    except InvalidFeatureError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error mounting editor for record {record_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500


@editors_bp.get("/api/editors")
def list_editors():
    """List mounted editors."""
    try:
        return jsonify({"editors": get_editor_service().list_snapshots()}), 200
    except Exception as e:
        current_app.logger.error(f"Error listing editors: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500


@editors_bp.get("/api/editors/<int:editor_id>")
def get_editor(editor_id: int):
    """Get the state of an editor."""
    service = get_editor_service()
    try:
        return jsonify({"success": True, "editor": service.snapshot(editor_id)}), 200
    except EditorNotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except Exception as e:
        current_app.logger.error(f"Error loading editor {editor_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500


@editors_bp.delete("/api/editors/<int:editor_id>")
def unmount_editor(editor_id: int):
    """Unmount an editor and discard its session."""
    service = get_editor_service()
    try:
        service.unmount(editor_id)
        return jsonify({"success": True, "message": "Editor unmounted."}), 200
    except EditorNotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except Exception as e:
        current_app.logger.error(f"Error unmounting editor {editor_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500


@editors_bp.post("/api/editors/<int:editor_id>/draw/<event>")
def draw_event(editor_id: int, event: str):
    """Apply a create, update or delete event from the draw control."""
    data = request.get_json(silent=True) or {}
    features = data.get("features")
    if not isinstance(features, list):
        return jsonify({"success": False, "message": "features must be a list"}), 400

    service = get_editor_service()
    try:
        collection = service.apply_draw_event(editor_id, event, features)
        return jsonify({"success": True, "feature_collection": collection}), 200
    except (EditorNotFoundError, UnknownDrawEventError) as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except InvalidFeatureError as e:
        current_app.logger.warning(f"Editor {editor_id}: rejected draw {event}: {e}")
        return jsonify({"success": False, "message": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error applying draw {event} to editor {editor_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500


@editors_bp.get("/api/editors/<int:editor_id>/draw/commands")
def draw_commands(editor_id: int):
    """Drain the draw commands queued for the browser."""
    service = get_editor_service()
    try:
        return jsonify({"success": True, "commands": service.drain_commands(editor_id)}), 200
    except EditorNotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except Exception as e:
        current_app.logger.error(f"Error draining commands of editor {editor_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500


@editors_bp.post("/api/editors/<int:editor_id>/viewport/search")
def center_on_search(editor_id: int):
    """Center the map on an address picked in the search box."""
    data = request.get_json(silent=True) or {}
    service = get_editor_service()
    try:
        viewport = service.center_on(editor_id, data.get("coordinates"))
        return jsonify({"success": True, "viewport": viewport}), 200
    except EditorNotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except (ValueError, TypeError) as e:
        return jsonify({"success": False, "message": f"Invalid coordinates: {e}"}), 400
    except Exception as e:
        current_app.logger.error(f"Error centering editor {editor_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500


@editors_bp.post("/api/editors/<int:editor_id>/viewport/style")
def toggle_style(editor_id: int):
    """Switch the base map between aerial imagery and vector."""
    service = get_editor_service()
    try:
        viewport = service.toggle_style(editor_id)
        return jsonify({"success": True, "viewport": viewport}), 200
    except EditorNotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except Exception as e:
        current_app.logger.error(f"Error switching style of editor {editor_id}: {e}", exc_info=True)
        return jsonify({"success": False, "message": "Internal server error"}), 500
