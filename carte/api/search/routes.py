from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from carte.app.container import get_editor_service, get_search_service
from carte.services.address_search import SearchResult
from carte.services.editor_service import EditorNotFoundError

search_bp = Blueprint("search", __name__)


def _result_response(result: SearchResult):
    if not result.ok:
        # The search box shows "no result"; the message is for the caller's logs.
        return jsonify({"success": False, "results": [], "message": result.error}), 502
    return jsonify({"success": True, **result.to_dict()}), 200


@search_bp.get("/api/address-search")
def address_search():
    """Look up addresses matching the q parameter."""
    term = request.args.get("q", "")
    try:
        result = get_search_service().lookup(term)
    except Exception as e:
        current_app.logger.error(f"Error searching address {term!r}: {e}", exc_info=True)
        return jsonify({"success": False, "results": [], "message": "Internal server error"}), 500
    return _result_response(result)


@search_bp.get("/api/editors/<int:editor_id>/search")
def editor_address_search(editor_id: int):
    """Search from an editor's search box; superseded searches answer 409."""
    term = request.args.get("q", "")
    service = get_editor_service()
    try:
        result = service.search_address(editor_id, term)
    except EditorNotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except Exception as e:
        current_app.logger.error(f"Error searching address {term!r} for editor {editor_id}: {e}", exc_info=True)
        return jsonify({"success": False, "results": [], "message": "Internal server error"}), 500
    if result is None:
        return jsonify({
            "success": False,
            "stale": True,
            "message": "Search superseded by a newer one.",
        }), 409
    return _result_response(result)
