from __future__ import annotations

from datetime import datetime

from flask import Blueprint, abort, render_template

from carte.app.container import get_editor_service, get_form_fields
from carte.services.editor_service import EditorNotFoundError

pages_bp = Blueprint("pages", __name__)


@pages_bp.get("/editors/<int:editor_id>")
def editor_page(editor_id: int):
    """Render the editor page with the hidden input holding the selection."""
    try:
        editor = get_editor_service().snapshot(editor_id)
    except EditorNotFoundError:
        abort(404)

    return render_template(
        "editor.html",
        current_year=datetime.now().year,
        editor=editor,
        field_value=get_form_fields().read(editor["field_selector"]) or "",
    )
