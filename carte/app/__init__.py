from __future__ import annotations

import os
from pathlib import Path

from flask import Flask

from carte.config import resolve_config
from carte.extensions import init_extensions
from carte.app.container import register_services


def create_app(config_name: str | None = None) -> Flask:
    """Application factory."""
    project_root = Path(__file__).resolve().parents[2]
    app = Flask(
        __name__,
        instance_relative_config=True,
        instance_path=str(project_root / "instance"),
        static_folder=str(project_root / "static"),
        template_folder=str(project_root / "templates"),
    )

    config_class = resolve_config(config_name or os.getenv("FLASK_ENV"))
    app.config.from_object(config_class)
    _ensure_instance_dir(app)

    init_extensions(app)
    register_services(app)
    _register_blueprints(app)
    return app


def _register_blueprints(app: Flask) -> None:
    from carte.api.editors.routes import editors_bp
    from carte.api.fields.routes import fields_bp
    from carte.api.pages.routes import pages_bp
    from carte.api.search.routes import search_bp

    app.register_blueprint(pages_bp)
    app.register_blueprint(editors_bp)
    app.register_blueprint(search_bp)
    app.register_blueprint(fields_bp)


def _ensure_instance_dir(app: Flask) -> None:
    """Create the instance directory holding ``carte.db``, where hidden field values persist."""
    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
