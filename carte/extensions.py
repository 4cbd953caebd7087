from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def init_extensions(app) -> None:
    """Initialize Flask extensions and make sure the tables exist."""
    db.init_app(app)

    # Models must be imported before create_all() so their tables are registered.
    from carte.storage import models  # noqa: F401

    with app.app_context():
        db.create_all()
