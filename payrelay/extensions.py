# payrelay/extensions.py
"""
Flask extensions initialization module.
"""

import logging

from flask_cors import CORS
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
cors = CORS()
migrate = Migrate()

logger = logging.getLogger(__name__)


def init_extensions(app):
    """Initialize all Flask extensions."""

    db.init_app(app)
    logger.info("SQLAlchemy initialized")

    migrate.init_app(app, db)
    logger.info("Flask-Migrate initialized")

    init_cors(app)

    if app.config.get("CREATE_TABLES_ON_START", False):
        create_tables(app)

    return app


def init_cors(app):
    """Initialize CORS for the local origins plus the donation frontend."""
    origins = list(app.config.get("CORS_ORIGINS", []))
    frontend_url = app.config.get("FRONTEND_URL")
    if frontend_url and frontend_url not in origins:
        origins.append(frontend_url)

    cors_config = {
        "origins": origins,
        "methods": app.config.get("CORS_METHODS", ["GET", "POST", "OPTIONS"]),
        "allow_headers": app.config.get("CORS_HEADERS", ["Content-Type", "Authorization"]),
        "supports_credentials": app.config.get("CORS_SUPPORTS_CREDENTIALS", False),
    }

    cors.init_app(app, **cors_config)
    logger.info("CORS initialized", extra={"origins": origins})


def create_tables(app):
    """Create tables that do not exist yet."""
    # Imported for its side effect of registering the model
    from payrelay.models import Transaction  # noqa: F401

    with app.app_context():
        db.create_all()
    logger.info("Transactions table ready")
