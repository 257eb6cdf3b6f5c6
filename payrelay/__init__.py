"""
Paystack payment relay.

Flask application factory. Wires the storage layer, the Paystack client,
the admin notification gateway and the reconciliation engine together and
exposes the engine as ``app.extensions["payrelay"]``.
"""

import logging

from flask import Flask

from payrelay.config import get_config
from payrelay.error_handlers import register_error_handlers
from payrelay.extensions import init_extensions
from payrelay.health import health_bp
from payrelay.logging_config import setup_logging
from payrelay.middleware.request_id import init_request_id_middleware
from payrelay.notifications import NotificationService
from payrelay.observability.metrics import MetricsManager
from payrelay.reconciliation.engine import ReconciliationEngine
from payrelay.routes.payments import payments_bp
from payrelay.services.paystack_service import PaystackClient
from payrelay.services.transaction_store import TransactionStore

__version__ = "1.0.0"

logger = logging.getLogger(__name__)


def init_sentry(app: Flask) -> None:
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        environment=app.config.get("ENV_NAME"),
        release=app.config.get("APP_VERSION"),
        send_default_pii=False,
    )
    logger.info("Sentry error reporting enabled")


def create_app(config_name=None, *, store=None, gateway=None, provider=None, config_overrides=None):
    """
    Create and configure the Flask app.

    ``store``, ``gateway`` and ``provider`` replace the default
    collaborators; tests pass doubles here.
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if config_overrides:
        app.config.update(config_overrides)

    init_request_id_middleware(app)
    setup_logging(app)
    init_sentry(app)
    init_extensions(app)
    register_error_handlers(app)

    metrics = MetricsManager(enabled=app.config.get("METRICS_ENABLED", False))
    engine = ReconciliationEngine(
        store=store or TransactionStore(),
        gateway=gateway or NotificationService.from_config(app.config, metrics=metrics),
        provider=provider or PaystackClient.from_config(app.config),
        reference_prefix=app.config.get("REFERENCE_PREFIX", "TXN"),
        currency=app.config.get("PAYMENT_CURRENCY", "NGN"),
        callback_url=app.config.get("FRONTEND_URL") or None,
        metrics=metrics,
    )
    app.extensions["payrelay"] = engine
    app.extensions["payrelay.metrics"] = metrics

    app.register_blueprint(health_bp)
    app.register_blueprint(payments_bp)

    logger.info(
        "Application created",
        extra={
            "environment": app.config.get("ENV_NAME"),
            "paystack_key": "Key Found" if app.config.get("PAYSTACK_SECRET_KEY") else "Key Missing",
            "frontend_url": app.config.get("FRONTEND_URL") or "MISSING",
            "backend_url": app.config.get("BACKEND_URL") or "MISSING",
        },
    )
    return app
