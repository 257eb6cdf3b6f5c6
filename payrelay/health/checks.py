import time

from flask import current_app
from sqlalchemy import text

from payrelay.extensions import db


def _check_database():
    start = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        latency = round((time.time() - start) * 1000, 2)
        return {"status": "ok", "latency_ms": latency}
    except Exception as e:
        db.session.rollback()
        return {"status": "error", "error": str(e)}


def _check_paystack():
    if not current_app.config.get("PAYSTACK_SECRET_KEY"):
        return {"status": "error", "error": "PAYSTACK_SECRET_KEY not set"}
    return {"status": "ok", "base_url": current_app.config.get("PAYSTACK_BASE_URL")}


def _check_message_relay():
    if not current_app.config.get("ADMIN_PHONE"):
        return {"status": "skipped", "reason": "ADMIN_PHONE not set"}
    return {"status": "ok", "url": current_app.config.get("MESSAGE_RELAY_URL")}


def run_health_checks():
    """
    Master health runner used by route.
    """
    started = time.time()

    checks = {
        "database": _check_database(),
        "paystack": _check_paystack(),
        "message_relay": _check_message_relay(),
    }

    overall = "ok"

    for c in checks.values():
        if c["status"] == "error":
            overall = "degraded"

    return {
        "status": overall,
        "timestamp": int(time.time()),
        "checks": checks,
        "duration_ms": round((time.time() - started) * 1000, 2),
        "environment": current_app.config.get("ENV_NAME", "unknown"),
        "webhook_listener": "POST /payments/webhook",
    }
