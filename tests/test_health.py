from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from payrelay import create_app
from tests.conftest import RecordingGateway


def test_health_ok(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["environment"] == "testing"
    assert body["checks"]["database"]["status"] == "ok"
    assert body["checks"]["paystack"]["status"] == "ok"
    assert body["checks"]["message_relay"]["status"] == "ok"
    assert body["webhook_listener"] == "POST /payments/webhook"


def test_health_degraded_without_paystack_key(provider):
    app = create_app(
        "testing",
        gateway=RecordingGateway(),
        provider=provider,
        config_overrides={"PAYSTACK_SECRET_KEY": None, "ADMIN_PHONE": None},
    )

    response = app.test_client().get("/health")

    assert response.status_code == 503
    body = response.get_json()
    assert body["status"] == "degraded"
    assert body["checks"]["paystack"]["status"] == "error"
    assert body["checks"]["message_relay"]["status"] == "skipped"


def test_health_degraded_when_database_fails(client, app):
    with patch("payrelay.health.checks.text", side_effect=OperationalError("SELECT 1", {}, Exception("gone"))):
        response = client.get("/health")

    assert response.status_code == 503
    assert response.get_json()["checks"]["database"]["status"] == "error"


def test_index(client):
    body = client.get("/").get_json()

    assert body["message"] == "Paystack Payment Server"
    assert body["endpoints"]["webhook"] == "POST /payments/webhook"


def test_metrics_disabled_by_default(client):
    assert client.get("/metrics").status_code == 404


def test_metrics_exposition(provider):
    app = create_app("testing", gateway=RecordingGateway(), provider=provider, config_overrides={"METRICS_ENABLED": True})
    client = app.test_client()

    app.extensions["payrelay"].handle_webhook({"event": "transfer.success", "data": {}})

    response = client.get("/metrics")

    assert response.status_code == 200
    text = response.get_data(as_text=True)
    assert 'payrelay_reconciliations_total{channel="webhook",outcome="ignored"} 1.0' in text
    assert response.content_type.startswith("text/plain")
