from unittest.mock import patch

import pytest

from payrelay.errors import ProviderRejected, ProviderUnavailable, StorageFault
from tests.conftest import charge_event, paystack_verify_response


def _initialize(client, payload):
    response = client.post("/payments/initialize", json=payload)
    assert response.status_code == 200
    return response.get_json()["data"]["reference"]


# ----------------------------------------------------------------------
# POST /payments/initialize
# ----------------------------------------------------------------------
@pytest.mark.payment
def test_initialize_payment(client, donor_payload, gateway):
    response = client.post("/payments/initialize", json=donor_payload)

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["message"] == "Payment initialized successfully"
    assert body["data"]["authorization_url"].startswith("https://checkout.paystack.com/")
    assert gateway.calls == [(body["data"]["reference"], "initiated")]


@pytest.mark.payment
def test_initialize_requires_amount_and_email(client, provider):
    response = client.post("/payments/initialize", json={"email": "donor@example.com"})

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert body["message"] == "Amount and email are required"
    provider.initialize_transaction.assert_not_called()


def test_initialize_rejects_non_object_body(client):
    response = client.post("/payments/initialize", data="[1, 2]", content_type="application/json")
    assert response.status_code == 400

    response = client.post("/payments/initialize", data="amount=5000", content_type="text/plain")
    assert response.status_code == 400


def test_initialize_provider_unavailable(client, donor_payload, provider):
    provider.initialize_transaction.side_effect = ProviderUnavailable(
        "Payment service temporarily unavailable",
        payload="No response from payment provider",
    )

    response = client.post("/payments/initialize", json=donor_payload)

    assert response.status_code == 503
    assert response.get_json() == {
        "success": False,
        "message": "Payment service temporarily unavailable",
        "error": "No response from payment provider",
    }


def test_initialize_provider_error_status_is_echoed(client, donor_payload, provider):
    provider.initialize_transaction.side_effect = ProviderRejected(
        "Invalid key", payload={"status": False, "message": "Invalid key"}, status_code=401,
    )

    response = client.post("/payments/initialize", json=donor_payload)

    assert response.status_code == 401
    assert response.get_json()["error"] == {"status": False, "message": "Invalid key"}


def test_initialize_storage_fault(client, donor_payload, engine):
    with patch.object(engine.store, "create", side_effect=StorageFault("Could not create transaction")):
        response = client.post("/payments/initialize", json=donor_payload)

    assert response.status_code == 500
    assert response.get_json()["success"] is False


# ----------------------------------------------------------------------
# POST /payments/webhook
# ----------------------------------------------------------------------
@pytest.mark.webhook
def test_webhook_completes_transaction(client, donor_payload, store, gateway):
    reference = _initialize(client, donor_payload)

    response = client.post_webhook(charge_event(reference))

    assert response.status_code == 200
    assert response.data == b"OK"
    assert store.get(reference).status == "completed"
    assert gateway.labels == ["initiated", "completed (via Webhook)"]


@pytest.mark.webhook
@pytest.mark.parametrize("signature", ["", "0" * 128])
def test_webhook_bad_signature_touches_nothing(client, engine, signature):
    with patch.object(engine.store, "find") as find, patch.object(engine.store, "transition") as transition:
        response = client.post_webhook(charge_event("TEST_ANY"), signature=signature)

    assert response.status_code == 401
    assert response.data == b"Invalid Signature"
    find.assert_not_called()
    transition.assert_not_called()


@pytest.mark.webhook
def test_webhook_signed_with_wrong_secret(client, donor_payload, store):
    reference = _initialize(client, donor_payload)

    response = client.post_webhook(charge_event(reference), secret="sk_test_attacker")

    assert response.status_code == 401
    assert store.get(reference).status == "initiated"


@pytest.mark.webhook
def test_webhook_unparseable_body(client):
    response = client.post_webhook(b"{not json")
    assert response.status_code == 400

    response = client.post_webhook(b'["charge.success"]')
    assert response.status_code == 400


@pytest.mark.webhook
def test_webhook_storage_fault_asks_for_retry(client, engine):
    with patch.object(engine.store, "find", side_effect=StorageFault("Could not read transaction")):
        response = client.post_webhook(charge_event("TEST_RETRY"))

    assert response.status_code == 500
    assert response.data == b"Server Error Processing Webhook"


@pytest.mark.webhook
def test_webhook_unknown_reference_and_other_events_are_acknowledged(client):
    assert client.post_webhook(charge_event("TEST_UNKNOWN")).status_code == 200
    assert client.post_webhook({"event": "transfer.success", "data": {"reference": "TRF_1"}}).status_code == 200


@pytest.mark.webhook
def test_webhook_replay_notifies_once(client, donor_payload, gateway):
    reference = _initialize(client, donor_payload)
    event = charge_event(reference)

    assert client.post_webhook(event).status_code == 200
    assert client.post_webhook(event).status_code == 200

    assert gateway.labels == ["initiated", "completed (via Webhook)"]


# ----------------------------------------------------------------------
# GET /payments/verify/<reference>
# ----------------------------------------------------------------------
@pytest.mark.payment
def test_verify_completes_payment(client, donor_payload, provider):
    reference = _initialize(client, donor_payload)
    provider.verify_transaction.return_value = paystack_verify_response(reference)

    response = client.get(f"/payments/verify/{reference}")

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["message"] == "Payment verified successfully"
    assert body["dbStatus"] == "updated_via_verification"
    assert body["data"]["reference"] == reference


@pytest.mark.payment
def test_initialize_webhook_then_verify(client, donor_payload, provider, gateway):
    reference = _initialize(client, donor_payload)
    client.post_webhook(charge_event(reference))
    provider.verify_transaction.return_value = paystack_verify_response(reference)

    response = client.get(f"/payments/verify/{reference}")

    assert response.status_code == 200
    body = response.get_json()
    assert body["message"] == "Payment verified and already completed by webhook"
    assert body["dbStatus"] == "completed_by_webhook"
    assert gateway.labels == ["initiated", "completed (via Webhook)"]


@pytest.mark.payment
def test_verify_abandoned_payment(client, donor_payload, provider, store):
    reference = _initialize(client, donor_payload)
    provider.verify_transaction.return_value = paystack_verify_response(reference, status="abandoned")

    response = client.get(f"/payments/verify/{reference}")

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert body["message"] == "Payment abandoned"
    assert body["dbStatus"] == "status_changed"
    assert store.get(reference).status == "abandoned"


def test_verify_unknown_reference(client, provider):
    response = client.get("/payments/verify/TEST_MISSING")

    assert response.status_code == 404
    assert response.get_json()["success"] is False
    provider.verify_transaction.assert_not_called()


def test_verify_provider_unavailable(client, make_transaction, provider):
    make_transaction("TEST_SLOW")
    provider.verify_transaction.side_effect = ProviderUnavailable("Payment service temporarily unavailable")

    response = client.get("/payments/verify/TEST_SLOW")

    assert response.status_code == 503


# ----------------------------------------------------------------------
# cross-cutting
# ----------------------------------------------------------------------
def test_unknown_route_returns_json(client):
    response = client.get("/payments/nowhere")

    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_method_not_allowed(client):
    assert client.get("/payments/webhook").status_code == 405


def test_request_id_is_echoed(client):
    response = client.get("/", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    assert client.get("/").headers["X-Request-ID"]


def test_cors_allows_frontend_origin(client):
    response = client.get("/", headers={"Origin": "https://donate.example.test"})
    assert response.headers.get("Access-Control-Allow-Origin") == "https://donate.example.test"


def test_unexpected_errors_do_not_leak(client, engine):
    with patch.object(engine, "verify", side_effect=RuntimeError("boom")):
        response = client.get("/payments/verify/TEST_BOOM")

    assert response.status_code == 500
    body = response.get_json()
    assert body["error"] == "Internal Server Error"
    assert "boom" not in response.get_data(as_text=True)
