import json
from decimal import Decimal
from unittest.mock import Mock

import pytest
from faker import Faker

from payrelay import create_app
from payrelay.extensions import db
from payrelay.security.paystack_webhook import SIGNATURE_HEADER, compute_signature
from payrelay.services.transaction_store import TransactionStore

# Initialize Faker for generating test data
fake = Faker()

TEST_SECRET = "sk_test_payrelay"


class RecordingGateway:
    """Notification double that remembers every alert instead of sending it."""

    def __init__(self, delivered=True):
        self.delivered = delivered
        self.calls = []

    def notify(self, transaction, status_label):
        self.calls.append((transaction.reference, status_label))
        return self.delivered

    @property
    def labels(self):
        return [label for _, label in self.calls]


def paystack_initialize_response(**kwargs):
    reference = kwargs.get("reference")
    return {
        "status": True,
        "message": "Authorization URL created",
        "data": {
            "authorization_url": f"https://checkout.paystack.com/{reference}",
            "access_code": "ac_" + (reference or "")[-9:],
            "reference": reference,
        },
    }


def paystack_verify_response(reference, status="success", metadata=None, amount=500000):
    return {
        "status": True,
        "message": "Verification successful",
        "data": {
            "reference": reference,
            "status": status,
            "amount": amount,
            "currency": "NGN",
            "metadata": metadata if metadata is not None else {},
        },
    }


def charge_event(reference, status="success", metadata=None):
    return {
        "event": "charge.success",
        "data": {
            "reference": reference,
            "status": status,
            "amount": 500000,
            "metadata": metadata if metadata is not None else {},
        },
    }


@pytest.fixture()
def gateway():
    return RecordingGateway()


@pytest.fixture()
def provider():
    provider = Mock()
    provider.initialize_transaction.side_effect = paystack_initialize_response
    return provider


@pytest.fixture()
def app(gateway, provider):
    """Application wired with the recording gateway and a mocked Paystack client"""
    app = create_app("testing", gateway=gateway, provider=provider)

    with app.app_context():
        db.create_all()

        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    client = app.test_client()

    def post_webhook(self, event, secret=TEST_SECRET, signature=None):
        body = event if isinstance(event, bytes) else json.dumps(event).encode()
        headers = {"Content-Type": "application/json"}
        if signature is None:
            signature = compute_signature(body, secret)
        if signature:
            headers[SIGNATURE_HEADER] = signature
        return self.post("/payments/webhook", data=body, headers=headers)

    client.post_webhook = post_webhook.__get__(client)
    return client


@pytest.fixture()
def engine(app):
    return app.extensions["payrelay"]


@pytest.fixture()
def store(app):
    return TransactionStore()


@pytest.fixture()
def donor_payload():
    """Body of POST /payments/initialize as the donation page sends it"""
    return {
        "amount": 5000,
        "email": fake.email(),
        "firstName": fake.first_name(),
        "lastName": fake.last_name(),
        "phone": fake.msisdn(),
        "frequency": "monthly",
        "metadata": {"originalAmountUSD": 12, "campaign": "back-to-school"},
    }


@pytest.fixture()
def make_transaction(store):
    """Insert an initiated transaction directly through the store"""

    def _make(reference=None, **overrides):
        record = {
            "reference": reference or f"TEST_{fake.unix_time():.0f}_{fake.lexify('?????????')}",
            "amount": Decimal("5000"),
            "email": fake.email(),
            "firstName": fake.first_name(),
            "lastName": fake.last_name(),
            "phone": fake.msisdn(),
            "donationType": "one-time",
            "metadata": {"originalAmountUSD": 0},
        }
        record.update(overrides)
        return store.create(record)

    return _make
