import json
import logging
from decimal import ROUND_HALF_UP, Decimal
from urllib.parse import quote

import requests

from payrelay.errors import ProviderError, ProviderRejected, ProviderUnavailable

logger = logging.getLogger(__name__)

PAYSTACK_BASE_URL = "https://api.paystack.co"


def to_minor_units(amount) -> int:
    """Naira to kobo. Only the provider boundary deals in minor units."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaystackClient:
    """Thin wrapper over the two Paystack endpoints the relay needs."""

    def __init__(self, secret_key, base_url=PAYSTACK_BASE_URL, timeout=10, session=None):
        self.secret_key = secret_key
        self.base_url = (base_url or PAYSTACK_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(
            secret_key=config.get("PAYSTACK_SECRET_KEY"),
            base_url=config.get("PAYSTACK_BASE_URL", PAYSTACK_BASE_URL),
            timeout=config.get("HTTP_TIMEOUT_SECONDS", 10),
        )

    def _headers(self):
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.error("No response received from Paystack", extra={"url": url, "error": str(e)})
            raise ProviderUnavailable(
                "Payment service temporarily unavailable",
                payload="No response from payment provider",
            ) from e
        except requests.RequestException as e:
            logger.error("Paystack request could not be sent", extra={"url": url, "error": str(e)})
            raise ProviderError("Payment provider request failed", payload=str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text[:200]}

        logger.info(
            "Paystack API response",
            extra={"url": url, "status_code": response.status_code, "provider_status": body.get("status")},
        )

        if not response.ok:
            logger.error("Paystack API error", extra={"url": url, "status_code": response.status_code, "body": body})
            raise ProviderRejected(
                body.get("message") or "Paystack API error",
                payload=body,
                status_code=response.status_code,
            )
        return body

    def initialize_transaction(self, *, email, amount, reference, metadata=None, callback_url=None, currency="NGN"):
        payload = {
            "amount": to_minor_units(amount),
            "email": email,
            "reference": reference,
            "currency": currency,
            "metadata": json.dumps(metadata or {}),
        }
        if callback_url:
            payload["callback_url"] = callback_url

        logger.info(
            "Initializing Paystack transaction",
            extra={"reference": reference, "amount_minor": payload["amount"], "currency": currency},
        )
        return self._request("POST", "/transaction/initialize", json=payload)

    def verify_transaction(self, reference):
        return self._request("GET", f"/transaction/verify/{quote(reference, safe='')}")
