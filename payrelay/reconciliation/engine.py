"""
Authoritative payment reconciliation.

Three channels report on the same reference, in any order and possibly
more than once:

- initialize: synchronous, right after Paystack accepts the charge request
- webhook: Paystack push, at-least-once, signature already verified
- verify: caller-initiated pull from Paystack

This engine is the ONLY place where a transaction changes status after
creation. Completion goes through the store's conditional transition, and
the "completed" notification is sent only by the caller whose transition
actually changed the row.
"""

import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from payrelay.errors import ProviderError, ProviderRejected, ValidationError
from payrelay.observability.metrics import NOOP_METRICS
from payrelay.reconciliation.metadata import (
    build_provider_metadata,
    extract_names,
    merge_secondary_amount,
)
from payrelay.reconciliation.status import TransactionStatus, from_provider

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_lowercase + string.digits


class Channel(str, Enum):
    INITIALIZE = "initialize"
    WEBHOOK = "webhook"
    VERIFY = "verify"


class Outcome(str, Enum):
    INITIATED = "initiated"
    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"
    STATUS_UPDATED = "status_updated"
    UNCHANGED = "unchanged"
    UNKNOWN_REFERENCE = "unknown_reference"
    IGNORED = "ignored"


# Wording the verify endpoint reports back to the donation frontend
VERIFY_DB_STATUS = {
    Outcome.COMPLETED: "updated_via_verification",
    Outcome.ALREADY_COMPLETED: "completed_by_webhook",
    Outcome.STATUS_UPDATED: "status_changed",
    Outcome.UNCHANGED: "unchanged",
}


@dataclass
class ReconciliationResult:
    channel: Channel
    outcome: Outcome
    transaction: Any = None
    notified: bool = False
    provider_data: Dict[str, Any] = field(default_factory=dict)
    status: Optional[TransactionStatus] = None

    @property
    def is_completed(self) -> bool:
        return self.outcome in (Outcome.COMPLETED, Outcome.ALREADY_COMPLETED)

    @property
    def db_status(self) -> str:
        return VERIFY_DB_STATUS.get(self.outcome, self.outcome.value)


class ReconciliationEngine:
    """
    Merges status reports from the three channels into one record per
    reference.

    Collaborators are injected:
    - store: TransactionStore (create / get / find / transition)
    - gateway: NotificationService (notify, never raises)
    - provider: PaystackClient (initialize_transaction / verify_transaction)
    """

    def __init__(
        self,
        store,
        gateway,
        provider,
        *,
        reference_prefix: str = "TXN",
        currency: str = "NGN",
        callback_url: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        metrics=NOOP_METRICS,
    ):
        self.store = store
        self.gateway = gateway
        self.provider = provider
        self.reference_prefix = reference_prefix
        self.currency = currency
        self.callback_url = callback_url
        self.clock = clock
        self.metrics = metrics

    def generate_reference(self) -> str:
        suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(9))
        return f"{self.reference_prefix}_{int(time.time() * 1000)}_{suffix}"

    # ------------------------------------------------------------------
    # Channel 1: initialize
    # ------------------------------------------------------------------
    def initialize(self, payload: Mapping[str, Any]) -> ReconciliationResult:
        """
        Validate, ask Paystack for a checkout session and, only once Paystack
        accepted it, record the transaction as initiated and alert the admin.

        Provider faults propagate before anything is written.
        """
        amount = payload.get("amount")
        email = payload.get("email")
        if not amount or not email:
            raise ValidationError("Amount and email are required")

        amount = _positive_amount(amount)
        caller_metadata = payload.get("metadata") or {}
        if not isinstance(caller_metadata, Mapping):
            raise ValidationError("metadata must be an object")

        first_name = payload.get("firstName") or ""
        last_name = payload.get("lastName") or ""
        phone = payload.get("phone") or ""
        donation_type = payload.get("frequency") or payload.get("donationType")

        reference = self.generate_reference()
        metadata = build_provider_metadata(first_name, last_name, phone, donation_type, caller_metadata)

        response = self._call_provider(
            "initialize",
            self.provider.initialize_transaction,
            email=email,
            amount=amount,
            reference=reference,
            metadata=metadata,
            callback_url=self.callback_url,
            currency=self.currency,
        )
        if response.get("status") is not True:
            logger.error(
                "Paystack initialization refused",
                extra={"reference": reference, "provider_message": response.get("message")},
            )
            raise ProviderRejected(
                response.get("message") or "Paystack initialization failed",
                payload=response,
            )

        transaction = self.store.create({
            "reference": reference,
            "amount": amount,
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "phone": phone,
            "donationType": donation_type,
            "metadata": metadata,
        })

        notified = self.gateway.notify(transaction, TransactionStatus.INITIATED.value)
        return self._result(
            Channel.INITIALIZE,
            Outcome.INITIATED,
            transaction=transaction,
            notified=notified,
            provider_data=response.get("data") or {},
            status=TransactionStatus.INITIATED,
        )

    # ------------------------------------------------------------------
    # Channel 2: webhook
    # ------------------------------------------------------------------
    def handle_webhook(self, event: Mapping[str, Any]) -> ReconciliationResult:
        """
        Apply one Paystack event. Safe to replay: a completed transaction
        is acknowledged without any write or notification.

        StorageFault propagates so the caller can refuse the acknowledgment
        and let Paystack retry.
        """
        event_type = event.get("event")
        data = event.get("data") or {}
        reference = data.get("reference") if isinstance(data, Mapping) else None

        logger.info("Paystack webhook received", extra={"event_type": event_type, "reference": reference})

        if event_type == "charge.success":
            if not reference:
                logger.warning("charge.success event without reference ignored")
                return self._result(Channel.WEBHOOK, Outcome.IGNORED)
            return self._handle_charge_success(reference, data)

        if event_type == "transfer.success":
            logger.info("Transfer successful", extra={"reference": reference})
        else:
            logger.debug("Unhandled webhook event", extra={"event_type": event_type})
        return self._result(Channel.WEBHOOK, Outcome.IGNORED)

    def _handle_charge_success(self, reference: str, data: Mapping[str, Any]) -> ReconciliationResult:
        current = self.store.find(reference)
        if current is None:
            logger.warning("Webhook for unknown reference acknowledged", extra={"reference": reference})
            return self._result(Channel.WEBHOOK, Outcome.UNKNOWN_REFERENCE, provider_data=dict(data))

        if current.status_enum is TransactionStatus.COMPLETED:
            logger.info("Transaction already completed. Ignoring webhook.", extra={"reference": reference})
            return self._result(
                Channel.WEBHOOK,
                Outcome.ALREADY_COMPLETED,
                transaction=current,
                provider_data=dict(data),
                status=TransactionStatus.COMPLETED,
            )

        target = from_provider(data.get("status"))
        if target is TransactionStatus.COMPLETED:
            return self._complete(Channel.WEBHOOK, current, data, "completed (via Webhook)")

        logger.info(
            "Charge not successful",
            extra={"reference": reference, "provider_status": data.get("status")},
        )
        changed = self.store.transition(reference, target)
        return self._result(
            Channel.WEBHOOK,
            Outcome.STATUS_UPDATED if changed else Outcome.UNCHANGED,
            transaction=self.store.get(reference),
            provider_data=dict(data),
            status=target,
        )

    # ------------------------------------------------------------------
    # Channel 3: verify
    # ------------------------------------------------------------------
    def verify(self, reference: str) -> ReconciliationResult:
        """
        Pull the current status from Paystack and reconcile.

        | stored    | provider   | action                                   |
        |-----------|------------|------------------------------------------|
        | completed | any        | report completed_by_webhook, no write    |
        | other     | success    | complete, notify "completed (via ...)"   |
        | other     | other      | move to mapped status, notify if changed |
        """
        current = self.store.get(reference)

        response = self._call_provider("verify", self.provider.verify_transaction, reference)
        if response.get("status") is not True:
            raise ProviderRejected(
                response.get("message") or "Payment verification failed",
                payload=response,
            )

        data = response.get("data") or {}
        payment_status = data.get("status")
        logger.info(
            "Verifying payment",
            extra={"reference": reference, "provider_status": payment_status, "db_status": current.status},
        )

        if current.status_enum is TransactionStatus.COMPLETED:
            return self._result(
                Channel.VERIFY,
                Outcome.ALREADY_COMPLETED,
                transaction=current,
                provider_data=data,
                status=TransactionStatus.COMPLETED,
            )

        target = from_provider(payment_status)
        if target is TransactionStatus.COMPLETED:
            return self._complete(Channel.VERIFY, current, data, "completed (via Verification)")

        if current.status_enum is target:
            return self._result(
                Channel.VERIFY,
                Outcome.UNCHANGED,
                transaction=current,
                provider_data=data,
                status=target,
            )

        if not self.store.transition(reference, target):
            return self._lost_race(Channel.VERIFY, reference, data, target)

        transaction = self.store.get(reference)
        notified = self.gateway.notify(transaction, f"{target.value} (via Verification)")
        return self._result(
            Channel.VERIFY,
            Outcome.STATUS_UPDATED,
            transaction=transaction,
            notified=notified,
            provider_data=data,
            status=target,
        )

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------
    def _complete(self, channel: Channel, current, data: Mapping[str, Any], label: str) -> ReconciliationResult:
        event_metadata = data.get("metadata")
        fields = {
            "metadata": merge_secondary_amount(current.meta, event_metadata),
            "verified_at": self.clock(),
        }
        if not current.first_name and not current.last_name:
            first_name, last_name = extract_names(event_metadata)
            if first_name or last_name:
                fields.update(first_name=first_name, last_name=last_name)

        if not self.store.transition(current.reference, TransactionStatus.COMPLETED, fields):
            return self._lost_race(channel, current.reference, data, TransactionStatus.COMPLETED)

        transaction = self.store.get(current.reference)
        notified = self.gateway.notify(transaction, label)
        return self._result(
            channel,
            Outcome.COMPLETED,
            transaction=transaction,
            notified=notified,
            provider_data=dict(data),
            status=TransactionStatus.COMPLETED,
        )

    def _lost_race(self, channel: Channel, reference: str, data, target: TransactionStatus) -> ReconciliationResult:
        """Another trigger changed the row between our read and our write."""
        transaction = self.store.get(reference)
        completed = transaction.status_enum is TransactionStatus.COMPLETED
        logger.info(
            "Concurrent update won, skipping notification",
            extra={"reference": reference, "target": target.value, "db_status": transaction.status},
        )
        return self._result(
            channel,
            Outcome.ALREADY_COMPLETED if completed else Outcome.UNCHANGED,
            transaction=transaction,
            provider_data=dict(data),
            status=transaction.status_enum,
        )

    def _call_provider(self, operation: str, call, *args, **kwargs) -> Dict[str, Any]:
        try:
            response = call(*args, **kwargs)
        except ProviderError as e:
            self.metrics.record_provider_call(operation, e.__class__.__name__)
            raise
        self.metrics.record_provider_call(operation, "ok")
        return response or {}

    def _result(self, channel: Channel, outcome: Outcome, **kwargs) -> ReconciliationResult:
        self.metrics.record_reconciliation(channel.value, outcome.value)
        return ReconciliationResult(channel=channel, outcome=outcome, **kwargs)


def _positive_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a number") from None
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    return amount
