# payrelay/notifications/notification_service.py
import logging
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

import requests

from payrelay.notifications.message_templates import format_notification_message
from payrelay.observability.metrics import NOOP_METRICS

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Admin alerts through the external messaging relay.

    ``notify`` never raises. Each call makes at most one outbound request,
    so callers are responsible for calling it once per logical event.
    """

    def __init__(
        self,
        relay_url: str,
        recipient: Optional[str],
        timeout: float = 10,
        timezone: str = "Africa/Lagos",
        timezone_label: str = "WAT",
        currency_symbol: str = "₦",
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], datetime]] = None,
        metrics=NOOP_METRICS,
    ):
        self.relay_url = relay_url
        self.recipient = recipient
        self.timeout = timeout
        self.timezone = ZoneInfo(timezone)
        self.timezone_label = timezone_label
        self.currency_symbol = currency_symbol
        self.session = session or requests.Session()
        self.clock = clock or (lambda: datetime.now(self.timezone))
        self.metrics = metrics

    @classmethod
    def from_config(cls, config, metrics=NOOP_METRICS):
        return cls(
            relay_url=config.get("MESSAGE_RELAY_URL"),
            recipient=config.get("ADMIN_PHONE"),
            timeout=config.get("HTTP_TIMEOUT_SECONDS", 10),
            timezone=config.get("NOTIFY_TIMEZONE", "Africa/Lagos"),
            timezone_label=config.get("NOTIFY_TIMEZONE_LABEL", "WAT"),
            currency_symbol=config.get("CURRENCY_SYMBOL", "₦"),
            metrics=metrics,
        )

    def format_message(self, transaction, status_label: str) -> str:
        return format_notification_message(
            transaction,
            status_label,
            moment=self.clock(),
            timezone_label=self.timezone_label,
            currency_symbol=self.currency_symbol,
        )

    def notify(self, transaction, status_label: str) -> bool:
        """Format and deliver one admin alert. Returns whether it was delivered."""
        reference = getattr(transaction, "reference", None)
        try:
            message = self.format_message(transaction, status_label)
        except Exception as e:
            logger.error(
                "Error formatting admin notification",
                extra={"reference": reference, "error": str(e)},
            )
            self.metrics.record_notification(False)
            return False

        if not self.recipient:
            logger.warning("ADMIN_PHONE not set, admin notification skipped", extra={"reference": reference})
            self.metrics.record_notification(False)
            return False

        delivered = self.send_message(self.recipient, message)
        self.metrics.record_notification(delivered)
        if delivered:
            logger.info(
                "Admin notified about transaction",
                extra={"reference": reference, "status_label": status_label},
            )
        return delivered

    def send_message(self, recipient: str, message: str) -> bool:
        payload = {
            "recipient": recipient,
            "message": message,
            "isAdminNotification": True,
        }
        try:
            response = self.session.post(self.relay_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Failed to send admin notification", extra={"error": str(e)})
            return False

        if response.status_code == 200:
            return True

        logger.error(
            "Message relay did not accept admin notification",
            extra={"status_code": response.status_code},
        )
        return False
