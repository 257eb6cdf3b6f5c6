"""
Transaction status rules.

This module is the only place that decides whether a status may change.
Store, engine and routes all ask ``can_transition`` instead of comparing
status strings themselves.
"""

import logging
from enum import Enum
from typing import FrozenSet, Optional

logger = logging.getLogger(__name__)


class TransactionStatus(str, Enum):
    INITIATED = "initiated"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is TransactionStatus.COMPLETED


# Transitions only move to an equal or higher rank. Pending, failed and
# abandoned share a rank: Paystack can report any of them in any order
# while the customer is still on the checkout page.
STATUS_RANK = {
    TransactionStatus.INITIATED: 0,
    TransactionStatus.PENDING: 1,
    TransactionStatus.FAILED: 1,
    TransactionStatus.ABANDONED: 1,
    TransactionStatus.COMPLETED: 2,
}

# Paystack transaction statuses we understand
PROVIDER_STATUS_MAP = {
    "success": TransactionStatus.COMPLETED,
    "failed": TransactionStatus.FAILED,
    "abandoned": TransactionStatus.ABANDONED,
    "pending": TransactionStatus.PENDING,
}


def can_transition(current: TransactionStatus, target: TransactionStatus) -> bool:
    current = TransactionStatus(current)
    target = TransactionStatus(target)

    if current.is_terminal or current is target:
        return False
    return STATUS_RANK[target] >= STATUS_RANK[current]


def allowed_sources(target: TransactionStatus) -> FrozenSet[TransactionStatus]:
    """Every status from which ``target`` may be reached."""
    target = TransactionStatus(target)
    return frozenset(status for status in TransactionStatus if can_transition(status, target))


def from_provider(raw_status: Optional[str]) -> TransactionStatus:
    """
    Map a Paystack status string onto a local status.

    Unrecognised values fall back to FAILED. That also swallows any new
    status Paystack may introduce, so it is logged loudly.
    """
    key = (raw_status or "").strip().lower()
    status = PROVIDER_STATUS_MAP.get(key)
    if status is None:
        logger.warning(
            "Unrecognised provider status mapped to failed",
            extra={"provider_status": raw_status},
        )
        return TransactionStatus.FAILED
    return status
