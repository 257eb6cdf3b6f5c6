import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from payrelay.errors import (
    DuplicateReference,
    InvalidStateTransition,
    NotFound,
    StorageFault,
    ValidationError,
)
from payrelay.extensions import db
from payrelay.models.transaction import Transaction
from payrelay.reconciliation.metadata import parse_metadata
from payrelay.reconciliation.status import TransactionStatus, allowed_sources

logger = logging.getLogger(__name__)


class TransactionStore:
    """
    Persistent record per payment reference.

    Every operation is scoped to one reference. SQLAlchemy failures are
    rolled back and surface as StorageFault.
    """

    def __init__(self, session=None, clock: Callable[[], datetime] = datetime.utcnow):
        self._session = session
        self._clock = clock

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @contextmanager
    def _guard(self, action: str, reference: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Error trying to {action} transaction",
                extra={"reference": reference, "error": str(e)},
            )
            raise StorageFault(f"Could not {action} transaction {reference}") from e

    def _query(self, reference: str):
        return self.session.query(Transaction).filter(Transaction.reference == reference)

    def find(self, reference: str) -> Optional[Transaction]:
        with self._guard("read", reference):
            return self._query(reference).one_or_none()

    def get(self, reference: str) -> Transaction:
        transaction = self.find(reference)
        if transaction is None:
            raise NotFound(f"Transaction {reference} not found")
        return transaction

    def create(self, record: Mapping[str, Any]) -> Transaction:
        """Insert a new transaction. Status always starts as initiated."""
        reference = record.get("reference")
        if not reference:
            raise ValidationError("reference is required")
        if not record.get("email"):
            raise ValidationError("email is required")

        now = self._clock()
        transaction = Transaction(
            reference=reference,
            amount=_to_decimal(record.get("amount")),
            email=record["email"],
            first_name=record.get("firstName") or record.get("first_name") or "",
            last_name=record.get("lastName") or record.get("last_name") or "",
            phone=record.get("phone") or "",
            donation_type=record.get("donationType") or record.get("donation_type"),
            meta=parse_metadata(record.get("metadata")),
            status=TransactionStatus.INITIATED.value,
            created_at=now,
            updated_at=now,
        )

        with self._guard("create", reference):
            if self._query(reference).one_or_none() is not None:
                raise DuplicateReference(f"Transaction {reference} already exists")

            self.session.add(transaction)
            try:
                self.session.commit()
            except IntegrityError as e:
                self.session.rollback()
                raise DuplicateReference(f"Transaction {reference} already exists") from e

        logger.info(
            "Logged new transaction",
            extra={"reference": reference, "amount": str(transaction.amount), "email": transaction.email},
        )
        return transaction

    def update(self, reference: str, fields: Mapping[str, Any]) -> Transaction:
        """
        Merge ``fields`` into the stored record and touch updated_at.

        A status change is only applied if the transition table allows it;
        otherwise InvalidStateTransition is raised and nothing is written.
        """
        fields = dict(fields)
        status = fields.pop("status", None)
        if status is not None:
            if not self.transition(reference, status, fields):
                current = self.get(reference).status
                raise InvalidStateTransition(
                    f"Cannot move transaction {reference} from {current} to {TransactionStatus(status).value}"
                )
            return self.get(reference)

        values = self._column_values(fields)
        values[Transaction.updated_at] = self._clock()

        with self._guard("update", reference):
            changed = self._query(reference).update(values, synchronize_session=False)
            if not changed:
                self.session.rollback()
                raise NotFound(f"Transaction {reference} not found")
            self.session.commit()

        logger.info("Updated transaction", extra={"reference": reference, "fields": sorted(fields)})
        return self.get(reference)

    def transition(
        self,
        reference: str,
        target: TransactionStatus,
        fields: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """
        Atomically move ``reference`` to ``target`` if its current status allows it.

        Implemented as one conditional UPDATE, so of two racing callers only
        one sees True. Extra ``fields`` are written in the same statement.
        """
        target = TransactionStatus(target)
        sources = [status.value for status in allowed_sources(target)]

        values = self._column_values(fields or {})
        values[Transaction.status] = target.value
        values[Transaction.updated_at] = self._clock()

        with self._guard("update", reference):
            changed = (
                self._query(reference)
                .filter(Transaction.status.in_(sources))
                .update(values, synchronize_session=False)
            )
            if changed:
                self.session.commit()
            else:
                self.session.rollback()

        if not changed:
            # Distinguish "not allowed" from "no such row"
            self.get(reference)
            logger.debug(
                "Transition not applied",
                extra={"reference": reference, "target": target.value},
            )
            return False

        logger.info("Transaction status changed", extra={"reference": reference, "status": target.value})
        return True

    def _column_values(self, fields: Mapping[str, Any]) -> dict:
        values = {}
        for key, value in fields.items():
            attr = Transaction.FIELD_MAP.get(key)
            if attr is None or attr == "status":
                raise ValidationError(f"Field {key!r} cannot be updated")
            if attr == "meta":
                value = parse_metadata(value)
            elif attr == "amount":
                value = _to_decimal(value)
            values[getattr(Transaction, attr)] = value
        return values


def _to_decimal(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount
