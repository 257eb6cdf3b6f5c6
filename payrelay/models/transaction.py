from datetime import datetime

from payrelay.extensions import db
from payrelay.reconciliation.status import TransactionStatus


class Transaction(db.Model):
    """One row per payment attempt, keyed by its Paystack reference."""

    __tablename__ = "transactions"

    id = db.Column(db.Integer, primary_key=True)
    reference = db.Column(db.String(120), unique=True, nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=TransactionStatus.INITIATED.value)
    first_name = db.Column(db.String(120))
    last_name = db.Column(db.String(120))
    phone = db.Column(db.String(40))
    donation_type = db.Column(db.String(60))
    # "metadata" is reserved on declarative models
    meta = db.Column("metadata", db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    verified_at = db.Column(db.DateTime)

    # Public field names mapped to column attributes, for partial updates
    FIELD_MAP = {
        "amount": "amount",
        "email": "email",
        "status": "status",
        "firstName": "first_name",
        "first_name": "first_name",
        "lastName": "last_name",
        "last_name": "last_name",
        "phone": "phone",
        "donationType": "donation_type",
        "donation_type": "donation_type",
        "metadata": "meta",
        "meta": "meta",
        "verifiedAt": "verified_at",
        "verified_at": "verified_at",
    }

    @property
    def status_enum(self) -> TransactionStatus:
        return TransactionStatus(self.status)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def to_dict(self) -> dict:
        return {
            "reference": self.reference,
            "amount": str(self.amount) if self.amount is not None else None,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "donationType": self.donation_type,
            "metadata": dict(self.meta or {}),
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "verifiedAt": self.verified_at.isoformat() if self.verified_at else None,
        }

    def __repr__(self) -> str:
        return f"<Transaction reference={self.reference!r} status={self.status!r}>"
