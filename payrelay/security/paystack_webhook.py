import hashlib
import hmac

from payrelay.errors import SignatureInvalid

SIGNATURE_HEADER = "x-paystack-signature"


def compute_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), payload, hashlib.sha512).hexdigest()


def verify_paystack_signature(payload: bytes, signature: str, secret: str) -> bool:
    if not secret or not signature:
        return False
    return hmac.compare_digest(compute_signature(payload, secret), signature)


def require_valid_signature(payload: bytes, signature: str, secret: str) -> None:
    """Raise SignatureInvalid unless ``signature`` matches the raw body."""
    if not verify_paystack_signature(payload, signature, secret):
        raise SignatureInvalid("Invalid Signature")
