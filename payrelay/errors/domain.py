class DomainError(Exception):
    """Base class for every error the service knows how to render."""

    status_code = 500
    error = "Server error"

    def __init__(self, message=None, payload=None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.payload = payload


class ValidationError(DomainError):
    status_code = 400
    error = "Validation failed"


class DuplicateReference(DomainError):
    status_code = 409
    error = "Duplicate reference"


class NotFound(DomainError):
    status_code = 404
    error = "Transaction not found"


class InvalidStateTransition(DomainError):
    status_code = 409
    error = "Invalid status transition"


class SignatureInvalid(DomainError):
    status_code = 401
    error = "Invalid Signature"


class StorageFault(DomainError):
    status_code = 500
    error = "Storage failure"


class ProviderError(DomainError):
    """Paystack could not complete a call."""

    status_code = 502
    error = "Payment provider error"


class ProviderUnavailable(ProviderError):
    """No response at all: timeout, DNS, refused connection."""

    status_code = 503
    error = "No response from payment provider"


class ProviderRejected(ProviderError):
    """Paystack answered, but with an error status or ``status: false``."""

    status_code = 400
    error = "Payment provider rejected the request"

    def __init__(self, message=None, payload=None, status_code=None):
        super().__init__(message, payload)
        if status_code:
            self.status_code = status_code
