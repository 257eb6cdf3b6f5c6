from .domain import (
    DomainError,
    DuplicateReference,
    InvalidStateTransition,
    NotFound,
    ProviderError,
    ProviderRejected,
    ProviderUnavailable,
    SignatureInvalid,
    StorageFault,
    ValidationError,
)

__all__ = [
    "DomainError",
    "DuplicateReference",
    "InvalidStateTransition",
    "NotFound",
    "ProviderError",
    "ProviderRejected",
    "ProviderUnavailable",
    "SignatureInvalid",
    "StorageFault",
    "ValidationError",
]
