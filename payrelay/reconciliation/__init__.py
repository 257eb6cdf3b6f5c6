from .status import TransactionStatus, allowed_sources, can_transition, from_provider

__all__ = ["TransactionStatus", "allowed_sources", "can_transition", "from_provider"]
