"""
Domain exceptions raised by entity factories and state transitions.

Use cases never let these escape: they validate first and map whatever is
left onto Result errors.
"""


class DomainError(Exception):
    """Base class for entity invariant violations"""


class InvalidInputError(DomainError, ValueError):
    """A value handed to a factory or transition breaks an entity invariant"""


class SessionAlreadyRevokedError(DomainError):
    """Revocation is terminal: a revoked session cannot be revoked again"""
