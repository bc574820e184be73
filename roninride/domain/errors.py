"""Exceptions raised by the store accessor and the client state machines."""


class StoreError(Exception):
    """Base class for every failure surfaced by the store accessor."""


class ConflictError(StoreError):
    """The write lost a race: trip already claimed, email already registered."""


class AuthError(StoreError):
    """Credentials did not match a registered user."""


class NotFoundError(StoreError):
    """Unknown user or trip id."""


class TransportError(StoreError):
    """Store unreachable, answered with an error, or returned a malformed document."""


class InvalidStateTransition(Exception):
    """Raised when a status change violates a transition table."""
