"""
Domain exceptions - Semantic error types for the name registry.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Every precondition failure aborts the whole operation; callers decide
whether to correct their inputs and resubmit.
"""


class RegistryError(Exception):
    """Base class for registry domain errors."""

    pass


class InvalidName(RegistryError):
    """Name is empty, longer than 21 characters, or outside [a-z0-9]."""

    pass


class NameAlreadyRegistered(RegistryError):
    """A live ledger entry already exists for the name."""

    pass


class NameNotFound(RegistryError):
    """No ledger entry exists for the name."""

    pass


class NotOwner(RegistryError):
    """Caller does not own the domain."""

    pass


class Unauthorized(RegistryError):
    """Caller is not the registry owner."""

    pass


class NotInitialized(RegistryError):
    """Registry has not been initialized yet."""

    pass


class AlreadyInitialized(RegistryError):
    """Registry was already initialized."""

    pass


class DomainExpired(RegistryError):
    """Domain expiry has passed; it must be cleared and re-registered."""

    pass


class DomainNotExpired(RegistryError):
    """Domain is still live and cannot be cleared."""

    pass


class InvalidDuration(RegistryError):
    """Duration is outside 1..10 years or would exceed the 10-year horizon."""

    pass


class InsufficientPayment(RegistryError):
    """Attached payment does not equal the quoted cost."""

    pass


class InvalidToken(RegistryError):
    """No price is configured for this token and name length."""

    pass


class ReferralRateTooHigh(RegistryError):
    """Referral rate exceeds the registry cap."""

    pass


class NothingToClaim(RegistryError):
    """Earned and claimed totals are equal."""

    pass


class InvalidPrice(RegistryError):
    """Price entry has an out-of-range name length or a negative amount."""

    pass


class StaleStateConflict(RegistryError):
    """Another operation committed against the state this one read."""

    pass
