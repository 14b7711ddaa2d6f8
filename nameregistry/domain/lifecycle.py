"""
Lifecycle manager - Guarded state transitions for individual names.

Domain State Machine
====================

States:
- UNREGISTERED: No ledger record exists
- REGISTERED: Record exists, not expired, not resolving anywhere
- ACTIVE: Record exists, not expired, resolving to an active target
- EXPIRED: Record exists but now > expiry

Valid Transitions:
    UNREGISTERED -> REGISTERED  (register / register_with_referrer)
    REGISTERED   -> ACTIVE      (activate, domain owner only)
    REGISTERED   -> REGISTERED  (extend, transfer)
    ACTIVE       -> ACTIVE      (extend, transfer, activate)
    REGISTERED/ACTIVE -> EXPIRED (time passes expiry)
    EXPIRED      -> UNREGISTERED (clear_expired_domain, anyone)

Expiry is a hard cliff: an EXPIRED name accepts no owner operation and is
not implicitly released. Only clear_expired_domain returns it to
UNREGISTERED, after which anyone may register it again.
"""

from .encoding import validate_name
from .exceptions import (
    DomainExpired,
    InsufficientPayment,
    InvalidDuration,
    NameAlreadyRegistered,
    NotOwner,
)
from .ledger import DomainLedger
from .models import (
    MAX_REGISTRATION_YEARS,
    AccountId,
    Domain,
    DomainState,
    FeeSplit,
    Payment,
)
from .pricing import PricingEngine, validate_duration
from .revenue import RevenueAccounting


class LifecycleManager:
    """Applies per-name operations to one open ledger transaction at time `now`."""

    def __init__(
        self,
        ledger: DomainLedger,
        pricing: PricingEngine,
        accounting: RevenueAccounting,
        now: int,
    ) -> None:
        self._ledger = ledger
        self._pricing = pricing
        self._accounting = accounting
        self._now = now

    def register(
        self,
        name: str,
        caller: AccountId,
        duration_years: int,
        payment: Payment,
        referrer: AccountId | None = None,
    ) -> Domain:
        """
        Register an unclaimed name to the caller.

        Raises:
            InvalidName: If the name is malformed
            NameAlreadyRegistered: If a record exists, expired or not
            InvalidDuration: If duration is outside 1..10 years
            InvalidToken: If the payment token is not priced for this length
            InsufficientPayment: If the payment does not equal the quote
        """
        validate_name(name)
        registry = self._ledger.registry()
        if self._ledger.lookup_by_name(name) is not None:
            raise NameAlreadyRegistered(f"Domain '{name}' is already registered")
        validate_duration(duration_years)

        self._collect(name, duration_years, payment, referrer, registry.referral_rate_cap_bps)

        domain = Domain(
            name=name,
            owner=caller,
            expiry=self._now + duration_years * registry.year_duration_seconds,
            referrer=referrer,
        )
        self._ledger.insert(name, domain, self._now)
        return domain

    def activate(
        self, name: str, caller: AccountId, target: AccountId | None = None
    ) -> Domain:
        """
        Point the name at target (default: the caller).

        Raises:
            NameNotFound: If the name is not registered
            NotOwner: If caller does not own the name
            DomainExpired: If the name has expired
        """
        self._require_live_owned(name, caller)
        return self._ledger.set_active_target(name, target if target is not None else caller)

    def transfer(self, name: str, caller: AccountId, new_owner: AccountId) -> Domain:
        """Hand ownership to new_owner; the active target is left unchanged."""
        self._require_live_owned(name, caller)
        return self._ledger.set_owner(name, new_owner)

    def extend(
        self, name: str, caller: AccountId, additional_years: int, payment: Payment
    ) -> Domain:
        """
        Push expiry out by additional_years for a fresh payment.

        Raises:
            NotOwner: If caller does not own the name
            DomainExpired: If the name has already expired
            InvalidDuration: If years are outside 1..10, or the new expiry
                would sit more than 10 years past now
            InvalidToken: If the payment token is not priced for this length
            InsufficientPayment: If the payment does not equal the quote
        """
        domain = self._require_live_owned(name, caller)
        registry = self._ledger.registry()
        validate_duration(additional_years)

        new_expiry = domain.expiry + additional_years * registry.year_duration_seconds
        horizon = self._now + MAX_REGISTRATION_YEARS * registry.year_duration_seconds
        if new_expiry > horizon:
            raise InvalidDuration(
                f"Extension would leave more than {MAX_REGISTRATION_YEARS} years remaining"
            )

        self._collect(
            name, additional_years, payment, domain.referrer, registry.referral_rate_cap_bps
        )
        return self._ledger.set_expiry(name, new_expiry, self._now)

    def clear_expired_domain(self, name: str) -> Domain:
        """
        Release an expired name. Open to any caller.

        Raises:
            NameNotFound: If the name is not registered
            DomainNotExpired: If now <= expiry
        """
        return self._ledger.remove(name, self._now)

    def state_of(self, name: str) -> DomainState:
        domain = self._ledger.lookup_by_name(name)
        if domain is None:
            return DomainState.UNREGISTERED
        return domain.state_at(self._now)

    def _require_live_owned(self, name: str, caller: AccountId) -> Domain:
        domain = self._ledger.require(name)
        if domain.owner != caller:
            raise NotOwner(f"Caller does not own domain '{name}'")
        if domain.is_expired(self._now):
            raise DomainExpired(f"Domain '{name}' expired at {domain.expiry}")
        return domain

    def _collect(
        self,
        name: str,
        years: int,
        payment: Payment,
        referrer: AccountId | None,
        cap_bps: int,
    ) -> FeeSplit:
        cost = self._pricing.quote(len(name), years, payment.token)
        if payment.amount != cost:
            raise InsufficientPayment(
                f"Payment of {payment.amount} does not match cost of {cost}"
            )
        return self._accounting.distribute_fee(payment.token, cost, referrer, cap_bps)
