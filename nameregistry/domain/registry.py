"""
Name registry service - Entry point for every registry operation.

NameRegistry owns the injected ports (ledger store, clock, payout sender)
and processes one message at a time to completion:

1. Open a ledger transaction over the latest committed state
2. Authorize OwnerMessages against the registry owner
3. Route to the lifecycle manager or admin controller
4. Commit all writes atomically, or discard them on any error
5. Deliver payouts only after the commit succeeded

Conflicting commits are rejected by the store with StaleStateConflict;
the registry never retries on a caller's behalf.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from .admin import AdminController
from .encoding import validate_name
from .ledger import DomainLedger
from .lifecycle import LifecycleManager
from .messages import (
    ActivateDomain,
    ClaimProtocolRevenue,
    ClaimReferralRevenue,
    ClearExpiredDomain,
    ExtendDomain,
    Init,
    Message,
    OwnerMessage,
    Register,
    RegisterWithReferrer,
    SetPrice,
    SetPrices,
    SetReferralRateCap,
    SetReferrerRate,
    Transfer,
    UpdateRegistryOwner,
    UpdateTreasury,
)
from .models import (
    DEFAULT_REFERRAL_RATE_CAP_BPS,
    AccountId,
    Domain,
    DomainState,
    Payment,
    Payout,
    ReferralAccount,
    RegistryRecord,
    RevenueBalance,
)
from .ports import Clock, LedgerStore, PayoutSender
from .pricing import PricingEngine
from .revenue import RevenueAccounting

logger = logging.getLogger(__name__)


@dataclass
class _Session:
    ledger: DomainLedger
    pricing: PricingEngine
    accounting: RevenueAccounting
    lifecycle: LifecycleManager
    admin: AdminController
    now: int


_HANDLERS: dict[type[Message], Callable[[_Session, Any], Any]] = {
    Init: lambda s, m: s.admin.init(
        m.owner, m.treasury, m.year_duration_seconds, m.referral_rate_cap_bps
    ),
    Register: lambda s, m: s.lifecycle.register(m.name, m.caller, m.duration_years, m.payment),
    RegisterWithReferrer: lambda s, m: s.lifecycle.register(
        m.name, m.caller, m.duration_years, m.payment, referrer=m.referrer
    ),
    ActivateDomain: lambda s, m: s.lifecycle.activate(m.name, m.caller, m.target),
    Transfer: lambda s, m: s.lifecycle.transfer(m.name, m.caller, m.new_owner),
    ExtendDomain: lambda s, m: s.lifecycle.extend(
        m.name, m.caller, m.additional_years, m.payment
    ),
    ClearExpiredDomain: lambda s, m: s.lifecycle.clear_expired_domain(m.name),
    ClaimReferralRevenue: lambda s, m: s.accounting.claim_referral_revenue(m.caller, m.token),
    SetPrice: lambda s, m: s.admin.set_price(m.length, m.token, m.amount),
    SetPrices: lambda s, m: s.admin.set_prices(m.token, dict(m.prices)),
    SetReferrerRate: lambda s, m: s.admin.set_referrer_rate(m.referrer, m.rate_bps),
    SetReferralRateCap: lambda s, m: s.admin.set_referral_rate_cap(m.cap_bps),
    ClaimProtocolRevenue: lambda s, m: s.admin.claim_protocol_revenue(m.token),
    UpdateRegistryOwner: lambda s, m: s.admin.update_registry_owner(m.new_owner),
    UpdateTreasury: lambda s, m: s.admin.update_treasury(m.new_treasury),
}


@dataclass
class NameRegistry:
    """
    Domain service for the name registry.

    All state lives behind the ledger store; this object holds only the
    ports, so one instance can be shared by any number of callers.
    """

    store: LedgerStore
    clock: Clock
    payout_sender: PayoutSender

    def submit(self, message: Message) -> Any:
        """
        Process one operation message atomically.

        Returns:
            The handler result: a Domain, RegistryRecord, Payout, or None

        Raises:
            RegistryError: Any precondition failure; no state was changed
            StaleStateConflict: If a concurrent commit superseded our read
        """
        handler = _HANDLERS.get(type(message))
        if handler is None:
            raise TypeError(f"Unsupported message type: {type(message).__name__}")

        with self._session() as session:
            if isinstance(message, OwnerMessage):
                session.admin.authorize(message.caller)
            result = handler(session, message)

        logger.info("Committed %s from %s", type(message).__name__, message.caller)

        if isinstance(result, Payout):
            self.payout_sender.send_payout(result)
        return result

    # Operations

    def init(
        self,
        caller: AccountId,
        owner: AccountId,
        treasury: AccountId,
        year_duration_seconds: int,
        referral_rate_cap_bps: int = DEFAULT_REFERRAL_RATE_CAP_BPS,
    ) -> RegistryRecord:
        return self.submit(
            Init(caller, owner, treasury, year_duration_seconds, referral_rate_cap_bps)
        )

    def register(
        self, caller: AccountId, name: str, duration_years: int, payment: Payment
    ) -> Domain:
        return self.submit(Register(caller, name, duration_years, payment))

    def register_with_referrer(
        self,
        caller: AccountId,
        name: str,
        duration_years: int,
        payment: Payment,
        referrer: AccountId,
    ) -> Domain:
        return self.submit(RegisterWithReferrer(caller, name, duration_years, payment, referrer))

    def activate_domain(
        self, caller: AccountId, name: str, target: AccountId | None = None
    ) -> Domain:
        return self.submit(ActivateDomain(caller, name, target))

    def transfer(self, caller: AccountId, name: str, new_owner: AccountId) -> Domain:
        return self.submit(Transfer(caller, name, new_owner))

    def extend_domain(
        self, caller: AccountId, name: str, additional_years: int, payment: Payment
    ) -> Domain:
        return self.submit(ExtendDomain(caller, name, additional_years, payment))

    def clear_expired_domain(self, caller: AccountId, name: str) -> Domain:
        return self.submit(ClearExpiredDomain(caller, name))

    def set_price(self, caller: AccountId, length: int, token: AccountId, amount: int) -> None:
        self.submit(SetPrice(caller, length, token, amount))

    def set_prices(self, caller: AccountId, token: AccountId, prices: dict[int, int]) -> None:
        self.submit(SetPrices(caller, token, tuple(sorted(prices.items()))))

    def set_referrer_rate(self, caller: AccountId, referrer: AccountId, rate_bps: int) -> None:
        self.submit(SetReferrerRate(caller, referrer, rate_bps))

    def set_referral_rate_cap(self, caller: AccountId, cap_bps: int) -> RegistryRecord:
        return self.submit(SetReferralRateCap(caller, cap_bps))

    def claim_protocol_revenue(self, caller: AccountId, token: AccountId) -> Payout:
        return self.submit(ClaimProtocolRevenue(caller, token))

    def claim_referral_revenue(self, caller: AccountId, token: AccountId) -> Payout:
        return self.submit(ClaimReferralRevenue(caller, token))

    def update_registry_owner(self, caller: AccountId, new_owner: AccountId) -> RegistryRecord:
        return self.submit(UpdateRegistryOwner(caller, new_owner))

    def update_treasury(self, caller: AccountId, new_treasury: AccountId) -> RegistryRecord:
        return self.submit(UpdateTreasury(caller, new_treasury))

    # Queries

    def registry_info(self) -> RegistryRecord:
        with self._session() as session:
            return session.ledger.registry()

    def get_domain(self, name: str) -> Domain | None:
        with self._session() as session:
            return session.ledger.lookup_by_name(name)

    def state_of(self, name: str) -> DomainState:
        with self._session() as session:
            return session.lifecycle.state_of(name)

    def describe_domain(self, name: str) -> tuple[Domain, DomainState] | None:
        """Record and its state, read together at one instant."""
        with self._session() as session:
            domain = session.ledger.lookup_by_name(name)
            if domain is None:
                return None
            return domain, domain.state_at(session.now)

    def resolve(self, name: str) -> AccountId | None:
        """Account the name currently resolves to; None if inactive or expired."""
        with self._session() as session:
            domain = session.ledger.lookup_by_name(name)
            if domain is None or domain.is_expired(session.now):
                return None
            return domain.active_target

    def lookup_primary(self, account: AccountId) -> str | None:
        """Name the account currently resolves as; None if unset or expired."""
        with self._session() as session:
            name = session.ledger.lookup_primary(account)
            if name is None:
                return None
            domain = session.ledger.lookup_by_name(name)
            if domain is None or domain.is_expired(session.now):
                return None
            return name

    def quote(self, name: str, duration_years: int, token: AccountId) -> int:
        validate_name(name)
        with self._session() as session:
            return session.pricing.quote(len(name), duration_years, token)

    def protocol_revenue(self, token: AccountId) -> RevenueBalance:
        with self._session() as session:
            return session.ledger.tx.get_revenue(token)

    def referral_account(self, referrer: AccountId, token: AccountId) -> ReferralAccount:
        """Rate reported is the one applied to the next fee, clamped to the cap."""
        with self._session() as session:
            record = session.ledger.tx.get_registry()
            rate_bps = session.ledger.tx.get_referral_rate(referrer)
            if record is not None:
                rate_bps = session.accounting.effective_rate(
                    referrer, record.referral_rate_cap_bps
                )
            return ReferralAccount(
                rate_bps=rate_bps,
                balance=session.ledger.tx.get_referral_balance(referrer, token),
            )

    def ping(self) -> None:
        self.store.ping()

    @contextmanager
    def _session(self) -> Iterator[_Session]:
        now = self.clock.now()
        with self.store.transaction() as tx:
            ledger = DomainLedger(tx)
            pricing = PricingEngine(tx)
            accounting = RevenueAccounting(tx)
            yield _Session(
                ledger=ledger,
                pricing=pricing,
                accounting=accounting,
                lifecycle=LifecycleManager(ledger, pricing, accounting, now),
                admin=AdminController(ledger, accounting),
                now=now,
            )
