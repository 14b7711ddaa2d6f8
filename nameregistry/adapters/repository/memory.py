"""
In-memory ledger store adapter - Implements LedgerStore protocol.

Used for development, the default API backend and the test-suite.

Concurrency model:
- Each transaction works on a private copy of the committed maps
- Commit is a compare-and-swap on a store-wide nonce under a lock
- If another transaction committed after ours began, ours is rejected
  with StaleStateConflict and none of its writes become visible

Records are immutable, so copying the maps (not the records) is enough
to isolate a transaction's writes.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from nameregistry.domain.encoding import DomainKey
from nameregistry.domain.exceptions import NameAlreadyRegistered, StaleStateConflict
from nameregistry.domain.models import (
    AccountId,
    Domain,
    RegistryRecord,
    RevenueBalance,
    StorageSlot,
)

logger = logging.getLogger(__name__)

# Where each logical slot lives: "<map>" or "<map>.<record field>".
SLOT_FIELDS: dict[StorageSlot, str] = {
    StorageSlot.INIT_FLAG: "registry.initialized",
    StorageSlot.OWNER: "registry.owner",
    StorageSlot.TREASURY: "registry.treasury",
    StorageSlot.PRICES: "prices",
    StorageSlot.ACCOUNT_TO_DOMAIN: "primary_domains",
    StorageSlot.DOMAIN_TO_ACTIVE_TARGET: "domains.active_target",
    StorageSlot.DOMAIN_TO_OWNER: "domains.owner",
    StorageSlot.REFERRAL_RATE: "referral_rates",
    StorageSlot.REFERRAL_EARNED: "referral_balances.earned_total",
    StorageSlot.REFERRAL_CLAIMED: "referral_balances.claimed_total",
    StorageSlot.DOMAIN_COUNT: "registry.domain_count",
    StorageSlot.REVENUE_EARNED: "revenue.earned_total",
    StorageSlot.REVENUE_CLAIMED: "revenue.claimed_total",
    StorageSlot.DOMAIN_TO_EXPIRY: "domains.expiry",
    StorageSlot.YEAR_DURATION: "registry.year_duration_seconds",
}


@dataclass
class _LedgerMaps:
    """Committed registry storage, one typed map per logical slot group."""

    registry: RegistryRecord | None = None
    prices: dict[tuple[int, AccountId], int] = field(default_factory=dict)
    primary_domains: dict[AccountId, DomainKey] = field(default_factory=dict)
    domains: dict[DomainKey, Domain] = field(default_factory=dict)
    referral_rates: dict[AccountId, int] = field(default_factory=dict)
    referral_balances: dict[tuple[AccountId, AccountId], RevenueBalance] = field(
        default_factory=dict
    )
    revenue: dict[AccountId, RevenueBalance] = field(default_factory=dict)

    def copy(self) -> "_LedgerMaps":
        return _LedgerMaps(
            registry=self.registry,
            prices=dict(self.prices),
            primary_domains=dict(self.primary_domains),
            domains=dict(self.domains),
            referral_rates=dict(self.referral_rates),
            referral_balances=dict(self.referral_balances),
            revenue=dict(self.revenue),
        )


class InMemoryLedgerTransaction:
    """
    Implements LedgerTransaction protocol over a private working copy.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, maps: _LedgerMaps) -> None:
        self._maps = maps
        self.dirty = False

    def get_registry(self) -> RegistryRecord | None:
        return self._maps.registry

    def put_registry(self, record: RegistryRecord) -> None:
        self._maps.registry = record
        self.dirty = True

    def get_price(self, length: int, token: AccountId) -> int | None:
        return self._maps.prices.get((length, token))

    def put_price(self, length: int, token: AccountId, amount: int) -> None:
        self._maps.prices[(length, token)] = amount
        self.dirty = True

    def get_domain(self, key: DomainKey) -> Domain | None:
        return self._maps.domains.get(key)

    def insert_domain(self, key: DomainKey, domain: Domain) -> None:
        if key in self._maps.domains:
            raise NameAlreadyRegistered(f"Domain '{domain.name}' is already registered")
        self._maps.domains[key] = domain
        self.dirty = True

    def update_domain(self, key: DomainKey, domain: Domain) -> None:
        if key not in self._maps.domains:
            raise KeyError(domain.name)
        self._maps.domains[key] = domain
        self.dirty = True

    def delete_domain(self, key: DomainKey) -> None:
        del self._maps.domains[key]
        self.dirty = True

    def get_primary(self, account: AccountId) -> DomainKey | None:
        return self._maps.primary_domains.get(account)

    def put_primary(self, account: AccountId, key: DomainKey) -> None:
        self._maps.primary_domains[account] = key
        self.dirty = True

    def delete_primary(self, account: AccountId) -> None:
        self._maps.primary_domains.pop(account, None)
        self.dirty = True

    def get_referral_rate(self, account: AccountId) -> int:
        return self._maps.referral_rates.get(account, 0)

    def put_referral_rate(self, account: AccountId, rate_bps: int) -> None:
        self._maps.referral_rates[account] = rate_bps
        self.dirty = True

    def get_referral_balance(self, account: AccountId, token: AccountId) -> RevenueBalance:
        return self._maps.referral_balances.get((account, token), RevenueBalance())

    def put_referral_balance(
        self, account: AccountId, token: AccountId, balance: RevenueBalance
    ) -> None:
        self._maps.referral_balances[(account, token)] = balance
        self.dirty = True

    def get_revenue(self, token: AccountId) -> RevenueBalance:
        return self._maps.revenue.get(token, RevenueBalance())

    def put_revenue(self, token: AccountId, balance: RevenueBalance) -> None:
        self._maps.revenue[token] = balance
        self.dirty = True


class InMemoryLedgerStore:
    """
    Implements LedgerStore protocol with optimistic, nonce-checked commits.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._maps = _LedgerMaps()
        self._nonce = 0
        self._lock = threading.Lock()

    @property
    def nonce(self) -> int:
        """Number of committed write transactions."""
        return self._nonce

    @contextmanager
    def transaction(self) -> Iterator[InMemoryLedgerTransaction]:
        with self._lock:
            base_nonce = self._nonce
            working = self._maps.copy()

        tx = InMemoryLedgerTransaction(working)
        yield tx

        if not tx.dirty:
            return

        with self._lock:
            if self._nonce != base_nonce:
                logger.warning(
                    "Stale commit rejected: read nonce %d, current nonce %d",
                    base_nonce,
                    self._nonce,
                )
                raise StaleStateConflict("Ledger state changed since this operation began")
            self._maps = working
            self._nonce += 1

    def ping(self) -> None:
        return None
