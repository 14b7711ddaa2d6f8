"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.

The ledger store stands in for the settlement layer: it applies one
operation's writes atomically and rejects a commit whose read state has
been superseded by another commit.
"""

from contextlib import AbstractContextManager
from typing import Protocol

from .encoding import DomainKey
from .models import AccountId, Domain, Payout, RegistryRecord, RevenueBalance


class LedgerTransaction(Protocol):
    """Typed view over the registry storage maps within one transaction."""

    def get_registry(self) -> RegistryRecord | None:
        """Return the registry singleton, or None before init."""
        ...

    def put_registry(self, record: RegistryRecord) -> None: ...

    def get_price(self, length: int, token: AccountId) -> int | None:
        """Return the base price for (name length, token), or None if unset."""
        ...

    def put_price(self, length: int, token: AccountId, amount: int) -> None: ...

    def get_domain(self, key: DomainKey) -> Domain | None: ...

    def insert_domain(self, key: DomainKey, domain: Domain) -> None:
        """
        Insert a new domain record.

        Raises:
            NameAlreadyRegistered: If a record already exists for the key
        """
        ...

    def update_domain(self, key: DomainKey, domain: Domain) -> None: ...

    def delete_domain(self, key: DomainKey) -> None: ...

    def get_primary(self, account: AccountId) -> DomainKey | None: ...

    def put_primary(self, account: AccountId, key: DomainKey) -> None: ...

    def delete_primary(self, account: AccountId) -> None: ...

    def get_referral_rate(self, account: AccountId) -> int:
        """Return the referral rate in basis points (0 if never set)."""
        ...

    def put_referral_rate(self, account: AccountId, rate_bps: int) -> None: ...

    def get_referral_balance(self, account: AccountId, token: AccountId) -> RevenueBalance: ...

    def put_referral_balance(
        self, account: AccountId, token: AccountId, balance: RevenueBalance
    ) -> None: ...

    def get_revenue(self, token: AccountId) -> RevenueBalance: ...

    def put_revenue(self, token: AccountId, balance: RevenueBalance) -> None: ...


class LedgerStore(Protocol):
    """Port interface for atomic, conflict-checked ledger persistence."""

    def transaction(self) -> AbstractContextManager[LedgerTransaction]:
        """
        Open a transaction over the current committed state.

        Leaving the block normally commits every write at once. Leaving it
        with an exception discards every write.

        Raises:
            StaleStateConflict: On commit, if another transaction committed
                after this one began
        """
        ...

    def ping(self) -> None:
        """Raise if the backing store is unreachable."""
        ...


class Clock(Protocol):
    """Port interface for the ledger timestamp."""

    def now(self) -> int:
        """Current timestamp in whole seconds."""
        ...


class PayoutSender(Protocol):
    """Port interface for asset delivery after a claim."""

    def send_payout(self, payout: Payout) -> None:
        """
        Deliver a claimed amount to its recipient.

        Called only after the claim has committed.
        """
        ...
