"""
Admin controller - Registry-owner operations.

Methods here assume the caller has already been authorized as the
registry owner; NameRegistry performs that check once for every
OwnerMessage before routing it here. init is the exception: it runs
before any owner exists.
"""

from dataclasses import replace

from .encoding import MAX_NAME_LENGTH
from .exceptions import (
    AlreadyInitialized,
    InvalidDuration,
    InvalidPrice,
    ReferralRateTooHigh,
    Unauthorized,
)
from .ledger import DomainLedger
from .models import (
    BPS_DENOMINATOR,
    DEFAULT_REFERRAL_RATE_CAP_BPS,
    MAX_YEAR_DURATION_SECONDS,
    AccountId,
    Payout,
    RegistryRecord,
)
from .revenue import RevenueAccounting


class AdminController:
    """Owner-gated registry configuration within one open transaction."""

    def __init__(self, ledger: DomainLedger, accounting: RevenueAccounting) -> None:
        self._ledger = ledger
        self._accounting = accounting

    def authorize(self, caller: AccountId) -> RegistryRecord:
        """
        Raises:
            NotInitialized: If init has not run
            Unauthorized: If caller is not the registry owner
        """
        registry = self._ledger.registry()
        if caller != registry.owner:
            raise Unauthorized("Caller is not the registry owner")
        return registry

    def init(
        self,
        owner: AccountId,
        treasury: AccountId,
        year_duration_seconds: int,
        referral_rate_cap_bps: int = DEFAULT_REFERRAL_RATE_CAP_BPS,
    ) -> RegistryRecord:
        """
        Create the registry singleton. Runs exactly once.

        Raises:
            AlreadyInitialized: On any call after the first
            InvalidDuration: If the year duration is not positive or
                exceeds MAX_YEAR_DURATION_SECONDS
        """
        if self._ledger.is_initialized():
            raise AlreadyInitialized("Registry is already initialized")
        if not 0 < year_duration_seconds <= MAX_YEAR_DURATION_SECONDS:
            raise InvalidDuration(
                f"Year duration must be between 1 and {MAX_YEAR_DURATION_SECONDS} seconds"
            )
        _check_cap(referral_rate_cap_bps)

        record = RegistryRecord(
            owner=owner,
            treasury=treasury,
            year_duration_seconds=year_duration_seconds,
            referral_rate_cap_bps=referral_rate_cap_bps,
        )
        self._ledger.save_registry(record)
        return record

    def set_price(self, length: int, token: AccountId, amount: int) -> None:
        if not 1 <= length <= MAX_NAME_LENGTH:
            raise InvalidPrice(f"Name length must be between 1 and {MAX_NAME_LENGTH}")
        if amount < 0:
            raise InvalidPrice("Price must be non-negative")
        self._ledger.tx.put_price(length, token, amount)

    def set_prices(self, token: AccountId, prices: dict[int, int]) -> None:
        for length, amount in sorted(prices.items()):
            self.set_price(length, token, amount)

    def set_referrer_rate(self, referrer: AccountId, rate_bps: int) -> None:
        registry = self._ledger.registry()
        self._accounting.set_referrer_rate(referrer, rate_bps, registry.referral_rate_cap_bps)

    def set_referral_rate_cap(self, cap_bps: int) -> RegistryRecord:
        """Stored rates above a lowered cap stay stored but are paid out at the cap."""
        _check_cap(cap_bps)
        record = replace(self._ledger.registry(), referral_rate_cap_bps=cap_bps)
        self._ledger.save_registry(record)
        return record

    def update_registry_owner(self, new_owner: AccountId) -> RegistryRecord:
        record = replace(self._ledger.registry(), owner=new_owner)
        self._ledger.save_registry(record)
        return record

    def update_treasury(self, new_treasury: AccountId) -> RegistryRecord:
        record = replace(self._ledger.registry(), treasury=new_treasury)
        self._ledger.save_registry(record)
        return record

    def claim_protocol_revenue(self, token: AccountId) -> Payout:
        registry = self._ledger.registry()
        return self._accounting.claim_protocol_revenue(token, registry.treasury)


def _check_cap(cap_bps: int) -> None:
    if not 0 <= cap_bps <= BPS_DENOMINATOR:
        raise ReferralRateTooHigh(f"Referral rate cap must be between 0 and {BPS_DENOMINATOR} bps")
