"""
Domain models - Value objects and records held by the registry ledger.

Records are immutable dataclasses; state changes produce new records
via dataclasses.replace() and are written back through the ledger.
"""

import string
from dataclasses import dataclass, replace
from enum import Enum, IntEnum

from .exceptions import NothingToClaim

# Account ids are 120 bits: a 64-bit prefix and a 56-bit suffix.
_PREFIX_BITS = 64
_SUFFIX_BITS = 56
_ACCOUNT_HEX_DIGITS = (_PREFIX_BITS + _SUFFIX_BITS) // 4

BPS_DENOMINATOR = 10_000
DEFAULT_REFERRAL_RATE_CAP_BPS = 2_500
MAX_REGISTRATION_YEARS = 10
# Upper bound on the configured year: a century of leap years keeps any
# expiry well inside a signed 64-bit column.
MAX_YEAR_DURATION_SECONDS = 100 * 366 * 86_400


@dataclass(frozen=True, order=True)
class AccountId:
    """Account identifier split into prefix and suffix words."""

    prefix: int
    suffix: int

    def __post_init__(self) -> None:
        if not 0 <= self.prefix < (1 << _PREFIX_BITS):
            raise ValueError("Account prefix must fit in 64 bits")
        if not 0 <= self.suffix < (1 << _SUFFIX_BITS):
            raise ValueError("Account suffix must fit in 56 bits")

    @classmethod
    def parse(cls, value: str) -> "AccountId":
        """
        Parse a 0x-prefixed, 30-hex-digit account id.

        Raises:
            ValueError: If the string is not a well-formed account id
        """
        text = value.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        if len(text) != _ACCOUNT_HEX_DIGITS or not all(c in string.hexdigits for c in text):
            raise ValueError(f"Account id must have {_ACCOUNT_HEX_DIGITS} hex digits")
        number = int(text, 16)
        return cls(prefix=number >> _SUFFIX_BITS, suffix=number & ((1 << _SUFFIX_BITS) - 1))

    def to_hex(self) -> str:
        number = (self.prefix << _SUFFIX_BITS) | self.suffix
        return f"0x{number:0{_ACCOUNT_HEX_DIGITS}x}"

    def __str__(self) -> str:
        return self.to_hex()


@dataclass(frozen=True)
class Domain:
    """A registered name entry."""

    name: str
    owner: AccountId
    expiry: int
    active_target: AccountId | None = None
    referrer: AccountId | None = None

    def is_expired(self, now: int) -> bool:
        return now > self.expiry

    def state_at(self, now: int) -> "DomainState":
        if self.is_expired(now):
            return DomainState.EXPIRED
        if self.active_target is not None:
            return DomainState.ACTIVE
        return DomainState.REGISTERED


@dataclass(frozen=True)
class RegistryRecord:
    """The registry singleton."""

    owner: AccountId
    treasury: AccountId
    year_duration_seconds: int
    domain_count: int = 0
    referral_rate_cap_bps: int = DEFAULT_REFERRAL_RATE_CAP_BPS
    initialized: bool = True


@dataclass(frozen=True)
class RevenueBalance:
    """
    Earned/claimed pair shared by protocol and referral ledgers.

    claimed_total never exceeds earned_total; both only grow.
    """

    earned_total: int = 0
    claimed_total: int = 0

    def __post_init__(self) -> None:
        if self.earned_total < 0 or self.claimed_total < 0:
            raise ValueError("Revenue totals must be non-negative")
        if self.claimed_total > self.earned_total:
            raise ValueError("claimed_total cannot exceed earned_total")

    @property
    def claimable(self) -> int:
        return self.earned_total - self.claimed_total

    def earn(self, amount: int) -> "RevenueBalance":
        if amount < 0:
            raise ValueError("Earned amount must be non-negative")
        return replace(self, earned_total=self.earned_total + amount)

    def claim(self) -> tuple["RevenueBalance", int]:
        """
        Claim everything outstanding.

        Returns:
            Tuple of (updated balance, amount claimed)

        Raises:
            NothingToClaim: If nothing is outstanding
        """
        amount = self.claimable
        if amount == 0:
            raise NothingToClaim("Nothing to claim")
        return replace(self, claimed_total=self.earned_total), amount


@dataclass(frozen=True)
class ReferralAccount:
    """A referrer's rate and its balance in one token."""

    rate_bps: int
    balance: RevenueBalance

    @property
    def earned_total(self) -> int:
        return self.balance.earned_total

    @property
    def claimed_total(self) -> int:
        return self.balance.claimed_total


@dataclass(frozen=True)
class Payment:
    """Asset attached to a register or extend message."""

    token: AccountId
    amount: int


@dataclass(frozen=True)
class Payout:
    """Asset transfer owed to an account after a successful claim."""

    recipient: AccountId
    token: AccountId
    amount: int


@dataclass(frozen=True)
class FeeSplit:
    """How one fee was divided between referrer and protocol."""

    referral_share: int
    protocol_share: int

    @property
    def gross(self) -> int:
        return self.referral_share + self.protocol_share


class DomainState(str, Enum):
    """
    Per-name lifecycle state.

    State Transitions:
    - UNREGISTERED -> REGISTERED (register)
    - REGISTERED -> ACTIVE (activate)
    - REGISTERED/ACTIVE -> EXPIRED (time passes expiry)
    - EXPIRED -> UNREGISTERED (clear_expired_domain)

    REGISTERED and ACTIVE both accept extend.
    """

    UNREGISTERED = "UNREGISTERED"
    REGISTERED = "REGISTERED"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


class StorageSlot(IntEnum):
    """Logical storage maps, in the registry's external slot order."""

    INIT_FLAG = 0
    OWNER = 1
    TREASURY = 2
    PRICES = 3
    ACCOUNT_TO_DOMAIN = 4
    DOMAIN_TO_ACTIVE_TARGET = 5
    DOMAIN_TO_OWNER = 6
    REFERRAL_RATE = 7
    REFERRAL_EARNED = 8
    REFERRAL_CLAIMED = 9
    DOMAIN_COUNT = 10
    REVENUE_EARNED = 11
    REVENUE_CLAIMED = 12
    DOMAIN_TO_EXPIRY = 13
    YEAR_DURATION = 14
