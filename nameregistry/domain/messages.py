"""
Operation messages - One immutable message per registry operation.

Each message carries the authenticated caller supplied by the submitting
layer. The base class states who may send it:

- OwnerMessage: only the registry owner; authorized once, centrally,
  before the message is routed
- HolderMessage: only the owner of the named domain; checked against the
  domain record by the lifecycle manager
- PublicMessage: anyone; no caller precondition
"""

from dataclasses import dataclass

from .models import DEFAULT_REFERRAL_RATE_CAP_BPS, AccountId, Payment


@dataclass(frozen=True)
class Message:
    caller: AccountId


@dataclass(frozen=True)
class OwnerMessage(Message):
    pass


@dataclass(frozen=True)
class HolderMessage(Message):
    name: str


@dataclass(frozen=True)
class PublicMessage(Message):
    pass


# Public


@dataclass(frozen=True)
class Init(PublicMessage):
    owner: AccountId
    treasury: AccountId
    year_duration_seconds: int
    referral_rate_cap_bps: int = DEFAULT_REFERRAL_RATE_CAP_BPS


@dataclass(frozen=True)
class Register(PublicMessage):
    name: str
    duration_years: int
    payment: Payment


@dataclass(frozen=True)
class RegisterWithReferrer(PublicMessage):
    name: str
    duration_years: int
    payment: Payment
    referrer: AccountId


@dataclass(frozen=True)
class ClearExpiredDomain(PublicMessage):
    name: str


@dataclass(frozen=True)
class ClaimReferralRevenue(PublicMessage):
    """Pull the caller's own referral earnings in token."""

    token: AccountId


# Domain holder


@dataclass(frozen=True)
class ActivateDomain(HolderMessage):
    target: AccountId | None = None


@dataclass(frozen=True)
class Transfer(HolderMessage):
    new_owner: AccountId


@dataclass(frozen=True)
class ExtendDomain(HolderMessage):
    additional_years: int
    payment: Payment


# Registry owner


@dataclass(frozen=True)
class SetPrice(OwnerMessage):
    length: int
    token: AccountId
    amount: int


@dataclass(frozen=True)
class SetPrices(OwnerMessage):
    token: AccountId
    prices: tuple[tuple[int, int], ...]


@dataclass(frozen=True)
class SetReferrerRate(OwnerMessage):
    referrer: AccountId
    rate_bps: int


@dataclass(frozen=True)
class SetReferralRateCap(OwnerMessage):
    cap_bps: int


@dataclass(frozen=True)
class ClaimProtocolRevenue(OwnerMessage):
    token: AccountId


@dataclass(frozen=True)
class UpdateRegistryOwner(OwnerMessage):
    new_owner: AccountId


@dataclass(frozen=True)
class UpdateTreasury(OwnerMessage):
    new_treasury: AccountId
