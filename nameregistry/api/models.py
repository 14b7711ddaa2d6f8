"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Name strings are passed through untouched; the domain layer owns name
validation so every entry point rejects malformed names the same way.
"""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from nameregistry.domain.models import (
    MAX_YEAR_DURATION_SECONDS,
    AccountId,
    Domain,
    DomainState,
    Payout,
    ReferralAccount,
    RegistryRecord,
    RevenueBalance,
)


def _normalize_account(value: str) -> str:
    return AccountId.parse(value).to_hex()


AccountHex = Annotated[
    str,
    AfterValidator(_normalize_account),
    Field(description="Account id: 0x followed by 30 hex digits", examples=["0x" + "0" * 29 + "1"]),
]


class PaymentModel(BaseModel):
    """Asset attached to a register or extend request."""

    token: AccountHex
    amount: int = Field(..., ge=0)


class InitRequest(BaseModel):
    """Request model for registry initialization."""

    owner: AccountHex | None = Field(default=None, description="Defaults to the caller")
    treasury: AccountHex
    year_duration_seconds: int | None = Field(
        default=None, gt=0, le=MAX_YEAR_DURATION_SECONDS
    )
    referral_rate_cap_bps: int | None = Field(default=None, ge=0, le=10_000)


class RegisterRequest(BaseModel):
    """Request model for domain registration."""

    name: str = Field(..., description="1-21 lowercase alphanumeric characters")
    duration_years: int = Field(..., description="Whole years, 1-10")
    payment: PaymentModel
    referrer: AccountHex | None = None


class ActivateRequest(BaseModel):
    """Request model for domain activation."""

    target: AccountHex | None = Field(default=None, description="Defaults to the caller")


class TransferRequest(BaseModel):
    new_owner: AccountHex


class ExtendRequest(BaseModel):
    additional_years: int
    payment: PaymentModel


class PriceRequest(BaseModel):
    length: int
    token: AccountHex
    amount: int


class PriceTableRequest(BaseModel):
    """Bulk price load for one token, keyed by name length."""

    prices: dict[int, int]


class ReferrerRateRequest(BaseModel):
    rate_bps: int


class ReferralCapRequest(BaseModel):
    cap_bps: int


class RegistryOwnerRequest(BaseModel):
    new_owner: AccountHex


class TreasuryRequest(BaseModel):
    new_treasury: AccountHex


class RegistryResponse(BaseModel):
    """Registry singleton state."""

    owner: str
    treasury: str
    domain_count: int
    referral_rate_cap_bps: int
    year_duration_seconds: int

    @classmethod
    def from_record(cls, record: RegistryRecord) -> "RegistryResponse":
        return cls(
            owner=record.owner.to_hex(),
            treasury=record.treasury.to_hex(),
            domain_count=record.domain_count,
            referral_rate_cap_bps=record.referral_rate_cap_bps,
            year_duration_seconds=record.year_duration_seconds,
        )


class DomainResponse(BaseModel):
    """Domain record."""

    name: str
    owner: str
    expiry: int
    active_target: str | None = None
    referrer: str | None = None
    state: DomainState | None = None

    @classmethod
    def from_domain(cls, domain: Domain, state: DomainState | None = None) -> "DomainResponse":
        return cls(
            name=domain.name,
            owner=domain.owner.to_hex(),
            expiry=domain.expiry,
            active_target=domain.active_target.to_hex() if domain.active_target else None,
            referrer=domain.referrer.to_hex() if domain.referrer else None,
            state=state,
        )


class ResolveResponse(BaseModel):
    name: str
    target: str | None


class PrimaryDomainResponse(BaseModel):
    account: str
    name: str | None


class QuoteResponse(BaseModel):
    name: str
    duration_years: int
    token: str
    amount: int


class BalanceResponse(BaseModel):
    """Earned/claimed totals for one token."""

    token: str
    earned_total: int
    claimed_total: int

    @classmethod
    def from_balance(cls, token: str, balance: RevenueBalance) -> "BalanceResponse":
        return cls(
            token=token,
            earned_total=balance.earned_total,
            claimed_total=balance.claimed_total,
        )


class ReferralResponse(BalanceResponse):
    referrer: str
    rate_bps: int

    @classmethod
    def from_account(
        cls, referrer: str, token: str, account: ReferralAccount
    ) -> "ReferralResponse":
        return cls(
            referrer=referrer,
            token=token,
            rate_bps=account.rate_bps,
            earned_total=account.earned_total,
            claimed_total=account.claimed_total,
        )


class PayoutResponse(BaseModel):
    recipient: str
    token: str
    amount: int

    @classmethod
    def from_payout(cls, payout: Payout) -> "PayoutResponse":
        return cls(
            recipient=payout.recipient.to_hex(),
            token=payout.token.to_hex(),
            amount=payout.amount,
        )


class ErrorDetail(BaseModel):
    error: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: ErrorDetail | str
