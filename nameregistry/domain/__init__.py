"""
Domain layer - Pure business logic with zero framework imports.

This package contains the name registry state machine: name encoding,
the domain ledger, pricing, referral/revenue accounting, the per-name
lifecycle and owner administration. It defines its own port interfaces
for infrastructure abstraction, ensuring true hexagonal architecture
decoupling.
"""

from .encoding import DomainKey, decode, encode, validate_name
from .exceptions import (
    AlreadyInitialized,
    DomainExpired,
    DomainNotExpired,
    InsufficientPayment,
    InvalidDuration,
    InvalidName,
    InvalidPrice,
    InvalidToken,
    NameAlreadyRegistered,
    NameNotFound,
    NotInitialized,
    NothingToClaim,
    NotOwner,
    ReferralRateTooHigh,
    RegistryError,
    StaleStateConflict,
    Unauthorized,
)
from .models import (
    AccountId,
    Domain,
    DomainState,
    Payment,
    Payout,
    ReferralAccount,
    RegistryRecord,
    RevenueBalance,
    StorageSlot,
)
from .ports import Clock, LedgerStore, LedgerTransaction, PayoutSender
from .registry import NameRegistry

__all__ = [
    "AccountId",
    "AlreadyInitialized",
    "Clock",
    "Domain",
    "DomainExpired",
    "DomainKey",
    "DomainNotExpired",
    "DomainState",
    "InsufficientPayment",
    "InvalidDuration",
    "InvalidName",
    "InvalidPrice",
    "InvalidToken",
    "LedgerStore",
    "LedgerTransaction",
    "NameAlreadyRegistered",
    "NameNotFound",
    "NameRegistry",
    "NotInitialized",
    "NotOwner",
    "NothingToClaim",
    "Payment",
    "Payout",
    "PayoutSender",
    "ReferralAccount",
    "ReferralRateTooHigh",
    "RegistryError",
    "RegistryRecord",
    "RevenueBalance",
    "StaleStateConflict",
    "StorageSlot",
    "Unauthorized",
    "decode",
    "encode",
    "validate_name",
]
