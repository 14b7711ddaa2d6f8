"""
Pricing engine - Registration and extension cost.

cost = floor(base * years * (100 - percent_off) / 100)

where base comes from the price table keyed by (name length, token) and
percent_off is the single best discount tier for the duration. Tiers do
not stack; the highest threshold reached wins.
"""

from dataclasses import dataclass

from .exceptions import InvalidDuration, InvalidToken
from .models import MAX_REGISTRATION_YEARS, AccountId
from .ports import LedgerTransaction

MIN_REGISTRATION_YEARS = 1


@dataclass(frozen=True)
class DiscountTier:
    min_years: int
    percent_off: int


# Ordered from highest threshold down
DISCOUNT_TIERS: tuple[DiscountTier, ...] = (
    DiscountTier(min_years=5, percent_off=50),
    DiscountTier(min_years=3, percent_off=30),
)


def validate_duration(years: int) -> int:
    if not isinstance(years, int) or isinstance(years, bool):
        raise InvalidDuration("Duration must be a whole number of years")
    if not MIN_REGISTRATION_YEARS <= years <= MAX_REGISTRATION_YEARS:
        raise InvalidDuration(
            f"Duration must be between {MIN_REGISTRATION_YEARS} and "
            f"{MAX_REGISTRATION_YEARS} years, got {years}"
        )
    return years


def discount_percent(years: int) -> int:
    for tier in DISCOUNT_TIERS:
        if years >= tier.min_years:
            return tier.percent_off
    return 0


def discounted_cost(base_price: int, years: int) -> int:
    """Apply the duration discount to base_price * years, rounding down."""
    validate_duration(years)
    gross = base_price * years
    return gross * (100 - discount_percent(years)) // 100


class PricingEngine:
    """Quotes costs against the price table of an open transaction."""

    def __init__(self, tx: LedgerTransaction) -> None:
        self._tx = tx

    def base_price(self, name_length: int, token: AccountId) -> int:
        """
        Raises:
            InvalidToken: If no price is set for this length and token
        """
        price = self._tx.get_price(name_length, token)
        if price is None:
            raise InvalidToken(f"Token {token} has no price for {name_length}-character names")
        return price

    def quote(self, name_length: int, duration_years: int, token: AccountId) -> int:
        validate_duration(duration_years)
        return discounted_cost(self.base_price(name_length, token), duration_years)
