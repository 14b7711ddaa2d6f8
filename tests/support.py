"""
Test support - Accounts, a controllable clock and payment helpers.

Shared by conftest fixtures and by test modules that need the constants.
"""

from dataclasses import dataclass, field

from nameregistry.domain.models import AccountId, Payment, Payout

YEAR = 1_000
START = 10_000
BASE_PRICE = 100


def account(number: int) -> AccountId:
    return AccountId(prefix=0, suffix=number)


OWNER = account(1)
TREASURY = account(2)
ALICE = account(10)
BOB = account(11)
CAROL = account(12)
REFERRER = account(20)
TOKEN = account(900)
OTHER_TOKEN = account(901)


@dataclass
class ManualClock:
    """Clock whose time only moves when a test says so."""

    current: int = START

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds


@dataclass
class RecordingPayoutSender:
    """Payout sender that keeps every delivered payout."""

    payouts: list[Payout] = field(default_factory=list)

    def send_payout(self, payout: Payout) -> None:
        self.payouts.append(payout)


def cost(years: int, base: int = BASE_PRICE) -> int:
    """Expected cost under the default discount tiers."""
    gross = base * years
    if years >= 5:
        return gross * 50 // 100
    if years >= 3:
        return gross * 70 // 100
    return gross


def pay(years: int, base: int = BASE_PRICE, token: AccountId = TOKEN) -> Payment:
    """Exact payment for a name priced at base."""
    return Payment(token=token, amount=cost(years, base))
