"""
Unit tests for API request/response models.

Tests Pydantic validation and domain-to-response conversion.
"""

import pytest
from pydantic import ValidationError

from nameregistry.api.models import (
    DomainResponse,
    InitRequest,
    PayoutResponse,
    RegisterRequest,
    ReferralResponse,
)
from nameregistry.domain.models import (
    MAX_YEAR_DURATION_SECONDS,
    AccountId,
    Domain,
    DomainState,
    Payout,
    ReferralAccount,
    RevenueBalance,
)
from tests.support import ALICE, BOB, REFERRER, TOKEN

TOKEN_HEX = TOKEN.to_hex()


class TestAccountId:
    def test_hex_round_trip(self) -> None:
        account = AccountId(prefix=0xABC, suffix=0xDEF)
        assert AccountId.parse(account.to_hex()) == account

    def test_hex_is_30_digits(self) -> None:
        assert ALICE.to_hex() == "0x" + "0" * 28 + "0a"

    def test_parse_accepts_uppercase(self) -> None:
        assert AccountId.parse("0X" + "0" * 28 + "0A") == ALICE

    @pytest.mark.parametrize("value", ["0x1", "0x" + "g" * 30, "0x-" + "1" * 29, ""])
    def test_parse_rejects_malformed(self, value: str) -> None:
        with pytest.raises(ValueError):
            AccountId.parse(value)

    def test_suffix_bounded_to_56_bits(self) -> None:
        with pytest.raises(ValueError):
            AccountId(prefix=0, suffix=1 << 56)


class TestRegisterRequest:
    def test_valid_request(self) -> None:
        request = RegisterRequest(
            name="alice",
            duration_years=1,
            payment={"token": TOKEN_HEX, "amount": 100},
        )
        assert request.payment.token == TOKEN_HEX
        assert request.referrer is None

    def test_account_strings_are_normalized(self) -> None:
        request = RegisterRequest(
            name="alice",
            duration_years=1,
            payment={"token": TOKEN_HEX.upper().replace("0X", "0x"), "amount": 100},
        )
        assert request.payment.token == TOKEN_HEX

    def test_name_is_not_validated_here(self) -> None:
        """The domain layer owns name validation."""
        request = RegisterRequest(
            name="Not Valid", duration_years=1, payment={"token": TOKEN_HEX, "amount": 1}
        )
        assert request.name == "Not Valid"

    def test_rejects_malformed_token(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(name="alice", duration_years=1, payment={"token": "x", "amount": 1})

    def test_rejects_negative_amount(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(
                name="alice", duration_years=1, payment={"token": TOKEN_HEX, "amount": -1}
            )


class TestInitRequest:
    def test_optional_fields_default_to_none(self) -> None:
        request = InitRequest(treasury=TOKEN_HEX)
        assert request.owner is None
        assert request.year_duration_seconds is None
        assert request.referral_rate_cap_bps is None

    def test_rejects_cap_over_10000(self) -> None:
        with pytest.raises(ValidationError):
            InitRequest(treasury=TOKEN_HEX, referral_rate_cap_bps=10_001)

    def test_year_duration_bounded(self) -> None:
        longest = MAX_YEAR_DURATION_SECONDS
        request = InitRequest(treasury=TOKEN_HEX, year_duration_seconds=longest)
        assert request.year_duration_seconds == longest

        with pytest.raises(ValidationError):
            InitRequest(treasury=TOKEN_HEX, year_duration_seconds=longest + 1)


class TestResponses:
    def test_domain_response_from_domain(self) -> None:
        domain = Domain(name="alice", owner=ALICE, expiry=5, active_target=BOB)

        response = DomainResponse.from_domain(domain, DomainState.ACTIVE)

        assert response.model_dump() == {
            "name": "alice",
            "owner": ALICE.to_hex(),
            "expiry": 5,
            "active_target": BOB.to_hex(),
            "referrer": None,
            "state": DomainState.ACTIVE,
        }

    def test_referral_response_from_account(self) -> None:
        account = ReferralAccount(rate_bps=100, balance=RevenueBalance(10, 4))

        response = ReferralResponse.from_account(REFERRER.to_hex(), TOKEN_HEX, account)

        assert response.rate_bps == 100
        assert response.earned_total == 10
        assert response.claimed_total == 4

    def test_payout_response_from_payout(self) -> None:
        response = PayoutResponse.from_payout(Payout(REFERRER, TOKEN, 9))
        assert response.recipient == REFERRER.to_hex()
        assert response.amount == 9
