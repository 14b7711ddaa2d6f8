"""
Referral and revenue accounting.

Every fee is split once, at payment time:

    rate_bps       = min(stored rate, current cap)
    referral_share = gross * rate_bps // 10000   (0 without a referrer)
    protocol_share = gross - referral_share

Shares accrue to earned totals. Claims pull the outstanding delta
(earned - claimed) and advance claimed_total to earned_total.
"""

from .exceptions import ReferralRateTooHigh
from .models import BPS_DENOMINATOR, AccountId, FeeSplit, Payout
from .ports import LedgerTransaction


def split_fee(gross: int, rate_bps: int) -> FeeSplit:
    referral_share = gross * rate_bps // BPS_DENOMINATOR
    return FeeSplit(referral_share=referral_share, protocol_share=gross - referral_share)


class RevenueAccounting:
    """Referral and protocol balance bookkeeping within one transaction."""

    def __init__(self, tx: LedgerTransaction) -> None:
        self._tx = tx

    def effective_rate(self, referrer: AccountId, cap_bps: int) -> int:
        """Stored rate clamped to the current cap; a lowered cap binds old rates."""
        return min(self._tx.get_referral_rate(referrer), cap_bps)

    def distribute_fee(
        self,
        token: AccountId,
        gross: int,
        referrer: AccountId | None,
        cap_bps: int = BPS_DENOMINATOR,
    ) -> FeeSplit:
        """Credit one paid fee to the referrer (if any) and the protocol."""
        if referrer is None:
            split = FeeSplit(referral_share=0, protocol_share=gross)
        else:
            split = split_fee(gross, self.effective_rate(referrer, cap_bps))
            if split.referral_share:
                balance = self._tx.get_referral_balance(referrer, token)
                self._tx.put_referral_balance(
                    referrer, token, balance.earn(split.referral_share)
                )

        revenue = self._tx.get_revenue(token)
        self._tx.put_revenue(token, revenue.earn(split.protocol_share))
        return split

    def set_referrer_rate(self, referrer: AccountId, rate_bps: int, cap_bps: int) -> None:
        if rate_bps < 0:
            raise ReferralRateTooHigh("Referral rate must be non-negative")
        if rate_bps > cap_bps:
            raise ReferralRateTooHigh(
                f"Referral rate {rate_bps} bps exceeds cap of {cap_bps} bps"
            )
        self._tx.put_referral_rate(referrer, rate_bps)

    def claim_protocol_revenue(self, token: AccountId, treasury: AccountId) -> Payout:
        """
        Raises:
            NothingToClaim: If the protocol has nothing outstanding in token
        """
        balance, amount = self._tx.get_revenue(token).claim()
        self._tx.put_revenue(token, balance)
        return Payout(recipient=treasury, token=token, amount=amount)

    def claim_referral_revenue(self, referrer: AccountId, token: AccountId) -> Payout:
        """
        Raises:
            NothingToClaim: If the referrer has nothing outstanding in token
        """
        balance, amount = self._tx.get_referral_balance(referrer, token).claim()
        self._tx.put_referral_balance(referrer, token, balance)
        return Payout(recipient=referrer, token=token, amount=amount)
