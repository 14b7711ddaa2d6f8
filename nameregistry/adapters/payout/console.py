"""
Console payout sender adapter - Implements PayoutSender protocol.

This module provides a console-based implementation of the domain's
payout sender port, logging claimed transfers instead of moving assets.
"""

import logging

from nameregistry.domain.models import Payout

logger = logging.getLogger(__name__)


class ConsolePayoutSender:
    """
    Implements PayoutSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - the settlement layer that actually
    moves assets sits outside this service.
    """

    def send_payout(self, payout: Payout) -> None:
        """
        Log a committed payout (simulates asset delivery).

        Args:
            payout: Recipient, token and amount of a committed claim
        """
        logger.info(
            "[PAYOUT] Recipient: %s Token: %s Amount: %d",
            payout.recipient,
            payout.token,
            payout.amount,
        )
