"""
Adversarial tests for concurrent operations on the in-memory store.

Verifies that racing operations are serialized by the ledger nonce, so an
attacker cannot:
- Register the same name twice
- Claim the same revenue twice
- Leave a domain count or primary index out of step with the records

Every racing operation either commits against the latest state or fails
with StaleStateConflict / a domain error and changes nothing.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from nameregistry.domain.exceptions import (
    NameAlreadyRegistered,
    NothingToClaim,
    RegistryError,
    StaleStateConflict,
)
from nameregistry.domain.models import AccountId
from nameregistry.domain.registry import NameRegistry
from tests.support import ALICE, OWNER, REFERRER, TOKEN, RecordingPayoutSender, account, pay

# Apply adversarial marker to all tests in this module
pytestmark = pytest.mark.adversarial


def run_concurrently(count: int, task) -> list:
    """Start count tasks together and collect their results in order."""
    barrier = threading.Barrier(count)

    def wrapped(index: int):
        barrier.wait()
        return task(index)

    with ThreadPoolExecutor(max_workers=count) as executor:
        return list(executor.map(wrapped, range(count)))


class TestRaceConditionAttacks:
    def test_concurrent_registration_exactly_one_succeeds(
        self, ready_registry: NameRegistry
    ) -> None:
        """
        Many callers race to register one name.

        Expected defense: the uniqueness check and the nonce-checked commit
        let exactly one registration through; the rest fail cleanly.
        """
        num_attackers = 10
        errors: list[Exception] = []
        errors_lock = threading.Lock()

        def attack(index: int) -> bool:
            try:
                ready_registry.register(account(100 + index), "contested", 1, pay(1))
                return True
            except (NameAlreadyRegistered, StaleStateConflict) as exc:
                with errors_lock:
                    errors.append(exc)
                return False

        results = run_concurrently(num_attackers, attack)

        assert results.count(True) == 1, f"{results.count(True)} registrations succeeded"
        assert len(errors) == num_attackers - 1
        assert ready_registry.registry_info().domain_count == 1
        assert ready_registry.protocol_revenue(TOKEN).earned_total == 100

    def test_high_volume_distinct_names_keep_count_consistent(
        self, ready_registry: NameRegistry
    ) -> None:
        """Conflicting commits lose, but every committed name is counted once."""
        num_callers = 20

        def register(index: int) -> bool:
            try:
                ready_registry.register(account(200 + index), f"name{index}", 1, pay(1))
                return True
            except StaleStateConflict:
                return False

        results = run_concurrently(num_callers, register)

        registered = [
            f"name{i}" for i in range(num_callers) if ready_registry.get_domain(f"name{i}")
        ]
        assert len(registered) == results.count(True) >= 1
        assert ready_registry.registry_info().domain_count == len(registered)
        assert ready_registry.protocol_revenue(TOKEN).earned_total == 100 * len(registered)

    def test_concurrent_referral_claims_pay_once(self, ready_registry: NameRegistry) -> None:
        """Double-claim attack: racing claims cannot pay out the same balance twice."""
        ready_registry.set_referrer_rate(OWNER, REFERRER, 2_500)
        ready_registry.register_with_referrer(ALICE, "alice", 1, pay(1), REFERRER)
        sender = RecordingPayoutSender()
        ready_registry.payout_sender = sender

        def claim(_: int) -> bool:
            try:
                ready_registry.claim_referral_revenue(REFERRER, TOKEN)
                return True
            except (NothingToClaim, StaleStateConflict):
                return False

        results = run_concurrently(8, claim)

        assert results.count(True) == 1
        assert [payout.amount for payout in sender.payouts] == [25]
        balance = ready_registry.referral_account(REFERRER, TOKEN)
        assert balance.claimed_total == balance.earned_total == 25

    def test_concurrent_activation_keeps_single_primary(
        self, ready_registry: NameRegistry
    ) -> None:
        """Racing activations of different names for one target leave one primary."""
        names = [f"pick{i}" for i in range(6)]
        for name in names:
            ready_registry.register(ALICE, name, 1, pay(1))

        def activate(index: int) -> None:
            try:
                ready_registry.activate_domain(ALICE, names[index])
            except StaleStateConflict:
                pass

        run_concurrently(len(names), activate)

        primary = ready_registry.lookup_primary(ALICE)
        resolving = [name for name in names if ready_registry.resolve(name) == ALICE]
        assert primary is not None
        assert resolving == [primary]


class TestRevenueInvariantSweep:
    def test_earned_equals_sum_of_paid_fees(self, ready_registry: NameRegistry) -> None:
        """Across a mixed workload, protocol + referral shares equal all fees paid."""
        ready_registry.set_referrer_rate(OWNER, REFERRER, 1_337)
        paid = 0
        for index in range(40):
            years = index % 10 + 1
            owner = AccountId(prefix=1, suffix=index)
            payment = pay(years)
            if index % 3:
                ready_registry.register_with_referrer(
                    owner, f"sweep{index}", years, payment, REFERRER
                )
            else:
                ready_registry.register(owner, f"sweep{index}", years, payment)
            paid += payment.amount

        protocol = ready_registry.protocol_revenue(TOKEN)
        referral = ready_registry.referral_account(REFERRER, TOKEN)
        assert protocol.earned_total + referral.earned_total == paid
        assert referral.earned_total <= paid * 1_337 // 10_000

    def test_rejected_operations_move_no_funds(self, ready_registry: NameRegistry) -> None:
        ready_registry.register(ALICE, "alice", 1, pay(1))
        before = ready_registry.protocol_revenue(TOKEN)

        for attempt in (
            lambda: ready_registry.register(REFERRER, "alice", 1, pay(1)),
            lambda: ready_registry.extend_domain(REFERRER, "alice", 1, pay(1)),
            lambda: ready_registry.extend_domain(ALICE, "alice", 10, pay(10)),
            lambda: ready_registry.claim_protocol_revenue(ALICE, TOKEN),
        ):
            with pytest.raises(RegistryError):
                attempt()

        assert ready_registry.protocol_revenue(TOKEN) == before
