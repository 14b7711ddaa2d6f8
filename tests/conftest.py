"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock and recording payout sender
- A NameRegistry over a fresh in-memory ledger store
- A priced, initialized registry
"""

import pytest

from nameregistry.adapters.repository.memory import InMemoryLedgerStore
from nameregistry.domain.registry import NameRegistry
from tests.support import (
    BASE_PRICE,
    OWNER,
    TOKEN,
    TREASURY,
    YEAR,
    ManualClock,
    RecordingPayoutSender,
)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def payouts() -> RecordingPayoutSender:
    return RecordingPayoutSender()


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def registry(
    store: InMemoryLedgerStore, clock: ManualClock, payouts: RecordingPayoutSender
) -> NameRegistry:
    """Uninitialized registry over a fresh in-memory store."""
    return NameRegistry(store=store, clock=clock, payout_sender=payouts)


@pytest.fixture
def ready_registry(registry: NameRegistry) -> NameRegistry:
    """Initialized registry with every name length priced at BASE_PRICE in TOKEN."""
    registry.init(OWNER, owner=OWNER, treasury=TREASURY, year_duration_seconds=YEAR)
    registry.set_prices(OWNER, TOKEN, {length: BASE_PRICE for length in range(1, 22)})
    return registry
