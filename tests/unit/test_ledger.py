"""
Unit tests for DomainLedger.

Tests verify:
- Uniqueness on insert and domain count bookkeeping
- Primary domain index stays consistent with active targets
- Removal only of expired domains
"""

import pytest

from nameregistry.adapters.repository.memory import InMemoryLedgerStore
from nameregistry.domain.encoding import encode
from nameregistry.domain.exceptions import (
    DomainNotExpired,
    NameAlreadyRegistered,
    NameNotFound,
    NotInitialized,
)
from nameregistry.domain.ledger import DomainLedger
from nameregistry.domain.models import Domain, RegistryRecord
from tests.support import ALICE, BOB, CAROL, OWNER, TREASURY, YEAR

NOW = 5_000


@pytest.fixture
def ledger():
    with InMemoryLedgerStore().transaction() as tx:
        ledger = DomainLedger(tx)
        ledger.save_registry(
            RegistryRecord(owner=OWNER, treasury=TREASURY, year_duration_seconds=YEAR)
        )
        yield ledger


def add(ledger: DomainLedger, name: str, owner=ALICE, expiry: int = NOW + YEAR) -> Domain:
    domain = Domain(name=name, owner=owner, expiry=expiry)
    ledger.insert(name, domain, NOW)
    return domain


class TestRegistry:
    def test_uninitialized_ledger_raises(self) -> None:
        with InMemoryLedgerStore().transaction() as tx:
            ledger = DomainLedger(tx)
            assert ledger.is_initialized() is False
            with pytest.raises(NotInitialized):
                ledger.registry()

    def test_initialized_ledger_returns_record(self, ledger: DomainLedger) -> None:
        assert ledger.is_initialized() is True
        assert ledger.registry().owner == OWNER


class TestInsert:
    def test_insert_then_lookup(self, ledger: DomainLedger) -> None:
        domain = add(ledger, "alice")

        assert ledger.lookup_by_name("alice") == domain
        assert ledger.require("alice") == domain
        assert ledger.registry().domain_count == 1

    def test_duplicate_insert_rejected(self, ledger: DomainLedger) -> None:
        add(ledger, "alice")

        with pytest.raises(NameAlreadyRegistered):
            add(ledger, "alice", owner=BOB)

        assert ledger.require("alice").owner == ALICE
        assert ledger.registry().domain_count == 1

    def test_expiry_must_be_in_future(self, ledger: DomainLedger) -> None:
        with pytest.raises(ValueError):
            add(ledger, "alice", expiry=NOW)

    def test_require_missing_raises(self, ledger: DomainLedger) -> None:
        with pytest.raises(NameNotFound):
            ledger.require("nobody")


class TestActiveTarget:
    def test_activation_sets_primary(self, ledger: DomainLedger) -> None:
        add(ledger, "alice")

        domain = ledger.set_active_target("alice", ALICE)

        assert domain.active_target == ALICE
        assert ledger.lookup_primary(ALICE) == "alice"

    def test_retarget_releases_old_target(self, ledger: DomainLedger) -> None:
        add(ledger, "alice")
        ledger.set_active_target("alice", ALICE)

        ledger.set_active_target("alice", BOB)

        assert ledger.lookup_primary(ALICE) is None
        assert ledger.lookup_primary(BOB) == "alice"

    def test_new_primary_deactivates_previous_domain(self, ledger: DomainLedger) -> None:
        """An account resolves as at most one name."""
        add(ledger, "first")
        add(ledger, "second")
        ledger.set_active_target("first", CAROL)

        ledger.set_active_target("second", CAROL)

        assert ledger.lookup_primary(CAROL) == "second"
        assert ledger.require("first").active_target is None
        assert ledger.require("second").active_target == CAROL

    def test_reactivating_same_pair_is_idempotent(self, ledger: DomainLedger) -> None:
        add(ledger, "alice")
        ledger.set_active_target("alice", ALICE)

        ledger.set_active_target("alice", ALICE)

        assert ledger.lookup_primary(ALICE) == "alice"
        assert ledger.require("alice").active_target == ALICE


class TestRemove:
    def test_remove_live_domain_rejected(self, ledger: DomainLedger) -> None:
        add(ledger, "alice")

        with pytest.raises(DomainNotExpired):
            ledger.remove("alice", NOW + YEAR)

    def test_remove_expired_domain(self, ledger: DomainLedger) -> None:
        add(ledger, "alice")
        ledger.set_active_target("alice", BOB)

        removed = ledger.remove("alice", NOW + YEAR + 1)

        assert removed.name == "alice"
        assert ledger.lookup_by_name("alice") is None
        assert ledger.lookup_primary(BOB) is None
        assert ledger.tx.get_domain(encode("alice")) is None
        assert ledger.registry().domain_count == 0

    def test_remove_keeps_unrelated_primary(self, ledger: DomainLedger) -> None:
        add(ledger, "old")
        add(ledger, "new", expiry=NOW + 10 * YEAR)
        ledger.set_active_target("old", BOB)
        ledger.set_active_target("new", BOB)

        ledger.remove("old", NOW + YEAR + 1)

        assert ledger.lookup_primary(BOB) == "new"

    def test_remove_missing_raises(self, ledger: DomainLedger) -> None:
        with pytest.raises(NameNotFound):
            ledger.remove("nobody", NOW)
