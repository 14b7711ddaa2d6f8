"""
Domain ledger - Guarded reads and writes over registry storage.

DomainLedger is the only code that writes domain records, the reverse
(primary domain) index, and the registry singleton. Every invariant on
those records is enforced here rather than by callers:

- a name has a record iff it was registered and not yet cleared
- each record has exactly one owner
- expiry is strictly later than the registration/extension time
- an account has at most one primary domain, and a primary pointer
  always names a domain whose active target is that account
"""

from dataclasses import replace

from .encoding import decode, encode
from .exceptions import (
    DomainNotExpired,
    NameAlreadyRegistered,
    NameNotFound,
    NotInitialized,
)
from .models import AccountId, Domain, RegistryRecord
from .ports import LedgerTransaction


class DomainLedger:
    """Invariant-enforcing facade over one open ledger transaction."""

    def __init__(self, tx: LedgerTransaction) -> None:
        self._tx = tx

    @property
    def tx(self) -> LedgerTransaction:
        return self._tx

    # Registry singleton

    def registry(self) -> RegistryRecord:
        """
        Return the registry singleton.

        Raises:
            NotInitialized: If init has not run
        """
        record = self._tx.get_registry()
        if record is None or not record.initialized:
            raise NotInitialized("Registry is not initialized")
        return record

    def is_initialized(self) -> bool:
        record = self._tx.get_registry()
        return record is not None and record.initialized

    def save_registry(self, record: RegistryRecord) -> None:
        self._tx.put_registry(record)

    # Lookups

    def lookup_by_name(self, name: str) -> Domain | None:
        return self._tx.get_domain(encode(name))

    def require(self, name: str) -> Domain:
        """
        Return the domain record for a name.

        Raises:
            NameNotFound: If the name has no record
        """
        domain = self.lookup_by_name(name)
        if domain is None:
            raise NameNotFound(f"Domain '{name}' is not registered")
        return domain

    def lookup_primary(self, account: AccountId) -> str | None:
        key = self._tx.get_primary(account)
        return decode(key) if key is not None else None

    # Mutations

    def insert(self, name: str, domain: Domain, now: int) -> None:
        """
        Insert a freshly registered domain and bump the domain count.

        This is the single uniqueness choke point for every registration path.

        Raises:
            NameAlreadyRegistered: If a record exists for the name
        """
        key = encode(name)
        if self._tx.get_domain(key) is not None:
            raise NameAlreadyRegistered(f"Domain '{name}' is already registered")
        if domain.expiry <= now:
            raise ValueError("Domain expiry must be later than registration time")

        registry = self.registry()
        self._tx.insert_domain(key, domain)
        self._tx.put_registry(replace(registry, domain_count=registry.domain_count + 1))

    def set_owner(self, name: str, new_owner: AccountId) -> Domain:
        domain = replace(self.require(name), owner=new_owner)
        self._tx.update_domain(encode(name), domain)
        return domain

    def set_expiry(self, name: str, expiry: int, now: int) -> Domain:
        if expiry <= now:
            raise ValueError("Domain expiry must be later than extension time")
        domain = replace(self.require(name), expiry=expiry)
        self._tx.update_domain(encode(name), domain)
        return domain

    def set_active_target(self, name: str, target: AccountId) -> Domain:
        """
        Point a domain at a target account and make it the target's primary.

        Any previous pairing on either side is released: the domain's old
        target loses its primary pointer, and the target's old primary
        domain stops resolving.
        """
        key = encode(name)
        domain = self.require(name)

        previous_target = domain.active_target
        if previous_target is not None and previous_target != target:
            if self._tx.get_primary(previous_target) == key:
                self._tx.delete_primary(previous_target)

        previous_key = self._tx.get_primary(target)
        if previous_key is not None and previous_key != key:
            previous_domain = self._tx.get_domain(previous_key)
            if previous_domain is not None:
                self._tx.update_domain(previous_key, replace(previous_domain, active_target=None))

        domain = replace(domain, active_target=target)
        self._tx.update_domain(key, domain)
        self._tx.put_primary(target, key)
        return domain

    def remove(self, name: str, now: int) -> Domain:
        """
        Remove an expired domain and its reverse-index pointer.

        Raises:
            NameNotFound: If the name has no record
            DomainNotExpired: If now <= expiry
        """
        key = encode(name)
        domain = self.require(name)
        if not domain.is_expired(now):
            raise DomainNotExpired(f"Domain '{name}' expires at {domain.expiry}")

        if domain.active_target is not None:
            if self._tx.get_primary(domain.active_target) == key:
                self._tx.delete_primary(domain.active_target)

        registry = self.registry()
        self._tx.delete_domain(key)
        self._tx.put_registry(replace(registry, domain_count=registry.domain_count - 1))
        return domain

