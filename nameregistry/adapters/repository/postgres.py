"""
PostgreSQL ledger store adapter - Implements LedgerStore protocol.

This module provides the PostgreSQL implementation of the domain's
ledger store port using psycopg3 with raw SQL. One table per logical
storage map; account ids are stored as their 0x-hex form and domain keys
as their fixed 32-byte encoding.

Concurrency Design - Stale-State Rejection:
-------------------------------------------
1. **Ledger nonce**: Every transaction reads ledger_nonce.nonce first.
   A transaction that wrote anything commits only via
   UPDATE ledger_nonce SET nonce = nonce + 1 WHERE nonce = <read value>.
   Under READ COMMITTED the UPDATE waits for any concurrent writer, then
   re-checks the predicate, so exactly one of two racing writers matches
   the row. The loser rolls back and raises StaleStateConflict.

2. **Domain primary key**: domains.domain_key is the PRIMARY KEY, so two
   transactions inserting the same name cannot both commit even before
   the nonce check. UniqueViolation maps to NameAlreadyRegistered.

3. **Balance CHECK constraints**: claimed <= earned is also enforced by
   the schema for both revenue tables.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from psycopg import Cursor, errors
from psycopg_pool import ConnectionPool

from nameregistry.domain.encoding import DomainKey
from nameregistry.domain.exceptions import NameAlreadyRegistered, StaleStateConflict
from nameregistry.domain.models import (
    AccountId,
    Domain,
    RegistryRecord,
    RevenueBalance,
    StorageSlot,
)

logger = logging.getLogger(__name__)

# Table and column holding each logical slot.
SLOT_COLUMNS: dict[StorageSlot, str] = {
    StorageSlot.INIT_FLAG: "registry.initialized",
    StorageSlot.OWNER: "registry.owner",
    StorageSlot.TREASURY: "registry.treasury",
    StorageSlot.PRICES: "prices.price",
    StorageSlot.ACCOUNT_TO_DOMAIN: "primary_domains.domain_key",
    StorageSlot.DOMAIN_TO_ACTIVE_TARGET: "domains.active_target",
    StorageSlot.DOMAIN_TO_OWNER: "domains.owner",
    StorageSlot.REFERRAL_RATE: "referral_rates.rate_bps",
    StorageSlot.REFERRAL_EARNED: "referral_balances.earned",
    StorageSlot.REFERRAL_CLAIMED: "referral_balances.claimed",
    StorageSlot.DOMAIN_COUNT: "registry.domain_count",
    StorageSlot.REVENUE_EARNED: "protocol_revenue.earned",
    StorageSlot.REVENUE_CLAIMED: "protocol_revenue.claimed",
    StorageSlot.DOMAIN_TO_EXPIRY: "domains.expiry",
    StorageSlot.YEAR_DURATION: "registry.year_duration_seconds",
}

# Every table backing a slot, in first-slot order. ledger_nonce is not a slot.
LEDGER_TABLES: tuple[str, ...] = tuple(
    dict.fromkeys(column.split(".")[0] for column in SLOT_COLUMNS.values())
)


def _account(value: str | None) -> AccountId | None:
    return AccountId.parse(value) if value is not None else None


def _hex(account: AccountId | None) -> str | None:
    return account.to_hex() if account is not None else None


class PostgresLedgerTransaction:
    """
    Implements LedgerTransaction protocol over one open database transaction.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(self, cursor: Cursor) -> None:
        self._cursor = cursor
        self.dirty = False

    def _fetchone(self, sql: str, params: tuple) -> tuple | None:
        self._cursor.execute(sql, params)
        return self._cursor.fetchone()

    def _write(self, sql: str, params: tuple) -> None:
        self._cursor.execute(sql, params)
        self.dirty = True

    # Registry singleton

    def get_registry(self) -> RegistryRecord | None:
        row = self._fetchone(
            """
            SELECT owner, treasury, year_duration_seconds, domain_count,
                   referral_rate_cap_bps, initialized
            FROM registry
            WHERE id = 1
            """,
            (),
        )
        if row is None:
            return None
        return RegistryRecord(
            owner=AccountId.parse(row[0]),
            treasury=AccountId.parse(row[1]),
            year_duration_seconds=int(row[2]),
            domain_count=int(row[3]),
            referral_rate_cap_bps=int(row[4]),
            initialized=bool(row[5]),
        )

    def put_registry(self, record: RegistryRecord) -> None:
        self._write(
            """
            INSERT INTO registry (id, initialized, owner, treasury, domain_count,
                                  referral_rate_cap_bps, year_duration_seconds)
            VALUES (1, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE
            SET initialized = EXCLUDED.initialized,
                owner = EXCLUDED.owner,
                treasury = EXCLUDED.treasury,
                domain_count = EXCLUDED.domain_count,
                referral_rate_cap_bps = EXCLUDED.referral_rate_cap_bps,
                year_duration_seconds = EXCLUDED.year_duration_seconds
            """,
            (
                record.initialized,
                record.owner.to_hex(),
                record.treasury.to_hex(),
                record.domain_count,
                record.referral_rate_cap_bps,
                record.year_duration_seconds,
            ),
        )

    # Price table

    def get_price(self, length: int, token: AccountId) -> int | None:
        row = self._fetchone(
            "SELECT price FROM prices WHERE name_length = %s AND token = %s",
            (length, token.to_hex()),
        )
        return int(row[0]) if row is not None else None

    def put_price(self, length: int, token: AccountId, amount: int) -> None:
        self._write(
            """
            INSERT INTO prices (name_length, token, price) VALUES (%s, %s, %s)
            ON CONFLICT (name_length, token) DO UPDATE SET price = EXCLUDED.price
            """,
            (length, token.to_hex(), amount),
        )

    # Domains

    def get_domain(self, key: DomainKey) -> Domain | None:
        row = self._fetchone(
            """
            SELECT name, owner, expiry, active_target, referrer
            FROM domains
            WHERE domain_key = %s
            """,
            (key.to_bytes(),),
        )
        if row is None:
            return None
        return Domain(
            name=row[0],
            owner=AccountId.parse(row[1]),
            expiry=int(row[2]),
            active_target=_account(row[3]),
            referrer=_account(row[4]),
        )

    def insert_domain(self, key: DomainKey, domain: Domain) -> None:
        try:
            self._write(
                """
                INSERT INTO domains (domain_key, name, owner, expiry, active_target, referrer)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (
                    key.to_bytes(),
                    domain.name,
                    domain.owner.to_hex(),
                    domain.expiry,
                    _hex(domain.active_target),
                    _hex(domain.referrer),
                ),
            )
        except errors.UniqueViolation:
            raise NameAlreadyRegistered(f"Domain '{domain.name}' is already registered") from None

    def update_domain(self, key: DomainKey, domain: Domain) -> None:
        self._write(
            """
            UPDATE domains
            SET owner = %s, expiry = %s, active_target = %s, referrer = %s
            WHERE domain_key = %s
            """,
            (
                domain.owner.to_hex(),
                domain.expiry,
                _hex(domain.active_target),
                _hex(domain.referrer),
                key.to_bytes(),
            ),
        )

    def delete_domain(self, key: DomainKey) -> None:
        self._write("DELETE FROM domains WHERE domain_key = %s", (key.to_bytes(),))

    # Reverse index

    def get_primary(self, account: AccountId) -> DomainKey | None:
        row = self._fetchone(
            "SELECT domain_key FROM primary_domains WHERE account = %s",
            (account.to_hex(),),
        )
        return DomainKey.from_bytes(bytes(row[0])) if row is not None else None

    def put_primary(self, account: AccountId, key: DomainKey) -> None:
        self._write(
            """
            INSERT INTO primary_domains (account, domain_key) VALUES (%s, %s)
            ON CONFLICT (account) DO UPDATE SET domain_key = EXCLUDED.domain_key
            """,
            (account.to_hex(), key.to_bytes()),
        )

    def delete_primary(self, account: AccountId) -> None:
        self._write("DELETE FROM primary_domains WHERE account = %s", (account.to_hex(),))

    # Referral accounting

    def get_referral_rate(self, account: AccountId) -> int:
        row = self._fetchone(
            "SELECT rate_bps FROM referral_rates WHERE account = %s",
            (account.to_hex(),),
        )
        return int(row[0]) if row is not None else 0

    def put_referral_rate(self, account: AccountId, rate_bps: int) -> None:
        self._write(
            """
            INSERT INTO referral_rates (account, rate_bps) VALUES (%s, %s)
            ON CONFLICT (account) DO UPDATE SET rate_bps = EXCLUDED.rate_bps
            """,
            (account.to_hex(), rate_bps),
        )

    def get_referral_balance(self, account: AccountId, token: AccountId) -> RevenueBalance:
        row = self._fetchone(
            "SELECT earned, claimed FROM referral_balances WHERE account = %s AND token = %s",
            (account.to_hex(), token.to_hex()),
        )
        if row is None:
            return RevenueBalance()
        return RevenueBalance(earned_total=int(row[0]), claimed_total=int(row[1]))

    def put_referral_balance(
        self, account: AccountId, token: AccountId, balance: RevenueBalance
    ) -> None:
        self._write(
            """
            INSERT INTO referral_balances (account, token, earned, claimed)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (account, token) DO UPDATE
            SET earned = EXCLUDED.earned, claimed = EXCLUDED.claimed
            """,
            (account.to_hex(), token.to_hex(), balance.earned_total, balance.claimed_total),
        )

    # Protocol revenue

    def get_revenue(self, token: AccountId) -> RevenueBalance:
        row = self._fetchone(
            "SELECT earned, claimed FROM protocol_revenue WHERE token = %s",
            (token.to_hex(),),
        )
        if row is None:
            return RevenueBalance()
        return RevenueBalance(earned_total=int(row[0]), claimed_total=int(row[1]))

    def put_revenue(self, token: AccountId, balance: RevenueBalance) -> None:
        self._write(
            """
            INSERT INTO protocol_revenue (token, earned, claimed) VALUES (%s, %s, %s)
            ON CONFLICT (token) DO UPDATE
            SET earned = EXCLUDED.earned, claimed = EXCLUDED.claimed
            """,
            (token.to_hex(), balance.earned_total, balance.claimed_total),
        )


class PostgresLedgerStore:
    """
    Implements LedgerStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    @contextmanager
    def transaction(self) -> Iterator[PostgresLedgerTransaction]:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            try:
                cursor.execute("SELECT nonce FROM ledger_nonce WHERE id = 1")
                base_nonce = cursor.fetchone()[0]

                tx = PostgresLedgerTransaction(cursor)
                yield tx

                if tx.dirty:
                    cursor.execute(
                        "UPDATE ledger_nonce SET nonce = nonce + 1 WHERE id = 1 AND nonce = %s",
                        (base_nonce,),
                    )
                    if cursor.rowcount != 1:
                        logger.warning("Stale commit rejected: read nonce %d", base_nonce)
                        raise StaleStateConflict(
                            "Ledger state changed since this operation began"
                        )
                conn.commit()
            except BaseException:
                conn.rollback()
                raise

    def ping(self) -> None:
        with self._pool.connection() as conn:
            conn.execute("SELECT 1")


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: nameregistry/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
