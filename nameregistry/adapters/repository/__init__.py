"""Ledger store adapters - In-memory and database implementations."""

from .memory import InMemoryLedgerStore
from .postgres import PostgresLedgerStore, run_migrations

__all__ = ["InMemoryLedgerStore", "PostgresLedgerStore", "run_migrations"]
