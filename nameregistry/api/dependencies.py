"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
the registry service and the authenticated caller into routes.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from nameregistry.adapters.clock.system import SystemClock
from nameregistry.adapters.payout.console import ConsolePayoutSender
from nameregistry.domain.models import AccountId
from nameregistry.domain.ports import LedgerStore
from nameregistry.domain.registry import NameRegistry

# Module-level singletons - both adapters are stateless
_clock = SystemClock()
_payout_sender = ConsolePayoutSender()


def get_store(request: Request) -> LedgerStore:
    """
    Get ledger store from app state.

    The store is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.store


def get_payout_sender() -> ConsolePayoutSender:
    """Get console payout sender (singleton)."""
    return _payout_sender


def get_registry_service(request: Request) -> NameRegistry:
    """
    Create registry service with injected dependencies.

    Wires together the ledger store, clock and payout sender.
    """
    return NameRegistry(
        store=get_store(request),
        clock=_clock,
        payout_sender=get_payout_sender(),
    )


# Caller identity security scheme for OpenAPI documentation. The header is
# set by the authenticating gateway in front of this service.
account_header = APIKeyHeader(name="X-Account-Id", auto_error=False)


def get_caller(account_id: str | None = Depends(account_header)) -> AccountId:
    """
    Extract the authenticated caller from the X-Account-Id header.

    Returns:
        Parsed AccountId of the caller

    Raises:
        HTTPException: 401 if the header is missing or malformed
    """
    if not account_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller account",
        )
    try:
        return AccountId.parse(account_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed caller account",
        ) from None
