"""
API v1 routes.

Defines REST endpoints for the Name Registry API. Every mutating endpoint
submits exactly one operation message on behalf of the X-Account-Id caller.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from nameregistry.api.dependencies import get_caller, get_registry_service
from nameregistry.api.models import (
    ActivateRequest,
    BalanceResponse,
    DomainResponse,
    ErrorResponse,
    ExtendRequest,
    InitRequest,
    PayoutResponse,
    PriceRequest,
    PriceTableRequest,
    PrimaryDomainResponse,
    QuoteResponse,
    ReferralCapRequest,
    ReferralResponse,
    ReferrerRateRequest,
    RegisterRequest,
    RegistryOwnerRequest,
    RegistryResponse,
    ResolveResponse,
    TransferRequest,
    TreasuryRequest,
)
from nameregistry.config.settings import Settings, get_settings
from nameregistry.domain.exceptions import (
    AlreadyInitialized,
    DomainExpired,
    DomainNotExpired,
    InsufficientPayment,
    NameAlreadyRegistered,
    NameNotFound,
    NotInitialized,
    NotOwner,
    RegistryError,
    StaleStateConflict,
    Unauthorized,
)
from nameregistry.domain.models import AccountId, Payment
from nameregistry.domain.registry import NameRegistry

router = APIRouter(tags=["v1"])

ACCOUNT_PATTERN = r"^0[xX][0-9a-fA-F]{30}$"

# Errors not listed here are input errors and map to 422
_ERROR_STATUS: dict[type[RegistryError], int] = {
    NameNotFound: status.HTTP_404_NOT_FOUND,
    NameAlreadyRegistered: status.HTTP_409_CONFLICT,
    DomainExpired: status.HTTP_409_CONFLICT,
    DomainNotExpired: status.HTTP_409_CONFLICT,
    AlreadyInitialized: status.HTTP_409_CONFLICT,
    StaleStateConflict: status.HTTP_409_CONFLICT,
    NotOwner: status.HTTP_403_FORBIDDEN,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    NotInitialized: status.HTTP_503_SERVICE_UNAVAILABLE,
    InsufficientPayment: status.HTTP_402_PAYMENT_REQUIRED,
}

_ERROR_RESPONSES: dict[int | str, dict] = {
    402: {"model": ErrorResponse, "description": "Payment does not match quote"},
    403: {"model": ErrorResponse, "description": "Caller lacks rights"},
    404: {"model": ErrorResponse, "description": "Domain not found"},
    409: {"model": ErrorResponse, "description": "Conflicts with current ledger state"},
    422: {"model": ErrorResponse, "description": "Validation error"},
}


def status_for(exc: RegistryError) -> int:
    for error_type, code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_422_UNPROCESSABLE_ENTITY


@contextmanager
def registry_errors() -> Iterator[None]:
    """Translate domain errors into HTTP errors with a typed detail body."""
    try:
        yield
    except RegistryError as exc:
        raise HTTPException(
            status_code=status_for(exc),
            detail={"error": type(exc).__name__, "message": str(exc)},
        ) from None


def _payment(model) -> Payment:
    return Payment(token=AccountId.parse(model.token), amount=model.amount)


# Registry administration


@router.post(
    "/registry/init",
    response_model=RegistryResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
    summary="Initialize the registry",
    description="Create the registry singleton. Succeeds exactly once.",
)
async def init_registry(
    request_data: InitRequest,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
    settings: Settings = Depends(get_settings),
) -> RegistryResponse:
    owner = AccountId.parse(request_data.owner) if request_data.owner else caller
    with registry_errors():
        record = service.init(
            caller,
            owner=owner,
            treasury=AccountId.parse(request_data.treasury),
            year_duration_seconds=request_data.year_duration_seconds
            or settings.year_duration_seconds,
            referral_rate_cap_bps=(
                request_data.referral_rate_cap_bps
                if request_data.referral_rate_cap_bps is not None
                else settings.referral_rate_cap_bps
            ),
        )
    return RegistryResponse.from_record(record)


@router.get("/registry", response_model=RegistryResponse, responses=_ERROR_RESPONSES)
async def get_registry(service: NameRegistry = Depends(get_registry_service)) -> RegistryResponse:
    with registry_errors():
        return RegistryResponse.from_record(service.registry_info())


@router.put("/registry/owner", response_model=RegistryResponse, responses=_ERROR_RESPONSES)
async def update_registry_owner(
    request_data: RegistryOwnerRequest,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> RegistryResponse:
    with registry_errors():
        record = service.update_registry_owner(caller, AccountId.parse(request_data.new_owner))
    return RegistryResponse.from_record(record)


@router.put("/registry/treasury", response_model=RegistryResponse, responses=_ERROR_RESPONSES)
async def update_treasury(
    request_data: TreasuryRequest,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> RegistryResponse:
    with registry_errors():
        record = service.update_treasury(caller, AccountId.parse(request_data.new_treasury))
    return RegistryResponse.from_record(record)


@router.put("/registry/referral-cap", response_model=RegistryResponse, responses=_ERROR_RESPONSES)
async def set_referral_rate_cap(
    request_data: ReferralCapRequest,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> RegistryResponse:
    with registry_errors():
        record = service.set_referral_rate_cap(caller, request_data.cap_bps)
    return RegistryResponse.from_record(record)


# Pricing


@router.put("/prices", status_code=status.HTTP_204_NO_CONTENT, responses=_ERROR_RESPONSES)
async def set_price(
    request_data: PriceRequest,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> None:
    with registry_errors():
        service.set_price(
            caller, request_data.length, AccountId.parse(request_data.token), request_data.amount
        )


@router.put("/prices/{token}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERROR_RESPONSES)
async def set_prices(
    request_data: PriceTableRequest,
    token: str = Path(..., pattern=ACCOUNT_PATTERN),
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> None:
    with registry_errors():
        service.set_prices(caller, AccountId.parse(token), request_data.prices)


@router.get("/quote", response_model=QuoteResponse, responses=_ERROR_RESPONSES)
async def quote(
    name: str = Query(...),
    years: int = Query(...),
    token: str = Query(..., pattern=ACCOUNT_PATTERN),
    service: NameRegistry = Depends(get_registry_service),
) -> QuoteResponse:
    token_id = AccountId.parse(token)
    with registry_errors():
        amount = service.quote(name, years, token_id)
    return QuoteResponse(name=name, duration_years=years, token=token_id.to_hex(), amount=amount)


# Domain lifecycle


@router.post(
    "/domains",
    response_model=DomainResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
    summary="Register a domain",
    description="Register an unclaimed name to the caller for 1-10 years. "
    "The payment must equal the quoted cost exactly.",
)
async def register_domain(
    request_data: RegisterRequest,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> DomainResponse:
    payment = _payment(request_data.payment)
    with registry_errors():
        if request_data.referrer is None:
            domain = service.register(
                caller, request_data.name, request_data.duration_years, payment
            )
        else:
            domain = service.register_with_referrer(
                caller,
                request_data.name,
                request_data.duration_years,
                payment,
                AccountId.parse(request_data.referrer),
            )
    return DomainResponse.from_domain(domain)


@router.get("/domains/{name}", response_model=DomainResponse, responses=_ERROR_RESPONSES)
async def get_domain(
    name: str, service: NameRegistry = Depends(get_registry_service)
) -> DomainResponse:
    with registry_errors():
        described = service.describe_domain(name)
        if described is None:
            raise NameNotFound(f"Domain '{name}' is not registered")
    domain, state = described
    return DomainResponse.from_domain(domain, state)


@router.get("/domains/{name}/resolve", response_model=ResolveResponse, responses=_ERROR_RESPONSES)
async def resolve_domain(
    name: str, service: NameRegistry = Depends(get_registry_service)
) -> ResolveResponse:
    with registry_errors():
        target = service.resolve(name)
    return ResolveResponse(name=name, target=target.to_hex() if target else None)


@router.post(
    "/domains/{name}/activate", response_model=DomainResponse, responses=_ERROR_RESPONSES
)
async def activate_domain(
    name: str,
    request_data: ActivateRequest,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> DomainResponse:
    target = AccountId.parse(request_data.target) if request_data.target else None
    with registry_errors():
        domain = service.activate_domain(caller, name, target)
    return DomainResponse.from_domain(domain)


@router.post(
    "/domains/{name}/transfer", response_model=DomainResponse, responses=_ERROR_RESPONSES
)
async def transfer_domain(
    name: str,
    request_data: TransferRequest,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> DomainResponse:
    with registry_errors():
        domain = service.transfer(caller, name, AccountId.parse(request_data.new_owner))
    return DomainResponse.from_domain(domain)


@router.post("/domains/{name}/extend", response_model=DomainResponse, responses=_ERROR_RESPONSES)
async def extend_domain(
    name: str,
    request_data: ExtendRequest,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> DomainResponse:
    payment = _payment(request_data.payment)
    with registry_errors():
        domain = service.extend_domain(caller, name, request_data.additional_years, payment)
    return DomainResponse.from_domain(domain)


@router.delete(
    "/domains/{name}",
    response_model=DomainResponse,
    responses=_ERROR_RESPONSES,
    summary="Clear an expired domain",
    description="Remove an expired domain so the name can be registered again. Open to anyone.",
)
async def clear_expired_domain(
    name: str,
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> DomainResponse:
    with registry_errors():
        domain = service.clear_expired_domain(caller, name)
    return DomainResponse.from_domain(domain)


@router.get(
    "/accounts/{account}/primary",
    response_model=PrimaryDomainResponse,
    responses=_ERROR_RESPONSES,
)
async def lookup_primary(
    account: str = Path(..., pattern=ACCOUNT_PATTERN),
    service: NameRegistry = Depends(get_registry_service),
) -> PrimaryDomainResponse:
    account_id = AccountId.parse(account)
    with registry_errors():
        name = service.lookup_primary(account_id)
    return PrimaryDomainResponse(account=account_id.to_hex(), name=name)


# Referral and protocol revenue


@router.put(
    "/referrers/{referrer}/rate", status_code=status.HTTP_204_NO_CONTENT, responses=_ERROR_RESPONSES
)
async def set_referrer_rate(
    request_data: ReferrerRateRequest,
    referrer: str = Path(..., pattern=ACCOUNT_PATTERN),
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> None:
    with registry_errors():
        service.set_referrer_rate(caller, AccountId.parse(referrer), request_data.rate_bps)


@router.get(
    "/referrers/{referrer}/balances/{token}",
    response_model=ReferralResponse,
    responses=_ERROR_RESPONSES,
)
async def get_referral_account(
    referrer: str = Path(..., pattern=ACCOUNT_PATTERN),
    token: str = Path(..., pattern=ACCOUNT_PATTERN),
    service: NameRegistry = Depends(get_registry_service),
) -> ReferralResponse:
    referrer_id = AccountId.parse(referrer)
    token_id = AccountId.parse(token)
    with registry_errors():
        account = service.referral_account(referrer_id, token_id)
    return ReferralResponse.from_account(referrer_id.to_hex(), token_id.to_hex(), account)


@router.post(
    "/referrals/{token}/claim", response_model=PayoutResponse, responses=_ERROR_RESPONSES
)
async def claim_referral_revenue(
    token: str = Path(..., pattern=ACCOUNT_PATTERN),
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> PayoutResponse:
    with registry_errors():
        payout = service.claim_referral_revenue(caller, AccountId.parse(token))
    return PayoutResponse.from_payout(payout)


@router.get("/revenue/{token}", response_model=BalanceResponse, responses=_ERROR_RESPONSES)
async def get_protocol_revenue(
    token: str = Path(..., pattern=ACCOUNT_PATTERN),
    service: NameRegistry = Depends(get_registry_service),
) -> BalanceResponse:
    token_id = AccountId.parse(token)
    with registry_errors():
        balance = service.protocol_revenue(token_id)
    return BalanceResponse.from_balance(token_id.to_hex(), balance)


@router.post("/revenue/{token}/claim", response_model=PayoutResponse, responses=_ERROR_RESPONSES)
async def claim_protocol_revenue(
    token: str = Path(..., pattern=ACCOUNT_PATTERN),
    caller: AccountId = Depends(get_caller),
    service: NameRegistry = Depends(get_registry_service),
) -> PayoutResponse:
    with registry_errors():
        payout = service.claim_protocol_revenue(caller, AccountId.parse(token))
    return PayoutResponse.from_payout(payout)
