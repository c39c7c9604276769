"""Investment endpoints - positions and ledger flows."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.auth import get_current_user
from kadig.database import get_session
from kadig.models import User
from kadig.schemas.investment import (
    ApplicationCreate,
    BulkDeleteRequest,
    BulkDeleteResponse,
    InvestmentCreate,
    InvestmentListResponse,
    InvestmentResponse,
    InvestmentUpdate,
    LedgerResponse,
    PriceUpdateRequest,
    PriceUpdateResponse,
    RedemptionCreate,
    TransferRequest,
)
from kadig.schemas.movement import MovementResponse
from kadig.services import investments as investment_service
from kadig.services.investments import LedgerResult

router = APIRouter()


def _ledger_response(result: LedgerResult) -> LedgerResponse:
    return LedgerResponse(
        investment=(
            InvestmentResponse.model_validate(result.investment)
            if result.investment is not None
            else None
        ),
        movements=[MovementResponse.model_validate(m) for m in result.movements],
        closed=result.closed,
    )


@router.post(
    "/investments",
    response_model=LedgerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a position",
)
async def create_investment(
    data: InvestmentCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> LedgerResponse:
    """Add a position and record it as an application.

    Send **quantity** and **purchase_price** for assets priced per unit
    (stocks, REITs, crypto), or just **amount** for fixed income and
    savings. Without **portfolio_id** the position goes to your selected
    portfolio.
    """
    try:
        result = await investment_service.create_investment(session, user.id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result is None:
        raise HTTPException(status_code=404, detail="Portfolio not found")
    return _ledger_response(result)


@router.get(
    "/investments",
    response_model=InvestmentListResponse,
    summary="List your positions",
)
async def list_investments(
    portfolio_id: str | None = Query(None, description="Only this portfolio"),
    search: str | None = Query(None, description="Match on name or ticker"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> InvestmentListResponse:
    investments = await investment_service.list_investments(
        session, user.id, portfolio_id=portfolio_id, search=search
    )
    return InvestmentListResponse(
        investments=[InvestmentResponse.model_validate(i) for i in investments]
    )


@router.post(
    "/investments/bulk-delete",
    response_model=BulkDeleteResponse,
    summary="Delete several positions",
)
async def bulk_delete(
    data: BulkDeleteRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> BulkDeleteResponse:
    """Delete positions by id. Unknown ids are ignored. No movement is recorded."""
    deleted = await investment_service.delete_investments(session, user.id, data.ids)
    return BulkDeleteResponse(deleted=deleted)


@router.post(
    "/investments/prices",
    response_model=PriceUpdateResponse,
    summary="Apply a batch of market quotes",
)
async def update_prices(
    data: PriceUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PriceUpdateResponse:
    """Revalue every position whose ticker has a quote, then recompute totals."""
    try:
        updated, portfolios = await investment_service.update_prices(
            session, user.id, data.quotes
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PriceUpdateResponse(updated=updated, portfolios=portfolios)


@router.get(
    "/investments/{investment_id}",
    response_model=InvestmentResponse,
    summary="Get a position",
)
async def get_investment(
    investment_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> InvestmentResponse:
    investment = await investment_service.get_investment(session, user.id, investment_id)
    if investment is None:
        raise HTTPException(status_code=404, detail="Investment not found")
    return InvestmentResponse.model_validate(investment)


@router.put(
    "/investments/{investment_id}",
    response_model=InvestmentResponse,
    summary="Correct a position",
)
async def update_investment(
    investment_id: str,
    data: InvestmentUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> InvestmentResponse:
    """Overwrite quantity and prices. Value becomes quantity x current price."""
    try:
        investment = await investment_service.update_investment(
            session, user.id, investment_id, data
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if investment is None:
        raise HTTPException(status_code=404, detail="Investment not found")
    return InvestmentResponse.model_validate(investment)


@router.post(
    "/investments/{investment_id}/applications",
    response_model=LedgerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add money to a position",
)
async def add_application(
    investment_id: str,
    data: ApplicationCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> LedgerResponse:
    """Buy more of a position.

    With **quantity** the purchase price becomes the weighted average of
    the old and new units. With only **amount**, value and invested both
    grow by it.
    """
    try:
        result = await investment_service.add_application(
            session, user.id, investment_id, data
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result is None:
        raise HTTPException(status_code=404, detail="Investment not found")
    return _ledger_response(result)


@router.post(
    "/investments/{investment_id}/redemptions",
    response_model=LedgerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Take money out of a position",
)
async def add_redemption(
    investment_id: str,
    data: RedemptionCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> LedgerResponse:
    """Redeem part or all of a position.

    Redeeming q of Q units leaves V x (1 - q/Q) of value. When nothing is
    left the position is removed and **closed** is true.
    """
    try:
        result = await investment_service.add_redemption(
            session, user.id, investment_id, data
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result is None:
        raise HTTPException(status_code=404, detail="Investment not found")
    return _ledger_response(result)


@router.post(
    "/investments/{investment_id}/transfer",
    response_model=LedgerResponse,
    summary="Move or copy a position to another portfolio",
)
async def transfer_investment(
    investment_id: str,
    data: TransferRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> LedgerResponse:
    try:
        result = await investment_service.transfer_investment(
            session, user.id, investment_id, data
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result is None:
        raise HTTPException(status_code=404, detail="Investment or portfolio not found")
    return _ledger_response(result)
