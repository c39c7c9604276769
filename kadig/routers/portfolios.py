"""Portfolio endpoints - requires authentication."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.auth import get_current_user
from kadig.database import get_session
from kadig.models import User
from kadig.schemas.portfolio import (
    HistoryPointResponse,
    PortfolioCreate,
    PortfolioResponse,
    PortfolioSummaryResponse,
    PortfolioUpdate,
)
from kadig.services import history as history_service
from kadig.services import portfolios as portfolio_service

router = APIRouter()


@router.post(
    "/portfolios",
    response_model=PortfolioResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a portfolio",
)
async def create_portfolio(
    data: PortfolioCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PortfolioResponse:
    """Create a new portfolio. Your first portfolio becomes primary and selected."""
    portfolio = await portfolio_service.create_portfolio(session, user.id, data.name)
    return PortfolioResponse.model_validate(portfolio)


@router.get(
    "/portfolios",
    response_model=list[PortfolioResponse],
    summary="List your portfolios",
)
async def list_portfolios(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[PortfolioResponse]:
    portfolios = await portfolio_service.list_portfolios(session, user.id)
    return [PortfolioResponse.model_validate(p) for p in portfolios]


@router.get(
    "/portfolios/summary",
    response_model=PortfolioSummaryResponse,
    summary="Totals across all portfolios",
)
async def get_summary(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PortfolioSummaryResponse:
    """Your total wealth across portfolios.

    - **total_value**: What all your positions are worth now
    - **total_invested**: What you put in
    - **total_gain**: The difference
    - **average_cdi_percent**: Mean return percent across portfolios
    """
    summary = await portfolio_service.get_summary(session, user.id)
    return PortfolioSummaryResponse(
        total_value=summary.total_value,
        total_invested=summary.total_invested,
        total_gain=summary.total_gain,
        average_cdi_percent=summary.average_cdi_percent,
        portfolio_count=len(summary.portfolios),
        portfolios=[PortfolioResponse.model_validate(p) for p in summary.portfolios],
    )


@router.get(
    "/portfolios/{portfolio_id}",
    response_model=PortfolioResponse,
    summary="Get a portfolio",
)
async def get_portfolio(
    portfolio_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PortfolioResponse:
    portfolio = await portfolio_service.get_portfolio(session, user.id, portfolio_id)
    if portfolio is None:
        raise HTTPException(status_code=404, detail="Portfolio not found")
    return PortfolioResponse.model_validate(portfolio)


@router.patch(
    "/portfolios/{portfolio_id}",
    response_model=PortfolioResponse,
    summary="Rename a portfolio",
)
async def rename_portfolio(
    portfolio_id: str,
    data: PortfolioUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PortfolioResponse:
    portfolio = await portfolio_service.rename_portfolio(
        session, user.id, portfolio_id, data.name
    )
    if portfolio is None:
        raise HTTPException(status_code=404, detail="Portfolio not found")
    return PortfolioResponse.model_validate(portfolio)


@router.post(
    "/portfolios/{portfolio_id}/select",
    response_model=PortfolioResponse,
    summary="Select a portfolio",
)
async def select_portfolio(
    portfolio_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> PortfolioResponse:
    """Make this the portfolio new positions go to by default."""
    portfolio = await portfolio_service.select_portfolio(session, user.id, portfolio_id)
    if portfolio is None:
        raise HTTPException(status_code=404, detail="Portfolio not found")
    return PortfolioResponse.model_validate(portfolio)


@router.delete(
    "/portfolios/{portfolio_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a portfolio",
)
async def delete_portfolio(
    portfolio_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> None:
    """Delete a portfolio and all its positions. Movements are kept."""
    deleted = await portfolio_service.delete_portfolio(session, user.id, portfolio_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Portfolio not found")


@router.get(
    "/portfolios/{portfolio_id}/history",
    response_model=list[HistoryPointResponse],
    summary="Daily snapshots of a portfolio",
)
async def get_history(
    portfolio_id: str,
    since: date | None = Query(None, description="First day to include"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[HistoryPointResponse]:
    portfolio = await portfolio_service.get_portfolio(session, user.id, portfolio_id)
    if portfolio is None:
        raise HTTPException(status_code=404, detail="Portfolio not found")

    rows = await history_service.get_history(session, user.id, portfolio_id, since)
    return [HistoryPointResponse.model_validate(r) for r in rows]
