"""Analytics endpoints - computed from stored positions and market indicators."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.auth import get_current_user
from kadig.clients.bcb import BCBClient, Indicators, fetch_indicators, get_bcb_client
from kadig.database import get_session
from kadig.models import User
from kadig.schemas.analytics import (
    AssetSensitivityResponse,
    CapitalGainsResponse,
    DistributionResponse,
    DistributionSliceResponse,
    ProfitabilityResponse,
    ProjectionResponse,
    RiskReturnResponse,
    SensitivityResponse,
)
from kadig.services import analytics
from kadig.services import history as history_service
from kadig.services import investments as investment_service
from kadig.services import portfolios as portfolio_service

router = APIRouter()


async def get_indicators(bcb: BCBClient = Depends(get_bcb_client)) -> Indicators | None:
    """Current CDI/IPCA, or None when the Central Bank API is unavailable."""
    return await fetch_indicators(bcb)


async def _check_portfolio(session: AsyncSession, user: User, portfolio_id: str | None) -> None:
    if portfolio_id is None:
        return
    if await portfolio_service.get_portfolio(session, user.id, portfolio_id) is None:
        raise HTTPException(status_code=404, detail="Portfolio not found")


@router.get(
    "/analytics/risk-return",
    response_model=RiskReturnResponse,
    summary="Risk and return against CDI",
)
async def risk_return(
    portfolio_id: str | None = Query(None, description="Only this portfolio"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    indicators: Indicators | None = Depends(get_indicators),
) -> RiskReturnResponse:
    """Portfolio return, value-weighted volatility and Sharpe ratio.

    **sharpe** = (return - CDI) / volatility. Per-asset figures use the
    quoted volatility or an estimate from the asset's gain.
    """
    await _check_portfolio(session, user, portfolio_id)
    assets = await investment_service.asset_snapshots(session, user.id, portfolio_id)
    result = analytics.risk_return(assets, indicators.cdi_12m if indicators else None)
    return RiskReturnResponse.model_validate(result)


@router.get(
    "/analytics/projection",
    response_model=ProjectionResponse,
    summary="Project the portfolio forward",
)
async def projection(
    portfolio_id: str | None = Query(None, description="Only this portfolio"),
    months: int = Query(12, ge=1, le=120),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    indicators: Indicators | None = Depends(get_indicators),
) -> ProjectionResponse:
    """Pessimistic, moderate and optimistic paths plus CDI and IPCA benchmarks.

    The base monthly return comes from your snapshot history over the last
    year; without history it is the monthly CDI.
    """
    await _check_portfolio(session, user, portfolio_id)
    if portfolio_id is not None:
        portfolio = await portfolio_service.get_portfolio(session, user.id, portfolio_id)
        total_value = float(portfolio.total_value)
    else:
        summary = await portfolio_service.get_summary(session, user.id)
        total_value = float(summary.total_value)

    series = await history_service.get_value_series(session, user.id, portfolio_id)
    returns = analytics.monthly_returns([float(p.total_value) for p in series])

    result = analytics.project(
        total_value,
        returns,
        cdi_12m=indicators.cdi_12m if indicators else None,
        ipca_12m=indicators.ipca_12m if indicators else None,
        months=months,
    )
    return ProjectionResponse(**asdict(result), history_points=len(series))


@router.get(
    "/analytics/capital-gains",
    response_model=CapitalGainsResponse,
    summary="Unrealised capital gains",
)
async def capital_gains(
    portfolio_id: str | None = Query(None, description="Only this portfolio"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CapitalGainsResponse:
    await _check_portfolio(session, user, portfolio_id)
    assets = await investment_service.asset_snapshots(session, user.id, portfolio_id)
    return CapitalGainsResponse.model_validate(analytics.capital_gains(assets))


@router.get(
    "/analytics/distribution",
    response_model=DistributionResponse,
    summary="Allocation by asset class",
)
async def distribution(
    portfolio_id: str | None = Query(None, description="Only this portfolio"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DistributionResponse:
    await _check_portfolio(session, user, portfolio_id)
    assets = await investment_service.asset_snapshots(session, user.id, portfolio_id)
    slices = analytics.distribution(assets)
    return DistributionResponse(
        total_value=sum(s.value for s in slices),
        slices=[DistributionSliceResponse.model_validate(s) for s in slices],
    )


@router.get(
    "/analytics/sensitivity",
    response_model=SensitivityResponse,
    summary="Which assets move the portfolio",
)
async def sensitivity(
    portfolio_id: str | None = Query(None, description="Only this portfolio"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SensitivityResponse:
    """Each asset's weight, contribution to return and volatility, largest mover first."""
    await _check_portfolio(session, user, portfolio_id)
    assets = await investment_service.asset_snapshots(session, user.id, portfolio_id)
    rows = analytics.sensitivity(assets)
    return SensitivityResponse(
        assets=[AssetSensitivityResponse.model_validate(r) for r in rows]
    )


@router.get(
    "/analytics/profitability",
    response_model=ProfitabilityResponse,
    summary="Return against CDI and inflation",
)
async def profitability(
    portfolio_id: str | None = Query(None, description="Only this portfolio"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    indicators: Indicators | None = Depends(get_indicators),
) -> ProfitabilityResponse:
    """Nominal return, share of CDI (**cdi_percent**) and real return above IPCA."""
    await _check_portfolio(session, user, portfolio_id)
    assets = await investment_service.asset_snapshots(session, user.id, portfolio_id)
    result = analytics.profitability(
        sum(a.value for a in assets),
        sum(a.invested for a in assets),
        cdi_12m=indicators.cdi_12m if indicators else None,
        ipca_12m=indicators.ipca_12m if indicators else None,
    )
    return ProfitabilityResponse.model_validate(result)
