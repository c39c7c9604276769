"""Pydantic schemas for analytics endpoints."""

from pydantic import BaseModel, Field


class AssetRiskReturnResponse(BaseModel):
    name: str
    ticker: str | None
    return_percent: float
    volatility: float
    sharpe: float

    model_config = {"from_attributes": True}


class RiskReturnResponse(BaseModel):
    """Portfolio return, volatility and Sharpe ratio against CDI."""

    return_percent: float
    volatility: float
    sharpe: float
    cdi_12m: float
    assets: list[AssetRiskReturnResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ProjectionPointResponse(BaseModel):
    month: int
    pessimistic: float
    moderate: float
    optimistic: float
    cdi: float
    ipca: float

    model_config = {"from_attributes": True}


class ScenarioResponse(BaseModel):
    final_value: float
    gain: float
    gain_percent: float

    model_config = {"from_attributes": True}


class ProjectionResponse(BaseModel):
    """Twelve-month (by default) projection under three scenarios."""

    initial_value: float
    monthly_return: float = Field(..., description="Base monthly return, in percent")
    std_dev: float
    multipliers: dict[str, float]
    points: list[ProjectionPointResponse]
    scenarios: dict[str, ScenarioResponse]
    history_points: int = Field(..., description="Snapshots the projection was based on")

    model_config = {"from_attributes": True}


class CapitalGainsResponse(BaseModel):
    total_gain: float
    monthly_average: float
    three_month: float
    twelve_month: float
    by_class: dict[str, float]

    model_config = {"from_attributes": True}


class DistributionSliceResponse(BaseModel):
    asset_class: str
    value: float
    weight: float

    model_config = {"from_attributes": True}


class DistributionResponse(BaseModel):
    total_value: float
    slices: list[DistributionSliceResponse] = Field(default_factory=list)


class AssetSensitivityResponse(BaseModel):
    name: str
    ticker: str | None
    asset_type: str
    value: float
    gain: float
    weight: float
    contribution: float
    volatility: float
    impact: str

    model_config = {"from_attributes": True}


class SensitivityResponse(BaseModel):
    assets: list[AssetSensitivityResponse] = Field(default_factory=list)


class ProfitabilityResponse(BaseModel):
    total_value: float
    total_invested: float
    return_percent: float
    cdi_12m: float
    ipca_12m: float
    cdi_percent: float
    real_return: float

    model_config = {"from_attributes": True}
