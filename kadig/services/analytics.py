"""Portfolio analytics - risk/return, projections, capital gains, distribution.

All functions here are pure and work on AssetSnapshot lists built from
stored investments. Figures are floats in percent unless stated otherwise.
"""

from dataclasses import dataclass, field
from statistics import mean, pstdev

# Fallbacks when the market indicators cannot be fetched
DEFAULT_CDI_12M = 13.14
DEFAULT_IPCA_12M = 4.44
DEFAULT_PROJECTION_CDI = 11.5
DEFAULT_PROJECTION_IPCA = 4.5

# Used when no asset has a known volatility
DEFAULT_PORTFOLIO_VOLATILITY = 1.41

IMPACT_THRESHOLD = 0.5

_ASSET_TYPE_LABELS = {
    "ação": "Ações",
    "acao": "Ações",
    "ações": "Ações",
    "acoes": "Ações",
    "ações, stocks e etf": "Ações",
    "bdrs": "BDRs",
    "conta corrente": "Conta Corrente",
    "conta_corrente": "Conta Corrente",
    "criptoativos": "Criptoativos",
    "cripto": "Criptoativos",
    "debêntures": "Debêntures",
    "debentures": "Debêntures",
    "fundos": "Fundos",
    "fiis": "FIIs",
    "fiis e reits": "FIIs",
    "moedas": "Moedas",
    "personalizados": "Personalizados",
    "poupança": "Poupança",
    "poupanca": "Poupança",
    "previdência": "Previdência",
    "previdencia": "Previdência",
    "renda fixa": "Renda Fixa",
    "renda fixa pré": "Renda Fixa Pré",
    "renda_fixa_pre": "Renda Fixa Pré",
    "renda fixa pós": "Renda Fixa Pós",
    "renda_fixa_pos": "Renda Fixa Pós",
    "tesouro direto": "Tesouro Direto",
    "tesouro": "Tesouro Direto",
}


@dataclass
class AssetSnapshot:
    """The figures analytics need from one position."""

    name: str
    asset_type: str
    value: float
    invested: float
    gain_percent: float = 0.0
    ticker: str | None = None
    volatility: float | None = None

    @property
    def gain(self) -> float:
        return self.value - self.invested


@dataclass
class AssetRiskReturn:
    name: str
    ticker: str | None
    return_percent: float
    volatility: float
    sharpe: float


@dataclass
class RiskReturn:
    """Portfolio-level risk/return against CDI."""

    return_percent: float
    volatility: float
    sharpe: float
    cdi_12m: float
    assets: list[AssetRiskReturn] = field(default_factory=list)


@dataclass
class ProjectionPoint:
    month: int
    pessimistic: float
    moderate: float
    optimistic: float
    cdi: float
    ipca: float


@dataclass
class ScenarioResult:
    final_value: float
    gain: float
    gain_percent: float


@dataclass
class Projection:
    """Month-by-month value under three scenarios plus benchmarks."""

    initial_value: float
    monthly_return: float
    std_dev: float
    multipliers: dict[str, float]
    points: list[ProjectionPoint]
    scenarios: dict[str, ScenarioResult]


@dataclass
class CapitalGains:
    total_gain: float
    monthly_average: float
    three_month: float
    twelve_month: float
    by_class: dict[str, float]


@dataclass
class DistributionSlice:
    asset_class: str
    value: float
    weight: float  # Percent of total value


@dataclass
class AssetSensitivity:
    name: str
    ticker: str | None
    asset_type: str
    value: float
    gain: float
    weight: float
    contribution: float  # Percentage points of portfolio return
    volatility: float
    impact: str  # positive / negative / neutral


@dataclass
class Profitability:
    total_value: float
    total_invested: float
    return_percent: float
    cdi_12m: float
    ipca_12m: float
    cdi_percent: float  # Return as a share of CDI
    real_return: float  # Return above inflation


def normalize_asset_type(label: str) -> str:
    """Map a stored asset type to its display class."""
    return _ASSET_TYPE_LABELS.get(label.lower().strip(), label)


def sharpe_ratio(return_percent: float, risk_free: float, volatility: float) -> float:
    """(return - risk free) / volatility; 0 when volatility is 0."""
    if volatility == 0:
        return 0.0
    return (return_percent - risk_free) / volatility


def estimate_asset_volatility(asset: AssetSnapshot) -> float:
    """Known volatility, else a rough estimate from the size of the gain."""
    if asset.volatility is not None:
        return asset.volatility
    return abs(asset.gain_percent) * 0.1 + 0.5


def class_volatility(asset: AssetSnapshot) -> float:
    """Known volatility, else a typical figure for the asset class."""
    if asset.volatility is not None:
        return asset.volatility

    asset_class = normalize_asset_type(asset.asset_type)
    if asset_class.startswith("Renda Fixa") or asset_class == "Tesouro Direto":
        return 1.0
    if asset_class == "Criptoativos":
        return 50.0
    if asset_class == "Ações" or "Stocks" in asset.asset_type:
        return 25.0
    if asset_class == "FIIs" or "REITs" in asset.asset_type:
        return 15.0
    return 5.0


def weighted_volatility(assets: list[AssetSnapshot]) -> float:
    """Value-weighted volatility over the assets that have one.

    Weights are renormalised over the assets with known volatility, so an
    unknown asset neither dilutes nor inflates the figure.
    """
    known = [a for a in assets if a.volatility is not None and a.value > 0]
    known_value = sum(a.value for a in known)
    if known_value <= 0:
        return DEFAULT_PORTFOLIO_VOLATILITY

    weighted = sum(a.volatility * a.value / known_value for a in known)
    return weighted if weighted > 0 else DEFAULT_PORTFOLIO_VOLATILITY


def _return_percent(value: float, invested: float) -> float:
    if invested <= 0:
        return 0.0
    return (value - invested) / invested * 100


def risk_return(assets: list[AssetSnapshot], cdi_12m: float | None = None) -> RiskReturn:
    """Portfolio return, volatility and Sharpe ratio against CDI."""
    risk_free = cdi_12m if cdi_12m is not None else DEFAULT_CDI_12M

    total_value = sum(a.value for a in assets)
    total_invested = sum(a.invested for a in assets)
    portfolio_return = _return_percent(total_value, total_invested)
    volatility = weighted_volatility(assets)

    per_asset = []
    for asset in assets:
        asset_return = _return_percent(asset.value, asset.invested)
        asset_volatility = estimate_asset_volatility(asset)
        per_asset.append(
            AssetRiskReturn(
                name=asset.name,
                ticker=asset.ticker,
                return_percent=asset_return,
                volatility=asset_volatility,
                sharpe=sharpe_ratio(asset_return, risk_free, asset_volatility),
            )
        )

    return RiskReturn(
        return_percent=portfolio_return,
        volatility=volatility,
        sharpe=sharpe_ratio(portfolio_return, risk_free, volatility),
        cdi_12m=risk_free,
        assets=per_asset,
    )


def monthly_returns(values: list[float]) -> list[float]:
    """Period-over-period percent change, skipping zero bases."""
    returns = []
    for previous, current in zip(values, values[1:]):
        if previous > 0:
            returns.append((current - previous) / previous * 100)
    return returns


def monthly_rate(annual_percent: float) -> float:
    """Monthly equivalent of an annual rate, as a fraction."""
    return (1 + annual_percent / 100) ** (1 / 12) - 1


def project(
    total_value: float,
    returns: list[float] | None = None,
    cdi_12m: float | None = None,
    ipca_12m: float | None = None,
    months: int = 12,
) -> Projection:
    """Project the portfolio forward under three scenarios.

    The base monthly return is the mean of the historical monthly returns,
    or the monthly CDI when there is no history. The scenario multipliers
    come from the dispersion of those returns. Each month:
        value(t+1) = value(t) * (1 + base * multiplier)
    """
    if months < 1:
        raise ValueError("months must be at least 1")

    cdi = cdi_12m if cdi_12m is not None else DEFAULT_PROJECTION_CDI
    ipca = ipca_12m if ipca_12m is not None else DEFAULT_PROJECTION_IPCA
    cdi_monthly = monthly_rate(cdi)
    ipca_monthly = monthly_rate(ipca)

    returns = returns or []
    if returns:
        base = mean(returns) / 100
        std_dev = pstdev(returns) if len(returns) >= 2 else 1.0
        low = max(0.3, 1 - std_dev / 100)
        high = min(1.7, 1 + std_dev / 100)
    else:
        base = cdi_monthly
        std_dev = 1.0
        low, high = 0.7, 1.3

    # A negative base return flips which multiplier is the worse outcome
    if base < 0:
        low, high = high, low
    multipliers = {"pessimistic": low, "moderate": 1.0, "optimistic": high}

    values = {name: total_value for name in multipliers}
    cdi_value = ipca_value = total_value
    points = [ProjectionPoint(0, total_value, total_value, total_value, total_value, total_value)]
    for month in range(1, months + 1):
        for name, multiplier in multipliers.items():
            values[name] = values[name] * (1 + base * multiplier)
        cdi_value *= 1 + cdi_monthly
        ipca_value *= 1 + ipca_monthly
        points.append(
            ProjectionPoint(
                month=month,
                pessimistic=values["pessimistic"],
                moderate=values["moderate"],
                optimistic=values["optimistic"],
                cdi=cdi_value,
                ipca=ipca_value,
            )
        )

    scenarios = {}
    for name, final in values.items():
        gain = final - total_value
        scenarios[name] = ScenarioResult(
            final_value=final,
            gain=gain,
            gain_percent=gain / total_value * 100 if total_value > 0 else 0.0,
        )

    return Projection(
        initial_value=total_value,
        monthly_return=base * 100,
        std_dev=std_dev,
        multipliers=multipliers,
        points=points,
        scenarios=scenarios,
    )


def capital_gains(assets: list[AssetSnapshot]) -> CapitalGains:
    """Unrealised gain in total, averaged per month and per asset class."""
    total_gain = sum(a.gain for a in assets)
    monthly = total_gain / 12

    by_class: dict[str, float] = {}
    for asset in assets:
        label = normalize_asset_type(asset.asset_type)
        by_class[label] = by_class.get(label, 0.0) + asset.gain

    return CapitalGains(
        total_gain=total_gain,
        monthly_average=monthly,
        three_month=monthly * 3,
        twelve_month=total_gain,
        by_class=by_class,
    )


def distribution(assets: list[AssetSnapshot]) -> list[DistributionSlice]:
    """Value and weight per asset class, largest first."""
    totals: dict[str, float] = {}
    for asset in assets:
        label = normalize_asset_type(asset.asset_type)
        totals[label] = totals.get(label, 0.0) + asset.value

    grand_total = sum(totals.values())
    slices = [
        DistributionSlice(
            asset_class=label,
            value=value,
            weight=value / grand_total * 100 if grand_total > 0 else 0.0,
        )
        for label, value in totals.items()
    ]
    slices.sort(key=lambda s: s.value, reverse=True)
    return slices


def sensitivity(assets: list[AssetSnapshot]) -> list[AssetSensitivity]:
    """How much each asset moves the portfolio return, largest mover first."""
    total_value = sum(a.value for a in assets)
    total_invested = sum(a.invested for a in assets)

    rows = []
    for asset in assets:
        weight = asset.value / total_value * 100 if total_value > 0 else 0.0
        contribution = asset.gain / total_invested * 100 if total_invested > 0 else 0.0
        if contribution > IMPACT_THRESHOLD:
            impact = "positive"
        elif contribution < -IMPACT_THRESHOLD:
            impact = "negative"
        else:
            impact = "neutral"

        rows.append(
            AssetSensitivity(
                name=asset.name,
                ticker=asset.ticker,
                asset_type=asset.asset_type,
                value=asset.value,
                gain=asset.gain,
                weight=weight,
                contribution=contribution,
                volatility=class_volatility(asset),
                impact=impact,
            )
        )

    rows.sort(key=lambda r: abs(r.contribution), reverse=True)
    return rows


def profitability(
    total_value: float,
    total_invested: float,
    cdi_12m: float | None = None,
    ipca_12m: float | None = None,
) -> Profitability:
    """Nominal return, share of CDI and return above inflation."""
    cdi = cdi_12m if cdi_12m is not None else DEFAULT_CDI_12M
    ipca = ipca_12m if ipca_12m is not None else DEFAULT_IPCA_12M

    return_percent = _return_percent(total_value, total_invested)
    cdi_percent = return_percent / cdi * 100 if cdi > 0 else 0.0
    real_return = ((1 + return_percent / 100) / (1 + ipca / 100) - 1) * 100

    return Profitability(
        total_value=total_value,
        total_invested=total_invested,
        return_percent=return_percent,
        cdi_12m=cdi,
        ipca_12m=ipca,
        cdi_percent=cdi_percent,
        real_return=real_return,
    )
