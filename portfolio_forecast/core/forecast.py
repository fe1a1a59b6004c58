"""
Year-stepping portfolio forecast.

Order of operations per simulated year (year 1 .. endYear):
  1) Grow every held asset by its real (inflation adjusted) return.
  2) Add this year's contributions / withdrawals, split by target allocation.
  3) Hand the result to the rebalancing strategy; its output is the snapshot.

Year 0 is the initial portfolio as given.
"""

from __future__ import annotations

import math
from typing import Any, List, Optional, Sequence

import structlog

from portfolio_forecast.config import DEFAULT_ALLOCATION_TOLERANCE, DEFAULT_MAX_FORECAST_YEARS
from portfolio_forecast.core.rebalancing import (
    RebalanceEveryNYears,
    RebalanceToZero,
    RebalancingStrategy,
)
from portfolio_forecast.schemas.forecast import (
    AnnualPortfolioBalanceChange,
    AssetAllocation,
    ForecastRequest,
    ForecastResponse,
    Portfolio,
    PortfolioAllocation,
    RebalancingStrategyType,
)

logger = structlog.get_logger(__name__)

BALANCE_CHANGE_END_YEAR_ERROR = "annual balance change end year must be less than or equal to last year"
ALLOCATION_SUM_ERROR = "portfolio allocation percent must sum up to 1"
REBALANCE_CADENCE_ERROR = "rebalance cadence must be at least 1"
BALANCE_CHANGE_OVERFLOW_ERROR = "annual balance change grows too large to forecast"

# integer selectors used by older clients
STRATEGY_CODES = {
    0: RebalancingStrategyType.YEARLY_TO_ZERO,
    1: RebalancingStrategyType.EVERY_N_YEARS_BY_ALLOC,
}


class ForecastError(Exception):
    """Base class for forecast failures."""


class ForecastValidationError(ForecastError, ValueError):
    """The request cannot be forecast; nothing was computed."""


def resolve_strategy_type(selector: Any) -> Optional[RebalancingStrategyType]:
    """Return the strategy named by ``selector``, or None when it is not recognized."""
    if isinstance(selector, bool):
        return None
    if isinstance(selector, int):
        return STRATEGY_CODES.get(selector)
    try:
        return RebalancingStrategyType(selector)
    except (ValueError, TypeError):
        return None


def _final_flow_amount(balance_change: AnnualPortfolioBalanceChange) -> float:
    elapsed = balance_change.endYear - balance_change.startYear - 1
    if elapsed <= 0:
        return balance_change.amount
    try:
        growth = (1 + balance_change.annualPctChange) ** elapsed
    except OverflowError:
        return math.inf
    return balance_change.amount * growth


def validate_request(
    request: ForecastRequest,
    max_years: int = DEFAULT_MAX_FORECAST_YEARS,
    allocation_tolerance: float = DEFAULT_ALLOCATION_TOLERANCE,
) -> None:
    """Raise ForecastValidationError for the first problem found in ``request``."""
    for balance_change in request.annualPortfolioBalanceChanges:
        if balance_change.endYear > request.endYear:
            raise ForecastValidationError(BALANCE_CHANGE_END_YEAR_ERROR)

    allocated = math.fsum(
        allocation.allocation for allocation in request.portfolioAllocation.values()
    )
    if not math.isclose(allocated, 1.0, rel_tol=0.0, abs_tol=allocation_tolerance):
        raise ForecastValidationError(ALLOCATION_SUM_ERROR)

    if request.endYear > max_years:
        raise ForecastValidationError(f"end year must be less than or equal to {max_years}")

    strategy_type = resolve_strategy_type(request.rebalancingStrategy)
    if (
        strategy_type == RebalancingStrategyType.EVERY_N_YEARS_BY_ALLOC
        and request.rebalanceCadence < 1
    ):
        raise ForecastValidationError(REBALANCE_CADENCE_ERROR)

    # (1 + pct)^n can only overflow as n grows, so the last active year covers the window
    for balance_change in request.annualPortfolioBalanceChanges:
        if not math.isfinite(_final_flow_amount(balance_change)):
            raise ForecastValidationError(BALANCE_CHANGE_OVERFLOW_ERROR)


def select_strategy(selector: Any, cadence: int) -> RebalancingStrategy:
    """Map the request's selector to a strategy; anything unrecognized rebalances to zero."""
    if selector is None:
        return RebalanceToZero()

    strategy_type = resolve_strategy_type(selector)
    if strategy_type is None:
        logger.warning("unknown_rebalancing_strategy", selector=repr(selector))
        return RebalanceToZero()

    if strategy_type == RebalancingStrategyType.EVERY_N_YEARS_BY_ALLOC:
        return RebalanceEveryNYears(cadence=cadence)
    return RebalanceToZero()


def to_real_rates(allocation: PortfolioAllocation, inflation_rate: float) -> PortfolioAllocation:
    # simple subtraction on purpose, not (1 + r) / (1 + i) - 1
    return {
        asset_type: AssetAllocation(
            returnRate=asset.returnRate - inflation_rate,
            allocation=asset.allocation,
        )
        for asset_type, asset in allocation.items()
    }


def effective_amount(balance_change: AnnualPortfolioBalanceChange, year: int) -> float:
    """Cash flow for ``year``, or 0 when the change is not active that year."""
    if not balance_change.startYear <= year <= balance_change.endYear:
        return 0.0
    if year == balance_change.startYear:
        return balance_change.amount
    elapsed = year - balance_change.startYear - 1
    return balance_change.amount * (1 + balance_change.annualPctChange) ** elapsed


def forecast_next_year(
    previous: Portfolio,
    balance_changes: Sequence[AnnualPortfolioBalanceChange],
    real_allocation: PortfolioAllocation,
    year: int,
    strategy: RebalancingStrategy,
) -> Portfolio:
    """Compute the end-of-year snapshot for ``year`` from last year's snapshot."""
    forecasted: Portfolio = {}

    # 1) growth; assets outside the allocation have no rate and are carried as is
    for asset_type, balance in previous.items():
        asset = real_allocation.get(asset_type)
        rate = asset.returnRate if asset is not None else 0.0
        forecasted[asset_type] = balance * (1 + rate)

    # 2) contributions and withdrawals, split by target weight
    for balance_change in balance_changes:
        if not balance_change.startYear <= year <= balance_change.endYear:
            continue
        amount = effective_amount(balance_change, year)
        for asset_type, asset in real_allocation.items():
            forecasted[asset_type] = forecasted.get(asset_type, 0.0) + amount * asset.allocation

    # 3) rebalance
    return strategy.rebalance(forecasted, real_allocation, year)


def forecast(
    request: ForecastRequest,
    max_years: int = DEFAULT_MAX_FORECAST_YEARS,
    allocation_tolerance: float = DEFAULT_ALLOCATION_TOLERANCE,
) -> ForecastResponse:
    """
    Forecast the portfolio for every year from 0 to ``request.endYear``.

    Raises ForecastValidationError before doing any work when the request is
    inconsistent.
    """
    try:
        validate_request(request, max_years=max_years, allocation_tolerance=allocation_tolerance)
    except ForecastValidationError as exc:
        logger.info("forecast_rejected", reason=str(exc), end_year=request.endYear)
        raise

    strategy = select_strategy(request.rebalancingStrategy, request.rebalanceCadence)
    real_allocation = to_real_rates(request.portfolioAllocation, request.annualInflationRate)

    logger.info(
        "forecast_started",
        end_year=request.endYear,
        strategy=strategy.name,
        assets=len(real_allocation),
        balance_changes=len(request.annualPortfolioBalanceChanges),
    )

    portfolios: List[Portfolio] = [dict(request.initPortfolio)]
    previous = portfolios[0]
    for year in range(1, request.endYear + 1):
        current = forecast_next_year(
            previous,
            request.annualPortfolioBalanceChanges,
            real_allocation,
            year,
            strategy,
        )
        portfolios.append(current)
        previous = current

    return ForecastResponse(portfolios=portfolios)
