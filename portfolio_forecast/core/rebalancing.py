"""
Rebalancing policies applied to a portfolio at the end of each simulated year.

Every policy takes the grown portfolio, the target allocation and the year,
and returns a new portfolio dict. Inputs are never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Tuple

from portfolio_forecast.schemas.forecast import AssetType, Portfolio, PortfolioAllocation


class RebalancingStrategy(Protocol):
    """Protocol for end-of-year rebalancing policies."""

    name: str

    def rebalance(
        self, portfolio: Portfolio, target_allocation: PortfolioAllocation, year: int
    ) -> Portfolio:
        """Return the rebalanced copy of ``portfolio`` for ``year``."""
        ...


def net_portfolio_value(portfolio: Portfolio) -> Tuple[float, List[AssetType], List[AssetType]]:
    """Return (total value, assets with a positive balance, assets with a negative balance)."""
    total = 0.0
    positive: List[AssetType] = []
    negative: List[AssetType] = []
    for asset_type, balance in portfolio.items():
        total += balance
        if balance > 0:
            positive.append(asset_type)
        elif balance < 0:
            negative.append(asset_type)
    return total, positive, negative


@dataclass(frozen=True)
class RebalanceToZero:
    """
    Clear every negative balance by drawing the deficit evenly from the
    positive balances.

    Nothing happens when the portfolio as a whole is under water, since there
    is no positive value left to absorb the debt.
    """

    name: str = "rebalance_to_zero"

    def rebalance(
        self, portfolio: Portfolio, target_allocation: PortfolioAllocation, year: int
    ) -> Portfolio:
        total, positive, negative = net_portfolio_value(portfolio)
        rebalanced = dict(portfolio)
        if total < 0 or not positive:
            return rebalanced

        for asset_type in negative:
            deficit = portfolio[asset_type] / len(positive)
            rebalanced[asset_type] = 0.0
            for funding_asset in positive:
                # deficit is negative, so the funding balances shrink
                rebalanced[funding_asset] += deficit
        return rebalanced


@dataclass(frozen=True)
class RebalanceEveryNYears:
    """
    Reset the portfolio to its target weights every ``cadence`` years.

    Between reallocations drift is left alone, except that negative balances
    are still cleared the way RebalanceToZero does it.
    """

    cadence: int = 1
    name: str = "rebalance_every_n_years"

    def __post_init__(self) -> None:
        if self.cadence < 1:
            raise ValueError("rebalance cadence must be at least 1")

    def rebalance(
        self, portfolio: Portfolio, target_allocation: PortfolioAllocation, year: int
    ) -> Portfolio:
        total, _, negative = net_portfolio_value(portfolio)
        if total < 0:
            return dict(portfolio)

        if year % self.cadence == 0:
            return {
                asset_type: total * allocation.allocation
                for asset_type, allocation in target_allocation.items()
            }

        if negative:
            return RebalanceToZero().rebalance(portfolio, target_allocation, year)

        return dict(portfolio)
