"""Data contracts for portfolio forecasts."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class AssetType(str, Enum):
    EQUITIES = "Equities"
    BONDS = "Bonds"
    CASH = "Cash"


class RebalancingStrategyType(str, Enum):
    YEARLY_TO_ZERO = "yearlyToZero"
    EVERY_N_YEARS_BY_ALLOC = "everyNYearsByAlloc"


class AssetAllocation(BaseModel):
    """Expected return and target weight for one asset class."""

    model_config = ConfigDict(extra="forbid")

    returnRate: float = Field(
        0.0,
        description="Annual rate of return expressed as a decimal (e.g. 0.07 for 7%).",
    )
    allocation: float = Field(
        ...,
        ge=0,
        le=1,
        description="Target fraction of the total portfolio value held in this asset.",
    )


# balances may be negative, which models margin or debt held against an asset
Portfolio = Dict[AssetType, float]
PortfolioAllocation = Dict[AssetType, AssetAllocation]


class AnnualPortfolioBalanceChange(BaseModel):
    """
    Recurring contribution (positive amount) or withdrawal (negative amount).

    Active for every year in [startYear, endYear]. The first active year uses
    amount as is; afterwards amount * (1 + annualPctChange)^(year - startYear - 1).
    """

    model_config = ConfigDict(extra="forbid")

    amount: float
    startYear: int = Field(..., ge=0)
    endYear: int = Field(..., ge=0)
    annualPctChange: float = 0.0


class ForecastRequest(BaseModel):
    """Inputs required to forecast a portfolio year by year."""

    model_config = ConfigDict(extra="forbid")

    initPortfolio: Portfolio = Field(default_factory=dict)
    annualPortfolioBalanceChanges: List[AnnualPortfolioBalanceChange] = Field(default_factory=list)
    portfolioAllocation: PortfolioAllocation = Field(default_factory=dict)
    annualInflationRate: float = 0.0
    endYear: int = Field(..., ge=0, description="Last simulated year; year 0 is today.")
    rebalanceCadence: int = Field(1, description="Years between full reallocations.")
    # any scalar is accepted here; unrecognized selectors resolve to the default strategy
    rebalancingStrategy: Any = None


class ForecastResponse(BaseModel):
    """Portfolio snapshots, index 0 being the initial portfolio."""

    portfolios: List[Portfolio]


class ErrorResponse(BaseModel):
    error: str
    message: str
