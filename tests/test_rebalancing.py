from __future__ import annotations

from math import isclose

import pytest

from portfolio_forecast.core.rebalancing import (
    RebalanceEveryNYears,
    RebalanceToZero,
    net_portfolio_value,
)
from portfolio_forecast.schemas.forecast import AssetAllocation, AssetType

EQUITIES = AssetType.EQUITIES
BONDS = AssetType.BONDS
CASH = AssetType.CASH


def assert_portfolio(actual: dict, expected: dict) -> None:
    assert set(actual) == set(expected)
    for asset_type, expected_value in expected.items():
        assert isclose(actual[asset_type], expected_value, abs_tol=1.0), (asset_type, actual)


def test_net_portfolio_value_splits_positive_and_negative_assets():
    total, positive, negative = net_portfolio_value({EQUITIES: 200_000.0, BONDS: -10_000.0, CASH: 0.0})

    assert isclose(total, 190_000.0)
    assert positive == [EQUITIES]
    assert negative == [BONDS]


@pytest.mark.parametrize(
    "portfolio, expected",
    [
        ({EQUITIES: 200_000.0}, {EQUITIES: 200_000.0}),
        ({EQUITIES: -200_000.0}, {EQUITIES: -200_000.0}),
        ({EQUITIES: 200_000.0, BONDS: -10_000.0}, {EQUITIES: 190_000.0, BONDS: 0.0}),
        (
            {EQUITIES: 200_000.0, CASH: 50_000.0, BONDS: -10_000.0},
            {EQUITIES: 195_000.0, CASH: 45_000.0, BONDS: 0.0},
        ),
        (
            {EQUITIES: 100_000.0, CASH: -20_000.0, BONDS: -30_000.0},
            {EQUITIES: 50_000.0, CASH: 0.0, BONDS: 0.0},
        ),
    ],
    ids=[
        "one positive",
        "one negative",
        "one positive, one negative",
        "two positive, one negative",
        "one positive, two negative",
    ],
)
def test_rebalance_to_zero(portfolio, expected):
    actual = RebalanceToZero().rebalance(portfolio, {}, year=1)

    assert_portfolio(actual, expected)


def test_rebalance_to_zero_leaves_underwater_portfolio_alone():
    portfolio = {EQUITIES: 5_000.0, BONDS: -10_000.0}

    actual = RebalanceToZero().rebalance(portfolio, {}, year=3)

    assert actual == portfolio


def test_rebalance_to_zero_is_idempotent_on_balanced_portfolio():
    portfolio = {EQUITIES: 180_000.0, CASH: 20_000.0}
    strategy = RebalanceToZero()

    once = strategy.rebalance(portfolio, {}, year=1)
    twice = strategy.rebalance(once, {}, year=2)

    assert once == portfolio
    assert twice == portfolio


def test_rebalance_to_zero_returns_new_portfolio():
    portfolio = {EQUITIES: 200_000.0, BONDS: -10_000.0}

    actual = RebalanceToZero().rebalance(portfolio, {}, year=1)

    assert actual is not portfolio
    assert portfolio == {EQUITIES: 200_000.0, BONDS: -10_000.0}


def test_rebalance_every_n_years_leaves_negative_total_alone():
    strategy = RebalanceEveryNYears(cadence=2)
    allocation = {EQUITIES: AssetAllocation(allocation=1.0)}

    actual = strategy.rebalance({EQUITIES: -200_000.0}, allocation, year=2)

    assert actual == {EQUITIES: -200_000.0}


def test_rebalance_every_n_years_keeps_drift_between_cadence_years():
    strategy = RebalanceEveryNYears(cadence=2)
    allocation = {
        EQUITIES: AssetAllocation(allocation=0.5),
        BONDS: AssetAllocation(allocation=0.5),
    }

    actual = strategy.rebalance({EQUITIES: 200_000.0, BONDS: 50_000.0}, allocation, year=1)

    assert actual == {EQUITIES: 200_000.0, BONDS: 50_000.0}


def test_rebalance_every_n_years_clears_negative_assets_off_cadence():
    strategy = RebalanceEveryNYears(cadence=2)
    allocation = {
        EQUITIES: AssetAllocation(allocation=0.7),
        BONDS: AssetAllocation(allocation=0.3),
    }

    actual = strategy.rebalance({EQUITIES: 200_000.0, BONDS: -10_000.0}, allocation, year=1)

    assert_portfolio(actual, {EQUITIES: 190_000.0, BONDS: 0.0})


def test_rebalance_every_n_years_resets_to_target_on_cadence_year():
    strategy = RebalanceEveryNYears(cadence=2)
    allocation = {
        EQUITIES: AssetAllocation(allocation=0.7),
        BONDS: AssetAllocation(allocation=0.3),
    }

    actual = strategy.rebalance({EQUITIES: 200_000.0, BONDS: -10_000.0}, allocation, year=2)

    assert_portfolio(actual, {EQUITIES: 133_000.0, BONDS: 57_000.0})


def test_rebalance_every_n_years_rejects_zero_cadence():
    with pytest.raises(ValueError):
        RebalanceEveryNYears(cadence=0)
