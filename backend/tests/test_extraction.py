import pytest

from mcaptracker.valuation.extraction import (
    TOTAL_SUPPLY,
    bonding_curve_market_cap,
    direct_market_cap,
    estimate_rest_market_cap,
    estimate_trade_market_cap,
)


def test_direct_field_multiplies_by_sol_price() -> None:
    assert estimate_trade_market_cap({"marketCapSol": 100}, 150.0) == 15_000.0


def test_direct_field_accepts_numeric_strings() -> None:
    assert estimate_trade_market_cap({"marketCapSol": "2.5"}, 100.0) == 250.0


def test_bonding_curve_scenario() -> None:
    event = {
        "vTokensInBondingCurve": 2_000_000_000_000,
        "vSolInBondingCurve": 50_000_000_000,
    }

    assert estimate_trade_market_cap(event, 150.0) == pytest.approx(3_750_000.0)


def test_bonding_curve_matches_reserve_formula() -> None:
    event = {"vTokensInBondingCurve": 793_100_000_000_000, "vSolInBondingCurve": 42_000_000_000}
    expected = (42_000_000_000 / 1e9) / (793_100_000_000_000 / 1e6) * 180.0 * TOTAL_SUPPLY

    assert bonding_curve_market_cap(event, 180.0) == expected


def test_direct_field_wins_over_bonding_curve() -> None:
    event = {
        "marketCapSol": 10,
        "vTokensInBondingCurve": 2_000_000_000_000,
        "vSolInBondingCurve": 50_000_000_000,
    }

    assert estimate_trade_market_cap(event, 150.0) == 1_500.0


def test_zero_direct_field_falls_through_to_bonding_curve() -> None:
    event = {
        "marketCapSol": 0,
        "vTokensInBondingCurve": 2_000_000_000_000,
        "vSolInBondingCurve": 50_000_000_000,
    }

    assert estimate_trade_market_cap(event, 150.0) == pytest.approx(3_750_000.0)


@pytest.mark.parametrize(
    "event",
    [
        {},
        {"txType": "buy"},
        {"marketCapSol": None},
        {"marketCapSol": "not-a-number"},
        {"marketCapSol": -3},
        {"marketCapSol": "1e400"},
        {"marketCapSol": float("inf")},
        {"vTokensInBondingCurve": float("nan"), "vSolInBondingCurve": 50_000_000_000},
        {"vTokensInBondingCurve": 2_000_000_000_000},
        {"vTokensInBondingCurve": -1, "vSolInBondingCurve": 50_000_000_000},
    ],
)
def test_unusable_events_yield_no_estimate(event) -> None:
    assert estimate_trade_market_cap(event, 150.0) is None


def test_zero_sol_price_yields_no_estimate() -> None:
    assert estimate_trade_market_cap({"marketCapSol": 100}, 0.0) is None


def test_direct_strategy_ignores_missing_field() -> None:
    assert direct_market_cap({"vSolInBondingCurve": 1}, 150.0) is None


def test_rest_prefers_direct_market_cap() -> None:
    assert estimate_rest_market_cap({"marketCap": "5000", "price": 1, "supply": 2}) == 5_000.0


def test_rest_derives_from_price_and_supply() -> None:
    assert estimate_rest_market_cap({"price": "0.00002", "supply": 1_000_000_000}) == pytest.approx(
        20_000.0
    )


def test_rest_without_fields_yields_nothing() -> None:
    assert estimate_rest_market_cap({"price": 0.1}) is None
    assert estimate_rest_market_cap({"marketCap": -10}) is None


def test_bonding_curve_scenario_is_exact() -> None:
    event = {
        "vTokensInBondingCurve": 2_000_000_000_000,
        "vSolInBondingCurve": 50_000_000_000,
    }
    expected = (50_000_000_000 / 1e9) / (2_000_000_000_000 / 1e6) * 150.0 * 1_000_000_000

    assert estimate_trade_market_cap(event, 150.0) == expected


def test_infinite_rest_market_cap_falls_through_to_price_and_supply() -> None:
    assert estimate_rest_market_cap({"marketCap": "inf", "price": 2, "supply": 3}) == 6.0
