"""Market-cap extraction from trade events and REST payloads.

Each source has an ordered list of strategies. A strategy returns ``None``
when the fields it needs are absent, zero, non-finite or unparseable; the
first strategy that returns a number wins. Validity (strictly positive) is
decided by the caller, so a strategy that yields a negative number still
stops the search.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Optional

TOTAL_SUPPLY = 1_000_000_000
TOKEN_DECIMALS_DIVISOR = 1e6
SOL_DECIMALS_DIVISOR = 1e9

TradeStrategy = Callable[[Mapping[str, Any], float], Optional[float]]
RestStrategy = Callable[[Mapping[str, Any]], Optional[float]]


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number == 0:
        return None
    return number


def direct_market_cap(event: Mapping[str, Any], sol_price: float) -> float | None:
    market_cap_sol = _as_float(event.get("marketCapSol"))
    if market_cap_sol is None:
        return None
    return market_cap_sol * sol_price


def bonding_curve_market_cap(
    event: Mapping[str, Any], sol_price: float
) -> float | None:
    token_reserve = _as_float(event.get("vTokensInBondingCurve"))
    sol_reserve = _as_float(event.get("vSolInBondingCurve"))
    if token_reserve is None or sol_reserve is None:
        return None
    tokens = token_reserve / TOKEN_DECIMALS_DIVISOR
    sol = sol_reserve / SOL_DECIMALS_DIVISOR
    if tokens <= 0:
        return None
    price_per_token_sol = sol / tokens
    price_per_token_usd = price_per_token_sol * sol_price
    return price_per_token_usd * TOTAL_SUPPLY


def rest_direct_market_cap(payload: Mapping[str, Any]) -> float | None:
    return _as_float(payload.get("marketCap"))


def rest_price_supply_market_cap(payload: Mapping[str, Any]) -> float | None:
    price = _as_float(payload.get("price"))
    supply = _as_float(payload.get("supply"))
    if price is None or supply is None:
        return None
    return price * supply


TRADE_STRATEGIES: tuple[TradeStrategy, ...] = (
    direct_market_cap,
    bonding_curve_market_cap,
)
REST_STRATEGIES: tuple[RestStrategy, ...] = (
    rest_direct_market_cap,
    rest_price_supply_market_cap,
)


def estimate_trade_market_cap(
    event: Mapping[str, Any],
    sol_price: float,
    strategies: Sequence[TradeStrategy] = TRADE_STRATEGIES,
) -> float | None:
    """Return a positive USD market cap for a trade event, or ``None``."""
    for strategy in strategies:
        value = strategy(event, sol_price)
        if value is None:
            continue
        return value if value > 0 else None
    return None


def estimate_rest_market_cap(
    payload: Mapping[str, Any],
    strategies: Sequence[RestStrategy] = REST_STRATEGIES,
) -> float | None:
    for strategy in strategies:
        value = strategy(payload)
        if value is None:
            continue
        return value if value > 0 else None
    return None
