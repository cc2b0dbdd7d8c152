"""
Portfolio Construction Tool: Share Allocator

Pure functions for:
- Converting percentage weights into whole-share positions
- Re-expressing a construction result as rebalance targets at current prices

Shares are always floored: a position never costs more than its nominal
weight of total capital. No LLM, no I/O.
"""

from __future__ import annotations

import logging
import math
from typing import List, Mapping, Optional, Sequence

from portfolio_builder.exceptions import InvalidPriceError
from portfolio_builder.schemas.construction_output import (
    Allocation,
    PortfolioConstructionResult,
)
from portfolio_builder.schemas.rebalance_output import TargetAllocation

logger = logging.getLogger(__name__)


def shares_for_weight(weight: float, total_capital: float, price: float) -> int:
    """Whole shares affordable with weight% of total_capital at price."""
    if price <= 0:
        raise InvalidPriceError(f"Non-positive price {price}")
    nominal_value = weight * total_capital / 100.0
    return max(0, math.floor(nominal_value / price))


def allocate_shares(
    allocations: Sequence[Allocation],
    total_capital: float,
) -> List[Allocation]:
    """
    Size each allocation in whole shares.

    target_value is the realized value (shares x price), not the nominal
    weight x capital.
    """
    sized: List[Allocation] = []
    for a in allocations:
        if a.current_price <= 0:
            raise InvalidPriceError(f"{a.ticker} has non-positive price {a.current_price}")
        shares = shares_for_weight(a.weight, total_capital, a.current_price)
        sized.append(a.model_copy(update={
            "shares": shares,
            "target_value": shares * a.current_price,
        }))
    return sized


def build_target_allocations(
    result: PortfolioConstructionResult,
    total_capital: float,
    prices: Optional[Mapping[str, float]] = None,
) -> List[TargetAllocation]:
    """
    Re-express a construction result as rebalance targets.

    Tickers with a fresh quote in `prices` are re-priced and re-sized at
    that quote; the rest keep their construction-time price and shares.
    """
    prices = prices or {}
    targets: List[TargetAllocation] = []

    for a in result.allocations:
        quote = prices.get(a.ticker)
        if quote is None:
            price, shares = a.current_price, a.shares
        else:
            price = quote
            shares = shares_for_weight(a.weight, total_capital, price)
            if shares != a.shares:
                logger.debug(
                    f"[Targets] {a.ticker} re-sized {a.shares} -> {shares} shares "
                    f"at ${price:,.2f}"
                )
        targets.append(TargetAllocation(
            ticker=a.ticker,
            target_weight=a.weight,
            target_shares=shares,
            current_price=price,
        ))

    return targets
